from typing import Optional

import pytest

from mise_tools.core.config import ConfigManager
from mise_tools.core.config_schema import MiseToolsConfig
from mise_tools.health import check
from mise_tools.installer import Installer
from mise_tools.orchestrator import Orchestrator
from tests.helpers import FakeRunner, fail, ok


def _orchestrator(desired, runner: FakeRunner) -> Orchestrator:  # type: ignore[no-untyped-def]
    config = MiseToolsConfig.model_validate({"ensure_installed": desired, "auto_install": False})
    return Orchestrator(config, Installer(runner))


def _on_path(monkeypatch: pytest.MonkeyPatch, binaries: dict) -> None:
    def which(name: str) -> Optional[str]:
        return binaries.get(name)

    monkeypatch.setattr("mise_tools.health.shutil.which", which)


@pytest.mark.anyio
async def test_missing_mise_is_an_error_with_advice() -> None:
    runner = FakeRunner(mise_path=None)

    items = await check(_orchestrator(["taplo"], runner))

    assert len(items) == 1
    assert items[0].level == "error"
    assert items[0].message == "mise binary not found on PATH"
    assert any("mise activate" in advice for advice in items[0].advice)
    assert runner.calls == []


@pytest.mark.anyio
async def test_reports_version_and_tools(monkeypatch: pytest.MonkeyPatch) -> None:
    _on_path(monkeypatch, {"taplo": "/usr/bin/taplo"})
    runner = FakeRunner(lambda args: ok("2026.1.0 linux-x64\n"))

    items = await check(_orchestrator(["taplo", "lua_ls", "unknown-tool"], runner))
    by_message = {item.message: item for item in items}

    assert by_message["mise found: /opt/mise/bin/mise"].level == "ok"
    assert by_message["mise version: 2026.1.0 linux-x64"].level == "ok"
    assert by_message["ensure_installed: taplo, lua_ls, unknown-tool"].level == "info"
    assert by_message["scope: global"].level == "info"
    assert by_message["auto_install: false"].level == "info"
    assert by_message["taplo: taplo found at /usr/bin/taplo"].level == "ok"

    missing = by_message["lua_ls: lua-language-server not found on PATH"]
    assert missing.level == "warn"
    assert missing.advice == ["Run mise-tools install lua_ls to install"]
    assert by_message["unknown-tool: not found in registry"].level == "warn"


@pytest.mark.anyio
async def test_unknown_version_is_a_warning() -> None:
    items = await check(_orchestrator([], FakeRunner(lambda args: fail("boom"))))

    levels = [(item.level, item.message) for item in items]
    assert ("warn", "Could not determine mise version") in levels
    assert levels[-1] == ("info", "No tools in ensure_installed")


@pytest.mark.anyio
async def test_reports_loaded_config_sources(tmp_path) -> None:  # type: ignore[no-untyped-def]
    ConfigManager.provide(ConfigManager())
    (tmp_path / "mise-tools.json").write_text('{"scope": "local"}', encoding="utf-8")
    await ConfigManager.load(str(tmp_path))

    items = await check(_orchestrator([], FakeRunner(lambda args: ok("2026.1.0"))))

    config_items = [item.message for item in items if item.message.startswith("config: ")]
    assert config_items == [f"config: {tmp_path.resolve() / 'mise-tools.json'}"]


@pytest.mark.anyio
async def test_defaults_when_no_config_loaded() -> None:
    ConfigManager.provide(ConfigManager())
    items = await check(_orchestrator([], FakeRunner(lambda args: ok("2026.1.0"))))

    assert "config: built-in defaults" in [item.message for item in items]
