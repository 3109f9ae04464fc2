from collections.abc import Iterator
from pathlib import Path

import pytest

from mise_tools.core.bus import Bus
from mise_tools.core.config import ConfigManager
from mise_tools.core.global_paths import GlobalPath


@pytest.fixture(autouse=True)
def bus_context() -> Iterator[None]:
    token = Bus.provide(Bus())
    try:
        yield
    finally:
        Bus.restore(token)


@pytest.fixture(autouse=True)
def isolated_paths(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    config_dir = tmp_path / "_config"
    log_dir = tmp_path / "_log"
    monkeypatch.setattr(GlobalPath, "config", classmethod(lambda cls: str(config_dir)))
    monkeypatch.setattr(GlobalPath, "log", classmethod(lambda cls: str(log_dir)))
    monkeypatch.delenv("MISE_TOOLS_CONFIG_CONTENT", raising=False)
    monkeypatch.delenv("MISE_TOOLS_MISE", raising=False)
    token = ConfigManager.provide(ConfigManager())
    try:
        yield
    finally:
        ConfigManager.restore(token)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
