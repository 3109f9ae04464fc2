import pytest

from mise_tools.core.config_schema import InstallScope
from mise_tools.installer import MISE_NOT_FOUND, Installer, MiseRunner, parse_status
from tests.helpers import fail, fake_installer, install_handler, ls_json, ok


@pytest.mark.anyio
async def test_install_global_uses_latest_and_global_flag() -> None:
    installer, runner = fake_installer()

    result = await installer.install("npm:pyright", InstallScope.GLOBAL)

    assert result == (True, "Installed npm:pyright")
    assert runner.calls == [["use", "--global", "npm:pyright@latest"]]


@pytest.mark.anyio
async def test_install_local_omits_global_flag() -> None:
    installer, runner = fake_installer()

    await installer.install("taplo", InstallScope.LOCAL)

    assert runner.calls == [["use", "taplo@latest"]]


@pytest.mark.anyio
async def test_install_failure_embeds_stderr() -> None:
    installer, _ = fake_installer(lambda args: fail("network unreachable\n"))

    ok_, message = await installer.install("zls")

    assert ok_ is False
    assert message == "Failed to install zls: network unreachable"


@pytest.mark.anyio
async def test_update_builds_upgrade_command() -> None:
    installer, runner = fake_installer()

    assert await installer.update("ruff") == (True, "Updated ruff")
    assert runner.calls == [["upgrade", "ruff"]]


@pytest.mark.anyio
async def test_update_failure_message() -> None:
    installer, _ = fake_installer(lambda args: fail("not installed"))

    assert await installer.update("ruff") == (False, "Failed to update ruff: not installed")


@pytest.mark.anyio
async def test_check_status_queries_json() -> None:
    payload = {
        "npm:pyright": [
            {"version": "1.0.0", "installed": False},
            {"version": "1.2.3", "installed": True, "active": True},
        ]
    }
    installer, runner = fake_installer(lambda args: ls_json(payload))

    assert await installer.check_status("npm:pyright") == (True, True, "1.2.3")
    assert runner.calls == [["ls", "--json", "npm:pyright"]]


@pytest.mark.anyio
async def test_check_status_failed_query_is_not_installed() -> None:
    installer, _ = fake_installer(lambda args: fail("unknown tool"))

    assert await installer.check_status("nope") == (False, False, None)


@pytest.mark.parametrize(
    "stdout",
    [
        "",
        "   \n",
        "{}",
        "{}\n",
        "not json",
        "[1, 2]",
        '{"ruff": "1.0"}',
        '{"ruff": [1, "x", null]}',
        '{"ruff": [{"version": "0.5.0", "installed": false, "active": true}]}',
    ],
)
def test_parse_status_degrades_to_not_installed(stdout: str) -> None:
    assert parse_status(stdout) == (False, False, None)


def test_parse_status_defaults_active_to_false() -> None:
    assert parse_status('{"ruff": [{"version": "0.5.0", "installed": true}]}') == (True, False, "0.5.0")


def test_parse_status_takes_first_installed_entry() -> None:
    stdout = '{"a": [{"version": "1", "installed": true, "active": false}, {"version": "2", "installed": true, "active": true}]}'
    assert parse_status(stdout) == (True, False, "1")


@pytest.mark.anyio
async def test_which_strips_output() -> None:
    installer, runner = fake_installer(lambda args: ok("/home/u/.local/share/mise/bin/taplo\n"))

    assert await installer.which("taplo") == "/home/u/.local/share/mise/bin/taplo"
    assert runner.calls == [["which", "taplo"]]


@pytest.mark.anyio
async def test_which_empty_or_failed_is_none() -> None:
    empty, _ = fake_installer(lambda args: ok(""))
    failed, _ = fake_installer(lambda args: fail("not found"))

    assert await empty.which("taplo") is None
    assert await failed.which("taplo") is None


@pytest.mark.anyio
async def test_missing_mise_turns_into_failed_install(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("mise_tools.installer.runner.shutil.which", lambda name: None)
    installer = Installer(MiseRunner())

    ok_, message = await installer.install("ruff")

    assert ok_ is False
    assert message == f"Failed to install ruff: {MISE_NOT_FOUND}"


@pytest.mark.anyio
async def test_install_many_empty_runs_nothing() -> None:
    installer, runner = fake_installer()
    seen = []

    results = await installer.install_many({}, on_each=lambda *args: seen.append(args))

    assert results == {}
    assert seen == []
    assert runner.calls == []


@pytest.mark.anyio
async def test_install_many_reports_each_then_aggregates() -> None:
    installer, runner = fake_installer(install_handler({"zls": "checksum mismatch"}))
    seen = []

    results = await installer.install_many(
        {"lua_ls": "lua-language-server", "zls": "zls", "ruff": "ruff"},
        InstallScope.GLOBAL,
        on_each=lambda name, ok_, message: seen.append((name, ok_, message)),
    )

    assert results == {"lua_ls": True, "zls": False, "ruff": True}
    assert len(seen) == 3
    assert ("zls", False, "Failed to install zls: checksum mismatch") in seen
    assert len(runner.calls) == 3


@pytest.mark.anyio
async def test_run_many_survives_failing_callback() -> None:
    installer, _ = fake_installer()

    def explode(name: str, ok_: bool, message: str) -> None:
        raise RuntimeError("callback bug")

    results = await installer.update_many({"a": "a", "b": "b"}, on_each=explode)

    assert results == {"a": True, "b": True}
