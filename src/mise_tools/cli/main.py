"""CLI entry point for mise-tools.

Each command is a thin wrapper over the orchestrator, the activation
controller or the health check.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, TypeVar

import typer
from rich.console import Console
from rich.text import Text

from .. import __version__
from ..core.config import ConfigError, ConfigManager
from ..core.config_schema import MiseToolsConfig
from ..health import check as health_check
from ..registry import Registry
from ..runtime import Runtime, bootstrap_logging
from ..ui import show as show_status
from ..util.error import format_error, format_unknown_error
from ..util.log import Log

app = typer.Typer(
    name="mise-tools",
    help="Install and check editor dev tools through mise",
    no_args_is_help=True,
)

console = Console()
log = Log.create({"service": "cli"})

T = TypeVar("T")

NOTICE_STYLES = {
    "debug": "dim",
    "info": "",
    "warn": "yellow",
    "error": "red",
}

HEALTH_STYLES = {
    "ok": "green",
    "info": "",
    "warn": "yellow",
    "error": "red",
}


@dataclass
class CliOptions:
    config: Optional[str] = None
    log_level: Optional[str] = None
    print_logs: bool = False


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        console.print(f"mise-tools {__version__}")
        raise typer.Exit()


def print_notice(message: str, level: str) -> None:
    console.print(Text(f"[mise-tools] {message}", style=NOTICE_STYLES.get(level, "")))


def complete_tool_names(incomplete: str) -> List[str]:
    """Shell completion over the merged registry names."""
    try:
        config = asyncio.run(ConfigManager.load())
        registry = Registry(config.registry)
    except ConfigError:
        registry = Registry()
    return [name for name in registry.names() if name.startswith(incomplete)]


def _execute(ctx: typer.Context, fn: Callable[[Runtime], Awaitable[T]]) -> T:
    options: CliOptions = ctx.obj or CliOptions()

    log_console = True if options.print_logs else None

    async def run() -> T:
        # Flags only until the config is read, so loader lines reach the sinks
        bootstrap_logging(MiseToolsConfig(), level=options.log_level, console=log_console)
        runtime = await Runtime.load(explicit=options.config, on_notice=print_notice)
        bootstrap_logging(runtime.config, level=options.log_level, console=log_console)
        async with runtime:
            return await fn(runtime)

    try:
        return asyncio.run(run())
    except (ConfigError, ValueError) as e:
        console.print(Text(format_error(e) or str(e), style="red"))
        raise typer.Exit(1)
    except Exception as e:
        log.error("command failed", {"error": e})
        console.print(Text(format_unknown_error(e), style="red"))
        if Log.file():
            console.print(Text(f"Log file: {Log.file()}", style="dim"))
        raise typer.Exit(1)
    finally:
        Log.close()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Extra config file, applied after global and project configs",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level: debug, info, warn, error",
    ),
    print_logs: bool = typer.Option(
        False,
        "--print-logs",
        help="Write logs to stderr",
    ),
):
    """Manage editor dev tools with mise."""
    ctx.obj = CliOptions(config=config, log_level=log_level, print_logs=print_logs)


@app.command()
def install(
    ctx: typer.Context,
    names: Optional[List[str]] = typer.Argument(
        None,
        help="Tool names or raw mise ids (default: ensure_installed)",
        autocompletion=complete_tool_names,
    ),
):
    """Install tools via mise."""

    async def run(runtime: Runtime) -> dict:
        return await runtime.orchestrator.install(names)

    results = _execute(ctx, run)
    if not all(results.values()):
        raise typer.Exit(1)


@app.command()
def update(
    ctx: typer.Context,
    names: Optional[List[str]] = typer.Argument(
        None,
        help="Tool names or raw mise ids (default: ensure_installed)",
        autocompletion=complete_tool_names,
    ),
):
    """Update tools via mise."""

    async def run(runtime: Runtime) -> dict:
        return await runtime.orchestrator.update(names)

    results = _execute(ctx, run)
    if not all(results.values()):
        raise typer.Exit(1)


@app.command()
def status(ctx: typer.Context):
    """Show install status of mise-managed tools."""

    async def run(runtime: Runtime) -> str:
        return await runtime.orchestrator.status()

    console.print(_execute(ctx, run), markup=False, highlight=False)


@app.command()
def show(ctx: typer.Context):
    """Show a status table of ensure_installed tools."""

    async def run(runtime: Runtime) -> None:
        await show_status(runtime.orchestrator, console)

    _execute(ctx, run)


@app.command()
def health(ctx: typer.Context):
    """Check that mise and the configured tools are available."""

    async def run(runtime: Runtime) -> list:
        return await health_check(runtime.orchestrator)

    items = _execute(ctx, run)
    for item in items:
        console.print(Text.assemble((item.level.upper(), HEALTH_STYLES[item.level]), " ", item.message))
        for advice in item.advice:
            console.print(Text(f"  - {advice}"))

    if any(item.level == "error" for item in items):
        raise typer.Exit(1)


@app.command("open")
def open_files(
    ctx: typer.Context,
    files: List[str] = typer.Argument(..., help="Files to open"),
):
    """Open files in a headless editor: install and enable matching servers."""

    async def run(runtime: Runtime) -> List[str]:
        runtime.activation.setup()
        for path in files:
            runtime.editor.open(path)
        await runtime.activation.wait()
        return list(runtime.editor.enabled)

    enabled = _execute(ctx, run)
    if not enabled:
        console.print("No servers enabled")
        return
    for name in enabled:
        console.print(Text(f"enabled {name}"))


if __name__ == "__main__":
    app()
