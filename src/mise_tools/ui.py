"""Rich table view of tool status."""

from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .orchestrator import Orchestrator, ToolStatus

ICON_STYLES = {
    "+": "green",
    "~": "yellow",
    "x": "red",
}


def status_icon(installed: bool, active: bool) -> str:
    if installed and active:
        return "+"
    if installed:
        return "~"
    return "x"


def _status_text(status: ToolStatus) -> str:
    version = status.version or "?"
    if status.installed and status.active:
        return f"v{version}"
    if status.installed:
        return f"v{version} (inactive)"
    return "not installed"


def render_status(statuses: List[ToolStatus], width: Optional[int] = None) -> Table:
    """Build the status table: one row per tool and an installed count caption."""
    table = Table(
        title="mise-tools",
        caption=f"{sum(1 for s in statuses if s.installed)}/{len(statuses)} installed",
        width=width,
        expand=False,
    )
    table.add_column("", no_wrap=True)
    table.add_column("Name", no_wrap=True)
    table.add_column("Package")
    table.add_column("Status")

    for status in statuses:
        icon = status_icon(status.installed, status.active)
        table.add_row(
            Text(f"[{icon}]", style=ICON_STYLES[icon]),
            status.name,
            status.mise_id,
            _status_text(status),
        )
    return table


async def show(orchestrator: Orchestrator, console: Optional[Console] = None) -> None:
    """Print the status table for the desired tools."""
    console = console or Console()
    if not orchestrator.desired():
        console.print("No tools in ensure_installed.")
        return

    with console.status("Loading tool status..."):
        statuses = await orchestrator.statuses()
    # Rows follow ensure_installed, not the name order statuses() returns
    order = {name: index for index, name in enumerate(orchestrator.desired())}
    statuses.sort(key=lambda status: order.get(status.name, len(order)))
    console.print(render_status(statuses))
