"""Health check for mise-tools: is mise available and are desired tools on PATH."""

import shutil
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .core.config import ConfigManager
from .orchestrator import Orchestrator

HealthLevel = Literal["ok", "info", "warn", "error"]


class HealthItem(BaseModel):
    """One line of the health report."""
    level: HealthLevel
    message: str
    advice: List[str] = Field(default_factory=list)


async def check(orchestrator: Orchestrator) -> List[HealthItem]:
    items: List[HealthItem] = []

    mise_path: Optional[str] = orchestrator.installer.runner.locate()
    if not mise_path:
        items.append(HealthItem(
            level="error",
            message="mise binary not found on PATH",
            advice=[
                "Install mise: https://mise.jdx.dev/getting-started.html",
                "Ensure mise is activated in your shell (mise activate)",
            ],
        ))
        return items
    items.append(HealthItem(level="ok", message=f"mise found: {mise_path}"))

    version = await orchestrator.installer.version()
    if version:
        items.append(HealthItem(level="ok", message=f"mise version: {version}"))
    else:
        items.append(HealthItem(level="warn", message="Could not determine mise version"))

    sources = ConfigManager.sources()
    items.append(HealthItem(
        level="info",
        message=f"config: {', '.join(sources)}" if sources else "config: built-in defaults",
    ))

    config = orchestrator.config
    names = orchestrator.desired()
    if not names:
        items.append(HealthItem(level="info", message="No tools in ensure_installed"))
        return items

    items.append(HealthItem(level="info", message=f"ensure_installed: {', '.join(names)}"))
    items.append(HealthItem(level="info", message=f"scope: {config.scope.value}"))
    items.append(HealthItem(level="info", message=f"auto_install: {str(config.auto_install).lower()}"))

    for name in names:
        entry = orchestrator.registry.get(name)
        if entry is None:
            items.append(HealthItem(level="warn", message=f"{name}: not found in registry"))
            continue
        if not entry.bin:
            items.append(HealthItem(level="info", message=f"{name}: no binary declared"))
            continue

        bin_path = shutil.which(entry.bin)
        if bin_path:
            items.append(HealthItem(level="ok", message=f"{name}: {entry.bin} found at {bin_path}"))
        else:
            items.append(HealthItem(
                level="warn",
                message=f"{name}: {entry.bin} not found on PATH",
                advice=[f"Run mise-tools install {name} to install"],
            ))

    return items
