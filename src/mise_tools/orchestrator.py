"""Batch install, update and status over many tools.

The orchestrator resolves tool names through the registry, fans operations out
concurrently through the installer and reports one aggregate per batch.
"""

import asyncio
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel

from .core.bus import notify
from .core.config_schema import AllDiscovered, MiseToolsConfig
from .editor import Editor
from .installer import Installer, MiseRunner
from .installer.commands import EachCallback
from .registry import Registry
from .util.log import Log

log = Log.create({"service": "orchestrator"})


class ToolStatus(BaseModel):
    """Installed state of one tool.

    Attributes:
        name: Tool name as requested
        mise_id: Resolved mise package identifier
        installed: An installed version exists
        active: The installed version is on the resolution path
        version: Installed version, if known
    """
    name: str
    mise_id: str
    installed: bool = False
    active: bool = False
    version: Optional[str] = None

    def describe(self) -> str:
        version = self.version or "?"
        if self.installed and self.active:
            return f"installed, active, version {version}"
        if self.installed:
            return f"installed, inactive, version {version}"
        return "not installed"


def resolve_desired(config: MiseToolsConfig, editor: Optional[Editor] = None) -> List[str]:
    """Concrete list of desired tool names for a config."""
    desired = config.ensure_installed
    if isinstance(desired, AllDiscovered):
        if editor is None:
            return []
        return sorted(editor.configured_servers())
    return list(desired.names)


def _summary(prefix: str, results: Dict[str, bool]) -> str:
    succeeded = sum(1 for ok in results.values() if ok)
    failed = len(results) - succeeded
    return f"{prefix}: {succeeded} succeeded, {failed} failed"


class Orchestrator:
    """Fan-out/fan-in engine over the mise installer.

    Holds the configuration and merged registry for one epoch; ``apply``
    replaces both together.
    """

    def __init__(
        self,
        config: Optional[MiseToolsConfig] = None,
        installer: Optional[Installer] = None,
        editor: Optional[Editor] = None,
    ):
        config = config or MiseToolsConfig()
        # An injected installer is the caller's; only our own follows mise_path
        self._owns_installer = installer is None
        self.installer = installer or Installer(MiseRunner(config.mise_path))
        self.editor = editor
        self.config = config
        self.registry = Registry(config.registry)

    def apply(self, config: MiseToolsConfig) -> None:
        registry = Registry(config.registry)
        if self._owns_installer and config.mise_path != self.config.mise_path:
            self.installer = Installer(MiseRunner(config.mise_path))
        self.config, self.registry = config, registry
        log.info("applied configuration", {
            "scope": config.scope.value,
            "auto_install": config.auto_install,
            "registry_size": len(registry),
            "mise_path": config.mise_path,
        })

    def desired(self) -> List[str]:
        return resolve_desired(self.config, self.editor)

    def resolve(self, names: Optional[Sequence[str]] = None) -> Dict[str, str]:
        """``{name: mise_id}`` for the given names, or the desired tools when empty."""
        if not names:
            names = self.desired()
        return self.registry.resolve_many(names)

    async def install(
        self,
        names: Optional[Sequence[str]] = None,
        on_each: Optional[EachCallback] = None,
    ) -> Dict[str, bool]:
        """Install tools concurrently; returns ``{name: succeeded}``."""
        packages = self.resolve(names)
        if not packages:
            await notify("No tools to install.")
            return {}

        await notify(f"Installing {len(packages)} tool(s)...")
        results = await self.installer.install_many(
            packages, self.config.scope, self._reporter(on_each)
        )
        await self._report_summary("Done", results)
        return results

    async def update(
        self,
        names: Optional[Sequence[str]] = None,
        on_each: Optional[EachCallback] = None,
    ) -> Dict[str, bool]:
        """Upgrade tools concurrently; returns ``{name: succeeded}``."""
        packages = self.resolve(names)
        if not packages:
            await notify("No tools to update.")
            return {}

        await notify(f"Updating {len(packages)} tool(s)...")
        results = await self.installer.update_many(packages, self._reporter(on_each))
        await self._report_summary("Update done", results)
        return results

    async def statuses(self, names: Optional[Sequence[str]] = None) -> List[ToolStatus]:
        """Status of each tool, sorted by name."""
        packages = self.resolve(names)

        async def one(name: str, mise_id: str) -> ToolStatus:
            installed, active, version = await self.installer.check_status(mise_id)
            return ToolStatus(
                name=name,
                mise_id=mise_id,
                installed=installed,
                active=active,
                version=version,
            )

        results = await asyncio.gather(*(one(name, mise_id) for name, mise_id in packages.items()))
        return sorted(results, key=lambda status: status.name)

    async def status(self, names: Optional[Sequence[str]] = None) -> str:
        """Text summary with one line per tool."""
        statuses = await self.statuses(names)
        if not statuses:
            return "No tools in ensure_installed."
        lines = [f"  {s.name} ({s.mise_id}): {s.describe()}" for s in statuses]
        return "Status:\n" + "\n".join(lines)

    def _reporter(self, on_each: Optional[EachCallback]) -> EachCallback:
        async def report(name: str, ok: bool, message: str) -> None:
            await notify(message, "info" if ok else "error")
            if on_each is not None:
                result = on_each(name, ok, message)
                if hasattr(result, "__await__"):
                    await result

        return report

    async def _report_summary(self, prefix: str, results: Dict[str, bool]) -> None:
        level = "warn" if not all(results.values()) else "info"
        await notify(_summary(prefix, results), level)
