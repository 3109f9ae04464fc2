"""mise commands used by mise-tools.

Every operation turns its subprocess outcome into a plain result value; none
of them raise for a missing executable, a failed run or unreadable output.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Tuple, Union

from ..core.config_schema import InstallScope
from ..util.log import Log
from .runner import MiseRunner

log = Log.create({"service": "installer"})

StatusTuple = Tuple[bool, bool, Optional[str]]
NOT_INSTALLED: StatusTuple = (False, False, None)

EachCallback = Callable[[str, bool, str], Union[None, Awaitable[None]]]
Operation = Callable[[str], Awaitable[Tuple[bool, str]]]


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one install or update."""
    name: str
    ok: bool
    message: str


def parse_status(stdout: str) -> StatusTuple:
    """Read ``mise ls --json`` output.

    The payload is ``{"<tool>": [{"version", "installed", "active", ...}]}``.
    Only an entry flagged ``installed`` counts; anything unreadable is
    reported as not installed.
    """
    text = stdout.strip()
    if not text or text == "{}":
        return NOT_INSTALLED

    try:
        data = json.loads(text)
    except ValueError:
        return NOT_INSTALLED
    if not isinstance(data, dict):
        return NOT_INSTALLED

    for versions in data.values():
        if not isinstance(versions, list):
            continue
        for entry in versions:
            if isinstance(entry, dict) and entry.get("installed"):
                version = entry.get("version")
                return True, bool(entry.get("active", False)), str(version) if version is not None else None

    return NOT_INSTALLED


async def _call(callback: Optional[EachCallback], result: OperationResult) -> None:
    if callback is None:
        return
    try:
        pending = callback(result.name, result.ok, result.message)
        if hasattr(pending, "__await__"):
            await pending
    except Exception as e:
        log.error("per-tool callback failed", {"name": result.name, "error": e})


class Installer:
    """mise operations: install, update, status and binary lookup."""

    def __init__(self, runner: Optional[MiseRunner] = None):
        self.runner = runner or MiseRunner()

    async def install(self, mise_id: str, scope: InstallScope = InstallScope.GLOBAL) -> Tuple[bool, str]:
        """Install with ``mise use``, which also activates the tool on PATH."""
        args = ["use"]
        if InstallScope(scope) == InstallScope.GLOBAL:
            args.append("--global")
        args.append(f"{mise_id}@latest")

        result = await self.runner.run(args)
        if result.ok:
            return True, f"Installed {mise_id}"
        return False, f"Failed to install {mise_id}: {result.stderr.strip()}"

    async def update(self, mise_id: str) -> Tuple[bool, str]:
        result = await self.runner.run(["upgrade", mise_id])
        if result.ok:
            return True, f"Updated {mise_id}"
        return False, f"Failed to update {mise_id}: {result.stderr.strip()}"

    async def check_status(self, mise_id: str) -> StatusTuple:
        """Return ``(installed, active, version)`` for a package."""
        result = await self.runner.run(["ls", "--json", mise_id])
        if not result.ok:
            return NOT_INSTALLED
        return parse_status(result.stdout)

    async def which(self, bin_name: str) -> Optional[str]:
        """Resolve the full path of a tool binary with ``mise which``."""
        result = await self.runner.run(["which", bin_name])
        path = result.stdout.strip()
        if result.ok and path:
            return path
        return None

    async def version(self) -> Optional[str]:
        result = await self.runner.run(["--version"])
        text = result.stdout.strip()
        if result.ok and text:
            return text
        return None

    async def run_many(
        self,
        packages: Dict[str, str],
        operation: Operation,
        on_each: Optional[EachCallback] = None,
    ) -> Dict[str, bool]:
        """Run one operation over ``{name: mise_id}`` concurrently.

        ``on_each(name, ok, message)`` fires as each tool finishes; the
        aggregate ``{name: ok}`` is returned once all have finished.
        """
        results: Dict[str, bool] = {}
        if not packages:
            return results

        async def one(name: str, mise_id: str) -> None:
            ok, message = await operation(mise_id)
            outcome = OperationResult(name=name, ok=ok, message=message)
            log.info("tool finished", {"name": name, "mise_id": mise_id, "ok": ok})
            results[name] = outcome.ok
            await _call(on_each, outcome)

        await asyncio.gather(*(one(name, mise_id) for name, mise_id in packages.items()))
        return results

    async def install_many(
        self,
        packages: Dict[str, str],
        scope: InstallScope = InstallScope.GLOBAL,
        on_each: Optional[EachCallback] = None,
    ) -> Dict[str, bool]:
        async def operation(mise_id: str) -> Tuple[bool, str]:
            return await self.install(mise_id, scope)

        return await self.run_many(packages, operation, on_each)

    async def update_many(
        self,
        packages: Dict[str, str],
        on_each: Optional[EachCallback] = None,
    ) -> Dict[str, bool]:
        return await self.run_many(packages, self.update, on_each)
