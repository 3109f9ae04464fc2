"""Asynchronous runner for the mise executable."""

from __future__ import annotations

import asyncio
import os
import shutil
from dataclasses import dataclass
from typing import List, Optional

from ..util.log import Log

log = Log.create({"service": "runner"})

MISE_NOT_FOUND = "mise binary not found on PATH"


@dataclass(frozen=True)
class RunResult:
    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def find_mise(explicit: Optional[str] = None) -> Optional[str]:
    """Locate the mise executable.

    Checks an explicitly configured path, then ``MISE_TOOLS_MISE``, then PATH.
    """
    for candidate in (explicit, os.environ.get("MISE_TOOLS_MISE")):
        if candidate and os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate
    return shutil.which("mise")


class MiseRunner:
    """Runs ``mise <args...>`` without blocking the event loop."""

    def __init__(self, mise_path: Optional[str] = None):
        self.mise_path = mise_path

    def locate(self) -> Optional[str]:
        return find_mise(self.mise_path)

    async def run(self, args: List[str]) -> RunResult:
        mise = self.locate()
        if not mise:
            # Same async delivery as a real completion
            await asyncio.sleep(0)
            log.warn("mise not found", {"args": args})
            return RunResult(exit_code=-1, stdout="", stderr=MISE_NOT_FOUND)

        try:
            proc = await asyncio.create_subprocess_exec(
                mise,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            log.error("failed to spawn mise", {"args": args, "error": e})
            return RunResult(exit_code=-1, stdout="", stderr=str(e))

        with log.time("mise", {"args": args}):
            stdout_bytes, stderr_bytes = await proc.communicate()
        result = RunResult(
            exit_code=int(proc.returncode or 0),
            stdout=stdout_bytes.decode("utf-8", errors="replace"),
            stderr=stderr_bytes.decode("utf-8", errors="replace"),
        )
        log.debug("mise exited", {"args": args, "exit_code": result.exit_code})
        return result
