"""Shared test helpers."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional

from mise_tools.installer import Installer, MiseRunner, RunResult

Handler = Callable[[List[str]], RunResult]


def ok(stdout: str = "") -> RunResult:
    return RunResult(exit_code=0, stdout=stdout, stderr="")


def fail(stderr: str, code: int = 1) -> RunResult:
    return RunResult(exit_code=code, stdout="", stderr=stderr)


def ls_json(payload: Dict[str, Any]) -> RunResult:
    return ok(json.dumps(payload))


class FakeRunner(MiseRunner):
    """Records argv and answers from a handler instead of spawning mise."""

    def __init__(self, handler: Optional[Handler] = None, mise_path: Optional[str] = "/opt/mise/bin/mise"):
        super().__init__(mise_path)
        self.handler = handler or (lambda args: ok())
        self.calls: List[List[str]] = []

    def locate(self) -> Optional[str]:
        return self.mise_path

    async def run(self, args: List[str]) -> RunResult:
        self.calls.append(list(args))
        await asyncio.sleep(0)
        return self.handler(list(args))


def fake_installer(handler: Optional[Handler] = None) -> tuple[Installer, FakeRunner]:
    runner = FakeRunner(handler)
    return Installer(runner), runner


def install_handler(failures: Dict[str, str]) -> Handler:
    """``mise use`` fails for mise ids in ``failures`` with the given stderr."""
    def handler(args: List[str]) -> RunResult:
        if args and args[0] == "use":
            mise_id = args[-1].rsplit("@", 1)[0]
            if mise_id in failures:
                return fail(failures[mise_id])
        return ok()

    return handler
