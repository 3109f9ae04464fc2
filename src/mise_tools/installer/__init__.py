"""Async wrapper around the mise CLI.

Example:
    from mise_tools.installer import Installer

    installer = Installer()
    ok, message = await installer.install("npm:pyright")
    installed, active, version = await installer.check_status("npm:pyright")
"""

from .commands import Installer, OperationResult, parse_status
from .runner import MISE_NOT_FOUND, MiseRunner, RunResult, find_mise

__all__ = [
    "Installer",
    "OperationResult",
    "parse_status",
    "MISE_NOT_FOUND",
    "MiseRunner",
    "RunResult",
    "find_mise",
]
