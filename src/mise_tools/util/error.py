"""User-facing text for errors that reach the command line."""

import traceback
from typing import Any, Optional


def format_error(error: Any) -> Optional[str]:
    """Message for errors the user can fix, or None for anything else."""
    from ..core.config import ConfigError

    if isinstance(error, ConfigError):
        return f"Invalid configuration in {error.path}: {error.reason}"
    if isinstance(error, ValueError) and str(error).startswith("invalid log level"):
        return f"{error} (expected one of debug, info, warn, error)"
    return None


def format_unknown_error(error: Any) -> str:
    """Full traceback for an unexpected exception, plain text for anything else."""
    if isinstance(error, BaseException):
        if error.__traceback__ is not None:
            return "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return f"{error.__class__.__name__}: {error}"
    return str(error)
