"""Core infrastructure modules."""

from .global_paths import GlobalPath
from .bus import Bus, BusEvent

__all__ = ["GlobalPath", "Bus", "BusEvent"]

# Log is exported separately from util to avoid circular imports
# To use: from mise_tools.util.log import Log
