"""mise-tools - manage editor dev tools through mise.

Installs language servers, linters and formatters with the ``mise`` package
manager, reports their status, and enables language servers when a matching
file type is opened.
"""

__version__ = "0.1.0"


# Lazy imports to keep ``import mise_tools`` cheap for the CLI
def __getattr__(name: str):
    """Lazy import module components."""
    if name in ("Orchestrator",):
        from . import orchestrator
        return getattr(orchestrator, name)
    if name in ("ActivationController",):
        from . import activation
        return getattr(activation, name)
    if name in ("Registry", "BUILTIN_REGISTRY", "ToolEntry"):
        from . import registry
        return getattr(registry, name)
    if name in ("Installer", "MiseRunner"):
        from . import installer
        return getattr(installer, name)
    if name in ("MiseToolsConfig", "ConfigManager"):
        from .core import config
        return getattr(config, name)
    if name == "Log":
        from .util.log import Log
        return Log
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "__version__",
    "Orchestrator",
    "ActivationController",
    "Registry",
    "BUILTIN_REGISTRY",
    "ToolEntry",
    "Installer",
    "MiseRunner",
    "MiseToolsConfig",
    "ConfigManager",
    "Log",
]
