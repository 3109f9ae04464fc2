"""Editor collaboration boundary.

mise-tools never starts language servers itself. It asks an editor to enable
a server by name and reads the editor's server configs and file-type events
through the ``Editor`` protocol. ``HeadlessEditor`` is a small in-process
implementation used by the command line, backed by the ``servers`` config.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Protocol

from .core.config_schema import ServerConfig
from .util.log import Log

log = Log.create({"service": "editor"})

FiletypeCallback = Callable[[str], None]

# File extension (without dot) or exact file name -> editor file type
FILETYPES: Dict[str, str] = {
    "lua": "lua",
    "rs": "rust",
    "toml": "toml",
    "md": "markdown",
    "markdown": "markdown",
    "zig": "zig",
    "tf": "terraform",
    "tfvars": "terraform-vars",
    "ex": "elixir",
    "exs": "elixir",
    "heex": "heex",
    "py": "python",
    "pyi": "python",
    "ts": "typescript",
    "tsx": "typescriptreact",
    "js": "javascript",
    "jsx": "javascriptreact",
    "mjs": "javascript",
    "cjs": "javascript",
    "sh": "sh",
    "bash": "bash",
    "zsh": "zsh",
    "yaml": "yaml",
    "yml": "yaml",
    "json": "json",
    "jsonc": "jsonc",
    "html": "html",
    "htm": "html",
    "css": "css",
    "scss": "scss",
    "less": "less",
    "go": "go",
    "mod": "gomod",
    "Dockerfile": "dockerfile",
    "Makefile": "make",
}


def detect_filetype(path: str) -> str:
    """File type for a path, or an empty string when unknown."""
    p = Path(path)
    if p.name in FILETYPES:
        return FILETYPES[p.name]
    return FILETYPES.get(p.suffix.lstrip("."), "")


class Editor(Protocol):
    """What mise-tools needs from an editor."""

    def enable(self, name: str) -> None:
        """Enable (activate) the language server ``name``."""
        ...

    def server_config(self, name: str) -> Optional[ServerConfig]:
        ...

    def configured_servers(self) -> List[str]:
        ...

    def open_filetypes(self) -> List[str]:
        """File types of currently open buffers."""
        ...

    def on_filetype(self, callback: FiletypeCallback) -> Callable[[], None]:
        """Subscribe to file-type-open events; returns an unsubscribe function."""
        ...


class HeadlessEditor:
    """Editor without a UI: opened files and enabled servers are tracked in memory."""

    def __init__(self, servers: Optional[Mapping[str, ServerConfig]] = None):
        self.servers: Dict[str, ServerConfig] = {}
        self.configure(servers)
        self.buffers: List[str] = []
        self.enabled: List[str] = []
        self._listeners: List[FiletypeCallback] = []

    def configure(self, servers: Optional[Mapping[str, ServerConfig]]) -> None:
        """Replace the server configs. Open buffers and enabled servers are kept."""
        self.servers = {
            name: ServerConfig.model_validate(config) for name, config in (servers or {}).items()
        }

    def enable(self, name: str) -> None:
        if name not in self.enabled:
            self.enabled.append(name)
        log.info("enabled server", {"name": name})

    def server_config(self, name: str) -> Optional[ServerConfig]:
        return self.servers.get(name)

    def configured_servers(self) -> List[str]:
        return sorted(self.servers)

    def open_filetypes(self) -> List[str]:
        return [ft for ft in (detect_filetype(path) for path in self.buffers) if ft]

    def on_filetype(self, callback: FiletypeCallback) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def open(self, path: str) -> str:
        """Open a buffer and fire file-type listeners. Returns the file type."""
        self.buffers.append(path)
        ft = detect_filetype(path)
        log.debug("opened buffer", {"path": path, "filetype": ft})
        if ft:
            for callback in list(self._listeners):
                callback(ft)
        return ft
