"""Tool registry: friendly tool names mapped to mise packages.

Each entry maps a friendly name (usually the editor's language server name)
to the mise package identifier, the executable used to verify installation,
and the tool category. Users override or extend the built-in table through
the ``registry`` config key; an override replaces the built-in record whole.
"""

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

from .core.config_schema import ToolEntry, ToolType
from .util.log import Log

log = Log.create({"service": "registry"})


def _entry(mise_id: str, bin_name: str, tool_type: ToolType = ToolType.LSP) -> ToolEntry:
    return ToolEntry(mise_id=mise_id, bin=bin_name, type=tool_type)


BUILTIN_REGISTRY: Mapping[str, ToolEntry] = MappingProxyType({
    # Language servers in mise's own registry
    "lua_ls": _entry("lua-language-server", "lua-language-server"),
    "rust_analyzer": _entry("rust-analyzer", "rust-analyzer"),
    "taplo": _entry("taplo", "taplo"),
    "marksman": _entry("marksman", "marksman"),
    "zls": _entry("zls", "zls"),
    "helm_ls": _entry("helm-ls", "helm_ls"),
    "terraform_ls": _entry("terraform-ls", "terraform-ls"),
    "elixir_ls": _entry("elixir-ls", "elixir-ls"),

    # npm
    "pyright": _entry("npm:pyright", "pyright-langserver"),
    "basedpyright": _entry("npm:basedpyright", "basedpyright-langserver"),
    "ts_ls": _entry("npm:typescript-language-server", "typescript-language-server"),
    "bashls": _entry("npm:bash-language-server", "bash-language-server"),
    "yamlls": _entry("npm:yaml-language-server", "yaml-language-server"),
    "jsonls": _entry("npm:vscode-langservers-extracted", "vscode-json-language-server"),
    "html": _entry("npm:vscode-langservers-extracted", "vscode-html-language-server"),
    "cssls": _entry("npm:vscode-langservers-extracted", "vscode-css-language-server"),

    # go
    "gopls": _entry("go:golang.org/x/tools/gopls", "gopls"),

    # Linters / formatters
    "ruff": _entry("ruff", "ruff", ToolType.LINTER),
    "shellcheck": _entry("shellcheck", "shellcheck", ToolType.LINTER),
    "stylua": _entry("stylua", "stylua", ToolType.FORMATTER),
    "shfmt": _entry("shfmt", "shfmt", ToolType.FORMATTER),
})


def merge(
    builtin: Mapping[str, ToolEntry],
    overrides: Optional[Mapping[str, ToolEntry]] = None,
) -> Dict[str, ToolEntry]:
    """Overlay user entries onto the built-in table. User entries win."""
    return {**builtin, **(overrides or {})}


class Registry:
    """Immutable snapshot of the merged registry."""

    def __init__(self, overrides: Optional[Mapping[str, ToolEntry]] = None):
        self._entries: Mapping[str, ToolEntry] = MappingProxyType(merge(BUILTIN_REGISTRY, overrides))
        if overrides:
            log.debug("merged registry overrides", {"names": sorted(overrides)})

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, name: str) -> Optional[ToolEntry]:
        return self._entries.get(name)

    def names(self) -> List[str]:
        return sorted(self._entries)

    def resolve(self, name: str) -> str:
        """mise package id for a name; unknown names are used as a raw mise id."""
        entry = self._entries.get(name)
        if entry is not None:
            return entry.mise_id
        return name

    def resolve_many(self, names: Iterable[str]) -> Dict[str, str]:
        """Map names to mise ids, dropping duplicate names."""
        packages: Dict[str, str] = {}
        for name in names:
            if name not in packages:
                packages[name] = self.resolve(name)
        return packages

    def bin_for(self, name: str) -> Optional[str]:
        entry = self._entries.get(name)
        return entry.bin if entry is not None else None
