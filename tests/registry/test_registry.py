import pytest

from mise_tools.core.config_schema import ToolEntry, ToolType
from mise_tools.registry import BUILTIN_REGISTRY, Registry, merge


def test_builtin_registry_has_expected_entries() -> None:
    lua_ls = BUILTIN_REGISTRY["lua_ls"]
    assert lua_ls.mise_id == "lua-language-server"
    assert lua_ls.bin == "lua-language-server"
    assert lua_ls.type == ToolType.LSP

    assert BUILTIN_REGISTRY["pyright"].mise_id == "npm:pyright"
    assert BUILTIN_REGISTRY["gopls"].mise_id == "go:golang.org/x/tools/gopls"
    assert BUILTIN_REGISTRY["ruff"].type == ToolType.LINTER
    assert BUILTIN_REGISTRY["stylua"].type == ToolType.FORMATTER


def test_builtin_entries_are_complete() -> None:
    for name, entry in BUILTIN_REGISTRY.items():
        assert entry.mise_id, name
        assert entry.bin, name
        assert entry.type in set(ToolType), name


def test_builtin_registry_is_read_only() -> None:
    with pytest.raises(TypeError):
        BUILTIN_REGISTRY["lua_ls"] = ToolEntry(mise_id="x")  # type: ignore[index]


def test_merge_keeps_builtins_and_adds_overrides() -> None:
    custom = ToolEntry(mise_id="npm:my-custom-lsp", bin="my-custom-lsp")
    based = ToolEntry(mise_id="npm:basedpyright", bin="basedpyright-langserver")
    overrides = {"my_custom": custom, "pyright": based}

    merged = merge(BUILTIN_REGISTRY, overrides)

    assert set(merged) == set(BUILTIN_REGISTRY) | {"my_custom"}
    assert merged["my_custom"] == custom
    assert merged["pyright"] == based
    for name in set(BUILTIN_REGISTRY) - set(overrides):
        assert merged[name] == BUILTIN_REGISTRY[name]


def test_override_replaces_whole_entry() -> None:
    merged = merge(BUILTIN_REGISTRY, {"ruff": ToolEntry(mise_id="pipx:ruff")})

    assert merged["ruff"].bin is None
    assert merged["ruff"].type == ToolType.LSP


def test_merge_does_not_touch_inputs() -> None:
    overrides = {"x": ToolEntry(mise_id="x")}
    merge(BUILTIN_REGISTRY, overrides)

    assert "x" not in BUILTIN_REGISTRY
    assert list(overrides) == ["x"]


def test_resolve_uses_registry_or_literal_id() -> None:
    registry = Registry({"mine": ToolEntry(mise_id="cargo:mine")})

    assert registry.resolve("pyright") == "npm:pyright"
    assert registry.resolve("mine") == "cargo:mine"
    assert registry.resolve("npm:some-unknown-tool") == "npm:some-unknown-tool"


def test_resolve_many_drops_duplicates() -> None:
    registry = Registry()

    packages = registry.resolve_many(["jsonls", "cargo:taplo-cli", "jsonls", "html"])

    assert packages == {
        "jsonls": "npm:vscode-langservers-extracted",
        "cargo:taplo-cli": "cargo:taplo-cli",
        "html": "npm:vscode-langservers-extracted",
    }


def test_bin_for_unknown_name_is_none() -> None:
    registry = Registry()

    assert registry.bin_for("helm_ls") == "helm_ls"
    assert registry.bin_for("not-a-tool") is None
    assert "helm_ls" in registry
    assert registry.names() == sorted(BUILTIN_REGISTRY)


def test_registry_snapshot_is_read_through_lookups_only() -> None:
    registry = Registry({"my_lsp": ToolEntry(mise_id="npm:my-lsp", bin="my-lsp")})

    assert "my_lsp" in registry and "lua_ls" in registry
    assert len(registry) == len(BUILTIN_REGISTRY) + 1
    assert registry.get("my_lsp").bin == "my-lsp"
    assert registry.names() == sorted(registry.names())
    assert not hasattr(registry, "entries")
