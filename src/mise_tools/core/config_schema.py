"""Configuration schema: Pydantic models for mise-tools config files."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ToolType(str, Enum):
    """Tool category."""
    LSP = "lsp"
    LINTER = "linter"
    FORMATTER = "formatter"


class InstallScope(str, Enum):
    """Install breadth passed through to ``mise use``."""
    GLOBAL = "global"
    LOCAL = "local"


class ToolEntry(BaseModel):
    """Registry record for one tool.

    Attributes:
        mise_id: mise package identifier (e.g. "lua-language-server", "npm:pyright")
        bin: Executable name checked on PATH
        type: Tool category
    """
    mise_id: str = Field(min_length=1)
    bin: Optional[str] = None
    type: ToolType = ToolType.LSP

    model_config = ConfigDict(frozen=True, extra="forbid")


class ServerConfig(BaseModel):
    """Language server launch configuration as the editor declares it."""
    cmd: List[str] = Field(default_factory=list)
    filetypes: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class AllDiscovered(BaseModel):
    """Desired tools are every server the editor has configured."""
    kind: Literal["all"] = "all"


class Explicit(BaseModel):
    """Desired tools are an explicit list of names."""
    kind: Literal["explicit"] = "explicit"
    names: List[str] = Field(default_factory=list)


DesiredTools = Union[AllDiscovered, Explicit]


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: Optional[Literal["debug", "info", "warn", "error"]] = None
    format: Optional[Literal["kv", "json", "pretty"]] = None
    console: Optional[bool] = None
    file: Optional[bool] = None


class MiseToolsConfig(BaseModel):
    """Top-level mise-tools configuration."""
    ensure_installed: DesiredTools = Field(default_factory=Explicit)
    auto_install: bool = True
    scope: InstallScope = InstallScope.GLOBAL
    registry: Dict[str, ToolEntry] = Field(default_factory=dict)
    servers: Dict[str, ServerConfig] = Field(default_factory=dict)
    mise_path: Optional[str] = None
    logging: Optional[LoggingConfig] = None

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("ensure_installed", mode="before")
    @classmethod
    def _coerce_desired(cls, value: Any) -> Any:
        if value is True:
            return AllDiscovered()
        if value is False or value is None:
            return Explicit()
        if isinstance(value, (list, tuple)):
            return Explicit(names=list(value))
        return value
