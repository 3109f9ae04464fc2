"""Loading mise-tools configuration.

Global, project, environment and explicit layers are merged in that order and
validated into one ``MiseToolsConfig``.
"""

import json
import os
from contextvars import ContextVar, Token
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .config_loader import deep_merge, read_config_file
from .config_schema import (
    AllDiscovered,
    DesiredTools,
    Explicit,
    InstallScope,
    LoggingConfig,
    MiseToolsConfig,
    ServerConfig,
    ToolEntry,
    ToolType,
)
from .global_paths import CONFIG_FILENAMES, GlobalPath
from ..util.log import Log

log = Log.create({"service": "config"})

__all__ = [
    "AllDiscovered",
    "ConfigError",
    "ConfigManager",
    "DesiredTools",
    "Explicit",
    "InstallScope",
    "LoggingConfig",
    "MiseToolsConfig",
    "ServerConfig",
    "ToolEntry",
    "ToolType",
]


class ConfigError(Exception):
    """A config source that cannot be used; ``path`` names the source."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


_config_var: ContextVar["ConfigManager"] = ContextVar("_config_var")


class ConfigManager:
    """Layered config loading.

    One instance per context (ContextVar); class methods delegate to it and
    it remembers which sources the last load used.

    Sources, lowest precedence first:
    1. Global config (``<user config dir>/mise-tools.json``)
    2. Project configs (``mise-tools.json`` from filesystem root down to the directory)
    3. ``MISE_TOOLS_CONFIG_CONTENT`` environment variable
    4. An explicit config file
    """

    def __init__(self) -> None:
        self._sources: List[str] = []

    @classmethod
    def current(cls) -> "ConfigManager":
        try:
            return _config_var.get()
        except LookupError:
            instance = cls()
            _config_var.set(instance)
            return instance

    @classmethod
    def provide(cls, instance: "ConfigManager") -> Token["ConfigManager"]:
        return _config_var.set(instance)

    @classmethod
    def restore(cls, token: Token["ConfigManager"]) -> None:
        _config_var.reset(token)

    @classmethod
    async def load(cls, directory: str = ".", explicit: Optional[str] = None) -> MiseToolsConfig:
        return cls.current()._load(directory, explicit)

    @classmethod
    def sources(cls) -> List[str]:
        """Files and env vars that contributed to the last loaded config."""
        return cls.current()._sources.copy()

    def _load(self, directory: str = ".", explicit: Optional[str] = None) -> MiseToolsConfig:
        result: Dict[str, Any] = {}
        sources: List[str] = []

        def apply(filepath: str, kind: str) -> None:
            nonlocal result
            data = read_config_file(filepath)
            if data:
                result = deep_merge(result, data)
                sources.append(filepath)
                log.info(f"loaded {kind} config", {"path": filepath})

        # 1. Global config
        for filepath in GlobalPath.config_files():
            apply(str(filepath), "global")

        # 2. Project configs, root first so the nearest file wins
        start = Path(directory).resolve()
        for folder in reversed([start, *start.parents]):
            for filename in CONFIG_FILENAMES:
                apply(str(folder / filename), "project")

        # 3. Environment variable config
        env_config = os.environ.get("MISE_TOOLS_CONFIG_CONTENT")
        if env_config:
            try:
                data = json.loads(env_config)
            except json.JSONDecodeError:
                log.error("failed to parse MISE_TOOLS_CONFIG_CONTENT")
            else:
                if isinstance(data, dict):
                    result = deep_merge(result, data)
                    sources.append("MISE_TOOLS_CONFIG_CONTENT")

        # 4. Explicit file
        if explicit:
            if not Path(explicit).is_file():
                raise ConfigError(explicit, "file not found")
            apply(explicit, "explicit")

        try:
            config = MiseToolsConfig.model_validate(result)
        except ValidationError as e:
            raise ConfigError(sources[-1] if sources else "<defaults>", str(e)) from e

        self._sources = sources
        return config
