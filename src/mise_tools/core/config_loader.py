"""Reading and layering mise-tools config files."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import commentjson

from ..util.log import Log

log = Log.create({"service": "config"})

# Tables keyed by tool or server name. A later layer replaces an entry whole,
# so a partial override never inherits fields from the entry it shadows.
RECORD_TABLES = frozenset({"registry", "servers"})

_ENV_REF = re.compile(r"\{env:([^}]+)\}")


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Layer ``override`` on top of ``base``; neither input is modified."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if not (isinstance(current, dict) and isinstance(value, dict)):
            merged[key] = value
        elif key in RECORD_TABLES:
            merged[key] = {**current, **value}
        else:
            merged[key] = deep_merge(current, value)
    return merged


def substitute_env_vars(text: str) -> str:
    """Expand ``{env:VAR}`` references. Unset variables expand to ``""``."""
    def expand(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in os.environ:
            log.warn("config references unset variable", {"name": name})
        return os.environ.get(name, "")

    return _ENV_REF.sub(expand, text)


def read_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Parse one JSON/JSONC config file.

    A missing, unreadable or non-object file contributes nothing: the error is
    logged and ``{}`` returned, so one bad layer does not hide the others.
    """
    path = Path(path)
    if not path.is_file():
        return {}

    try:
        data = commentjson.loads(substitute_env_vars(path.read_text(encoding="utf-8")))
    except Exception as e:  # commentjson lets some lark parse errors through unwrapped
        log.error("unreadable config file", {"path": str(path), "error": e})
        return {}

    if not isinstance(data, dict):
        log.error("config file must hold a JSON object", {"path": str(path)})
        return {}
    return data
