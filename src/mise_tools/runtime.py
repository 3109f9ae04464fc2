"""Runtime wiring for the command line: config, logging, bus and components."""

from __future__ import annotations

from contextvars import Token
from dataclasses import dataclass
from typing import Callable, List, Optional

from .activation import ActivationController
from .core.bus import Bus, EventPayload, ToolNotice
from .core.config import ConfigManager
from .core.config_schema import MiseToolsConfig
from .core.global_paths import GlobalPath
from .editor import HeadlessEditor
from .orchestrator import Orchestrator
from .util.log import Log, LogFormat, LogLevel


@dataclass(frozen=True)
class LogSettings:
    level: LogLevel
    format: LogFormat
    console: bool
    file: bool


def resolve_log_settings(
    config: MiseToolsConfig,
    *,
    level: Optional[str] = None,
    console: Optional[bool] = None,
) -> LogSettings:
    """CLI flags win over the ``logging`` config section; file logging is on by default."""
    cfg = config.logging
    use_console = console
    if use_console is None:
        use_console = cfg.console if cfg and cfg.console is not None else False
    use_file = cfg.file if cfg and cfg.file is not None else True

    return LogSettings(
        level=LogLevel.parse(level or (cfg.level if cfg else None)),
        format=LogFormat.parse(cfg.format if cfg else None),
        console=use_console,
        file=use_file,
    )


def bootstrap_logging(config: MiseToolsConfig, **overrides) -> LogSettings:
    settings = resolve_log_settings(config, **overrides)
    if settings.file:
        GlobalPath.initialize()
    Log.configure(
        level=settings.level,
        format=settings.format,
        console=settings.console,
        file=settings.file,
    )
    return settings


class Runtime:
    """Components for one command invocation.

    Binds a fresh Bus for its lifetime and forwards notices to ``on_notice``.
    """

    def __init__(
        self,
        config: MiseToolsConfig,
        on_notice: Optional[Callable[[str, str], None]] = None,
    ):
        self.config = config
        self.bus = Bus()
        self.editor = HeadlessEditor(config.servers)
        self.orchestrator = Orchestrator(config, editor=self.editor)
        self.activation = ActivationController(self.orchestrator, self.editor)
        self._on_notice = on_notice
        self._token: Optional[Token[Bus]] = None
        self._unsubscribe: List[Callable[[], None]] = []

    @classmethod
    async def load(
        cls,
        directory: str = ".",
        explicit: Optional[str] = None,
        on_notice: Optional[Callable[[str, str], None]] = None,
    ) -> "Runtime":
        config = await ConfigManager.load(directory, explicit)
        return cls(config, on_notice)

    def reconfigure(self, config: MiseToolsConfig) -> None:
        """Switch every component to ``config`` and start a new activation epoch."""
        self.config = config
        self.editor.configure(config.servers)
        self.activation.setup(config)

    def _forward(self, payload: EventPayload) -> None:
        if self._on_notice is not None:
            props = payload.properties
            self._on_notice(str(props.get("message", "")), str(props.get("level", "info")))

    async def __aenter__(self) -> "Runtime":
        self._token = Bus.provide(self.bus)
        self._unsubscribe.append(Bus.subscribe(ToolNotice, self._forward))
        return self

    async def __aexit__(self, *exc) -> None:
        await self.activation.wait()
        self.activation.close()
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe.clear()
        if self._token is not None:
            Bus.restore(self._token)
            self._token = None
