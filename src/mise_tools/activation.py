"""Install-then-enable language servers as file types are opened.

For each newly seen file type the controller finds desired servers whose
editor config lists that file type. A server whose binary is on PATH is
enabled immediately; a missing one is installed first when auto-install is on.
Each server is handled once per configuration epoch, unless its install
fails, in which case the next matching file type retries.
"""

import asyncio
import shutil
from typing import Callable, Dict, FrozenSet, Optional, Set

from .core.bus import ServerEnabled, ServerEnabledProps, Bus, notify
from .core.config_schema import MiseToolsConfig
from .editor import Editor
from .orchestrator import Orchestrator
from .util.log import Log

log = Log.create({"service": "activation"})


class ActivationController:
    """Reactive install + enable driven by editor file-type events."""

    def __init__(self, orchestrator: Orchestrator, editor: Editor):
        self.orchestrator = orchestrator
        self.editor = editor
        self._handled: Set[str] = set()
        self._tasks: Dict[str, asyncio.Task] = {}
        self._background: Set[asyncio.Task] = set()
        self._epoch = 0
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def handled(self) -> FrozenSet[str]:
        return frozenset(self._handled)

    def is_handled(self, name: str) -> bool:
        return name in self._handled

    def setup(self, config: Optional[MiseToolsConfig] = None) -> None:
        """Start a new epoch: apply config, reset state, subscribe and rescan."""
        if config is not None:
            self.orchestrator.apply(config)
        self._epoch += 1
        self._handled.clear()

        self.close()
        self._unsubscribe = self.editor.on_filetype(self.on_filetype)

        for ft in self.editor.open_filetypes():
            self.on_filetype(ft)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def pending(self) -> Dict[str, asyncio.Task]:
        """Install tasks still in flight, by server name."""
        return {name: task for name, task in self._tasks.items() if not task.done()}

    async def wait(self) -> None:
        """Wait for every in-flight install to finish."""
        while True:
            tasks = list(self.pending().values())
            if not tasks:
                return
            await asyncio.gather(*tasks)

    def _resolve_bin(self, name: str) -> Optional[str]:
        bin_name = self.orchestrator.registry.bin_for(name)
        if bin_name:
            return bin_name
        server = self.editor.server_config(name)
        if server is not None and server.cmd:
            return server.cmd[0]
        return None

    def _matches(self, name: str, ft: str) -> bool:
        server = self.editor.server_config(name)
        return server is not None and ft in server.filetypes

    def on_filetype(self, ft: str) -> None:
        """Handle one file-type-open event without blocking the caller."""
        if not ft:
            return

        for name in self.orchestrator.desired():
            if name in self._handled or not self._matches(name, ft):
                continue

            bin_name = self._resolve_bin(name)
            if bin_name and shutil.which(bin_name):
                self._handled.add(name)
                self._enable(name)
            elif self.orchestrator.config.auto_install:
                try:
                    loop = asyncio.get_running_loop()
                except RuntimeError:
                    # Left unseen: a later event from inside a loop installs it
                    log.error("cannot install without a running event loop", {"name": name, "filetype": ft})
                    continue
                self._handled.add(name)
                self._tasks[name] = loop.create_task(self._install_then_enable(name, self._epoch))
            else:
                # The editor reports the missing binary itself
                self._handled.add(name)
                self._enable(name)

    def _enable(self, name: str) -> None:
        log.info("enabling server", {"name": name})
        self.editor.enable(name)
        if not Bus.bound():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(Bus.publish(ServerEnabled, ServerEnabledProps(name=name)))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _install_then_enable(self, name: str, epoch: int) -> None:
        mise_id = self.orchestrator.registry.resolve(name)
        try:
            await notify(f"Installing {name}...")
            ok, message = await self.orchestrator.installer.install(mise_id, self.orchestrator.config.scope)
            if ok:
                await notify(message)
                self._enable(name)
                return

            await notify(message, "error")
            # Retry on the next matching file type
            if epoch == self._epoch:
                self._handled.discard(name)
        finally:
            if self._tasks.get(name) is asyncio.current_task():
                del self._tasks[name]
