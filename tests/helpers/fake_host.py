from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from devmirror.core.host import ResolvedConfig, ServerOptions


@dataclass
class FakeDevServer:
    """In-memory DevServer: records reloads, fires listening on demand."""

    root: Path
    server: ServerOptions = field(default_factory=lambda: ServerOptions(host="localhost", port=5173))
    reloads: list[Optional[str]] = field(default_factory=list)
    _listening: list[Callable[[int], None]] = field(default_factory=list)

    @property
    def config(self) -> ResolvedConfig:
        return ResolvedConfig(root=self.root, server=self.server)

    def once_listening(self, callback: Callable[[int], None]) -> None:
        self._listening.append(callback)

    def send_full_reload(self, path: Optional[str] = None) -> None:
        self.reloads.append(path)

    @property
    def pending_listeners(self) -> int:
        return len(self._listening)

    def fire_listening(self, port: int) -> None:
        callbacks, self._listening = self._listening, []
        for callback in callbacks:
            callback(port)
