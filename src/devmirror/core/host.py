"""Host build-tool interface.

The coordinator never talks to a concrete dev server or bundler. Instead a
host adapter feeds it four signals through :class:`HostEvents`:

- ``config_resolved``: effective server settings and project root
- ``configure_server``: a :class:`DevServer` handle, before it listens
- ``file_change``: absolute path of a changed file plus the server handle
- ``build_end``: a production build finished (no dev server)

Signals are delivered serially; each subscriber runs to completion before
the next signal is processed.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Protocol, Union


@dataclass(frozen=True)
class HmrOptions:
    """Hot-update transport override (e.g. behind a reverse proxy)."""

    protocol: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None


@dataclass(frozen=True)
class ServerOptions:
    host: Optional[str] = None
    port: Optional[int] = None
    https: bool = False
    hmr: Optional[HmrOptions] = None


@dataclass(frozen=True)
class ResolvedConfig:
    root: Path
    server: ServerOptions = field(default_factory=ServerOptions)


ListeningCallback = Callable[[int], None]


class DevServer(Protocol):
    """What the coordinator needs from a running dev server."""

    @property
    def config(self) -> ResolvedConfig: ...

    def once_listening(self, callback: ListeningCallback) -> None:
        """Call ``callback(bound_port)`` once, after the socket is bound."""
        ...

    def send_full_reload(self, path: Optional[str] = None) -> None:
        """Tell connected clients to reload the whole page."""
        ...


ConfigResolvedHandler = Callable[[ResolvedConfig], None]
ConfigureServerHandler = Callable[[DevServer], None]
FileChangeHandler = Callable[[Path, DevServer], object]
BuildEndHandler = Callable[[], None]


class HostEvents:
    """Explicit subscription registry for the four host signals."""

    def __init__(self) -> None:
        self._config_resolved: list[ConfigResolvedHandler] = []
        self._configure_server: list[ConfigureServerHandler] = []
        self._file_change: list[FileChangeHandler] = []
        self._build_end: list[BuildEndHandler] = []

    def on_config_resolved(self, handler: ConfigResolvedHandler) -> None:
        self._config_resolved.append(handler)

    def on_configure_server(self, handler: ConfigureServerHandler) -> None:
        self._configure_server.append(handler)

    def on_file_change(self, handler: FileChangeHandler) -> None:
        self._file_change.append(handler)

    def on_build_end(self, handler: BuildEndHandler) -> None:
        self._build_end.append(handler)

    def emit_config_resolved(self, config: ResolvedConfig) -> None:
        for handler in list(self._config_resolved):
            handler(config)

    def emit_configure_server(self, server: DevServer) -> None:
        for handler in list(self._configure_server):
            handler(server)

    def emit_file_change(self, path: Union[str, Path], server: DevServer) -> None:
        for handler in list(self._file_change):
            handler(Path(path), server)

    def emit_build_end(self) -> None:
        for handler in list(self._build_end):
            handler()


__all__ = [
    "HmrOptions",
    "ServerOptions",
    "ResolvedConfig",
    "DevServer",
    "ListeningCallback",
    "HostEvents",
]
