"""Bundled host for ``devmirror watch``.

Serves the asset root over plain HTTP, picks the next free port when the
configured one is taken, and feeds file changes from watchfiles into
:class:`~devmirror.core.host.HostEvents`. Browsers can subscribe to full
reload directives on the SSE endpoint ``/__devmirror/events``.
"""
from __future__ import annotations

import errno
import functools
import http.server
import logging
import os
import threading
from pathlib import Path
from typing import Callable, Iterable, Optional

from watchfiles import Change, DefaultFilter, watch

from .exceptions import DevMirrorError
from .host import HostEvents, ListeningCallback, ResolvedConfig, ServerOptions

logger = logging.getLogger(__name__)

EVENTS_PATH = "/__devmirror/events"
DEFAULT_PORT = 5173
MAX_PORT_ATTEMPTS = 20
_ADDR_IN_USE = {errno.EADDRINUSE, getattr(errno, "WSAEADDRINUSE", errno.EADDRINUSE)}


class _ReloadBroadcast:
    """Generation counter that SSE handlers wait on."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._generation = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    @property
    def generation(self) -> int:
        with self._cond:
            return self._generation

    def publish(self) -> None:
        with self._cond:
            self._generation += 1
            self._cond.notify_all()

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def wait_past(self, generation: int, timeout: float) -> Optional[int]:
        """Block until a newer generation exists; None on close or timeout."""
        with self._cond:
            self._cond.wait_for(lambda: self._closed or self._generation > generation, timeout)
            if self._closed or self._generation <= generation:
                return None
            return self._generation


class _AssetHandler(http.server.SimpleHTTPRequestHandler):
    broadcast: _ReloadBroadcast

    def do_GET(self) -> None:  # noqa: N802
        if self.path != EVENTS_PATH:
            super().do_GET()
            return
        self.send_response(200)
        self.send_header("Content-Type", "text/event-stream")
        self.send_header("Cache-Control", "no-cache")
        self.send_header("Connection", "keep-alive")
        self.send_header("Access-Control-Allow-Origin", "*")
        self.end_headers()
        seen = self.broadcast.generation
        try:
            while True:
                newer = self.broadcast.wait_past(seen, timeout=15.0)
                if newer is None:
                    if self.broadcast.closed:
                        return
                    # Keep-alive comment so proxies do not drop the stream.
                    self.wfile.write(b": ping\n\n")
                else:
                    seen = newer
                    self.wfile.write(b"data: full-reload\n\n")
                self.wfile.flush()
        except (BrokenPipeError, ConnectionResetError):
            return

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        logger.debug("%s - %s", self.address_string(), format % args)


class StaticDevServer:
    """Minimal dev server handle implementing :class:`~devmirror.core.host.DevServer`."""

    def __init__(
        self,
        config: ResolvedConfig,
        *,
        strict_port: bool = False,
        max_port_attempts: int = MAX_PORT_ATTEMPTS,
    ) -> None:
        self._config = config
        self.strict_port = strict_port
        self.max_port_attempts = max(1, int(max_port_attempts))
        self.bound_port: Optional[int] = None
        self.reload_count = 0
        self._listening: list[ListeningCallback] = []
        self._reload_listeners: list[Callable[[Optional[str]], None]] = []
        self._broadcast = _ReloadBroadcast()
        self._httpd: Optional[http.server.ThreadingHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def config(self) -> ResolvedConfig:
        return self._config

    def once_listening(self, callback: ListeningCallback) -> None:
        if self.bound_port is not None:
            self._fire(callback, self.bound_port)
            return
        self._listening.append(callback)

    def add_reload_listener(self, listener: Callable[[Optional[str]], None]) -> None:
        self._reload_listeners.append(listener)

    def send_full_reload(self, path: Optional[str] = None) -> None:
        self.reload_count += 1
        logger.info("page reload %s", path or "")
        self._broadcast.publish()
        for listener in list(self._reload_listeners):
            listener(path)

    def _fire(self, callback: ListeningCallback, port: int) -> None:
        try:
            callback(port)
        except DevMirrorError as exc:
            logger.error("Listening callback failed: %s", exc)

    def _bind(self) -> http.server.ThreadingHTTPServer:
        server_opts = self._config.server
        host = server_opts.host or "localhost"
        first = server_opts.port or DEFAULT_PORT
        attempts = 1 if self.strict_port else self.max_port_attempts

        handler = type("AssetHandler", (_AssetHandler,), {"broadcast": self._broadcast})
        factory = functools.partial(handler, directory=str(self._config.root))

        last_error: Optional[OSError] = None
        for port in range(first, first + attempts):
            try:
                return http.server.ThreadingHTTPServer((host, port), factory)
            except OSError as exc:
                if exc.errno not in _ADDR_IN_USE:
                    raise
                logger.info("Port %d is in use, trying another one...", port)
                last_error = exc
        raise OSError(errno.EADDRINUSE, f"No free port in {first}..{first + attempts - 1}") from last_error

    def listen(self) -> int:
        """Bind the socket, start serving, then fire the listening callbacks."""
        httpd = self._bind()
        httpd.daemon_threads = True
        self._httpd = httpd
        self.bound_port = int(httpd.server_address[1])
        self._thread = threading.Thread(target=httpd.serve_forever, name="devmirror-http", daemon=True)
        self._thread.start()

        callbacks, self._listening = self._listening, []
        for callback in callbacks:
            self._fire(callback, self.bound_port)
        logger.info("Serving %s on port %d", self._config.root, self.bound_port)
        return self.bound_port

    def close(self) -> None:
        self._broadcast.close()
        if self._httpd is not None:
            self._httpd.shutdown()
            self._httpd.server_close()
            self._httpd = None
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None


class WatchHost:
    """Drives a dev session: config, server start, then change events."""

    def __init__(
        self,
        root: Path,
        server: ServerOptions,
        events: HostEvents,
        *,
        ignore_paths: Iterable[Path] = (),
        strict_port: bool = False,
    ) -> None:
        self.config = ResolvedConfig(root=Path(os.path.abspath(root)), server=server)
        self.events = events
        self.ignore_paths = [Path(os.path.abspath(p)) for p in ignore_paths]
        self.strict_port = strict_port
        self.server: Optional[StaticDevServer] = None

    def start(self) -> StaticDevServer:
        self.events.emit_config_resolved(self.config)
        server = StaticDevServer(self.config, strict_port=self.strict_port)
        self.server = server
        self.events.emit_configure_server(server)
        server.listen()
        return server

    def dispatch(self, changes: Iterable[tuple[Change, str]]) -> None:
        if self.server is None:
            raise DevMirrorError("start() must run before dispatch()")
        for change, path in sorted(changes, key=lambda c: c[1]):
            if change == Change.deleted:
                continue
            self.events.emit_file_change(Path(path), self.server)

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """Start the server and block, dispatching changes until stopped."""
        server = self.start()
        watch_filter = DefaultFilter(ignore_paths=[str(p) for p in self.ignore_paths])
        try:
            for changes in watch(self.config.root, watch_filter=watch_filter, stop_event=stop_event):
                self.dispatch(changes)
        finally:
            server.close()


__all__ = ["EVENTS_PATH", "StaticDevServer", "WatchHost"]
