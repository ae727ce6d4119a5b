"""Session coordinator between the host build tool and the mirror/descriptor.

Dev mode:   IDLE -> SERVER_STARTING -> SERVER_RUNNING
Build mode: IDLE -> BUILDING -> DONE

There is no way back to IDLE within a session. File-change reactions are
active in every state.
"""
from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from .descriptor import DescriptorStore, derive_descriptor
from .exceptions import CopyError
from .host import DevServer, HostEvents, ResolvedConfig
from .mirror import SyncReport, sync_all, sync_one
from .patterns import FilterSpec, LazyFilter, PathFilter

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    SERVER_STARTING = "server_starting"
    SERVER_RUNNING = "server_running"
    BUILDING = "building"
    DONE = "done"


class LifecycleCoordinator:
    """Reacts to host signals for one dev or build session.

    Args:
        output_dir: Directory receiving mirrored files
        descriptor_path: Location of the dev-server descriptor JSON
        filter_spec: Include/exclude patterns (defaults when omitted)
        verbose: Log every copied file during full syncs
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        descriptor_path: Union[str, Path],
        *,
        filter_spec: Optional[FilterSpec] = None,
        verbose: bool = False,
    ) -> None:
        self.output_dir = Path(os.path.abspath(output_dir))
        self.store = DescriptorStore(descriptor_path)
        self.verbose = verbose
        self.state = SessionState.IDLE
        self.config: Optional[ResolvedConfig] = None
        self.last_report: Optional[SyncReport] = None
        self._transport_port = False
        self._filter = LazyFilter(filter_spec or FilterSpec())

    def attach(self, events: HostEvents) -> None:
        """Subscribe to the host's signals. Call once per session."""
        events.on_config_resolved(self.config_resolved)
        events.on_configure_server(self.configure_server)
        events.on_file_change(self.file_change)
        events.on_build_end(self.build_end)

    def path_filter(self, root: Union[str, Path]) -> PathFilter:
        return self._filter.get(root)

    def _in_output_dir(self, path: Path) -> bool:
        # Copies landing in an output tree nested under the root echo back as changes.
        try:
            Path(os.path.abspath(path)).relative_to(self.output_dir)
        except ValueError:
            return False
        return True

    def _sync_all(self, root: Path) -> SyncReport:
        report = sync_all(root, self.output_dir, self.path_filter(root), verbose=self.verbose)
        self.last_report = report
        return report

    def config_resolved(self, config: ResolvedConfig) -> None:
        self.config = config

    def configure_server(self, server: DevServer) -> None:
        """Initial sync, provisional descriptor, then port confirmation on listen."""
        config = server.config
        if self.config is None:
            self.config = config
        self._sync_all(config.root)

        hmr = self.config.server.hmr
        self._transport_port = bool(hmr is not None and hmr.port)
        descriptor = derive_descriptor(self.config.server)
        self.store.write_initial(descriptor)
        self.state = SessionState.SERVER_STARTING
        logger.info("Dev server descriptor written to %s (%s)", self.store.path, descriptor.url)

        server.once_listening(self.server_listening)

    def server_listening(self, port: int) -> None:
        if self._transport_port:
            # Published port belongs to the hot-update transport, not the local socket.
            logger.debug("Keeping transport port in %s; server bound to %d", self.store.path.name, port)
        else:
            self.store.confirm_port(port)
        self.state = SessionState.SERVER_RUNNING

    def file_change(self, path: Path, server: DevServer) -> bool:
        """Mirror a changed file and force a full reload if it matches.

        Returns:
            True when the file was mirrored and a reload was sent
        """
        root = server.config.root
        if self._in_output_dir(path) or not self.path_filter(root).matches(path):
            return False
        try:
            sync_one(path, self.output_dir, root)
        except CopyError as exc:
            logger.error("%s", exc)
            return False
        # Mirrored assets cannot be hot-patched; clients must reload the page.
        server.send_full_reload(str(path))
        return True

    def build_end(self) -> None:
        """Full sync for a production build; no descriptor without a server."""
        if self.config is None:
            logger.warning("Build finished before the configuration was resolved; nothing to mirror")
            return
        self.state = SessionState.BUILDING
        self._sync_all(self.config.root)
        self.state = SessionState.DONE


__all__ = ["SessionState", "LifecycleCoordinator"]
