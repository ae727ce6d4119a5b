"""Dev-server descriptor publication.

The descriptor is a small JSON file telling a backend process where the
live dev server can be reached::

    {
      "protocol": "http",
      "host": "localhost",
      "port": 5173
    }

It is written twice per session. The first write is provisional and uses the
configured port, which is only a request: the dev server may bind a different
free port. Once the listening socket is bound, :meth:`DescriptorStore.confirm_port`
rewrites the file with the actual port. Readers may observe the provisional
port in between and must treat a missing or unparsable file as "address
unknown yet".

Exactly one process writes the file during a session, so the read-modify-write
in ``confirm_port`` takes no lock. Writes go through a temp file and rename,
so readers never see a partially written file.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .exceptions import DescriptorReadError, DescriptorWriteError
from .file_io import read_json, write_json_atomic
from .host import ServerOptions

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 5173
PROTOCOLS = ("http", "https")

# Hot-update transports are WebSocket URLs; map them to the page protocol.
_TRANSPORT_PROTOCOLS = {"ws": "http", "wss": "https", "http": "http", "https": "https"}
_WILDCARD_HOSTS = {"0.0.0.0", "::", "[::]"}


def _valid_port(port: Any) -> bool:
    return isinstance(port, int) and not isinstance(port, bool) and 1 <= port <= 65535


@dataclass(frozen=True)
class ServerDescriptor:
    """Address at which the dev server is reachable."""

    protocol: str
    host: str
    port: int

    def __post_init__(self) -> None:
        if self.protocol not in PROTOCOLS:
            raise ValueError(f"protocol must be one of {PROTOCOLS}, got {self.protocol!r}")
        if not isinstance(self.host, str) or not self.host:
            raise ValueError(f"host must be a non-empty string, got {self.host!r}")
        if not _valid_port(self.port):
            raise ValueError(f"port must be an integer in [1, 65535], got {self.port!r}")

    @property
    def url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"

    def to_dict(self) -> Dict[str, Any]:
        # Field order is part of the file format.
        return {"protocol": self.protocol, "host": self.host, "port": self.port}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ServerDescriptor:
        return cls(protocol=raw.get("protocol"), host=raw.get("host"), port=raw.get("port"))


def derive_descriptor(server: ServerOptions) -> ServerDescriptor:
    """Build the provisional descriptor from configured server settings.

    An explicit hot-update transport wins over the raw listen settings for
    each of protocol, host and port. Protocol then falls back to ``https``
    when TLS is configured, host to ``localhost`` and port to 5173.
    """
    hmr = server.hmr

    protocol: Optional[str] = None
    if hmr is not None and hmr.protocol:
        protocol = _TRANSPORT_PROTOCOLS.get(hmr.protocol.lower())
        if protocol is None:
            logger.warning("Unknown hot-update protocol %r, using server protocol", hmr.protocol)
    if protocol is None:
        protocol = "https" if server.https else "http"

    host = (hmr.host if hmr is not None else None) or server.host or DEFAULT_HOST
    if host in _WILDCARD_HOSTS:
        # Listening on every interface; loopback is what a local backend can reach.
        host = DEFAULT_HOST

    port = (hmr.port if hmr is not None else None) or server.port or DEFAULT_PORT
    return ServerDescriptor(protocol=protocol, host=host, port=int(port))


class DescriptorStore:
    """Reads and writes the descriptor JSON file at a fixed path."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def write_initial(self, descriptor: ServerDescriptor) -> None:
        """Publish the provisional descriptor.

        Completes before returning so a consumer may read the file right
        after the dev server is configured.

        Raises:
            DescriptorWriteError: If the file or its directory cannot be written
        """
        self._write(descriptor.to_dict(), operation="write_initial")
        logger.debug("Wrote dev server descriptor %s to %s", descriptor.url, self.path)

    def confirm_port(self, actual_port: int) -> bool:
        """Replace the ``port`` field with the port the server actually bound.

        Only ``port`` changes; every other field is written back as read, in
        the same order. A missing or corrupt file is logged and left as-is.

        Returns:
            True if the file was rewritten, False if the read step failed

        Raises:
            ValueError: If ``actual_port`` is not a valid port
            DescriptorWriteError: If the updated file cannot be written
        """
        if not _valid_port(actual_port):
            raise ValueError(f"actual_port must be an integer in [1, 65535], got {actual_port!r}")

        try:
            data = self._read_object()
        except DescriptorReadError as exc:
            logger.error("Error updating %s: %s", self.path.name, exc)
            return False

        previous = data.get("port")
        data["port"] = actual_port
        self._write(data, operation="confirm_port")
        if previous != actual_port:
            logger.info("Dev server port changed from %s to %s", previous, actual_port)
        return True

    def read(self) -> Optional[ServerDescriptor]:
        """Consumer view of the descriptor; None when not (validly) published."""
        try:
            return ServerDescriptor.from_dict(self._read_object())
        except DescriptorReadError as exc:
            logger.debug("Dev server descriptor unavailable: %s", exc)
            return None
        except ValueError as exc:
            logger.debug("Dev server descriptor is invalid: %s", exc)
            return None

    def _read_object(self) -> Dict[str, Any]:
        try:
            data = read_json(self.path)
        except FileNotFoundError as exc:
            raise DescriptorReadError(
                f"Descriptor file not found: {self.path}", path=self.path, operation="read"
            ) from exc
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DescriptorReadError(
                f"Descriptor file could not be parsed: {self.path}",
                path=self.path,
                operation="read",
                details=str(exc),
            ) from exc
        if not isinstance(data, dict):
            raise DescriptorReadError(
                f"Descriptor file does not hold a JSON object: {self.path}",
                path=self.path,
                operation="read",
            )
        return data

    def _write(self, data: Dict[str, Any], *, operation: str) -> None:
        try:
            write_json_atomic(self.path, data)
        except OSError as exc:
            raise DescriptorWriteError(
                f"Could not write dev server descriptor {self.path}: {exc.strerror or exc}",
                path=self.path,
                operation=operation,
            ) from exc


__all__ = [
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "ServerDescriptor",
    "DescriptorStore",
    "derive_descriptor",
]
