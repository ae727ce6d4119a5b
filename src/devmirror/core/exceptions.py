from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping


class DevMirrorError(Exception):
    """Base exception for devmirror."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class ConfigError(DevMirrorError, ValueError):
    """Raised when the merged configuration is invalid."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        DevMirrorError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class FilterConstructionError(DevMirrorError, ValueError):
    """Raised when an include/exclude glob pattern cannot be compiled."""

    def __init__(self, message: str = "", *, pattern: str | None = None) -> None:
        ctx = {"pattern": pattern} if pattern is not None else None
        DevMirrorError.__init__(self, message, context=ctx)
        ValueError.__init__(self, message)
        self.pattern = pattern


class CopyError(DevMirrorError, OSError):
    """Raised when a single file cannot be mirrored."""

    def __init__(
        self,
        message: str,
        *,
        source: Path | str,
        destination: Path | str,
        details: str | None = None,
    ) -> None:
        ctx: Dict[str, Any] = {"source": str(source), "destination": str(destination)}
        if details:
            ctx["details"] = details
        DevMirrorError.__init__(self, message, context=ctx)
        OSError.__init__(self, message)
        self.source = Path(source)
        self.destination = Path(destination)


class DescriptorError(DevMirrorError):
    """Generic dev-server descriptor error."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | str | None = None,
        operation: str | None = None,
        details: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if path is not None:
            ctx["path"] = str(path)
        if operation:
            ctx["operation"] = operation
        if details:
            ctx["details"] = details
        super().__init__(message, context=ctx)


class DescriptorReadError(DescriptorError):
    """Raised when the descriptor file is missing or not valid JSON."""


class DescriptorWriteError(DescriptorError):
    """Raised when the descriptor file cannot be written."""


__all__ = [
    "DevMirrorError",
    "ConfigError",
    "FilterConstructionError",
    "CopyError",
    "DescriptorError",
    "DescriptorReadError",
    "DescriptorWriteError",
]
