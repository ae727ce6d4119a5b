"""devmirror core library package.

Re-exports the session coordinator and the building blocks it drives.
"""

from . import exceptions  # noqa: F401
from .descriptor import DescriptorStore, ServerDescriptor, derive_descriptor
from .host import DevServer, HmrOptions, HostEvents, ResolvedConfig, ServerOptions
from .lifecycle import LifecycleCoordinator, SessionState
from .mirror import SyncReport, sync_all, sync_one
from .patterns import FilterSpec, LazyFilter, PathFilter

__all__ = [
    "exceptions",
    "DescriptorStore",
    "ServerDescriptor",
    "derive_descriptor",
    "DevServer",
    "HmrOptions",
    "HostEvents",
    "ResolvedConfig",
    "ServerOptions",
    "LifecycleCoordinator",
    "SessionState",
    "SyncReport",
    "sync_all",
    "sync_one",
    "FilterSpec",
    "LazyFilter",
    "PathFilter",
]
