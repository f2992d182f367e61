# Core modules

from .config import Settings, get_settings
from .session import SessionIdentity, JsonFileStore, MemoryStore, KeyValueStore
from .errors import (
    CartError,
    CartStoreError,
    IdentityUnavailable,
    MergeFailed,
    RemoteRejected,
    RemoteUnreachable,
)

__all__ = [
    "Settings",
    "get_settings",
    "SessionIdentity",
    "JsonFileStore",
    "MemoryStore",
    "KeyValueStore",
    "CartError",
    "CartStoreError",
    "IdentityUnavailable",
    "MergeFailed",
    "RemoteRejected",
    "RemoteUnreachable",
]
