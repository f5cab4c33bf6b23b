"""injpoints - snapshot and session-tracking service for Injective dashboards."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("injpoints")
except PackageNotFoundError:
    __version__ = "0+local"
from injpoints.app import create_app
from injpoints.config import InjPointsConfig
from injpoints.exceptions import (
    BodyTooLargeError,
    ConfigError,
    EmptyBodyError,
    InjPointsError,
    InvalidAddressError,
    InvalidJsonError,
    MissingFieldError,
    RequestError,
    StoreError,
    UnknownEventTypeError,
    UnsupportedSnapshotVersionError,
)
from injpoints.models import (
    NetWorthSeries,
    PersistedSnapshot,
    SessionRecord,
    SnapshotEvent,
    StakeSeries,
    TrackingEventType,
    TrackingRequest,
    WithdrawalSeries,
)
from injpoints.state.names import NameDirectory
from injpoints.state.sessions import SessionLedger
from injpoints.storage import BlobDocumentStore, DocumentStore, FileDocumentStore, MemoryDocumentStore

__all__ = [
    "__version__",
    "BlobDocumentStore",
    "BodyTooLargeError",
    "ConfigError",
    "DocumentStore",
    "EmptyBodyError",
    "FileDocumentStore",
    "InjPointsConfig",
    "InjPointsError",
    "InvalidAddressError",
    "InvalidJsonError",
    "MemoryDocumentStore",
    "MissingFieldError",
    "NameDirectory",
    "NetWorthSeries",
    "PersistedSnapshot",
    "RequestError",
    "SessionLedger",
    "SessionRecord",
    "SnapshotEvent",
    "StakeSeries",
    "StoreError",
    "TrackingEventType",
    "TrackingRequest",
    "UnknownEventTypeError",
    "UnsupportedSnapshotVersionError",
    "WithdrawalSeries",
    "create_app",
]
