"""Typed documents for snapshots and tracking."""

from injpoints.models._base import InjBaseModel, Number
from injpoints.models.snapshot import (
    NetWorthSeries,
    PersistedSnapshot,
    SnapshotEvent,
    StakeSeries,
    WithdrawalSeries,
)
from injpoints.models.tracking import (
    NAME_MAX_LEN,
    SESSION_EVENT_TYPES,
    SessionRecord,
    TrackingEventType,
    TrackingRequest,
)

__all__ = [
    "NAME_MAX_LEN",
    "SESSION_EVENT_TYPES",
    "InjBaseModel",
    "NetWorthSeries",
    "Number",
    "PersistedSnapshot",
    "SessionRecord",
    "SnapshotEvent",
    "StakeSeries",
    "TrackingEventType",
    "TrackingRequest",
    "WithdrawalSeries",
]
