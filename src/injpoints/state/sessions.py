"""Session reducer.

Folds an unordered stream of start/beat/end tracking events into
per-session records. Every transition tolerates a missing or late
``start``, and replaying the same event is safe.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from injpoints._constants import MAX_SESSIONS
from injpoints.exceptions import UnknownEventTypeError
from injpoints.models.tracking import SessionRecord, TrackingEventType, TrackingRequest

_logger = logging.getLogger(__name__)


class SessionLedger:
    """Ordered session collection keyed by ``sessionId``.

    Records keep insertion order; when the collection grows past
    ``max_sessions`` the oldest (front) records are dropped.
    """

    def __init__(self, records: Iterable[SessionRecord] = (), *, max_sessions: int = MAX_SESSIONS) -> None:
        self._max_sessions = max_sessions
        self._records: list[SessionRecord] = []
        self._index: dict[str, SessionRecord] = {}
        for record in records:
            if record.session_id in self._index:
                continue
            self._records.append(record)
            self._index[record.session_id] = record

    @classmethod
    def from_json(cls, document: Any, *, max_sessions: int = MAX_SESSIONS) -> SessionLedger:
        """Load a stored session array, dropping entries that do not validate."""
        if not isinstance(document, list):
            return cls(max_sessions=max_sessions)
        records: list[SessionRecord] = []
        dropped = 0
        for entry in document:
            if not isinstance(entry, dict):
                dropped += 1
                continue
            try:
                records.append(SessionRecord.model_validate(entry))
            except ValidationError:
                dropped += 1
        if dropped:
            _logger.warning("Dropped %d unreadable session entries", dropped)
        return cls(records, max_sessions=max_sessions)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, session_id: str) -> SessionRecord | None:
        return self._index.get(session_id)

    def to_json(self) -> list[dict[str, Any]]:
        return [record.to_json() for record in self._records]

    def _add(self, record: SessionRecord) -> SessionRecord:
        self._records.append(record)
        self._index[record.session_id] = record
        return record

    def _synthesize(self, event: TrackingRequest, **fields: Any) -> SessionRecord:
        return self._add(
            SessionRecord(
                session_id=event.session_id,
                device_id=event.device_id,
                start_ts=event.ts,
                last_ts=event.ts,
                **fields,
            )
        )

    def apply(self, event: TrackingRequest) -> SessionRecord:
        """Apply one session event and return the updated record."""
        record = self._index.get(event.session_id)

        if event.type == TrackingEventType.START:
            if record is None:
                record = self._synthesize(event, page=event.page, device_info=dict(event.device_info))
            else:
                # retried start
                record.start_ts = record.start_ts or event.ts
                record.last_ts = max(record.last_ts, event.ts)
        elif event.type == TrackingEventType.BEAT:
            if record is None:
                record = self._synthesize(event)
            record.last_ts = max(record.last_ts, event.ts)
            record.beats += 1
        elif event.type == TrackingEventType.END:
            if record is None:
                record = self._synthesize(event, end_ts=event.ts)
            record.last_ts = max(record.last_ts, event.ts)
            if record.end_ts is None:
                record.end_ts = event.ts
            record.end_reason = event.reason or "end"
        else:
            raise UnknownEventTypeError(str(event.type))

        self._trim()
        return record

    def _trim(self) -> None:
        excess = len(self._records) - self._max_sessions
        if excess <= 0:
            return
        for record in self._records[:excess]:
            del self._index[record.session_id]
        del self._records[:excess]
