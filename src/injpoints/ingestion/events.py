"""Event normalization: canonical shape, upsert by id, time order, clamp."""

from __future__ import annotations

import re
from typing import Any

from injpoints._constants import MAX_EVENTS
from injpoints.ingestion.normalize import (
    coerce_number,
    coerce_string,
    coerce_timestamp,
    first_truthy,
    format_scalar,
)
from injpoints.models.snapshot import SnapshotEvent

_WHITESPACE_RE = re.compile(r"\s+")


def fallback_event_id(ts: Any, kind: str, title: str) -> str:
    """Deterministic id for events submitted without one.

    Two distinct events sharing ts, kind and title collapse into one.
    """
    return _WHITESPACE_RE.sub("_", f"{format_scalar(ts)}:{kind}:{title}")


def normalize_event(raw: Any, *, now_ms: int) -> SnapshotEvent:
    """Map one loose client event onto :class:`SnapshotEvent`."""
    if not isinstance(raw, dict):
        raw = {}

    ts = coerce_timestamp(raw.get("ts"), now_ms)
    # withdraw | unstake | reward | compound | price | tx | info ...
    kind = coerce_string(first_truthy(raw.get("kind"), raw.get("type"), default="event"), 32)
    title = coerce_string(first_truthy(raw.get("title"), default=kind), 64)
    return SnapshotEvent(
        id=coerce_string(first_truthy(raw.get("id"), default=fallback_event_id(ts, kind, title)), 120),
        ts=ts,
        kind=kind,
        title=title,
        detail=coerce_string(first_truthy(raw.get("detail"), raw.get("desc"), default=""), 220),
        value=coerce_number(raw.get("value")),
        dir=coerce_string(first_truthy(raw.get("dir"), default=""), 8),
        status=coerce_string(first_truthy(raw.get("status"), default="done"), 12),
    )


def normalize_events(raw: Any, *, now_ms: int, max_events: int = MAX_EVENTS) -> tuple[SnapshotEvent, ...]:
    """Canonicalize, dedupe by id, sort by ascending ts and clamp.

    Deduplication keeps the slot of the first occurrence and the values of
    the last one. The sort is stable, so events sharing a ts stay in that
    order: ``[a@5, b@3, c@5]`` becomes ``[b, a, c]``.
    """
    if not isinstance(raw, list):
        return ()

    by_id: dict[str, SnapshotEvent] = {}
    for item in raw:
        event = normalize_event(item, now_ms=now_ms)
        by_id[event.id] = event

    ordered = sorted(by_id.values(), key=lambda event: event.ts)
    if len(ordered) > max_events:
        ordered = ordered[len(ordered) - max_events :]
    return tuple(ordered)
