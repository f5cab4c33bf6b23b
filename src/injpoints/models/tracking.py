"""Tracking (analytics) request and session models."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from injpoints.exceptions import MissingFieldError, UnknownEventTypeError
from injpoints.ingestion.normalize import coerce_number, coerce_string, coerce_timestamp
from injpoints.models._base import InjBaseModel, Number

_ID_MAX_LEN = 128
_PAGE_MAX_LEN = 200
_REASON_MAX_LEN = 64
NAME_MAX_LEN = 32


class TrackingEventType(StrEnum):
    START = "start"
    BEAT = "beat"
    END = "end"
    NAME = "name"


SESSION_EVENT_TYPES: frozenset[TrackingEventType] = frozenset(
    {TrackingEventType.START, TrackingEventType.BEAT, TrackingEventType.END}
)


class TrackingRequest(InjBaseModel):
    """A validated tracking POST body."""

    type: TrackingEventType
    session_id: str = ""
    device_id: str = ""
    page: str = ""
    device_info: dict[str, Any] = Field(default_factory=dict)
    ts: Number
    reason: str = ""
    name: str = ""

    @classmethod
    def from_payload(cls, payload: dict[str, Any], *, now_ms: int) -> TrackingRequest:
        """Coerce a raw JSON object and enforce per-type required fields.

        Raises
        ------
        UnknownEventTypeError
            ``type`` is not one of start/beat/end/name.
        MissingFieldError
            A field required by the event type is missing or empty.
        """
        raw_type = coerce_string(payload.get("type"), 16)
        try:
            event_type = TrackingEventType(raw_type)
        except ValueError:
            raise UnknownEventTypeError(raw_type) from None

        device_info = payload.get("deviceInfo")
        request = cls(
            type=event_type,
            session_id=coerce_string(payload.get("sessionId") or "", _ID_MAX_LEN),
            device_id=coerce_string(payload.get("deviceId") or "", _ID_MAX_LEN),
            page=coerce_string(payload.get("page") or "", _PAGE_MAX_LEN),
            device_info=device_info if isinstance(device_info, dict) else {},
            ts=coerce_timestamp(payload.get("ts"), now_ms),
            reason=coerce_string(payload.get("reason") or "", _REASON_MAX_LEN),
            name=coerce_string(payload.get("name") or "", 256).strip()[:NAME_MAX_LEN],
        )

        if event_type == TrackingEventType.NAME:
            if not request.device_id:
                raise MissingFieldError("Missing deviceId")
            if not request.name:
                raise MissingFieldError("Empty name")
        elif not request.session_id or not request.device_id:
            raise MissingFieldError("Missing sessionId/deviceId")
        return request


class SessionRecord(BaseModel):
    """One browsing session, mutated in place by the session reducer."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        validate_assignment=True,
    )

    session_id: str = Field(min_length=1)
    device_id: str = ""
    start_ts: Number = 0
    last_ts: Number = 0
    end_ts: Number | None = None
    beats: int = 0
    page: str = ""
    device_info: dict[str, Any] = Field(default_factory=dict)
    end_reason: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _tolerate_stored_values(cls, values: Any) -> Any:
        """Repair loosely written stored records instead of discarding them.

        Older writers stored invalid timestamps as ``null`` and any truthy
        value as ``deviceInfo``. Only a missing ``sessionId`` stays fatal.
        """
        if not isinstance(values, dict):
            return values
        cleaned = dict(values)
        for key in ("startTs", "start_ts", "lastTs", "last_ts"):
            if key in cleaned:
                cleaned[key] = coerce_number(cleaned[key])
        for key in ("endTs", "end_ts"):
            if cleaned.get(key) is not None:
                cleaned[key] = coerce_number(cleaned[key]) or None
        if "beats" in cleaned:
            cleaned["beats"] = int(coerce_number(cleaned["beats"]))
        for key in ("sessionId", "session_id", "deviceId", "device_id"):
            if key in cleaned and not isinstance(cleaned[key], str):
                cleaned[key] = coerce_string(cleaned[key], _ID_MAX_LEN)
        if "page" in cleaned and not isinstance(cleaned["page"], str):
            cleaned["page"] = coerce_string(cleaned["page"], _PAGE_MAX_LEN)
        for key in ("endReason", "end_reason"):
            if cleaned.get(key) is not None and not isinstance(cleaned[key], str):
                cleaned[key] = coerce_string(cleaned[key], _REASON_MAX_LEN)
        for key in ("deviceInfo", "device_info"):
            if key in cleaned and not isinstance(cleaned[key], dict):
                cleaned[key] = {}
        return cleaned

    def to_json(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", by_alias=True)
        # endReason only exists once the session has ended
        if self.end_reason is None:
            data.pop("endReason", None)
        return data
