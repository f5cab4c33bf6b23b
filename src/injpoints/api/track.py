"""Tracking endpoint: session heartbeats and device names."""

from __future__ import annotations

import logging

from aiohttp import web

from injpoints._constants import NAMES_KEY, SESSIONS_KEY
from injpoints._redact import redact_for_log
from injpoints.api._common import (
    CLOCK_KEY,
    CONFIG_KEY,
    STORE_KEY,
    error_response,
    json_response,
    read_json_body,
)
from injpoints.exceptions import InvalidJsonError, RequestError
from injpoints.models.tracking import TrackingEventType, TrackingRequest
from injpoints.state.names import NameDirectory
from injpoints.state.sessions import SessionLedger
from injpoints.storage import read_json_or, write_json

_logger = logging.getLogger(__name__)


async def handle_track(request: web.Request) -> web.StreamResponse:
    """``GET``/``POST``/``OPTIONS`` on ``/api/track``.

    Payload shapes::

        {"type": "start", "sessionId", "deviceId", "deviceInfo", "page", "ts"}
        {"type": "beat",  "sessionId", "deviceId", "ts"}
        {"type": "end",   "sessionId", "deviceId", "ts", "reason"}
        {"type": "name",  "deviceId", "name"}
    """
    store = request.app[STORE_KEY]
    config = request.app[CONFIG_KEY]
    clock = request.app[CLOCK_KEY]
    try:
        if request.method == "OPTIONS":
            return web.Response(status=204)

        if request.method == "GET":
            sessions = SessionLedger.from_json(await read_json_or(store, SESSIONS_KEY, []))
            names = NameDirectory.from_json(await read_json_or(store, NAMES_KEY, {}))
            return json_response(
                200,
                {"ok": True, "sessions": sessions.to_json(), "names": names.to_json(), "ts": clock()},
            )

        if request.method != "POST":
            return error_response(405, "Method Not Allowed")

        payload = await read_json_body(request, limit=config.max_body_bytes)
        if not isinstance(payload, dict):
            raise InvalidJsonError()
        if config.debug_payloads:
            _logger.debug("Tracking payload: %s", redact_for_log(payload))

        event = TrackingRequest.from_payload(payload, now_ms=clock())

        if event.type == TrackingEventType.NAME:
            names = NameDirectory.from_json(await read_json_or(store, NAMES_KEY, {}))
            names.upsert(event.device_id, event.name)
            await write_json(store, NAMES_KEY, names.to_json(), max_bytes=config.max_body_bytes)
            return json_response(200, {"ok": True})

        # Not atomic: a concurrent POST can overwrite this update.
        sessions = SessionLedger.from_json(await read_json_or(store, SESSIONS_KEY, []))
        sessions.apply(event)
        await write_json(store, SESSIONS_KEY, sessions.to_json(), max_bytes=config.max_body_bytes)
        return json_response(200, {"ok": True})
    except RequestError as exc:
        return error_response(exc.status, exc.error)
    except Exception as exc:
        _logger.exception("Tracking request failed")
        return error_response(500, str(exc) or type(exc).__name__)
