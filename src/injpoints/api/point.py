"""Snapshot endpoint: per-address dashboard history."""

from __future__ import annotations

import logging

from aiohttp import web

from injpoints._constants import snapshot_key
from injpoints.api._common import (
    CLOCK_KEY,
    CONFIG_KEY,
    STORE_KEY,
    error_response,
    json_response,
    read_json_body,
)
from injpoints.exceptions import InvalidAddressError, RequestError
from injpoints.ingestion.normalize import validate_address
from injpoints.ingestion.payload import assemble_snapshot, dump_snapshot, load_snapshot

_logger = logging.getLogger(__name__)


async def handle_point(request: web.Request) -> web.StreamResponse:
    """``GET``/``POST``/``OPTIONS`` on ``/api/point?address=<inj...>``."""
    try:
        if request.method == "OPTIONS":
            return web.Response(status=204)

        address = validate_address(request.query.get("address"))
        if not address:
            raise InvalidAddressError()

        key = snapshot_key(address)
        store = request.app[STORE_KEY]

        if request.method == "GET":
            snapshot = load_snapshot(await store.read_document(key), key=key)
            return json_response(200, {"ok": True, "data": snapshot.to_json() if snapshot else None})

        if request.method == "POST":
            parsed = await read_json_body(request, limit=request.app[CONFIG_KEY].max_body_bytes)
            snapshot = assemble_snapshot(parsed, now_ms=request.app[CLOCK_KEY]())
            url = await store.write_document(key, dump_snapshot(snapshot))
            _logger.debug(
                "Stored snapshot for %s: %d stake points, %d events",
                address,
                len(snapshot.stake),
                len(snapshot.events),
            )
            return json_response(200, {"ok": True, "url": url, "t": snapshot.written_at})

        return error_response(405, "Method not allowed")
    except RequestError as exc:
        return error_response(exc.status, exc.error)
    except Exception:
        _logger.exception("Snapshot request failed")
        return error_response(500, "Server error")
