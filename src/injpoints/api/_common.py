"""Shared pieces of the HTTP handlers: app keys, responses, body reading."""

from __future__ import annotations

import json
import time
from collections.abc import Awaitable, Callable
from typing import Any

from aiohttp import web

from injpoints.config import InjPointsConfig
from injpoints.exceptions import BodyTooLargeError, EmptyBodyError, InvalidJsonError
from injpoints.storage import DocumentStore

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

_CHUNK_SIZE = 16 * 1024


def now_ms() -> int:
    return int(time.time() * 1000)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


CONFIG_KEY = web.AppKey("config", InjPointsConfig)
STORE_KEY = web.AppKey("store", DocumentStore)
CLOCK_KEY = web.AppKey("clock", Callable[[], int])


def json_response(status: int, body: dict[str, Any]) -> web.Response:
    return web.json_response(body, status=status, headers={"Cache-Control": "no-store"})


def error_response(status: int, error: str) -> web.Response:
    return json_response(status, {"ok": False, "error": error})


@web.middleware
async def cors_middleware(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    response = await handler(request)
    response.headers.update(CORS_HEADERS)
    return response


async def read_body(request: web.Request, *, limit: int) -> bytes:
    """Read the request body incrementally, aborting past *limit* bytes.

    A declared ``Content-Length`` over the limit is rejected before any
    byte is read.
    """
    if request.content_length is not None and request.content_length > limit:
        raise BodyTooLargeError(limit=limit)

    body = bytearray()
    async for chunk in request.content.iter_chunked(_CHUNK_SIZE):
        body.extend(chunk)
        if len(body) > limit:
            raise BodyTooLargeError(limit=limit)
    return bytes(body)


async def read_json_body(request: web.Request, *, limit: int) -> Any:
    """Read and decode a JSON body; raise a :class:`RequestError` otherwise."""
    raw = await read_body(request, limit=limit)
    if not raw:
        raise EmptyBodyError()
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        # ValueError covers JSONDecodeError, UnicodeDecodeError and NaN/Infinity
        raise InvalidJsonError() from None
