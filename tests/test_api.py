from __future__ import annotations

import json
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

import pytest
from aiohttp import test_utils

from injpoints._constants import NAMES_KEY, SESSIONS_KEY, snapshot_key
from injpoints.app import create_app
from injpoints.config import InjPointsConfig
from injpoints.exceptions import StoreError
from injpoints.storage import MemoryDocumentStore

ADDRESS = "inj1qy09gsfx3gxqjahumq97elwxqf4qu5agdmqgnw"
NOW = 1_700_000_000_000


class FailingStore(MemoryDocumentStore):
    async def write_document(self, key: str, data: bytes) -> str | None:
        raise StoreError("backend unavailable", key=key, status_code=503)


@asynccontextmanager
async def _client(store: MemoryDocumentStore | None = None) -> AsyncIterator[test_utils.TestClient]:
    app = create_app(InjPointsConfig(), store=store or MemoryDocumentStore(), clock=lambda: NOW)
    async with test_utils.TestClient(test_utils.TestServer(app)) as client:
        yield client


def _assert_json_headers(resp) -> None:
    assert resp.headers["Content-Type"] == "application/json; charset=utf-8"
    assert resp.headers["Cache-Control"] == "no-store"
    assert resp.headers["Access-Control-Allow-Origin"] == "*"


# ---------------------------------------------------------------------------
# /api/point
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_snapshot_round_trip() -> None:
    store = MemoryDocumentStore()
    async with _client(store) as client:
        resp = await client.post("/api/point", params={"address": ADDRESS}, json={"stake": {"data": [1, 2, 3]}})
        body = await resp.json()
        assert resp.status == 200
        _assert_json_headers(resp)
        assert body == {"ok": True, "url": f"memory://{snapshot_key(ADDRESS)}", "t": NOW}

        resp = await client.get("/api/point", params={"address": ADDRESS})
        data = (await resp.json())["data"]

    assert data["stake"]["labels"] == ["Stake update", "Stake update", "Stake update"]
    assert data["stake"]["data"] == [1, 2, 3]
    assert data["stake"]["moves"] == [0, 0, 0]
    assert data["version"] == 2
    assert data["writtenAt"] == NOW
    assert data == json.loads(await store.read_document(snapshot_key(ADDRESS)))


@pytest.mark.asyncio
async def test_snapshot_post_replaces_previous_document() -> None:
    async with _client() as client:
        await client.post("/api/point", params={"address": ADDRESS}, json={"events": [{"id": "a", "ts": 1}]})
        await client.post("/api/point", params={"address": ADDRESS}, json={"networth": {"times": [1]}})

        resp = await client.get("/api/point", params={"address": ADDRESS})
        data = (await resp.json())["data"]

    assert data["events"] == []
    assert data["networth"] == {"times": [1], "usd": [0], "inj": [0]}


@pytest.mark.asyncio
async def test_snapshot_get_without_data_returns_null() -> None:
    store = MemoryDocumentStore()
    other = "inj1abcdefghijklmnopqrstuvwxyz"
    await store.write_document(snapshot_key(other), b"{corrupt")
    async with _client(store) as client:
        missing = await (await client.get("/api/point", params={"address": ADDRESS})).json()
        corrupt = await (await client.get("/api/point", params={"address": other})).json()

    assert missing == {"ok": True, "data": None}
    assert corrupt == {"ok": True, "data": None}


@pytest.mark.asyncio
@pytest.mark.parametrize("address", ["", "cosmos1abc", "inj1short"])
async def test_snapshot_rejects_invalid_address(address: str) -> None:
    async with _client() as client:
        resp = await client.get("/api/point", params={"address": address})
        body = await resp.json()

    assert resp.status == 400
    assert body == {"ok": False, "error": "Invalid address"}


@pytest.mark.asyncio
async def test_snapshot_rejects_empty_and_malformed_bodies() -> None:
    store = MemoryDocumentStore()
    async with _client(store) as client:
        empty = await client.post("/api/point", params={"address": ADDRESS}, data=b"")
        malformed = await client.post("/api/point", params={"address": ADDRESS}, data=b"{nope")

        assert empty.status == 400
        assert (await empty.json())["error"] == "Empty body"
        assert malformed.status == 400
        assert (await malformed.json())["error"] == "Invalid JSON"
    assert store.writes == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        b'{"stake": {"data": [NaN]}}',
        b'{"stake": {"data": [Infinity, -Infinity]}}',
        b"[" * 50_000 + b"]" * 50_000,
    ],
)
async def test_snapshot_rejects_non_standard_json(body: bytes) -> None:
    store = MemoryDocumentStore()
    async with _client(store) as client:
        resp = await client.post("/api/point", params={"address": ADDRESS}, data=body)
        payload = await resp.json()

    assert resp.status == 400
    assert payload == {"ok": False, "error": "Invalid JSON"}
    assert store.writes == []


@pytest.mark.asyncio
async def test_snapshot_get_of_deeply_nested_document_returns_null() -> None:
    store = MemoryDocumentStore()
    await store.write_document(snapshot_key(ADDRESS), b"[" * 50_000 + b"]" * 50_000)
    async with _client(store) as client:
        resp = await client.get("/api/point", params={"address": ADDRESS})
        body = await resp.json()

    assert resp.status == 200
    assert body == {"ok": True, "data": None}


@pytest.mark.asyncio
async def test_snapshot_rejects_oversized_body_before_parsing() -> None:
    store = MemoryDocumentStore()
    async with _client(store) as client:
        resp = await client.post("/api/point", params={"address": ADDRESS}, data=b"{" * 220_001)
        body = await resp.json()

    assert resp.status == 413
    assert body == {"ok": False, "error": "Body too large"}
    assert store.writes == []


@pytest.mark.asyncio
async def test_snapshot_accepts_body_at_ceiling() -> None:
    payload = json.dumps({"stake": {"data": [1]}, "pad": ""}).encode()
    padded = payload[:-2] + b" " * (220_000 - len(payload)) + payload[-2:]
    assert len(padded) == 220_000
    async with _client() as client:
        resp = await client.post("/api/point", params={"address": ADDRESS}, data=padded)

    assert resp.status == 200


@pytest.mark.asyncio
async def test_snapshot_options_and_unsupported_methods() -> None:
    async with _client() as client:
        options = await client.options("/api/point")
        put = await client.put("/api/point", params={"address": ADDRESS}, data=b"{}")

        assert options.status == 204
        assert options.headers["Access-Control-Allow-Methods"] == "GET,POST,OPTIONS"
        assert put.status == 405
        assert (await put.json())["error"] == "Method not allowed"


@pytest.mark.asyncio
async def test_snapshot_store_failure_is_generic_server_error() -> None:
    async with _client(FailingStore()) as client:
        resp = await client.post("/api/point", params={"address": ADDRESS}, json={})
        body = await resp.json()

    assert resp.status == 500
    assert body == {"ok": False, "error": "Server error"}


# ---------------------------------------------------------------------------
# /api/track
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_track_get_empty() -> None:
    async with _client() as client:
        resp = await client.get("/api/track")
        body = await resp.json()

    _assert_json_headers(resp)
    assert body == {"ok": True, "sessions": [], "names": {}, "ts": NOW}


@pytest.mark.asyncio
async def test_track_session_lifecycle() -> None:
    store = MemoryDocumentStore()
    async with _client(store) as client:
        base = {"sessionId": "s1", "deviceId": "d1"}
        for payload in (
            {**base, "type": "beat", "ts": 100},
            {**base, "type": "start", "ts": 90, "page": "/stake", "deviceInfo": {"lang": "it"}},
            {**base, "type": "beat", "ts": 160},
            {**base, "type": "end", "ts": 200, "reason": "unload"},
            {**base, "type": "end", "ts": 250},
        ):
            resp = await client.post("/api/track", json=payload)
            assert resp.status == 200
            assert await resp.json() == {"ok": True}

        body = await (await client.get("/api/track")).json()

    (session,) = body["sessions"]
    assert session["startTs"] == 100
    assert session["lastTs"] == 250
    assert session["endTs"] == 200
    assert session["beats"] == 2
    assert session["endReason"] == "end"
    assert json.loads(await store.read_document(SESSIONS_KEY)) == body["sessions"]


@pytest.mark.asyncio
async def test_track_name_upsert() -> None:
    store = MemoryDocumentStore()
    async with _client(store) as client:
        await client.post("/api/track", json={"type": "name", "deviceId": "d1", "name": "Desk"})
        await client.post("/api/track", json={"type": "name", "deviceId": "d1", "name": "  Laptop  "})
        body = await (await client.get("/api/track")).json()

    assert body["names"] == {"d1": "Laptop"}
    assert await store.read_document(SESSIONS_KEY) is None
    assert json.loads(await store.read_document(NAMES_KEY)) == {"d1": "Laptop"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("payload", "error"),
    [
        ({"type": "click", "sessionId": "s", "deviceId": "d"}, "Unknown type"),
        ({"type": "beat", "deviceId": "d"}, "Missing sessionId/deviceId"),
        ({"type": "start", "sessionId": "s"}, "Missing sessionId/deviceId"),
        ({"type": "name", "name": "Desk"}, "Missing deviceId"),
        ({"type": "name", "deviceId": "d", "name": ""}, "Empty name"),
    ],
)
async def test_track_validation_errors(payload: dict, error: str) -> None:
    store = MemoryDocumentStore()
    async with _client(store) as client:
        resp = await client.post("/api/track", json=payload)
        body = await resp.json()

    assert resp.status == 400
    assert body == {"ok": False, "error": error}
    assert store.writes == []


@pytest.mark.asyncio
async def test_track_body_errors() -> None:
    async with _client() as client:
        empty = await client.post("/api/track", data=b"")
        malformed = await client.post("/api/track", data=b"[1, 2]")
        too_large = await client.post("/api/track", data=b" " * 220_001)
        patch = await client.patch("/api/track", data=b"{}")

        assert (empty.status, (await empty.json())["error"]) == (400, "Empty body")
        assert (malformed.status, (await malformed.json())["error"]) == (400, "Invalid JSON")
        assert (too_large.status, (await too_large.json())["error"]) == (413, "Body too large")
        assert (patch.status, (await patch.json())["error"]) == (405, "Method Not Allowed")


@pytest.mark.asyncio
async def test_track_rejects_deeply_nested_body() -> None:
    async with _client() as client:
        resp = await client.post("/api/track", data=b"[" * 50_000 + b"]" * 50_000)
        body = await resp.json()

    assert resp.status == 400
    assert body == {"ok": False, "error": "Invalid JSON"}


@pytest.mark.asyncio
async def test_track_store_failure_reports_message() -> None:
    async with _client(FailingStore()) as client:
        resp = await client.post("/api/track", json={"type": "beat", "sessionId": "s", "deviceId": "d"})
        body = await resp.json()

    assert resp.status == 500
    assert body == {"ok": False, "error": "backend unavailable"}
