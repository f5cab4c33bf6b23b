"""Document store adapters.

The service only needs two operations from its backend: read the latest
bytes stored under a key, and durably replace them. Reads never raise (a
missing or unreadable document is ``None``); write failures raise
:class:`StoreError` and fail the request.

There is no locking and no compare-and-swap: concurrent read-modify-write
cycles on the same key can lose updates (last write wins).
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import math
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote

import aiohttp

from injpoints._constants import MAX_BODY_BYTES, OVERSIZE_KEEP_RATIO
from injpoints.exceptions import StoreError

_logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """Structural store interface used by the HTTP handlers.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production backends concrete.
    """

    async def read_document(self, key: str) -> bytes | None: ...

    async def write_document(self, key: str, data: bytes) -> str | None: ...


class MemoryDocumentStore:
    """Process-local store for tests and local development."""

    def __init__(self) -> None:
        self._documents: dict[str, bytes] = {}
        self.writes: list[str] = []

    async def read_document(self, key: str) -> bytes | None:
        return self._documents.get(key)

    async def write_document(self, key: str, data: bytes) -> str | None:
        self._documents[key] = bytes(data)
        self.writes.append(key)
        return f"memory://{key}"


class FileDocumentStore:
    """Documents as files below a root directory, replaced atomically."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root).resolve()

    def _path(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if not path.is_relative_to(self._root):
            raise StoreError(f"Key escapes store root: {key}", key=key)
        return path

    def _read(self, path: Path) -> bytes | None:
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def read_document(self, key: str) -> bytes | None:
        try:
            return await asyncio.to_thread(self._read, self._path(key))
        except (OSError, StoreError) as exc:
            _logger.warning("Unreadable document %s: %s", key, exc)
            return None

    async def write_document(self, key: str, data: bytes) -> str | None:
        path = self._path(key)
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as exc:
            raise StoreError(f"Write to {key} failed: {exc}", key=key) from exc
        return path.as_uri()


class BlobDocumentStore:
    """Public-access blob service reached over HTTP.

    Reads resolve the key's metadata first (which carries the content URL)
    and then fetch the content uncached. Writes ``PUT`` the document with a
    stable pathname and overwrite enabled, so a retried write is idempotent.
    """

    API_VERSION = "7"

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        token: str,
        base_url: str = "https://blob.vercel-storage.com",
    ) -> None:
        self._http = http_session
        self._token = token
        self._base_url = base_url.rstrip("/")

    def _headers(self, **extra: str) -> dict[str, str]:
        return {
            "authorization": f"Bearer {self._token}",
            "x-api-version": self.API_VERSION,
            **extra,
        }

    async def read_document(self, key: str) -> bytes | None:
        url = f"{self._base_url}/?url={quote(key, safe='')}"
        try:
            async with self._http.get(url, headers=self._headers()) as resp:
                if resp.status != 200:
                    if resp.status != 404:
                        _logger.warning("Blob metadata for %s: HTTP %s", key, resp.status)
                    return None
                meta = await resp.json(content_type=None)
            content_url = meta.get("url") if isinstance(meta, dict) else None
            if not content_url:
                return None
            async with self._http.get(content_url, headers={"cache-control": "no-store"}) as resp:
                if resp.status != 200:
                    _logger.warning("Blob content for %s: HTTP %s", key, resp.status)
                    return None
                return await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError, json.JSONDecodeError) as exc:
            _logger.warning("Blob read of %s failed: %s", key, exc)
            return None

    async def write_document(self, key: str, data: bytes) -> str | None:
        url = f"{self._base_url}/?pathname={quote(key, safe='')}"
        headers = self._headers(
            **{
                "x-content-type": "application/json",
                "x-add-random-suffix": "0",
                "x-allow-overwrite": "1",
            }
        )
        _logger.debug("PUT %s (%d bytes)", key, len(data))
        try:
            async with self._http.put(url, data=data, headers=headers) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise StoreError(
                        f"HTTP {resp.status} writing {key}: {text[:200]}",
                        key=key,
                        status_code=resp.status,
                    )
        except StoreError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise StoreError(f"Write to {key} failed: {exc}", key=key) from exc

        try:
            result = json.loads(text)
        except json.JSONDecodeError:
            return None
        return result.get("url") if isinstance(result, dict) else None


async def read_json_or(store: DocumentStore, key: str, default: Any) -> Any:
    """Decode the JSON document at *key*, or a copy of *default*.

    A corrupt document is logged and treated like a missing one.
    """
    data = await store.read_document(key)
    if not data:
        return copy.deepcopy(default)
    try:
        return json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError):
        _logger.warning("Stored document %s is not valid JSON; using default", key)
        return copy.deepcopy(default)


def encode_json(data: Any) -> bytes:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


async def write_json(
    store: DocumentStore,
    key: str,
    data: Any,
    *,
    max_bytes: int = MAX_BODY_BYTES,
) -> str | None:
    """Encode and write *data*.

    When the encoded document exceeds *max_bytes* and is a list, only the
    newest ``OVERSIZE_KEEP_RATIO`` share of its entries is written.
    """
    body = encode_json(data)
    if len(body) > max_bytes and isinstance(data, list):
        keep = math.floor(len(data) * OVERSIZE_KEEP_RATIO)
        _logger.warning(
            "Document %s is %d bytes (limit %d); keeping newest %d of %d entries",
            key,
            len(body),
            max_bytes,
            keep,
            len(data),
        )
        body = encode_json(data[len(data) - keep :] if keep else [])
    return await store.write_document(key, body)
