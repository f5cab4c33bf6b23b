"""Snapshot assembly and loading.

Assembly is the write path: a raw client body becomes a fully populated
:class:`PersistedSnapshot`. Loading is the read path: stored bytes are
parsed, migrated from the legacy layout when needed, and validated.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from injpoints._constants import SCHEMA_VERSION
from injpoints.exceptions import UnsupportedSnapshotVersionError
from injpoints.ingestion.events import normalize_events
from injpoints.ingestion.normalize import coerce_number
from injpoints.ingestion.series import normalize_networth, normalize_stake, normalize_withdrawals
from injpoints.models.snapshot import PersistedSnapshot

_logger = logging.getLogger(__name__)

# Older clients and documents use the short section names.
_SECTION_ALIASES: dict[str, str] = {"withdrawals": "wd", "networth": "nw"}


def _section(raw: dict[str, Any], name: str) -> Any:
    value = raw.get(name)
    if value is None and name in _SECTION_ALIASES:
        value = raw.get(_SECTION_ALIASES[name])
    return value


def assemble_snapshot(raw: Any, *, now_ms: int) -> PersistedSnapshot:
    """Build the replacement snapshot for an address.

    Missing sections become empty series; ``writtenAt`` is always *now_ms*,
    whatever the caller sent.
    """
    if not isinstance(raw, dict):
        raw = {}
    return PersistedSnapshot(
        version=SCHEMA_VERSION,
        written_at=now_ms,
        stake=normalize_stake(_section(raw, "stake")),
        withdrawals=normalize_withdrawals(_section(raw, "withdrawals")),
        networth=normalize_networth(_section(raw, "networth")),
        events=normalize_events(raw.get("events"), now_ms=now_ms),
    )


def dump_snapshot(snapshot: PersistedSnapshot) -> bytes:
    return json.dumps(snapshot.to_json(), separators=(",", ":")).encode("utf-8")


def _migrate(document: dict[str, Any]) -> PersistedSnapshot:
    """Bring a stored document to the current layout, or raise."""
    if "version" not in document and "v" in document:
        # Legacy layout {v, t, stake, wd, nw, events}: same v2 rules, but its
        # label arrays were never padded, so run it through the normalizers.
        if document.get("v") != SCHEMA_VERSION:
            raise UnsupportedSnapshotVersionError(document.get("v"))
        written_at = coerce_number(document.get("t"))
        return assemble_snapshot(document, now_ms=int(written_at))

    version = document.get("version")
    if version != SCHEMA_VERSION:
        raise UnsupportedSnapshotVersionError(version)
    return PersistedSnapshot.model_validate(document)


def load_snapshot(data: bytes | None, *, key: str = "") -> PersistedSnapshot | None:
    """Parse a stored snapshot.

    Corrupt, unversioned or invalid documents yield ``None``: a damaged
    blob reads as "no data" rather than failing the request.
    """
    if not data:
        return None
    try:
        document = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError):
        _logger.warning("Stored snapshot %s is not valid JSON; treating as empty", key)
        return None
    if not isinstance(document, dict):
        _logger.warning("Stored snapshot %s is not an object; treating as empty", key)
        return None

    try:
        return _migrate(document)
    except UnsupportedSnapshotVersionError as exc:
        _logger.warning("Stored snapshot %s rejected: %s", key, exc)
    except ValidationError as exc:
        _logger.warning("Stored snapshot %s failed validation: %s", key, exc.error_count())
    return None
