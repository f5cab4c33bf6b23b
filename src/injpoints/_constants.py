"""Internal constants shared across the service."""

SCHEMA_VERSION = 2

#: Points kept per series (stake / withdrawals / networth).
MAX_POINTS = 2400
MAX_EVENTS = 1200
MAX_SESSIONS = 5000

#: Ceiling for request bodies and for stored documents.
MAX_BODY_BYTES = 220_000

#: Share of a sequence kept when a stored document exceeds the ceiling.
OVERSIZE_KEEP_RATIO = 0.7

SESSIONS_KEY = "analytics/sessions.json"
NAMES_KEY = "analytics/names.json"


def snapshot_key(address: str) -> str:
    """Blob pathname of the snapshot owned by *address*."""
    return f"inj-points/{address}/data.json"
