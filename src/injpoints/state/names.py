"""Device display-name directory (upsert only)."""

from __future__ import annotations

import logging
from typing import Any

from injpoints.models.tracking import NAME_MAX_LEN

_logger = logging.getLogger(__name__)


class NameDirectory:
    """Mapping of ``deviceId`` to a short display name."""

    def __init__(self, names: dict[str, str] | None = None) -> None:
        self._names: dict[str, str] = dict(names or {})

    @classmethod
    def from_json(cls, document: Any) -> NameDirectory:
        if not isinstance(document, dict):
            return cls()
        names = {str(key): str(value)[:NAME_MAX_LEN] for key, value in document.items() if isinstance(value, str)}
        if len(names) != len(document):
            _logger.warning("Dropped %d non-string names", len(document) - len(names))
        return cls(names)

    def upsert(self, device_id: str, name: str) -> None:
        self._names[device_id] = name.strip()[:NAME_MAX_LEN]

    def get(self, device_id: str) -> str | None:
        return self._names.get(device_id)

    def __len__(self) -> int:
        return len(self._names)

    def to_json(self) -> dict[str, str]:
        return dict(self._names)
