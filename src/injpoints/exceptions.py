"""Custom exception hierarchy for injpoints."""

from __future__ import annotations


class InjPointsError(Exception):
    """Base exception for all injpoints errors."""


class ConfigError(InjPointsError):
    """Invalid or missing configuration."""


class RequestError(InjPointsError):
    """Caller-side validation failure, surfaced as a 4xx response.

    The message is the short, machine-stable error string returned in the
    ``error`` field of the response body.
    """

    status: int = 400

    def __init__(self, message: str, *, status: int | None = None) -> None:
        if status is not None:
            self.status = status
        super().__init__(message)

    @property
    def error(self) -> str:
        return str(self)


class InvalidAddressError(RequestError):
    """Address missing or not an ``inj`` account address."""

    def __init__(self) -> None:
        super().__init__("Invalid address")


class EmptyBodyError(RequestError):
    """POST without a body."""

    def __init__(self) -> None:
        super().__init__("Empty body")


class InvalidJsonError(RequestError):
    """Body is not valid JSON (or not a JSON object where one is required)."""

    def __init__(self) -> None:
        super().__init__("Invalid JSON")


class BodyTooLargeError(RequestError):
    """Body exceeded the byte ceiling; reading was aborted."""

    status = 413

    def __init__(self, *, limit: int) -> None:
        self.limit = limit
        super().__init__("Body too large")


class MissingFieldError(RequestError):
    """A required tracking field is absent or empty."""


class UnknownEventTypeError(RequestError):
    """Tracking ``type`` outside ``start``/``beat``/``end``/``name``."""

    def __init__(self, event_type: str = "") -> None:
        self.event_type = event_type
        super().__init__("Unknown type")


class StoreError(InjPointsError):
    """Document backend failure (network, non-2xx, unreadable reply)."""

    def __init__(
        self,
        message: str,
        *,
        key: str = "",
        status_code: int | None = None,
    ) -> None:
        self.key = key
        self.status_code = status_code
        super().__init__(message)


class UnsupportedSnapshotVersionError(InjPointsError):
    """Stored snapshot carries a version tag this release cannot read.

    Raised while loading stored documents; callers treat it as "no data"
    rather than guessing the document's shape.
    """

    def __init__(self, version: object) -> None:
        self.version = version
        super().__init__(f"Unsupported snapshot version: {version!r}")
