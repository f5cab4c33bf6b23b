"""HTTP surface of the service."""

from injpoints.api._common import CLOCK_KEY, CONFIG_KEY, STORE_KEY, cors_middleware
from injpoints.api.point import handle_point
from injpoints.api.track import handle_track

__all__ = [
    "CLOCK_KEY",
    "CONFIG_KEY",
    "STORE_KEY",
    "cors_middleware",
    "handle_point",
    "handle_track",
]
