"""Application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable

import aiohttp
from aiohttp import web

from injpoints.api import CLOCK_KEY, CONFIG_KEY, STORE_KEY, cors_middleware, handle_point, handle_track
from injpoints.api._common import now_ms
from injpoints.config import InjPointsConfig
from injpoints.storage import BlobDocumentStore, DocumentStore, FileDocumentStore, MemoryDocumentStore

_logger = logging.getLogger(__name__)


async def _blob_store_ctx(app: web.Application) -> AsyncIterator[None]:
    config = app[CONFIG_KEY]
    async with aiohttp.ClientSession() as http_session:
        app[STORE_KEY] = BlobDocumentStore(
            http_session,
            token=config.blob_token or "",
            base_url=config.blob_base_url,
        )
        yield


def create_app(
    config: InjPointsConfig | None = None,
    *,
    store: DocumentStore | None = None,
    clock: Callable[[], int] = now_ms,
) -> web.Application:
    """Build the aiohttp application.

    Parameters
    ----------
    config : InjPointsConfig or None
        Service configuration. Defaults to :meth:`InjPointsConfig.from_env`.
    store : DocumentStore or None
        Explicit backend; overrides ``config.store_backend``.
    clock : callable
        Returns the current time in epoch milliseconds.
    """
    config = config if config is not None else InjPointsConfig.from_env()

    app = web.Application(middlewares=[cors_middleware])
    app[CONFIG_KEY] = config
    app[CLOCK_KEY] = clock

    if store is not None:
        app[STORE_KEY] = store
    elif config.store_backend == "file":
        app[STORE_KEY] = FileDocumentStore(config.data_dir)
    elif config.store_backend == "blob":
        app.cleanup_ctx.append(_blob_store_ctx)
    else:
        app[STORE_KEY] = MemoryDocumentStore()

    app.router.add_route("*", "/api/point", handle_point)
    app.router.add_route("*", "/api/track", handle_track)

    _logger.debug("Application created with %s store", type(store).__name__ if store else config.store_backend)
    return app
