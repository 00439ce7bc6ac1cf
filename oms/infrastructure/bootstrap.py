'''
Wire settings, logging, the SQLite store, and the lifecycle service.
'''

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

from oms.core.order_service import OrderService
from oms.infrastructure.config import Settings
from oms.infrastructure.observability import configure_logging
from oms.infrastructure.order_store import SqliteOrderStore

__all__ = ['open_order_service']

_log = logging.getLogger(__name__)


@asynccontextmanager
async def open_order_service(
    settings: Settings | None = None,
    *,
    setup_logging: bool = True,
) -> AsyncIterator[OrderService]:

    '''
    Open the database, ensure its schema, and yield a ready OrderService.

    The connection is closed when the context exits.

    Args:
        settings (Settings | None): Configuration, read from the environment when None
        setup_logging (bool): Configure structlog output before opening the store

    Yields:
        OrderService: Service bound to the opened store
    '''

    settings = settings or Settings.from_env()
    if setup_logging:
        configure_logging(settings.log_level)

    async with aiosqlite.connect(settings.db_path) as conn:
        store = SqliteOrderStore(conn)
        await store.ensure_schema()
        _log.info('order store ready: db_path=%s', settings.db_path)
        yield OrderService(store, order_no_max_attempts=settings.order_no_max_attempts)
