'''Verify JSON logging of order operations through structlog.'''

from __future__ import annotations

import io
import logging
from collections.abc import Iterator
from decimal import Decimal
from typing import Any

import aiosqlite
import orjson
import pytest
import structlog

from oms.core import OrderService
from oms.core.domain import CreateOrderRequest, OrderSide, OrderType, UpdateOrderRequest
from oms.core.errors import IllegalStateError
from oms.infrastructure.observability import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)
from oms.infrastructure.order_store import SqliteOrderStore

_REQUEST = CreateOrderRequest(
    security_id=3,
    side=OrderSide.BUY,
    order_type=OrderType.LIMIT,
    quantity=Decimal('100'),
    price=Decimal('12.50'),
)


@pytest.fixture
def log_lines() -> Iterator[io.StringIO]:

    '''
    Route stdlib records through configure_logging into an in-memory buffer.

    Yields:
        io.StringIO: Buffer receiving one JSON document per line
    '''

    buf = io.StringIO()
    configure_logging('DEBUG')
    root = logging.getLogger()
    handler = logging.StreamHandler(buf)
    handler.setFormatter(root.handlers[0].formatter)
    root.handlers.clear()
    root.addHandler(handler)
    clear_context()

    yield buf

    clear_context()
    root.handlers.clear()


def _records(buf: io.StringIO) -> list[dict[str, Any]]:

    return [orjson.loads(line) for line in buf.getvalue().splitlines() if line.strip()]


def _capture_structlog(func: Any) -> dict[str, Any]:

    '''
    Capture a single structlog log line as a parsed dict.

    Args:
        func (Any): Callable that emits exactly one structlog log line

    Returns:
        dict[str, Any]: Parsed JSON log output
    '''

    buf = io.BytesIO()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt='iso', utc=True),
            structlog.processors.JSONRenderer(serializer=orjson.dumps),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        logger_factory=structlog.BytesLoggerFactory(file=buf),
        cache_logger_on_first_use=False,
    )
    func()
    result: dict[str, Any] = orjson.loads(buf.getvalue().strip())
    return result


async def _service(conn: aiosqlite.Connection) -> OrderService:

    store = SqliteOrderStore(conn)
    await store.ensure_schema()
    return OrderService(store)


def test_configure_logging_accepts_levels() -> None:

    '''Verify all standard log levels are accepted.'''

    for level in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
        configure_logging(level)


def test_stdlib_record_is_json(log_lines: io.StringIO) -> None:

    '''Verify a module logger renders event, level and a UTC timestamp.'''

    logging.getLogger('oms.core.order_service').warning('order number collision')

    (record,) = _records(log_lines)
    assert record['event'] == 'order number collision'
    assert record['level'] == 'warning'
    assert record['timestamp'].endswith('Z')


@pytest.mark.asyncio
async def test_cancel_lines_carry_order_context(log_lines: io.StringIO) -> None:

    '''Verify cancel binds operation and order_id onto its records.'''

    async with aiosqlite.connect(':memory:') as conn:
        service = await _service(conn)
        created = await service.create(7, _REQUEST)
        log_lines.truncate(0)
        log_lines.seek(0)

        await service.cancel(created.order_id)

    records = _records(log_lines)
    canceled = [r for r in records if r['event'].startswith('order canceled')]
    assert len(canceled) == 1
    assert canceled[0]['operation'] == 'cancel'
    assert canceled[0]['order_id'] == created.order_id


@pytest.mark.asyncio
async def test_create_lines_carry_user_context(log_lines: io.StringIO) -> None:

    '''Verify the created record is tagged with the owning user.'''

    async with aiosqlite.connect(':memory:') as conn:
        service = await _service(conn)
        await service.create(7, _REQUEST)

    created = [r for r in _records(log_lines) if r['event'].startswith('order created')]
    assert created[0]['operation'] == 'create'
    assert created[0]['user_id'] == 7


@pytest.mark.asyncio
async def test_operation_context_released_after_failure(log_lines: io.StringIO) -> None:

    '''Verify a refused update does not leak its order_id into later records.'''

    async with aiosqlite.connect(':memory:') as conn:
        service = await _service(conn)
        created = await service.create(7, _REQUEST)
        await service.cancel(created.order_id)
        with pytest.raises(IllegalStateError):
            await service.update(created.order_id, UpdateOrderRequest(notes='late'))

    logging.getLogger('oms.test').info('after update')

    last = _records(log_lines)[-1]
    assert last['event'] == 'after update'
    assert 'order_id' not in last
    assert 'operation' not in last


def test_caller_context_merges_with_service_records(log_lines: io.StringIO) -> None:

    '''Verify context bound by a caller reaches stdlib records.'''

    bind_context(request_id='r-1')
    logging.getLogger('oms.core.order_service').info('canceling order')
    clear_context()
    logging.getLogger('oms.core.order_service').info('canceling order')

    first, second = _records(log_lines)
    assert first['request_id'] == 'r-1'
    assert 'request_id' not in second


def test_get_logger_binds_name() -> None:

    '''Verify the logger name is emitted under the logger key.'''

    result = _capture_structlog(lambda: get_logger('oms.test').info('test'))
    assert result['logger'] == 'oms.test'
    assert result['event'] == 'test'
    assert result['level'] == 'info'
