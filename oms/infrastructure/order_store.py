'''
Order persistence protocol and its SQLite implementation.

Provide durable storage for Order records with store-assigned ids, a
uniqueness constraint on order numbers, optimistic versioning for
read-modify-write updates, and filtered reads ordered by order-placed
time descending. Caller owns the aiosqlite connection; writes through one
store are serialized so a failed save rolls back only its own statement.
'''

from __future__ import annotations

import asyncio
import dataclasses
import enum
import types
from collections.abc import Sequence
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Protocol, Union, get_args, get_origin, get_type_hints, runtime_checkable

import aiosqlite

from oms.core.domain.enums import OrderStatus
from oms.core.domain.order import Order
from oms.core.domain.order_filter import OrderFilter
from oms.core.errors import ConflictError, OrderError, StaleOrderError, StoreError

__all__ = ['OrderStore', 'SqliteOrderStore', 'build_filter_clause']

_CREATE_TABLE = '''
CREATE TABLE IF NOT EXISTS orders (
    order_id INTEGER PRIMARY KEY AUTOINCREMENT,
    order_no TEXT NOT NULL UNIQUE,
    user_id INTEGER NOT NULL,
    security_id INTEGER NOT NULL,
    side TEXT NOT NULL,
    order_type TEXT NOT NULL,
    quantity TEXT NOT NULL,
    price TEXT,
    stop_price TEXT,
    time_in_force TEXT NOT NULL,
    status TEXT NOT NULL,
    filled_quantity TEXT NOT NULL,
    average_price TEXT,
    commission TEXT,
    order_date TEXT NOT NULL,
    valid_until TEXT,
    notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    version INTEGER NOT NULL DEFAULT 0
)'''

_CREATE_INDEXES = (
    'CREATE INDEX IF NOT EXISTS ix_orders_user_date ON orders (user_id, order_date)',
    'CREATE INDEX IF NOT EXISTS ix_orders_date ON orders (order_date)',
)

_COLUMNS: tuple[str, ...] = (
    'order_id',
    'order_no',
    'user_id',
    'security_id',
    'side',
    'order_type',
    'quantity',
    'price',
    'stop_price',
    'time_in_force',
    'status',
    'filled_quantity',
    'average_price',
    'commission',
    'order_date',
    'valid_until',
    'notes',
    'created_at',
    'updated_at',
    'version',
)

_INSERT_COLUMNS = tuple(c for c in _COLUMNS if c not in ('order_id', 'version'))

# order_no, order_date and created_at are written once at insert.
_UPDATE_COLUMNS = tuple(
    c for c in _INSERT_COLUMNS if c not in ('order_no', 'order_date', 'created_at')
)

_INSERT = (
    f'INSERT INTO orders ({", ".join(_INSERT_COLUMNS)}) '
    f'VALUES ({", ".join("?" for _ in _INSERT_COLUMNS)})'
)

_UPDATE = (
    f'UPDATE orders SET {", ".join(f"{c} = ?" for c in _UPDATE_COLUMNS)}, '
    'version = version + 1 WHERE order_id = ? AND version = ?'
)

_SELECT = f'SELECT {", ".join(_COLUMNS)} FROM orders'

_ORDER_BY = ' ORDER BY order_date DESC, order_id DESC'

_COUNT_BETWEEN = 'SELECT COUNT(*) FROM orders WHERE order_date BETWEEN ? AND ?'

_ORDER_HINTS: dict[str, Any] = get_type_hints(Order)


def _to_db(value: Any) -> Any:

    '''
    Convert a domain value to its SQLite column representation.

    Datetimes are normalized to UTC with fixed microsecond precision so
    lexical order of the stored text equals chronological order.

    Args:
        value (Any): Field value from an Order or OrderFilter

    Returns:
        Any: Value SQLite can bind
    '''

    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).isoformat(timespec='microseconds')
    return value


def _coerce(value: Any, target: Any) -> Any:

    '''
    Coerce a stored column value to the expected Python type.

    Args:
        value (Any): Raw value read from SQLite
        target (Any): Expected Python type from the Order field annotation

    Returns:
        Any: Value coerced to the target type
    '''

    if value is None:
        return None

    origin = get_origin(target)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(target) if a is not type(None)]
        return _coerce(value, args[0]) if args else value

    if target is Decimal:
        return Decimal(str(value))

    if target is datetime:
        return datetime.fromisoformat(str(value))

    if isinstance(target, type) and issubclass(target, enum.Enum):
        return target(value)

    return value


def _hydrate(row: Sequence[Any]) -> Order:

    '''
    Reconstruct an Order from a row selected with _COLUMNS.

    Args:
        row (Sequence[Any]): Column values in _COLUMNS order

    Returns:
        Order: Hydrated order entity
    '''

    return Order(**{
        name: _coerce(value, _ORDER_HINTS[name])
        for name, value in zip(_COLUMNS, row)
    })


def build_filter_clause(order_filter: OrderFilter) -> tuple[str, list[Any]]:

    '''
    Translate an OrderFilter into a parameterized WHERE clause.

    Absent filter fields contribute nothing; present ones are ANDed.

    Args:
        order_filter (OrderFilter): Query to translate

    Returns:
        tuple[str, list[Any]]: Clause with leading " WHERE " (empty when no
            constraint is set) and its bind parameters
    '''

    if order_filter.is_empty:
        return '', []

    conditions: list[str] = []
    params: list[Any] = []

    if order_filter.user_id is not None:
        conditions.append('user_id = ?')
        params.append(order_filter.user_id)
    if order_filter.security_id is not None:
        conditions.append('security_id = ?')
        params.append(order_filter.security_id)
    if order_filter.statuses is not None:
        values = sorted(_to_db(s) for s in order_filter.statuses)
        conditions.append(f'status IN ({", ".join("?" for _ in values)})')
        params.extend(values)
    if order_filter.start_date is not None:
        conditions.append('order_date >= ?')
        params.append(_to_db(order_filter.start_date))
    if order_filter.end_date is not None:
        conditions.append('order_date <= ?')
        params.append(_to_db(order_filter.end_date))

    return ' WHERE ' + ' AND '.join(conditions), params


@runtime_checkable
class OrderStore(Protocol):

    '''
    Persistence interface consumed by the Order Lifecycle Service.

    Implementations assign order ids, enforce order_no uniqueness by
    raising ConflictError, and reject stale updates with StaleOrderError.
    Every list method orders by order_date descending.
    '''

    async def save(self, order: Order) -> Order:

        '''
        Insert a new order or update an existing one.

        Args:
            order (Order): Order to persist, order_id None for inserts

        Returns:
            Order: Stored record with order_id and version as persisted
        '''

        ...

    async def find_by_id(self, order_id: int) -> Order | None:

        '''Return the order with this id, or None.'''

        ...

    async def find_by_order_no(self, order_no: str) -> Order | None:

        '''Return the order with this order number, or None.'''

        ...

    async def find_by_user_id(self, user_id: int) -> list[Order]:

        '''Return every order owned by the user.'''

        ...

    async def find_by_user_id_and_status_in(
        self,
        user_id: int,
        statuses: frozenset[OrderStatus],
    ) -> list[Order]:

        '''Return the user's orders whose status is in statuses.'''

        ...

    async def find_by_filters(self, order_filter: OrderFilter) -> list[Order]:

        '''Return orders matching every constraint set on the filter.'''

        ...

    async def find_all(self) -> list[Order]:

        '''Return every stored order.'''

        ...

    async def count_by_order_date_between(self, start: datetime, end: datetime) -> int:

        '''Return how many orders were placed within [start, end].'''

        ...


class SqliteOrderStore:

    '''
    Provide order persistence backed by a single SQLite table.

    Args:
        conn (aiosqlite.Connection): Caller-owned database connection
    '''

    def __init__(self, conn: aiosqlite.Connection) -> None:

        '''
        Store the caller-owned connection.

        Args:
            conn (aiosqlite.Connection): Caller-owned database connection
        '''

        self._conn = conn
        self._write_lock = asyncio.Lock()

    async def ensure_schema(self) -> None:

        '''
        Create the orders table and its indexes if they do not exist.

        Returns:
            None
        '''

        async with self._conn.execute(_CREATE_TABLE):
            pass
        for statement in _CREATE_INDEXES:
            async with self._conn.execute(statement):
                pass
        await self._conn.commit()

    async def save(self, order: Order) -> Order:

        '''
        Insert or update an order and commit.

        Args:
            order (Order): Order to persist, order_id None for inserts

        Returns:
            Order: Stored record with order_id and version as persisted

        Raises:
            ConflictError: If the order number is already taken
            StaleOrderError: If the order changed since it was loaded
            StoreError: On any other database failure
        '''

        # Statement, commit and rollback must not interleave with another save.
        async with self._write_lock:
            try:
                if order.order_id is None:
                    stored = await self._insert(order)
                else:
                    stored = await self._update(order)
                await self._conn.commit()
            except aiosqlite.IntegrityError as exc:
                await self._conn.rollback()
                if 'order_no' in str(exc):
                    msg = f'Order number already exists: {order.order_no}'
                    raise ConflictError(msg) from exc
                msg = f'Integrity violation saving order {order.order_no}: {exc}'
                raise StoreError(msg) from exc
            except aiosqlite.Error as exc:
                await self._conn.rollback()
                msg = f'Failed to save order {order.order_no}: {exc}'
                raise StoreError(msg) from exc
            except OrderError:
                await self._conn.rollback()
                raise

        return stored

    async def _insert(self, order: Order) -> Order:

        params = [_to_db(getattr(order, c)) for c in _INSERT_COLUMNS]
        async with self._conn.execute(_INSERT, params) as cursor:
            if cursor.lastrowid is None:
                msg = 'cursor.lastrowid was None after INSERT'
                raise StoreError(msg)
            order_id = cursor.lastrowid

        return dataclasses.replace(order, order_id=order_id, version=0)

    async def _update(self, order: Order) -> Order:

        params = [_to_db(getattr(order, c)) for c in _UPDATE_COLUMNS]
        params.extend([order.order_id, order.version])
        async with self._conn.execute(_UPDATE, params) as cursor:
            if cursor.rowcount == 0:
                msg = f'Order {order.order_id} was modified concurrently (version {order.version})'
                raise StaleOrderError(msg)

        return dataclasses.replace(order, version=order.version + 1)

    async def _fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[Order]:

        try:
            async with self._conn.execute(sql, params) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            msg = f'Failed to read orders: {exc}'
            raise StoreError(msg) from exc

        return [_hydrate(row) for row in rows]

    async def _fetch_one(self, sql: str, params: Sequence[Any]) -> Order | None:

        orders = await self._fetch_all(sql, params)
        return orders[0] if orders else None

    async def find_by_id(self, order_id: int) -> Order | None:

        '''
        Return the order with this id.

        Args:
            order_id (int): Store-assigned identifier

        Returns:
            Order | None: Stored order, or None if absent
        '''

        return await self._fetch_one(f'{_SELECT} WHERE order_id = ?', (order_id,))

    async def find_by_order_no(self, order_no: str) -> Order | None:

        '''
        Return the order with this order number.

        Args:
            order_no (str): Human-readable order number

        Returns:
            Order | None: Stored order, or None if absent
        '''

        return await self._fetch_one(f'{_SELECT} WHERE order_no = ?', (order_no,))

    async def find_by_user_id(self, user_id: int) -> list[Order]:

        '''
        Return every order owned by the user, newest first.

        Args:
            user_id (int): Owning user

        Returns:
            list[Order]: Orders by order_date descending
        '''

        return await self.find_by_filters(OrderFilter(user_id=user_id))

    async def find_by_user_id_and_status_in(
        self,
        user_id: int,
        statuses: frozenset[OrderStatus],
    ) -> list[Order]:

        '''
        Return the user's orders in any of the given statuses, newest first.

        Args:
            user_id (int): Owning user
            statuses (frozenset[OrderStatus]): Allowed statuses

        Returns:
            list[Order]: Orders by order_date descending
        '''

        if not statuses:
            return []

        return await self.find_by_filters(OrderFilter(user_id=user_id, statuses=statuses))

    async def find_by_filters(self, order_filter: OrderFilter) -> list[Order]:

        '''
        Return orders matching every constraint set on the filter, newest first.

        Args:
            order_filter (OrderFilter): Query to run

        Returns:
            list[Order]: Orders by order_date descending
        '''

        clause, params = build_filter_clause(order_filter)
        return await self._fetch_all(f'{_SELECT}{clause}{_ORDER_BY}', params)

    async def find_all(self) -> list[Order]:

        '''
        Return every stored order, newest first.

        Returns:
            list[Order]: Orders by order_date descending
        '''

        return await self.find_by_filters(OrderFilter())

    async def count_by_order_date_between(self, start: datetime, end: datetime) -> int:

        '''
        Count orders placed within the inclusive range.

        Args:
            start (datetime): Inclusive lower bound, timezone-aware
            end (datetime): Inclusive upper bound, timezone-aware

        Returns:
            int: Number of orders with order_date in [start, end]
        '''

        try:
            async with self._conn.execute(
                _COUNT_BETWEEN, (_to_db(start), _to_db(end))
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            msg = f'Failed to count orders: {exc}'
            raise StoreError(msg) from exc

        return int(row[0]) if row else 0
