'''
Order Lifecycle Service orchestrating creation, mutation, cancellation,
and filtered reads of orders.

Every operation runs once per inbound request against the injected
OrderStore and returns OrderView read models with derived fields. The
service keeps no mutable state of its own; per-order consistency relies
on the store's optimistic versioning.
'''

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from structlog.contextvars import bound_contextvars

from oms.core.domain.enums import OrderStatus
from oms.core.domain.order import ACTIVE_STATUSES, Order
from oms.core.domain.order_filter import OrderFilter
from oms.core.domain.order_view import OrderView
from oms.core.domain.requests import CreateOrderRequest, UpdateOrderRequest
from oms.core.errors import (
    ConflictError,
    NotFoundError,
    StaleOrderError,
    StoreError,
    ValidationError,
)
from oms.core.order_number import OrderNumberGenerator
from oms.core.state_machine import require_cancelable, require_editable
from oms.core.validator import validate_create, validate_update

if TYPE_CHECKING:
    from oms.infrastructure.order_store import OrderStore

__all__ = ['OrderService', 'utc_now']

_log = logging.getLogger(__name__)

_DEFAULT_ORDER_NO_ATTEMPTS = 3
_MAX_STALE_RELOADS = 3


def utc_now() -> datetime:

    '''Return the current time as a timezone-aware UTC datetime.'''

    return datetime.now(timezone.utc)


def _views(orders: Iterable[Order]) -> list[OrderView]:

    return [OrderView.from_order(o) for o in orders]


class OrderService:

    '''
    Own the order status state machine and orchestrate all order operations.

    Args:
        store (OrderStore): Persistence collaborator
        clock (Callable[[], datetime]): Source of the current timezone-aware time
        order_no_max_attempts (int): Order-number generations tried before a
            collision is surfaced as a failure, must be positive
    '''

    def __init__(
        self,
        store: OrderStore,
        *,
        clock: Callable[[], datetime] = utc_now,
        order_no_max_attempts: int = _DEFAULT_ORDER_NO_ATTEMPTS,
    ) -> None:

        if order_no_max_attempts < 1:
            msg = 'OrderService.order_no_max_attempts must be positive'
            raise ValueError(msg)

        self._store = store
        self._clock = clock
        self._order_numbers = OrderNumberGenerator(store, clock)
        self._order_no_max_attempts = order_no_max_attempts

    @contextmanager
    def _operation(self, operation: str, **context: Any) -> Iterator[None]:

        '''
        Bind operation context to every log line and log persistence failures.

        Args:
            operation (str): Service operation name
            **context (Any): Identifiers such as order_id or user_id
        '''

        with bound_contextvars(operation=operation, **context):
            try:
                yield
            except StoreError:
                _log.error('store failure during %s', operation, exc_info=True)
                raise

    async def _load(self, order_id: int) -> Order:

        order = await self._store.find_by_id(order_id)
        if order is None:
            raise NotFoundError(order_id)

        return order

    async def create(self, user_id: int, request: CreateOrderRequest) -> OrderView:

        '''
        Admit a new order in status NEW with nothing filled.

        Args:
            user_id (int): Owning user, trusted as supplied
            request (CreateOrderRequest): Order data

        Returns:
            OrderView: The stored order

        Raises:
            ValidationError: If admission rules fail; nothing is persisted
            ConflictError: If no unique order number could be assigned
            StoreError: On persistence failure
        '''

        _log.info(
            'creating order: user_id=%s security_id=%s type=%s',
            user_id,
            request.security_id,
            request.order_type.value,
        )

        try:
            validate_create(request)
        except ValidationError as exc:
            _log.info('order rejected at admission: user_id=%s reason=%s', user_id, exc.message)
            raise

        last_conflict: ConflictError | None = None

        with self._operation('create', user_id=user_id):
            for attempt in range(1, self._order_no_max_attempts + 1):
                order = Order.place(
                    order_no=await self._order_numbers.generate(),
                    user_id=user_id,
                    security_id=request.security_id,
                    side=request.side,
                    order_type=request.order_type,
                    quantity=request.quantity,
                    now=self._clock(),
                    price=request.price,
                    stop_price=request.stop_price,
                    time_in_force=request.time_in_force,
                    valid_until=request.valid_until,
                    notes=request.notes,
                )
                try:
                    stored = await self._store.save(order)
                except ConflictError as exc:
                    last_conflict = exc
                    _log.warning(
                        'order number collision on %s (attempt %d/%d)',
                        order.order_no,
                        attempt,
                        self._order_no_max_attempts,
                    )
                    continue

                _log.info('order created: order_id=%s order_no=%s', stored.order_id, stored.order_no)
                return OrderView.from_order(stored)

        _log.error(
            'order number assignment exhausted after %d attempts: user_id=%s',
            self._order_no_max_attempts,
            user_id,
            exc_info=last_conflict,
        )
        msg = f'Could not assign a unique order number after {self._order_no_max_attempts} attempts'
        raise ConflictError(msg) from last_conflict

    async def get_by_id(self, order_id: int) -> OrderView:

        '''
        Return one order by its store-assigned id.

        Raises:
            NotFoundError: If no order has this id
        '''

        with self._operation('get_by_id', order_id=order_id):
            return OrderView.from_order(await self._load(order_id))

    async def get_by_order_no(self, order_no: str) -> OrderView:

        '''
        Return one order by its human-readable order number.

        Raises:
            NotFoundError: If no order has this number
        '''

        with self._operation('get_by_order_no', order_no=order_no):
            order = await self._store.find_by_order_no(order_no)
        if order is None:
            raise NotFoundError(order_no)

        return OrderView.from_order(order)

    async def list_by_user(self, user_id: int) -> list[OrderView]:

        '''Return every order of the user, newest order_date first.'''

        with self._operation('list_by_user', user_id=user_id):
            return _views(await self._store.find_by_user_id(user_id))

    async def list_by_filters(
        self,
        user_id: int | None = None,
        security_id: int | None = None,
        statuses: Iterable[OrderStatus] | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[OrderView]:

        '''
        Return orders matching every supplied filter, newest order_date first.

        An absent filter imposes no constraint. Without user_id the query
        spans all users; callers needing per-user isolation must pass it.

        Args:
            user_id (int | None): Owning user
            security_id (int | None): Traded security
            statuses (Iterable[OrderStatus] | None): Allowed statuses
            start_date (datetime | None): Inclusive lower bound on order_date
            end_date (datetime | None): Inclusive upper bound on order_date

        Returns:
            list[OrderView]: Matching orders

        Raises:
            ValidationError: If a date bound is not timezone-aware
        '''

        try:
            order_filter = OrderFilter.of(
                user_id=user_id,
                security_id=security_id,
                statuses=statuses,
                start_date=start_date,
                end_date=end_date,
            )
        except ValueError as exc:
            raise ValidationError([str(exc)]) from exc

        with self._operation('list_by_filters', user_id=user_id):
            return _views(await self._store.find_by_filters(order_filter))

    async def list_all(self) -> list[OrderView]:

        '''Return every order across all users, newest order_date first.'''

        with self._operation('list_all'):
            return _views(await self._store.find_all())

    async def list_active(self, user_id: int) -> list[OrderView]:

        '''Return the user's NEW and PARTIAL orders, newest order_date first.'''

        with self._operation('list_active', user_id=user_id):
            return _views(
                await self._store.find_by_user_id_and_status_in(user_id, ACTIVE_STATUSES)
            )

    async def update(self, order_id: int, request: UpdateOrderRequest) -> OrderView:

        '''
        Apply the supplied fields of a change set to an order.

        Fields left UNSET are untouched. FILLED and CANCELED orders are
        locked; REJECTED and EXPIRED orders remain editable.

        Args:
            order_id (int): Order to modify
            request (UpdateOrderRequest): Change set

        Returns:
            OrderView: The updated order

        Raises:
            NotFoundError: If the order does not exist
            IllegalStateError: If the order is FILLED or CANCELED
            ValidationError: If the change set violates admission rules
        '''

        _log.info('updating order: order_id=%s fields=%s', order_id, sorted(request.changes()))

        with self._operation('update', order_id=order_id):
            for _ in range(_MAX_STALE_RELOADS):
                order = await self._load(order_id)
                require_editable(order)
                validate_update(order, request)

                for name, value in request.changes().items():
                    setattr(order, name, value)
                order.touch(self._clock())

                try:
                    stored = await self._store.save(order)
                except StaleOrderError:
                    _log.info('order changed concurrently, reloading: order_id=%s', order_id)
                    continue

                _log.info('order updated: order_id=%s order_no=%s', order_id, stored.order_no)
                return OrderView.from_order(stored)

        raise self._stale_exhausted('update', order_id)

    async def cancel(self, order_id: int) -> OrderView:

        '''
        Move an order to CANCELED.

        Args:
            order_id (int): Order to cancel

        Returns:
            OrderView: The canceled order

        Raises:
            NotFoundError: If the order does not exist
            IllegalStateError: If the order is FILLED or already CANCELED
        '''

        _log.info('canceling order: order_id=%s', order_id)

        with self._operation('cancel', order_id=order_id):
            for _ in range(_MAX_STALE_RELOADS):
                order = await self._load(order_id)
                require_cancelable(order)

                order.status = OrderStatus.CANCELED
                order.touch(self._clock())

                try:
                    stored = await self._store.save(order)
                except StaleOrderError:
                    _log.info('order changed concurrently, reloading: order_id=%s', order_id)
                    continue

                _log.info('order canceled: order_id=%s order_no=%s', order_id, stored.order_no)
                return OrderView.from_order(stored)

        raise self._stale_exhausted('cancel', order_id)

    def _stale_exhausted(self, operation: str, order_id: int) -> StaleOrderError:

        _log.error(
            '%s gave up after %d concurrent modifications: order_id=%s',
            operation,
            _MAX_STALE_RELOADS,
            order_id,
        )
        msg = f'Order {order_id} kept changing concurrently during {operation}'
        return StaleOrderError(msg)
