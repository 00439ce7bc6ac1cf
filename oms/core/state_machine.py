'''
Order status transition table and the guards built on it.

Status moves forward only. FILLED and CANCELED are final. REJECTED and
EXPIRED admit no further execution but can still be closed out as
CANCELED. Fill and expiry events are driven by collaborators outside
this package; the lifecycle service only uses the table for cancellation.
'''

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from oms.core.domain.enums import OrderStatus
from oms.core.domain.order import Order
from oms.core.errors import IllegalStateError

__all__ = [
    'TRANSITIONS',
    'can_transition',
    'require_cancelable',
    'require_editable',
    'require_transition',
]

TRANSITIONS: Mapping[OrderStatus, frozenset[OrderStatus]] = MappingProxyType({
    OrderStatus.NEW: frozenset({
        OrderStatus.PARTIAL,
        OrderStatus.FILLED,
        OrderStatus.CANCELED,
        OrderStatus.REJECTED,
        OrderStatus.EXPIRED,
    }),
    OrderStatus.PARTIAL: frozenset({
        OrderStatus.PARTIAL,
        OrderStatus.FILLED,
        OrderStatus.CANCELED,
        OrderStatus.EXPIRED,
    }),
    OrderStatus.FILLED: frozenset(),
    OrderStatus.CANCELED: frozenset(),
    OrderStatus.REJECTED: frozenset({OrderStatus.CANCELED}),
    OrderStatus.EXPIRED: frozenset({OrderStatus.CANCELED}),
})

# Narrower than the terminal set: REJECTED and EXPIRED orders stay editable.
_LOCKED: frozenset[OrderStatus] = frozenset({
    OrderStatus.FILLED,
    OrderStatus.CANCELED,
})


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:

    '''
    Return True if the table allows moving from current to target.

    Args:
        current (OrderStatus): Status the order is in
        target (OrderStatus): Requested status

    Returns:
        bool: Whether the transition is legal
    '''

    return target in TRANSITIONS[current]


def require_transition(order: Order, target: OrderStatus) -> None:

    '''
    Raise unless the order may move to the target status.

    Args:
        order (Order): Order to check
        target (OrderStatus): Requested status

    Raises:
        IllegalStateError: If the transition is not in the table
    '''

    if not can_transition(order.status, target):
        msg = f'Illegal transition {order.status.value} -> {target.value}'
        raise IllegalStateError(msg, order.status)


def require_editable(order: Order) -> None:

    '''
    Raise if the order can no longer be modified.

    Args:
        order (Order): Order to check

    Raises:
        IllegalStateError: If the order is FILLED or CANCELED
    '''

    if order.status in _LOCKED:
        msg = f'Cannot update order in status {order.status.value}'
        raise IllegalStateError(msg, order.status)


def require_cancelable(order: Order) -> None:

    '''
    Raise if the order cannot move to CANCELED.

    Args:
        order (Order): Order to check

    Raises:
        IllegalStateError: If the order is FILLED or already CANCELED
    '''

    if order.status is OrderStatus.FILLED:
        raise IllegalStateError('Cannot cancel a completed order', order.status)
    if order.status is OrderStatus.CANCELED:
        raise IllegalStateError('Order is already canceled', order.status)
    require_transition(order, OrderStatus.CANCELED)
