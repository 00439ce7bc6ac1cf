'''
Domain dataclasses for the order management core.

Re-exports all domain types: enums, the Order entity and its read model,
admission and change requests, and the order query filter.
'''

from __future__ import annotations

from oms.core.domain.enums import OrderSide, OrderStatus, OrderType, TimeInForce
from oms.core.domain.order import ACTIVE_STATUSES, TERMINAL_STATUSES, Order
from oms.core.domain.order_filter import OrderFilter
from oms.core.domain.order_view import OrderView
from oms.core.domain.requests import UNSET, CreateOrderRequest, UpdateOrderRequest

__all__ = [
    'ACTIVE_STATUSES',
    'TERMINAL_STATUSES',
    'UNSET',
    'CreateOrderRequest',
    'Order',
    'OrderFilter',
    'OrderSide',
    'OrderStatus',
    'OrderType',
    'OrderView',
    'TimeInForce',
    'UpdateOrderRequest',
]
