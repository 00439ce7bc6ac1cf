'''
Admission rules for order creation and mutation.

Pure functions with no I/O. Every rule is evaluated independently and all
violations are reported together in a single ValidationError.
'''

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from oms.core.domain.enums import OrderType
from oms.core.domain.order import Order
from oms.core.domain.requests import CreateOrderRequest, UpdateOrderRequest
from oms.core.errors import ValidationError

__all__ = ['validate_create', 'validate_update']

_ZERO = Decimal(0)

_PRICE_REQUIRED = 'Price is required for LIMIT orders'
_STOP_PRICE_REQUIRED = 'Stop price is required for STOP orders'
_BOTH_PRICES_REQUIRED = 'Both price and stop price are required for STOP_LIMIT orders'
_VALID_UNTIL_AWARE = 'Valid-until must be timezone-aware'

_FIELD_LABELS: dict[str, str] = {
    'quantity': 'Quantity',
    'price': 'Price',
    'stop_price': 'Stop price',
    'time_in_force': 'Time-in-force',
    'valid_until': 'Valid-until',
    'notes': 'Notes',
}


def _is_naive(value: datetime) -> bool:

    return value.tzinfo is None or value.utcoffset() is None


def _amount_reasons(field: str, value: Any) -> list[str]:

    '''Require a present amount to be a positive Decimal.'''

    if value is None:
        return []
    if not isinstance(value, Decimal) or not value.is_finite():
        return [f'{_FIELD_LABELS[field]} must be a Decimal amount']
    if value <= _ZERO:
        return [f'{_FIELD_LABELS[field]} must be greater than zero']

    return []


def _price_reasons(price: Any, stop_price: Any) -> list[str]:

    return _amount_reasons('price', price) + _amount_reasons('stop_price', stop_price)


def validate_create(request: CreateOrderRequest) -> None:

    '''
    Enforce admission rules on a creation request.

    Args:
        request (CreateOrderRequest): Caller-supplied order data

    Raises:
        ValidationError: If any rule is violated, carrying every reason
    '''

    reasons: list[str] = []

    if request.order_type is OrderType.LIMIT and request.price is None:
        reasons.append(_PRICE_REQUIRED)
    if request.order_type is OrderType.STOP and request.stop_price is None:
        reasons.append(_STOP_PRICE_REQUIRED)
    if request.order_type is OrderType.STOP_LIMIT and (
        request.price is None or request.stop_price is None
    ):
        reasons.append(_BOTH_PRICES_REQUIRED)

    if request.quantity is None:
        reasons.append('Quantity must be greater than zero')
    reasons.extend(_amount_reasons('quantity', request.quantity))
    reasons.extend(_price_reasons(request.price, request.stop_price))

    if request.valid_until is not None and _is_naive(request.valid_until):
        reasons.append(_VALID_UNTIL_AWARE)

    if reasons:
        raise ValidationError(reasons)


def validate_update(order: Order, request: UpdateOrderRequest) -> None:

    '''
    Enforce rules on a change set against the order it will be applied to.

    Args:
        order (Order): Current state of the order
        request (UpdateOrderRequest): Caller-supplied change set

    Raises:
        ValidationError: If any rule is violated, carrying every reason
    '''

    changes = request.changes()
    reasons = [
        f'{_FIELD_LABELS[name]} cannot be cleared'
        for name, value in changes.items()
        if value is None
    ]

    quantity = changes.get('quantity')
    quantity_reasons = _amount_reasons('quantity', quantity)
    reasons.extend(quantity_reasons)
    if quantity is not None and not quantity_reasons:
        if quantity < order.filled_quantity:
            reasons.append(
                f'Quantity cannot be below filled quantity {order.filled_quantity}'
            )

    reasons.extend(_price_reasons(changes.get('price'), changes.get('stop_price')))

    valid_until = changes.get('valid_until')
    if valid_until is not None and _is_naive(valid_until):
        reasons.append(_VALID_UNTIL_AWARE)

    if reasons:
        raise ValidationError(reasons)
