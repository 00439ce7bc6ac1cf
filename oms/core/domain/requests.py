'''
Caller-supplied inputs for order creation and mutation.

Requests are immutable and carry no validation of their own: admission
rules run in the validator so every violation can be reported at once.
UpdateOrderRequest distinguishes an absent field (UNSET) from a supplied
value, so omitted fields are never mistaken for a request to clear them.
'''

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Final

from oms.core.domain.enums import OrderSide, OrderType, TimeInForce

__all__ = ['UNSET', 'CreateOrderRequest', 'UpdateOrderRequest']


class _Unset(Enum):

    '''Marker type for a field the caller did not supply.'''

    UNSET = 'UNSET'

    def __repr__(self) -> str:
        return 'UNSET'


UNSET: Final = _Unset.UNSET


@dataclass(frozen=True)
class CreateOrderRequest:

    '''
    Admission request for a new order.

    Args:
        security_id (int): Security to trade.
        side (OrderSide): Order direction.
        order_type (OrderType): Order type.
        quantity (Decimal): Requested quantity.
        price (Decimal | None): Limit price, required for LIMIT and STOP_LIMIT.
        stop_price (Decimal | None): Stop price, required for STOP and STOP_LIMIT.
        time_in_force (TimeInForce): Execution eligibility policy.
        valid_until (datetime | None): Optional expiry.
        notes (str | None): Free-text notes.
    '''

    security_id: int
    side: OrderSide
    order_type: OrderType
    quantity: Decimal
    price: Decimal | None = None
    stop_price: Decimal | None = None
    time_in_force: TimeInForce = TimeInForce.DAY
    valid_until: datetime | None = None
    notes: str | None = None


@dataclass(frozen=True)
class UpdateOrderRequest:

    '''
    Partial change set for an existing order.

    Only fields set to something other than UNSET are applied.

    Args:
        quantity (Decimal | UNSET): New requested quantity.
        price (Decimal | UNSET): New limit price.
        stop_price (Decimal | UNSET): New stop price.
        time_in_force (TimeInForce | UNSET): New execution policy.
        valid_until (datetime | UNSET): New expiry.
        notes (str | UNSET): New free-text notes.
    '''

    quantity: Decimal | _Unset = UNSET
    price: Decimal | _Unset = UNSET
    stop_price: Decimal | _Unset = UNSET
    time_in_force: TimeInForce | _Unset = UNSET
    valid_until: datetime | _Unset = UNSET
    notes: str | _Unset = UNSET

    def changes(self) -> dict[str, Any]:

        '''
        Return the supplied fields keyed by Order attribute name.

        Returns:
            dict[str, Any]: Field name to new value, absent fields omitted
        '''

        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }
