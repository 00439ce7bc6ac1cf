'''
OrderView read model handed back to callers of the lifecycle service.

A frozen snapshot of an Order with remaining quantity and fill rate
materialized at read time.
'''

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from oms.core.domain.enums import OrderSide, OrderStatus, OrderType, TimeInForce
from oms.core.domain.order import Order

__all__ = ['OrderView']


@dataclass(frozen=True)
class OrderView:

    '''
    An order record with its derived fields.

    Args:
        order_id (int): Store-assigned identifier.
        order_no (str): Human-readable order number.
        user_id (int): Owning user.
        security_id (int): Traded security.
        side (OrderSide): Order direction.
        order_type (OrderType): Order type.
        quantity (Decimal): Requested quantity.
        price (Decimal | None): Limit price.
        stop_price (Decimal | None): Stop trigger price.
        time_in_force (TimeInForce): Execution eligibility policy.
        status (OrderStatus): Current lifecycle state.
        filled_quantity (Decimal): Cumulative filled quantity.
        remaining_quantity (Decimal): quantity minus filled_quantity.
        fill_rate (Decimal): Filled percentage, 4 decimal places.
        average_price (Decimal | None): Average fill price.
        commission (Decimal | None): Pass-through commission.
        order_date (datetime): Order-placed time.
        valid_until (datetime | None): Optional expiry.
        notes (str | None): Free-text notes.
        created_at (datetime): Record creation time.
        updated_at (datetime): Last mutation time.
    '''

    order_id: int
    order_no: str
    user_id: int
    security_id: int
    side: OrderSide
    order_type: OrderType
    quantity: Decimal
    price: Decimal | None
    stop_price: Decimal | None
    time_in_force: TimeInForce
    status: OrderStatus
    filled_quantity: Decimal
    remaining_quantity: Decimal
    fill_rate: Decimal
    average_price: Decimal | None
    commission: Decimal | None
    order_date: datetime
    valid_until: datetime | None
    notes: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_order(cls, order: Order) -> OrderView:

        '''
        Snapshot a stored order and compute its derived fields.

        Args:
            order (Order): Order that has been persisted

        Returns:
            OrderView: Read model for the caller
        '''

        if order.order_id is None:
            msg = 'OrderView requires a persisted order with an order_id'
            raise ValueError(msg)

        return cls(
            order_id=order.order_id,
            order_no=order.order_no,
            user_id=order.user_id,
            security_id=order.security_id,
            side=order.side,
            order_type=order.order_type,
            quantity=order.quantity,
            price=order.price,
            stop_price=order.stop_price,
            time_in_force=order.time_in_force,
            status=order.status,
            filled_quantity=order.filled_quantity,
            remaining_quantity=order.remaining_quantity,
            fill_rate=order.fill_rate,
            average_price=order.average_price,
            commission=order.commission,
            order_date=order.order_date,
            valid_until=order.valid_until,
            notes=order.notes,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
