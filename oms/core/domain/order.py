'''
Order dataclass representing a trade order through its lifecycle.

Orders are mutable: status, prices, and quantities change through the
Order Lifecycle Service. Transition legality belongs in the state
machine, not here. Remaining quantity and fill rate are derived on
access and never stored.
'''

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from oms.core.domain._require import _require_aware, _require_non_negative, _require_str
from oms.core.domain.enums import OrderSide, OrderStatus, OrderType, TimeInForce


__all__ = ['ACTIVE_STATUSES', 'TERMINAL_STATUSES', 'Order']

_ZERO = Decimal(0)
_HUNDRED = Decimal(100)
_FILL_RATE_EXP = Decimal('0.0001')

TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset({
    OrderStatus.FILLED,
    OrderStatus.CANCELED,
    OrderStatus.REJECTED,
    OrderStatus.EXPIRED,
})

ACTIVE_STATUSES: frozenset[OrderStatus] = frozenset({
    OrderStatus.NEW,
    OrderStatus.PARTIAL,
})


@dataclass
class Order:
    '''
    A trade order tracked from admission through terminal state.

    Args:
        order_no (str): Human-readable, globally unique order number.
        user_id (int): Owning user, opaque reference.
        security_id (int): Traded security, opaque reference.
        side (OrderSide): Order direction.
        order_type (OrderType): Order type.
        quantity (Decimal): Requested quantity, must be non-negative.
        price (Decimal | None): Limit price, None when not applicable.
        stop_price (Decimal | None): Stop trigger price, None when not applicable.
        order_date (datetime): Order-placed time, set once, must be timezone-aware.
        created_at (datetime): Record creation time, must be timezone-aware.
        updated_at (datetime): Last mutation time, must be timezone-aware.
        time_in_force (TimeInForce): Execution eligibility policy.
        status (OrderStatus): Current lifecycle state.
        filled_quantity (Decimal): Cumulative filled quantity, never above quantity.
        average_price (Decimal | None): Average fill price.
        commission (Decimal | None): Pass-through commission.
        valid_until (datetime | None): Optional expiry, must be timezone-aware.
        notes (str | None): Free-text notes.
        order_id (int | None): Store-assigned identifier, None until saved.
        version (int): Optimistic concurrency token maintained by the store.
    '''

    order_no: str
    user_id: int
    security_id: int
    side: OrderSide
    order_type: OrderType
    quantity: Decimal
    price: Decimal | None
    stop_price: Decimal | None
    order_date: datetime
    created_at: datetime
    updated_at: datetime
    time_in_force: TimeInForce = TimeInForce.DAY
    status: OrderStatus = OrderStatus.NEW
    filled_quantity: Decimal = _ZERO
    average_price: Decimal | None = None
    commission: Decimal | None = None
    valid_until: datetime | None = None
    notes: str | None = None
    order_id: int | None = None
    version: int = 0

    def __post_init__(self) -> None:
        '''Validate invariants at construction time.'''

        _require_str('Order', 'order_no', self.order_no)
        for field in ('order_date', 'created_at', 'updated_at', 'valid_until'):
            _require_aware('Order', field, getattr(self, field))
        for field in ('quantity', 'filled_quantity', 'price', 'stop_price', 'average_price', 'commission'):
            _require_non_negative('Order', field, getattr(self, field))
        if self.filled_quantity > self.quantity:
            msg = 'Order.filled_quantity cannot exceed quantity'
            raise ValueError(msg)

    @classmethod
    def place(
        cls,
        *,
        order_no: str,
        user_id: int,
        security_id: int,
        side: OrderSide,
        order_type: OrderType,
        quantity: Decimal,
        now: datetime,
        price: Decimal | None = None,
        stop_price: Decimal | None = None,
        time_in_force: TimeInForce = TimeInForce.DAY,
        valid_until: datetime | None = None,
        notes: str | None = None,
    ) -> Order:
        '''
        Build a NEW order with nothing filled, stamped at the given instant.

        Returns:
            Order: Unsaved order with order_id None
        '''

        return cls(
            order_no=order_no,
            user_id=user_id,
            security_id=security_id,
            side=side,
            order_type=order_type,
            quantity=quantity,
            price=price,
            stop_price=stop_price,
            order_date=now,
            created_at=now,
            updated_at=now,
            time_in_force=time_in_force,
            status=OrderStatus.NEW,
            filled_quantity=_ZERO,
            valid_until=valid_until,
            notes=notes,
        )

    def touch(self, now: datetime) -> None:
        '''Refresh the audit timestamp after a mutation.'''

        _require_aware('Order', 'updated_at', now)
        self.updated_at = now

    @property
    def is_terminal(self) -> bool:
        '''Return True if the order is in a terminal lifecycle state.'''

        return self.status in TERMINAL_STATUSES

    @property
    def is_active(self) -> bool:
        '''Return True if the order is still working (NEW or PARTIAL).'''

        return self.status in ACTIVE_STATUSES

    @property
    def remaining_quantity(self) -> Decimal:
        '''Return the unfilled quantity.'''

        return self.quantity - self.filled_quantity

    @property
    def fill_rate(self) -> Decimal:

        '''
        Return the filled percentage rounded half-up to 4 decimal places.

        Zero quantity yields zero rather than a division error.
        '''

        if self.quantity == _ZERO:
            return _ZERO
        rate = self.filled_quantity / self.quantity * _HUNDRED
        return rate.quantize(_FILL_RATE_EXP, rounding=ROUND_HALF_UP)
