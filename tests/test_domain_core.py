'''
Tests for oms.core.domain dataclasses and enums.
'''

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from oms.core.domain import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    UNSET,
    CreateOrderRequest,
    Order,
    OrderFilter,
    OrderSide,
    OrderStatus,
    OrderType,
    OrderView,
    TimeInForce,
    UpdateOrderRequest,
)

_TS = datetime(2026, 1, 1, tzinfo=timezone.utc)
_TS2 = datetime(2026, 1, 1, 0, 0, 1, tzinfo=timezone.utc)


def _order(
    status: OrderStatus = OrderStatus.NEW,
    quantity: Decimal = Decimal('1000'),
    filled_quantity: Decimal = Decimal('0'),
    price: Decimal | None = Decimal('2500.00'),
    stop_price: Decimal | None = None,
    order_id: int | None = 1,
) -> Order:
    return Order(
        order_no='ORD20260101-0001',
        user_id=1,
        security_id=1,
        side=OrderSide.BUY,
        order_type=OrderType.LIMIT,
        quantity=quantity,
        price=price,
        stop_price=stop_price,
        order_date=_TS,
        created_at=_TS,
        updated_at=_TS,
        status=status,
        filled_quantity=filled_quantity,
        order_id=order_id,
    )


def test_order_side_members() -> None:
    assert set(OrderSide) == {OrderSide.BUY, OrderSide.SELL}


def test_order_type_members() -> None:
    expected = {OrderType.MARKET, OrderType.LIMIT, OrderType.STOP, OrderType.STOP_LIMIT}
    assert set(OrderType) == expected


def test_order_status_members() -> None:
    expected = {
        OrderStatus.NEW,
        OrderStatus.PARTIAL,
        OrderStatus.FILLED,
        OrderStatus.CANCELED,
        OrderStatus.REJECTED,
        OrderStatus.EXPIRED,
    }
    assert set(OrderStatus) == expected


def test_time_in_force_members() -> None:
    assert set(TimeInForce) == {TimeInForce.DAY, TimeInForce.GTC, TimeInForce.IOC, TimeInForce.FOK}


def test_enum_values_are_their_names() -> None:
    for enum_cls in (OrderSide, OrderType, OrderStatus, TimeInForce):
        for member in enum_cls:
            assert member.value == member.name


def test_status_sets_partition_all_statuses() -> None:
    assert ACTIVE_STATUSES | TERMINAL_STATUSES == frozenset(OrderStatus)
    assert not ACTIVE_STATUSES & TERMINAL_STATUSES


class TestOrderInvariants:

    def test_valid_order_constructs(self) -> None:
        order = _order()
        assert order.status is OrderStatus.NEW
        assert order.time_in_force is TimeInForce.DAY
        assert order.version == 0

    def test_rejects_naive_order_date(self) -> None:
        with pytest.raises(ValueError, match='order_date must be timezone-aware'):
            Order(
                order_no='ORD20260101-0001', user_id=1, security_id=1,
                side=OrderSide.BUY, order_type=OrderType.MARKET,
                quantity=Decimal('1'), price=None, stop_price=None,
                order_date=datetime(2026, 1, 1), created_at=_TS, updated_at=_TS,
            )

    def test_rejects_naive_valid_until(self) -> None:
        with pytest.raises(ValueError, match='valid_until must be timezone-aware'):
            Order(
                order_no='ORD20260101-0001', user_id=1, security_id=1,
                side=OrderSide.BUY, order_type=OrderType.MARKET,
                quantity=Decimal('1'), price=None, stop_price=None,
                order_date=_TS, created_at=_TS, updated_at=_TS,
                valid_until=datetime(2026, 1, 2),
            )

    def test_rejects_empty_order_no(self) -> None:
        with pytest.raises(ValueError, match='order_no must be a non-empty string'):
            Order(
                order_no='', user_id=1, security_id=1,
                side=OrderSide.BUY, order_type=OrderType.MARKET,
                quantity=Decimal('1'), price=None, stop_price=None,
                order_date=_TS, created_at=_TS, updated_at=_TS,
            )

    def test_rejects_negative_quantity(self) -> None:
        with pytest.raises(ValueError, match='quantity must be non-negative'):
            _order(quantity=Decimal('-1'))

    def test_rejects_negative_price(self) -> None:
        with pytest.raises(ValueError, match='price must be non-negative'):
            _order(price=Decimal('-0.01'))

    def test_rejects_filled_above_quantity(self) -> None:
        with pytest.raises(ValueError, match='filled_quantity cannot exceed quantity'):
            _order(quantity=Decimal('10'), filled_quantity=Decimal('10.5'))

    def test_allows_zero_quantity_record(self) -> None:
        order = _order(quantity=Decimal('0'))
        assert order.quantity == Decimal('0')


class TestOrderPlace:

    def test_place_builds_new_unfilled_order(self) -> None:
        order = Order.place(
            order_no='ORD20260101-0001',
            user_id=7,
            security_id=3,
            side=OrderSide.SELL,
            order_type=OrderType.MARKET,
            quantity=Decimal('5'),
            now=_TS,
        )
        assert order.status is OrderStatus.NEW
        assert order.filled_quantity == Decimal('0')
        assert order.order_id is None
        assert order.order_date == order.created_at == order.updated_at == _TS

    def test_touch_refreshes_only_updated_at(self) -> None:
        order = _order()
        order.touch(_TS2)
        assert order.updated_at == _TS2
        assert order.created_at == _TS
        assert order.order_date == _TS

    def test_touch_rejects_naive(self) -> None:
        with pytest.raises(ValueError):
            _order().touch(datetime(2026, 1, 2))


class TestDerivedFields:

    def test_remaining_quantity(self) -> None:
        order = _order(quantity=Decimal('1000'), filled_quantity=Decimal('250'))
        assert order.remaining_quantity == Decimal('750')
        assert order.remaining_quantity + order.filled_quantity == order.quantity

    def test_fill_rate_zero_when_nothing_filled(self) -> None:
        assert _order().fill_rate == Decimal('0')

    def test_fill_rate_zero_when_quantity_zero(self) -> None:
        assert _order(quantity=Decimal('0')).fill_rate == Decimal('0')

    def test_fill_rate_percentage(self) -> None:
        order = _order(quantity=Decimal('1000'), filled_quantity=Decimal('250'))
        assert order.fill_rate == Decimal('25.0000')

    def test_fill_rate_rounds_to_four_places(self) -> None:
        order = _order(quantity=Decimal('3'), filled_quantity=Decimal('1'))
        assert order.fill_rate == Decimal('33.3333')
        assert order.fill_rate.as_tuple().exponent == -4

    def test_fill_rate_rounds_half_up(self) -> None:
        order = _order(quantity=Decimal('3'), filled_quantity=Decimal('2'))
        assert order.fill_rate == Decimal('66.6667')

    def test_fully_filled_rate(self) -> None:
        order = _order(status=OrderStatus.FILLED, filled_quantity=Decimal('1000'))
        assert order.fill_rate == Decimal('100')
        assert order.remaining_quantity == Decimal('0')

    @pytest.mark.parametrize('status', list(OrderStatus))
    def test_is_terminal_and_is_active(self, status: OrderStatus) -> None:
        order = _order(status=status)
        assert order.is_terminal is (status in TERMINAL_STATUSES)
        assert order.is_active is (status in ACTIVE_STATUSES)


class TestOrderView:

    def test_from_order_materializes_derived_fields(self) -> None:
        order = _order(quantity=Decimal('1000'), filled_quantity=Decimal('100'))
        view = OrderView.from_order(order)
        assert view.order_id == 1
        assert view.remaining_quantity == Decimal('900')
        assert view.fill_rate == Decimal('10.0000')
        assert view.remaining_quantity + view.filled_quantity == view.quantity

    def test_from_order_requires_persisted_order(self) -> None:
        with pytest.raises(ValueError, match='order_id'):
            OrderView.from_order(_order(order_id=None))

    def test_view_is_frozen(self) -> None:
        view = OrderView.from_order(_order())
        with pytest.raises(FrozenInstanceError):
            view.status = OrderStatus.CANCELED  # type: ignore[misc]


class TestRequests:

    def test_create_request_defaults(self) -> None:
        request = CreateOrderRequest(
            security_id=1, side=OrderSide.BUY,
            order_type=OrderType.MARKET, quantity=Decimal('1'),
        )
        assert request.time_in_force is TimeInForce.DAY
        assert request.price is None
        assert request.stop_price is None

    def test_update_request_empty_changes(self) -> None:
        assert UpdateOrderRequest().changes() == {}

    def test_update_request_only_supplied_fields(self) -> None:
        request = UpdateOrderRequest(price=Decimal('2600'), notes='')
        assert request.changes() == {'price': Decimal('2600'), 'notes': ''}

    def test_update_request_keeps_explicit_none(self) -> None:
        request = UpdateOrderRequest(stop_price=None)  # type: ignore[arg-type]
        assert request.changes() == {'stop_price': None}

    def test_unset_repr(self) -> None:
        assert repr(UNSET) == 'UNSET'


class TestOrderFilter:

    def test_default_is_empty(self) -> None:
        assert OrderFilter().is_empty

    def test_empty_statuses_normalized_to_absent(self) -> None:
        order_filter = OrderFilter.of(statuses=[])
        assert order_filter.statuses is None
        assert order_filter.is_empty

    def test_of_accepts_status_list(self) -> None:
        order_filter = OrderFilter.of(statuses=[OrderStatus.NEW, OrderStatus.NEW])
        assert order_filter.statuses == frozenset({OrderStatus.NEW})
        assert not order_filter.is_empty

    def test_active_filter(self) -> None:
        order_filter = OrderFilter.active(5)
        assert order_filter.user_id == 5
        assert order_filter.statuses == ACTIVE_STATUSES

    def test_rejects_naive_bounds(self) -> None:
        with pytest.raises(ValueError, match='start_date must be timezone-aware'):
            OrderFilter(start_date=datetime(2026, 1, 1))
        with pytest.raises(ValueError, match='end_date must be timezone-aware'):
            OrderFilter(end_date=_TS.replace(tzinfo=None) + timedelta(days=1))
