'''
Render order read models as JSON for a transport layer.

Decimals are emitted as strings to keep their exact precision, enums as
their values (native to orjson), and datetimes in ISO 8601.
'''

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from decimal import Decimal
from typing import Any

import orjson

from oms.core.domain.order_view import OrderView

__all__ = ['dumps_order', 'dumps_orders', 'order_view_to_dict']


def _serialize_default(obj: Any) -> Any:

    '''
    Serialize Decimal to string for orjson.

    Args:
        obj (Any): Object that orjson cannot serialize natively

    Returns:
        Any: JSON-serializable representation
    '''

    if isinstance(obj, Decimal):
        return str(obj)
    msg = f"Object of type {type(obj).__name__} is not JSON serializable"
    raise TypeError(msg)


def order_view_to_dict(view: OrderView) -> dict[str, Any]:

    '''
    Convert an order view to a plain dict of JSON-compatible values.

    Args:
        view (OrderView): Order with derived fields

    Returns:
        dict[str, Any]: Field name to JSON-compatible value
    '''

    result: dict[str, Any] = orjson.loads(dumps_order(view))
    return result


def dumps_order(view: OrderView) -> bytes:

    '''
    Serialize one order view to JSON bytes.

    Args:
        view (OrderView): Order with derived fields

    Returns:
        bytes: orjson-encoded object
    '''

    return orjson.dumps(dataclasses.asdict(view), default=_serialize_default)


def dumps_orders(views: Iterable[OrderView]) -> bytes:

    '''
    Serialize a list of order views to a JSON array.

    Args:
        views (Iterable[OrderView]): Orders with derived fields

    Returns:
        bytes: orjson-encoded array
    '''

    return orjson.dumps(
        [dataclasses.asdict(v) for v in views], default=_serialize_default
    )
