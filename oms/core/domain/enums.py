'''
Enumerated types for the order management domain.

Defines order side, order type, time-in-force, and order lifecycle status
enums used by Order, the admission requests, and the order filters.
'''

from __future__ import annotations

from enum import Enum


__all__ = ['OrderSide', 'OrderStatus', 'OrderType', 'TimeInForce']


class OrderSide(Enum):

    '''Buy or sell direction for orders.'''

    BUY = 'BUY'
    SELL = 'SELL'


class OrderType(Enum):

    '''
    Supported order types.

    LIMIT and STOP_LIMIT carry a limit price, STOP and STOP_LIMIT
    carry a stop trigger price.
    '''

    MARKET = 'MARKET'
    LIMIT = 'LIMIT'
    STOP = 'STOP'
    STOP_LIMIT = 'STOP_LIMIT'


class OrderStatus(Enum):

    '''
    Order lifecycle states.

    Non-terminal: NEW, PARTIAL.
    Terminal: FILLED, CANCELED, REJECTED, EXPIRED.
    '''

    NEW = 'NEW'
    PARTIAL = 'PARTIAL'
    FILLED = 'FILLED'
    CANCELED = 'CANCELED'
    REJECTED = 'REJECTED'
    EXPIRED = 'EXPIRED'


class TimeInForce(Enum):

    '''How long an order remains eligible for execution.'''

    DAY = 'DAY'
    GTC = 'GTC'
    IOC = 'IOC'
    FOK = 'FOK'
