'''
Error taxonomy for the order lifecycle.

ValidationError, NotFoundError, and IllegalStateError are caller errors:
expected, never retried, never logged as faults. ConflictError and
StoreError are system errors raised by the persistence layer.
'''

from __future__ import annotations

from collections.abc import Sequence

from oms.core.domain.enums import OrderStatus

__all__ = [
    'ConflictError',
    'IllegalStateError',
    'NotFoundError',
    'OrderError',
    'StaleOrderError',
    'StoreError',
    'ValidationError',
]


class OrderError(Exception):

    '''
    Base exception for all order lifecycle failures.

    Args:
        message (str): Human-readable error description
    '''

    def __init__(self, message: str) -> None:

        '''
        Store the error message.

        Args:
            message (str): Human-readable error description
        '''

        self.message = message
        super().__init__(message)


class ValidationError(OrderError):

    '''
    Raised when caller-supplied order data violates admission rules.

    Args:
        reasons (Sequence[str]): Every violated rule, in evaluation order
    '''

    def __init__(self, reasons: Sequence[str]) -> None:

        '''
        Store the violated rules.

        Args:
            reasons (Sequence[str]): Every violated rule, in evaluation order
        '''

        if not reasons:
            msg = 'ValidationError requires at least one reason'
            raise ValueError(msg)
        self.reasons = tuple(reasons)
        super().__init__('; '.join(self.reasons))


class NotFoundError(OrderError):

    '''
    Raised when the referenced order does not exist.

    Args:
        order_ref (int | str): Order identifier or order number that was looked up
    '''

    def __init__(self, order_ref: int | str) -> None:

        self.order_ref = order_ref
        super().__init__(f'Order not found: {order_ref}')


class IllegalStateError(OrderError):

    '''
    Raised when an operation is not legal for the order's current status.

    Args:
        message (str): Human-readable error description
        status (OrderStatus): Status the order was in
    '''

    def __init__(self, message: str, status: OrderStatus) -> None:

        self.status = status
        super().__init__(message)


class ConflictError(OrderError):

    '''Raised when a save collides with an existing order number.'''


class StaleOrderError(ConflictError):

    '''Raised when a save targets an order version that was already superseded.'''


class StoreError(OrderError):

    '''Raised on any other persistence failure.'''
