'''
Validate shared field invariants.

Helpers used across domain dataclasses to enforce non-empty strings,
timezone-aware datetimes, and non-negative decimals at construction time.
'''

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

__all__ = ['_require_aware', '_require_non_negative', '_require_str']

_ZERO = Decimal(0)


def _require_str(cls: str, field: str, value: str | None, *, optional: bool = False) -> None:

    '''
    Validate that a string field is non-empty.

    Args:
        cls (str): Class name for error context.
        field (str): Field name for error context.
        value (str | None): Value to validate.
        optional (bool): Allow None values when True.
    '''

    if value is None and optional:
        return

    if not value:
        msg = f'{cls}.{field} must be a non-empty string'
        raise ValueError(msg)


def _require_aware(cls: str, field: str, value: datetime | None) -> None:

    '''
    Validate that a datetime field is timezone-aware, None is accepted.

    Args:
        cls (str): Class name for error context.
        field (str): Field name for error context.
        value (datetime | None): Value to validate.
    '''

    if value is None:
        return

    if value.tzinfo is None or value.utcoffset() is None:
        msg = f'{cls}.{field} must be timezone-aware'
        raise ValueError(msg)


def _require_non_negative(cls: str, field: str, value: Decimal | None) -> None:

    '''
    Validate that a decimal field is non-negative, None is accepted.

    Args:
        cls (str): Class name for error context.
        field (str): Field name for error context.
        value (Decimal | None): Value to validate.
    '''

    if value is not None and value < _ZERO:
        msg = f'{cls}.{field} must be non-negative'
        raise ValueError(msg)
