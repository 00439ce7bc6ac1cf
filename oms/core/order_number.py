'''
Generate human-readable, date-scoped order numbers.

Format is ORD<YYYYMMDD>-<NNNN>, where NNNN is one more than the number of
orders already placed on that calendar day. The count-then-format step is
not atomic; the store's uniqueness constraint on order_no catches races
and the lifecycle service regenerates on ConflictError.
'''

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime, time, timedelta
from typing import Protocol

__all__ = ['OrderNumberGenerator', 'day_bounds', 'format_order_no']

_PREFIX = 'ORD'
_ONE_DAY = timedelta(days=1)
_ONE_TICK = timedelta(microseconds=1)


class _OrderCounter(Protocol):

    async def count_by_order_date_between(self, start: datetime, end: datetime) -> int: ...


def format_order_no(day: date, seq: int) -> str:

    '''
    Render an order number.

    Args:
        day (date): Calendar day the order is placed on
        seq (int): One-based sequence within the day, must be positive

    Returns:
        str: Order number such as ORD20260101-0001
    '''

    if seq < 1:
        msg = 'order number sequence must be positive'
        raise ValueError(msg)

    return f'{_PREFIX}{day:%Y%m%d}-{seq:04d}'


def day_bounds(now: datetime) -> tuple[datetime, datetime]:

    '''
    Return the first and last instant of the calendar day containing now.

    Bounds share the timezone of now, so the day is the caller's day.

    Args:
        now (datetime): Timezone-aware instant

    Returns:
        tuple[datetime, datetime]: Inclusive (start_of_day, end_of_day)
    '''

    start = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
    return start, start + _ONE_DAY - _ONE_TICK


class OrderNumberGenerator:

    '''
    Derive the next order number from the store's per-day order count.

    Args:
        counter (_OrderCounter): Store exposing count_by_order_date_between
        clock (Callable[[], datetime]): Source of the current timezone-aware time
    '''

    def __init__(self, counter: _OrderCounter, clock: Callable[[], datetime]) -> None:

        self._counter = counter
        self._clock = clock

    async def generate(self) -> str:

        '''
        Count today's orders and format the next number.

        Returns:
            str: Candidate order number, uniqueness enforced at save time
        '''

        now = self._clock()
        start, end = day_bounds(now)
        placed_today = await self._counter.count_by_order_date_between(start, end)
        return format_order_no(now.date(), placed_today + 1)
