'''
OrderFilter describing an optional, AND-combined order query.
'''

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from oms.core.domain._require import _require_aware
from oms.core.domain.enums import OrderStatus
from oms.core.domain.order import ACTIVE_STATUSES

__all__ = ['OrderFilter']


@dataclass(frozen=True)
class OrderFilter:

    '''
    Query over stored orders. Every field is optional; None imposes no constraint.

    Args:
        user_id (int | None): Restrict to one owner. None means all users.
        security_id (int | None): Restrict to one security.
        statuses (frozenset[OrderStatus] | None): Allowed statuses. An empty
            collection is treated as absent.
        start_date (datetime | None): Inclusive lower bound on order_date.
        end_date (datetime | None): Inclusive upper bound on order_date.
    '''

    user_id: int | None = None
    security_id: int | None = None
    statuses: frozenset[OrderStatus] | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    def __post_init__(self) -> None:

        '''Normalize statuses and validate bounds at construction time.'''

        if self.statuses is not None:
            statuses = frozenset(self.statuses)
            object.__setattr__(self, 'statuses', statuses or None)

        _require_aware('OrderFilter', 'start_date', self.start_date)
        _require_aware('OrderFilter', 'end_date', self.end_date)

    @classmethod
    def of(
        cls,
        *,
        user_id: int | None = None,
        security_id: int | None = None,
        statuses: Iterable[OrderStatus] | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> OrderFilter:

        '''Build a filter from loose caller input, accepting any status iterable.'''

        return cls(
            user_id=user_id,
            security_id=security_id,
            statuses=frozenset(statuses) if statuses is not None else None,
            start_date=start_date,
            end_date=end_date,
        )

    @classmethod
    def active(cls, user_id: int) -> OrderFilter:

        '''Return the filter for a user's working (NEW or PARTIAL) orders.'''

        return cls(user_id=user_id, statuses=ACTIVE_STATUSES)

    @property
    def is_empty(self) -> bool:

        '''Return True when no constraint is set.'''

        return (
            self.user_id is None
            and self.security_id is None
            and self.statuses is None
            and self.start_date is None
            and self.end_date is None
        )
