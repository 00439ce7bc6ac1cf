'''
Represent the order lifecycle core for the order management system.

Re-exports OrderService from the core package.
'''

from __future__ import annotations

from oms.core.order_service import OrderService

__all__ = ['OrderService']
