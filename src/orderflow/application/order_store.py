"""The Order Store's mutation API.

Every change to an order goes through ``OrderStore.mutate``: the order is
loaded under its lock, changed by a callback, and saved with an optimistic
version check.  On a version conflict (another process wrote the order in
between) the whole callback is re-run on fresh state, so callbacks must be
safe to repeat.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from typing import TypeVar

import structlog

from orderflow.application.locks import KeyedLocks
from orderflow.domain.exceptions import ConcurrencyError, EntityNotFoundError
from orderflow.domain.model.order import Order
from orderflow.domain.repository.order_repository import OrderRepository

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3


class OrderStore:

    def __init__(
        self,
        order_repo: OrderRepository,
        locks: KeyedLocks | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._order_repo = order_repo
        self._locks = locks or KeyedLocks()
        self._max_attempts = max_attempts

    @property
    def locks(self) -> KeyedLocks:
        return self._locks

    def get(self, order_id: int) -> Order:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order

    def add(self, order: Order) -> Order:
        self._order_repo.save(order)
        return order

    def mutate(self, order_id: int, change: Callable[[Order], T]) -> T:
        """Run ``change`` on the current order and persist the result.

        If ``change`` raises, nothing is saved.  If it leaves the order
        untouched, nothing is written.
        """
        attempt = 1
        while True:
            with self._locks.hold(f"order:{order_id}"):
                order = self.get(order_id)
                before = copy.deepcopy(order)
                try:
                    result = change(order)
                    if order != before:
                        self._order_repo.save(order)
                except ConcurrencyError:
                    if attempt >= self._max_attempts:
                        raise
                    logger.warning(
                        "order_version_conflict", order_id=order_id, attempt=attempt
                    )
                else:
                    return result
            attempt += 1
