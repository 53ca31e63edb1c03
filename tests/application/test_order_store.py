"""Tests for the OrderStore mutation API: locking and optimistic retries."""

import threading

import pytest

from orderflow.application.locks import KeyedLocks
from orderflow.application.order_store import OrderStore
from orderflow.application.update_status import UpdateOrderStatusHandler
from orderflow.domain.exceptions import ConcurrencyError
from orderflow.domain.model.order import Order
from tests.fakes import FakeCustomerRepository, FakeOrderRepository, make_order


class ConflictingOrderRepository(FakeOrderRepository):
    """Fails the first ``conflicts`` updates as if another writer got there first."""

    def __init__(self, conflicts: int) -> None:
        super().__init__()
        self.conflicts = conflicts

    def save(self, order: Order) -> None:
        if order.id is not None and self.conflicts > 0:
            self.conflicts -= 1
            raise ConcurrencyError("stale")
        super().save(order)


class TestMutate:

    def test_unchanged_order_is_not_written(self):
        repo = FakeOrderRepository()
        store = OrderStore(repo)
        order_id = store.add(make_order()).id
        saves = repo.saves

        store.mutate(order_id, lambda o: None)

        assert repo.saves == saves

    def test_exception_discards_changes(self):
        store = OrderStore(FakeOrderRepository())
        order_id = store.add(make_order()).id

        def change(order):
            order.set_invoice("INV-9")
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            store.mutate(order_id, change)
        assert store.get(order_id).invoice_no is None

    def test_conflict_is_retried_on_fresh_state(self):
        repo = ConflictingOrderRepository(conflicts=2)
        store = OrderStore(repo, max_attempts=3)
        order_id = store.add(make_order()).id
        calls = []

        def change(order):
            calls.append(order.version)
            order.set_invoice("INV-1")

        store.mutate(order_id, change)

        assert len(calls) == 3
        assert store.get(order_id).invoice_no == "INV-1"

    def test_gives_up_after_max_attempts(self):
        repo = ConflictingOrderRepository(conflicts=5)
        store = OrderStore(repo, max_attempts=2)
        order_id = store.add(make_order()).id

        with pytest.raises(ConcurrencyError):
            store.mutate(order_id, lambda o: o.set_invoice("INV-1"))

    def test_retried_transition_never_double_credits(self):
        repo = ConflictingOrderRepository(conflicts=1)
        customers = FakeCustomerRepository()
        store = OrderStore(repo)
        order_id = store.add(make_order("300")).id

        UpdateOrderStatusHandler(store, customers).handle(order_id, "confirmed")

        assert customers.points("cust-1") == 300
        assert len(store.get(order_id).timeline) == 2


class TestConcurrentWriters:

    def test_parallel_transitions_credit_once(self):
        store = OrderStore(FakeOrderRepository(), KeyedLocks())
        customers = FakeCustomerRepository()
        handler = UpdateOrderStatusHandler(store, customers)
        order_id = store.add(make_order("100")).id

        threads = [
            threading.Thread(target=handler.handle, args=(order_id, "delivered"))
            for _ in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        order = store.get(order_id)
        assert customers.points("cust-1") == 110
        assert [e.status.value for e in order.timeline] == ["pending", "delivered"]
