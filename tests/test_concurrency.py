"""
Concurrent deposits, transfers and purchases against shared rows.

Every worker thread uses its own session, the way concurrent requests do.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

from app.core.errors import InsufficientFunds, OutOfStock, ServiceError
from app.db.session import SessionLocal
from app.models.transaction import TransactionType
from app.services import money_movement, transaction_log


def _run_concurrently(tasks, workers=8):
    """Run callables together; return a list of (result, error) pairs."""
    go = threading.Event()

    def _call(task):
        go.wait(timeout=5)
        with SessionLocal() as session:
            try:
                return task(session), None
            except ServiceError as exc:
                return None, exc

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(_call, task) for task in tasks]
        go.set()
        return [f.result() for f in futures]


class TestConcurrentPurchases:

    def test_last_unit_is_sold_exactly_once(self, make_user, make_account, make_product, read_balance, read_stock):
        alice, bob = make_user(), make_user()
        a = make_account(alice, balance=5000)
        b = make_account(bob, balance=5000)
        product = make_product(price=2000, stock=1)

        outcomes = _run_concurrently([
            lambda s: money_movement.purchase(s, alice.id, a.id, product.id, 1),
            lambda s: money_movement.purchase(s, bob.id, b.id, product.id, 1),
        ], workers=2)

        successes = [r for r, e in outcomes if e is None]
        failures = [e for r, e in outcomes if e is not None]
        assert len(successes) == 1
        assert len(failures) == 1 and isinstance(failures[0], OutOfStock)

        assert read_stock(product.id) == 0
        assert sorted([read_balance(a.id), read_balance(b.id)]) == [3000, 5000]

    def test_oversubscribed_stock_never_oversells(self, make_user, make_account, make_product, read_stock):
        product = make_product(price=100, stock=7)
        buyers = []
        for _ in range(6):
            user = make_user()
            buyers.append((user, make_account(user, balance=10000)))

        def _buy(user, account):
            return lambda s: money_movement.purchase(s, user.id, account.id, product.id, 2)

        outcomes = _run_concurrently([_buy(u, acc) for u, acc in buyers], workers=6)

        sold = sum(r.transaction.quantity for r, e in outcomes if e is None)
        rejected = [e for r, e in outcomes if e is not None]
        assert sold == 6  # three buyers get 2 units each, 1 unit left over
        assert all(isinstance(e, OutOfStock) for e in rejected)
        assert read_stock(product.id) == 7 - sold


class TestConcurrentBalanceUpdates:

    def test_concurrent_debits_never_overdraw(self, make_user, make_account, make_product, read_balance):
        user = make_user()
        account = make_account(user, balance=5000)
        product = make_product(price=1000, stock=100)

        outcomes = _run_concurrently(
            [lambda s: money_movement.purchase(s, user.id, account.id, product.id, 1)] * 8
        )

        successes = [r for r, e in outcomes if e is None]
        failures = [e for r, e in outcomes if e is not None]
        assert len(successes) == 5
        assert all(isinstance(e, InsufficientFunds) for e in failures)
        assert read_balance(account.id) == 0

    def test_final_balance_is_sum_of_committed_deltas(self, make_user, make_account, make_product, read_balance):
        alice, bob = make_user(), make_user()
        a = make_account(alice, balance=3000)
        b = make_account(bob, balance=0)
        product = make_product(price=700, stock=100)

        tasks = []
        for i in range(12):
            if i % 3 == 0:
                tasks.append(("deposit", lambda s: money_movement.deposit(s, alice.id, a.id, 250)))
            elif i % 3 == 1:
                tasks.append(("transfer", lambda s: money_movement.transfer(s, alice.id, a.id, b.id, 900)))
            else:
                tasks.append(("purchase", lambda s: money_movement.purchase(s, alice.id, a.id, product.id, 1)))

        outcomes = _run_concurrently([fn for _, fn in tasks])

        delta_a = 0
        delta_b = 0
        for (kind, _), (result, error) in zip(tasks, outcomes):
            if error is not None:
                assert isinstance(error, InsufficientFunds)
                continue
            if kind == "deposit":
                delta_a += 250
            elif kind == "transfer":
                delta_a -= 900
                delta_b += 900
            else:
                delta_a -= 700

        assert read_balance(a.id) == 3000 + delta_a
        assert read_balance(b.id) == delta_b
        assert read_balance(a.id) >= 0

        with SessionLocal() as session:
            logged = transaction_log.list_by_account(session, a.id)
        committed = sum(1 for _, e in outcomes if e is None)
        assert len(logged) == committed

    def test_opposite_direction_transfers_complete(self, make_user, make_account, read_balance):
        alice, bob = make_user(), make_user()
        a = make_account(alice, balance=10000)
        b = make_account(bob, balance=10000)

        tasks = []
        for _ in range(5):
            tasks.append(lambda s: money_movement.transfer(s, alice.id, a.id, b.id, 100))
            tasks.append(lambda s: money_movement.transfer(s, bob.id, b.id, a.id, 300))

        outcomes = _run_concurrently(tasks)

        assert all(e is None for _, e in outcomes)
        assert read_balance(a.id) == 10000 - 500 + 1500
        assert read_balance(b.id) == 10000 + 500 - 1500

        with SessionLocal() as session:
            entries = transaction_log.list_by_user(session, alice.id)
        assert sum(1 for e in entries if e.transaction_type == TransactionType.TRANSFER_OUT) == 5
        assert sum(1 for e in entries if e.transaction_type == TransactionType.TRANSFER_IN) == 5
