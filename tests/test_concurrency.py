"""Concurrent access tests for the portfolio ledger."""

import math
import random
import tempfile
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from stockledger.db.store import InMemoryPositionStore, SqlitePositionStore
from stockledger.errors import InsufficientQuantityError, NotFoundError
from stockledger.ledger import PortfolioLedger


class SlowStore(InMemoryPositionStore):
    """In-memory store that yields between read and write.

    Widens the window in which an unlocked read-modify-write would lose
    an update.
    """

    def get(self, symbol):
        position = super().get(symbol)
        time.sleep(0.001)
        return position


@pytest.fixture(params=["memory", "sqlite"])
def ledger(request):
    """Yield a ledger over each store implementation."""
    if request.param == "memory":
        yield PortfolioLedger(SlowStore())
    else:
        with tempfile.TemporaryDirectory() as tmpdir:
            yield PortfolioLedger(SqlitePositionStore(Path(tmpdir) / "ledger.db", timeout=30.0))


def test_concurrent_buys_same_symbol(ledger: PortfolioLedger):
    rng = random.Random(7)
    buys = [(round(rng.uniform(1, 500), 2), rng.randint(1, 100)) for _ in range(64)]

    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(lambda b: ledger.buy("AAPL", b[0], b[1]), buys))

    total_qty = sum(q for _, q in buys)
    expected_cost = sum(p * q for p, q in buys) / total_qty
    position = ledger.get("AAPL")

    assert position.quantity == total_qty
    assert math.isclose(position.average_cost, expected_cost, rel_tol=1e-9)


def test_concurrent_buys_many_symbols(ledger: PortfolioLedger):
    symbols = ["AAPL", "MSFT", "GOOG", "AMZN"]
    orders = [(symbols[i % len(symbols)], 10.0 + i, 1 + i % 5) for i in range(80)]

    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(lambda o: ledger.buy(*o), orders))

    for symbol in symbols:
        mine = [(p, q) for s, p, q in orders if s == symbol]
        total_qty = sum(q for _, q in mine)
        position = ledger.get(symbol)
        assert position.quantity == total_qty
        assert math.isclose(
            position.average_cost, sum(p * q for p, q in mine) / total_qty, rel_tol=1e-9
        )


def test_concurrent_sells_never_oversell(ledger: PortfolioLedger):
    ledger.buy("AAPL", 100.0, 50)
    outcomes = []
    outcomes_lock = threading.Lock()

    def sell_one(_):
        try:
            ledger.sell("AAPL", 1)
            result = "sold"
        except (InsufficientQuantityError, NotFoundError):
            result = "rejected"
        with outcomes_lock:
            outcomes.append(result)

    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(sell_one, range(70)))

    assert outcomes.count("sold") == 50
    assert outcomes.count("rejected") == 20
    assert ledger.get("AAPL") is None
    assert ledger.list_positions() == []
