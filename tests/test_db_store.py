"""Property-based tests for the position stores."""

import sqlite3
import tempfile
import threading
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from stockledger.db.store import InMemoryPositionStore, SqlitePositionStore
from stockledger.errors import ErrorKind, StoreError
from stockledger.models import Position


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        yield SqlitePositionStore(db_path)


@pytest.fixture(params=["memory", "sqlite"])
def store(request):
    """Yield each store implementation in turn."""
    if request.param == "memory":
        yield InMemoryPositionStore()
    else:
        with tempfile.TemporaryDirectory() as tmpdir:
            yield SqlitePositionStore(Path(tmpdir) / "ledger.db")


position_strategy = st.builds(
    Position,
    symbol=st.text(alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789", min_size=1, max_size=10),
    quantity=st.integers(min_value=1, max_value=10**9),
    average_cost=st.floats(min_value=1e-6, max_value=1e9, allow_nan=False, allow_infinity=False),
)


class TestSchema:

    def test_positions_table_exists(self, temp_db: SqlitePositionStore):
        assert SqlitePositionStore.TABLE in temp_db.get_tables()

    def test_creates_missing_directory(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = Path(tmpdir) / "nested" / "dir" / "ledger.db"
            SqlitePositionStore(db_path)
            assert db_path.exists()

    def test_reopen_keeps_data(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = Path(tmpdir) / "ledger.db"
            SqlitePositionStore(db_path).put(
                Position(symbol="AAPL", quantity=3, average_cost=12.5)
            )

            reopened = SqlitePositionStore(db_path)
            assert reopened.get("AAPL") == Position(symbol="AAPL", quantity=3, average_cost=12.5)

    def test_schema_rejects_zero_quantity_rows(self, temp_db: SqlitePositionStore):
        conn = sqlite3.connect(temp_db.db_path)
        try:
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute(
                    "INSERT INTO positions (symbol, quantity, average_cost) VALUES ('X', 0, 1.0)"
                )
        finally:
            conn.close()


class TestStoreOperations:
    """Both implementations behave as a keyed table."""

    def test_get_missing(self, store):
        assert store.get("AAPL") is None

    def test_put_get(self, store):
        position = Position(symbol="AAPL", quantity=10, average_cost=150.0)
        store.put(position)
        assert store.get("AAPL") == position

    def test_put_replaces(self, store):
        store.put(Position(symbol="AAPL", quantity=10, average_cost=150.0))
        store.put(Position(symbol="AAPL", quantity=15, average_cost=156.5))

        assert store.get_all() == [Position(symbol="AAPL", quantity=15, average_cost=156.5)]

    def test_delete(self, store):
        position = Position(symbol="AAPL", quantity=10, average_cost=150.0)
        store.put(position)
        store.put(Position(symbol="MSFT", quantity=1, average_cost=400.0))

        store.delete(position)

        assert store.get("AAPL") is None
        assert [p.symbol for p in store.get_all()] == ["MSFT"]

    def test_delete_missing_is_noop(self, store):
        store.delete(Position(symbol="AAPL", quantity=1, average_cost=1.0))
        assert store.get_all() == []

    def test_get_all_returns_snapshot(self, store):
        store.put(Position(symbol="AAPL", quantity=1, average_cost=1.0))
        snapshot = store.get_all()
        store.put(Position(symbol="MSFT", quantity=1, average_cost=1.0))

        assert len(snapshot) == 1

    def test_lock_is_per_symbol(self, store):
        acquired = threading.Event()

        def hold_other_symbol():
            with store.lock("MSFT"):
                acquired.set()

        with store.lock("AAPL"):
            worker = threading.Thread(target=hold_other_symbol)
            worker.start()
            assert acquired.wait(timeout=5)
            worker.join()

    def test_lock_excludes_same_symbol(self, store):
        acquired = threading.Event()

        def hold_same_symbol():
            with store.lock("AAPL"):
                acquired.set()

        with store.lock("AAPL"):
            worker = threading.Thread(target=hold_same_symbol)
            worker.start()
            assert not acquired.wait(timeout=0.2)
        worker.join(timeout=5)
        assert acquired.is_set()


class TestSqliteRoundTrip:

    @given(position=position_strategy)
    @settings(max_examples=50, deadline=None)
    def test_round_trip_is_exact(self, position: Position):
        """
        *For any* position written to SQLite, reading it back yields the same
        symbol, quantity and cost with no rounding.
        """
        with tempfile.TemporaryDirectory() as tmpdir:
            store = SqlitePositionStore(Path(tmpdir) / "test.db")
            store.put(position)
            assert store.get(position.symbol) == position
            assert store.get_all() == [position]


class TestStoreErrors:

    def test_sqlite_failure_raises_store_error(self, temp_db: SqlitePositionStore):
        conn = sqlite3.connect(temp_db.db_path)
        try:
            conn.execute("DROP TABLE positions")
            conn.commit()
        finally:
            conn.close()

        with pytest.raises(StoreError) as exc_info:
            temp_db.get("AAPL")

        error = exc_info.value
        assert error.kind is ErrorKind.STORE
        assert error.operation == "get"
        assert isinstance(error.__cause__, sqlite3.Error)

    def test_unopenable_database_raises_store_error(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            # A directory cannot be opened as a database file
            db_path = Path(tmpdir) / "ledger.db"
            db_path.mkdir()
            with pytest.raises(StoreError):
                SqlitePositionStore(db_path)

    def test_out_of_range_quantity_raises_store_error(self, temp_db: SqlitePositionStore):
        position = Position(symbol="AAPL", quantity=2**63, average_cost=1.0)

        with pytest.raises(StoreError) as exc_info:
            temp_db.put(position)

        assert exc_info.value.operation == "put"
        assert isinstance(exc_info.value.__cause__, OverflowError)
        assert temp_db.get_all() == []
