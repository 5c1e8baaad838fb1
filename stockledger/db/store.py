"""Position stores for stockledger.

A store is a keyed table of ``Position`` records, one row per symbol. The
ledger performs every read-modify-write while holding ``store.lock(symbol)``,
so two mutations of the same symbol never interleave.
"""

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from stockledger.errors import StoreError
from stockledger.models import Position

logger = logging.getLogger(__name__)


class PositionStore(ABC):
    """Abstract keyed collection of positions.

    Subclasses implement the four table operations. Per-symbol locking is
    provided here so every implementation offers the same guarantee.
    """

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def lock(self, symbol: str) -> Iterator[None]:
        """Hold exclusive access to one symbol for a read-modify-write.

        Args:
            symbol: Normalized trading symbol.
        """
        with self._locks_guard:
            symbol_lock = self._locks.setdefault(symbol, threading.Lock())
        with symbol_lock:
            yield

    @abstractmethod
    def get(self, symbol: str) -> Optional[Position]:
        """Get the position for a symbol.

        Args:
            symbol: Normalized trading symbol.

        Returns:
            Position if held, None otherwise.
        """

    @abstractmethod
    def put(self, position: Position) -> None:
        """Insert or replace the position for ``position.symbol``."""

    @abstractmethod
    def delete(self, position: Position) -> None:
        """Remove the position for ``position.symbol``."""

    @abstractmethod
    def get_all(self) -> list[Position]:
        """Get a consistent snapshot of every held position."""


class InMemoryPositionStore(PositionStore):
    """Dictionary-backed store, used for tests and embedding."""

    def __init__(self) -> None:
        super().__init__()
        self._positions: dict[str, Position] = {}
        self._table_lock = threading.Lock()

    def get(self, symbol: str) -> Optional[Position]:
        with self._table_lock:
            return self._positions.get(symbol)

    def put(self, position: Position) -> None:
        with self._table_lock:
            self._positions[position.symbol] = position

    def delete(self, position: Position) -> None:
        with self._table_lock:
            self._positions.pop(position.symbol, None)

    def get_all(self) -> list[Position]:
        with self._table_lock:
            return list(self._positions.values())


class SqlitePositionStore(PositionStore):
    """SQLite-based position store."""

    TABLE = "positions"

    def __init__(self, db_path: Path, timeout: float = 5.0):
        """Initialize the store.

        Args:
            db_path: Path to the SQLite database file.
            timeout: Seconds to wait on a locked database before failing.
        """
        super().__init__()
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(
                f"Cannot create database directory {self.db_path.parent}", "init"
            ) from exc

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _connection(self, operation: str) -> Iterator[sqlite3.Connection]:
        """Open a connection, committing on success and rolling back on error.

        Any ``sqlite3.Error`` or ``OverflowError`` is re-raised as ``StoreError``.
        """
        try:
            conn = self._get_connection()
        except sqlite3.Error as exc:
            logger.error("Could not open %s: %s", self.db_path, exc)
            raise StoreError(f"Could not open position database: {exc}", operation) from exc
        try:
            yield conn
            conn.commit()
        except (sqlite3.Error, OverflowError) as exc:
            # OverflowError: value outside SQLite's 64-bit INTEGER range
            conn.rollback()
            logger.error("Position store %s failed: %s", operation, exc)
            raise StoreError(f"Position store {operation} failed: {exc}", operation) from exc
        finally:
            conn.close()

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        with self._connection("init") as conn:
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self.TABLE} (
                    symbol TEXT PRIMARY KEY,
                    quantity INTEGER NOT NULL CHECK (quantity > 0),
                    average_cost REAL NOT NULL CHECK (average_cost > 0)
                )
            """)

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        with self._connection("get_tables") as conn:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            ).fetchall()
        return [row["name"] for row in rows]

    @staticmethod
    def _row_to_position(row: sqlite3.Row) -> Position:
        return Position(
            symbol=row["symbol"],
            quantity=row["quantity"],
            average_cost=row["average_cost"],
        )

    def get(self, symbol: str) -> Optional[Position]:
        with self._connection("get") as conn:
            row = conn.execute(
                f"SELECT symbol, quantity, average_cost FROM {self.TABLE} WHERE symbol = ?",
                (symbol,),
            ).fetchone()
        if row:
            return self._row_to_position(row)
        return None

    def put(self, position: Position) -> None:
        with self._connection("put") as conn:
            conn.execute(
                f"""
                INSERT OR REPLACE INTO {self.TABLE} (symbol, quantity, average_cost)
                VALUES (?, ?, ?)
                """,
                (position.symbol, position.quantity, position.average_cost),
            )

    def delete(self, position: Position) -> None:
        with self._connection("delete") as conn:
            conn.execute(
                f"DELETE FROM {self.TABLE} WHERE symbol = ?", (position.symbol,)
            )

    def get_all(self) -> list[Position]:
        with self._connection("get_all") as conn:
            rows = conn.execute(
                f"SELECT symbol, quantity, average_cost FROM {self.TABLE}"
            ).fetchall()
        return [self._row_to_position(row) for row in rows]
