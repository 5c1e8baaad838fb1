"""stockledger - a portfolio position ledger with weighted-average cost basis."""

from stockledger.db.store import InMemoryPositionStore, PositionStore, SqlitePositionStore
from stockledger.errors import (
    ErrorKind,
    InsufficientQuantityError,
    LedgerError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from stockledger.ledger import PortfolioLedger
from stockledger.models import Position, Report, Summary

__version__ = "0.1.0"

__all__ = [
    "ErrorKind",
    "InMemoryPositionStore",
    "InsufficientQuantityError",
    "LedgerError",
    "NotFoundError",
    "PortfolioLedger",
    "Position",
    "PositionStore",
    "Report",
    "SqlitePositionStore",
    "StoreError",
    "Summary",
    "ValidationError",
]
