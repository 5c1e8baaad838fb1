"""Error taxonomy for the position ledger.

Every error raised by the ledger or its stores derives from ``LedgerError``
and carries an ``ErrorKind`` tag so callers can branch on the failure mode
without matching on exception classes.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Tag identifying the category of a ledger failure."""

    VALIDATION = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INSUFFICIENT_QUANTITY = "INSUFFICIENT_QUANTITY"
    STORE = "STORE_ERROR"


class LedgerError(Exception):
    """Base class for all ledger errors."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Render the error as a plain dictionary for transport layers."""
        return {"error": self.kind.value, "message": self.message}


class ValidationError(LedgerError):
    """Raised when caller input is malformed."""

    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["field"] = self.field
        return data


class NotFoundError(LedgerError):
    """Raised when no position is held for a symbol."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, symbol: str):
        super().__init__(f"No position held for symbol: {symbol}")
        self.symbol = symbol

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["symbol"] = self.symbol
        return data


class InsufficientQuantityError(LedgerError):
    """Raised when a sell asks for more units than are held."""

    kind = ErrorKind.INSUFFICIENT_QUANTITY

    def __init__(self, symbol: str, requested: int, available: int):
        super().__init__(
            f"Insufficient quantity for {symbol}. "
            f"Requested: {requested}, Available: {available}"
        )
        self.symbol = symbol
        self.requested = requested
        self.available = available

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            symbol=self.symbol,
            requested=self.requested,
            available=self.available,
        )
        return data


class StoreError(LedgerError):
    """Raised when the underlying position store fails."""

    kind = ErrorKind.STORE

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.operation:
            data["operation"] = self.operation
        return data
