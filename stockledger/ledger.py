"""Portfolio position ledger.

The ledger turns buy and sell transactions into one position per symbol,
each carrying a weighted-average cost basis, and derives profit/loss from
caller-supplied market prices. It is the only component that writes to
the position store.
"""

import logging
import math
from numbers import Real
from typing import Mapping, Optional

from stockledger.db.store import PositionStore
from stockledger.errors import (
    InsufficientQuantityError,
    NotFoundError,
    ValidationError,
)
from stockledger.models import Position, Report, Summary

logger = logging.getLogger(__name__)

# Largest quantity a SQLite INTEGER column can hold
MAX_QUANTITY = 2**63 - 1


def normalize_symbol(symbol: Optional[str]) -> str:
    """Trim and uppercase a symbol.

    Args:
        symbol: Raw symbol from the caller.

    Returns:
        Normalized symbol.

    Raises:
        ValidationError: If the symbol is missing or blank.
    """
    if not isinstance(symbol, str) or not symbol.strip():
        logger.warning("Invalid symbol provided: %r", symbol)
        raise ValidationError("symbol", "Symbol cannot be null or empty")
    return symbol.strip().upper()


def _validate_price(price, field: str = "price", allow_zero: bool = False) -> float:
    if isinstance(price, bool) or not isinstance(price, Real) or not math.isfinite(price):
        logger.warning("Invalid %s provided: %r", field, price)
        raise ValidationError(field, f"{field.capitalize()} must be a finite number")
    if price < 0 or (price == 0 and not allow_zero):
        logger.warning("Invalid %s provided: %r", field, price)
        bound = "0 or greater" if allow_zero else "greater than 0"
        raise ValidationError(field, f"{field.capitalize()} must be {bound}")
    return float(price)


def _validate_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        logger.warning("Invalid quantity provided: %r", quantity)
        raise ValidationError("quantity", "Quantity must be a whole number greater than 0")
    if quantity > MAX_QUANTITY:
        logger.warning("Quantity too large: %r", quantity)
        raise ValidationError("quantity", f"Quantity cannot exceed {MAX_QUANTITY}")
    return quantity


class PortfolioLedger:
    """Position ledger over a ``PositionStore``.

    ``buy`` and ``sell`` run their read-modify-write under the store's
    per-symbol lock; operations on different symbols do not block each
    other. Read operations work on a single ``get_all`` snapshot.
    """

    def __init__(self, store: PositionStore):
        """Initialize the ledger.

        Args:
            store: Store holding the positions.
        """
        self._store = store

    @property
    def store(self) -> PositionStore:
        """The store holding the positions."""
        return self._store

    # ==================== Mutations ====================

    def buy(self, symbol: str, price: float, quantity: int) -> Position:
        """Buy units of a symbol, creating or reweighting its position.

        The new average cost is
        ``(old_qty * old_cost + quantity * price) / (old_qty + quantity)``.

        Args:
            symbol: Trading symbol.
            price: Price paid per unit.
            quantity: Units bought.

        Returns:
            The position after the purchase.

        Raises:
            ValidationError: If any argument is invalid.
            StoreError: If the store fails.
        """
        symbol = normalize_symbol(symbol)
        price = _validate_price(price)
        quantity = _validate_quantity(quantity)
        logger.info("Buy %s: %d @ %s", symbol, quantity, price)

        with self._store.lock(symbol):
            existing = self._store.get(symbol)
            if existing is None:
                logger.debug("Opening new position for %s", symbol)
                position = Position(symbol=symbol, quantity=quantity, average_cost=price)
            else:
                position = self._add_to_position(existing, price, quantity)
            self._store.put(position)

        logger.info(
            "Bought %s - quantity: %d, average cost: %s",
            symbol, position.quantity, position.average_cost,
        )
        return position

    @staticmethod
    def _add_to_position(existing: Position, price: float, quantity: int) -> Position:
        old_qty = existing.quantity
        old_cost = existing.average_cost
        total_qty = old_qty + quantity
        if total_qty > MAX_QUANTITY:
            logger.warning("Holding for %s would exceed %d units", existing.symbol, MAX_QUANTITY)
            raise ValidationError("quantity", f"Holding cannot exceed {MAX_QUANTITY} units")
        try:
            new_cost = (old_qty * old_cost + quantity * price) / total_qty
        except OverflowError:
            new_cost = math.inf
        if not math.isfinite(new_cost):
            logger.warning("Average cost for %s overflows", existing.symbol)
            raise ValidationError("price", "Resulting average cost is too large")
        logger.debug(
            "Reweighted %s - old: %s x %d, buy: %s x %d, new: %s x %d",
            existing.symbol, old_cost, old_qty, price, quantity, new_cost, total_qty,
        )
        return Position(symbol=existing.symbol, quantity=total_qty, average_cost=new_cost)

    def sell(self, symbol: str, quantity: int) -> Optional[Position]:
        """Sell units of a held symbol.

        Selling the whole holding deletes the position and returns None.

        Args:
            symbol: Trading symbol.
            quantity: Units to sell.

        Returns:
            The reduced position, or None if the position was fully sold.

        Raises:
            ValidationError: If any argument is invalid.
            NotFoundError: If the symbol is not held.
            InsufficientQuantityError: If more units are requested than held.
            StoreError: If the store fails.
        """
        symbol = normalize_symbol(symbol)
        quantity = _validate_quantity(quantity)
        logger.info("Sell %s: %d", symbol, quantity)

        with self._store.lock(symbol):
            existing = self._store.get(symbol)
            if existing is None:
                logger.warning("Symbol not held: %s", symbol)
                raise NotFoundError(symbol)

            if quantity > existing.quantity:
                logger.warning(
                    "Insufficient quantity for %s - requested %d, available %d",
                    symbol, quantity, existing.quantity,
                )
                raise InsufficientQuantityError(symbol, quantity, existing.quantity)

            if quantity == existing.quantity:
                self._store.delete(existing)
                logger.info("Sold entire %s position, removed", symbol)
                return None

            position = existing.model_copy(update={"quantity": existing.quantity - quantity})
            self._store.put(position)

        logger.info("Sold %s - %d sold, %d remaining", symbol, quantity, position.quantity)
        return position

    # ==================== Queries ====================

    def get(self, symbol: str) -> Optional[Position]:
        """Get the position for a symbol, or None if not held."""
        return self._store.get(normalize_symbol(symbol))

    def list_positions(self) -> list[Position]:
        """Get every held position, in store enumeration order."""
        positions = self._store.get_all()
        logger.debug("Portfolio contains %d positions", len(positions))
        return positions

    def summarize(self, prices: Mapping[str, float]) -> list[Summary]:
        """Summarize every position at the supplied market prices.

        Prices for symbols not held are ignored. Held symbols missing from
        ``prices`` are valued at their average cost, reporting 0% change.

        Args:
            prices: Mapping of symbol to current price.

        Returns:
            One summary per position, in ``list_positions`` order.
        """
        normalized = self._normalize_prices(prices)
        summaries = []
        for position in self.list_positions():
            if position.symbol in normalized:
                price = _validate_price(
                    normalized[position.symbol], "prices", allow_zero=True
                )
            else:
                logger.warning(
                    "No current price for %s, using average cost as fallback",
                    position.symbol,
                )
                price = position.average_cost
            summaries.append(Summary.from_position(position, price))
        return summaries

    def summarize_symbol(self, symbol: str, current_price: float) -> Optional[Summary]:
        """Summarize a single position, or return None if not held."""
        current_price = _validate_price(current_price, "current_price", allow_zero=True)
        position = self.get(symbol)
        if position is None:
            return None
        return Summary.from_position(position, current_price)

    def report(self, prices: Mapping[str, float]) -> Report:
        """Build a portfolio report at the supplied market prices."""
        return Report(summaries=self.summarize(prices))

    def portfolio_value(self, prices: Mapping[str, float]) -> float:
        return self.report(prices).current_value

    def total_gain_loss(self, prices: Mapping[str, float]) -> float:
        return self.report(prices).absolute_gain_loss

    def weighted_gain_loss_percent(self, prices: Mapping[str, float]) -> float:
        return self.report(prices).weighted_percent_gain_loss

    @staticmethod
    def _normalize_prices(prices: Mapping[str, float]) -> dict:
        """Key raw price entries by normalized symbol, skipping blank keys."""
        normalized = {}
        for symbol, price in (prices or {}).items():
            if not isinstance(symbol, str) or not symbol.strip():
                continue
            normalized[symbol.strip().upper()] = price
        return normalized
