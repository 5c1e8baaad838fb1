"""Summary and report data models.

A ``Summary`` pairs a position with a current market price; a ``Report``
aggregates the summaries of the whole portfolio. Neither is persisted.
"""

from pydantic import BaseModel, Field

from stockledger.models.position import Position


class Summary(BaseModel):
    """Profit/loss view of a single position at a given market price."""

    symbol: str = Field(..., min_length=1, description="Trading symbol")
    quantity: int = Field(..., gt=0, description="Units held")
    average_cost: float = Field(..., gt=0, description="Average cost per unit")
    current_price: float = Field(..., ge=0, description="Current market price")
    percent_gain_loss: float = Field(..., description="Profit/Loss percentage")

    model_config = {"frozen": True}

    @classmethod
    def from_position(cls, position: Position, current_price: float) -> "Summary":
        """Build a summary for a position at the given price.

        Args:
            position: Held position.
            current_price: Current market price per unit.

        Returns:
            Summary with the percentage change computed.
        """
        percent = (current_price - position.average_cost) / position.average_cost * 100
        return cls(
            symbol=position.symbol,
            quantity=position.quantity,
            average_cost=position.average_cost,
            current_price=current_price,
            percent_gain_loss=percent,
        )

    @property
    def total_invested(self) -> float:
        return self.quantity * self.average_cost

    @property
    def current_value(self) -> float:
        return self.quantity * self.current_price

    @property
    def absolute_gain_loss(self) -> float:
        return self.current_value - self.total_invested

    @property
    def is_profit(self) -> bool:
        return self.percent_gain_loss >= 0

    def format_percent(self) -> str:
        return f"{self.percent_gain_loss:.2f}%"

    def format_current_value(self) -> str:
        return f"${self.current_value:.2f}"

    def format_gain_loss(self) -> str:
        sign = "+" if self.is_profit else ""
        return f"{sign}${self.absolute_gain_loss:.2f}"


class Report(BaseModel):
    """Portfolio-wide totals over a list of summaries."""

    summaries: list[Summary] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def total_invested(self) -> float:
        return sum(s.total_invested for s in self.summaries)

    @property
    def current_value(self) -> float:
        return sum(s.current_value for s in self.summaries)

    @property
    def absolute_gain_loss(self) -> float:
        return sum(s.absolute_gain_loss for s in self.summaries)

    @property
    def weighted_percent_gain_loss(self) -> float:
        """Percent change of each holding weighted by its current value.

        Returns 0.0 for an empty portfolio or one with no current value.
        """
        total_value = self.current_value
        if not self.summaries or total_value == 0:
            return 0.0
        return sum(
            s.percent_gain_loss * s.current_value / total_value
            for s in self.summaries
        )
