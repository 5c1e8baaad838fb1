"""Position data model."""

from pydantic import BaseModel, Field


class Position(BaseModel):
    """Represents the current holding for one symbol."""

    symbol: str = Field(..., min_length=1, description="Trading symbol (uppercase)")
    quantity: int = Field(..., gt=0, description="Units held")
    average_cost: float = Field(
        ..., gt=0, allow_inf_nan=False, description="Weighted-average cost per unit"
    )

    model_config = {"frozen": True}
