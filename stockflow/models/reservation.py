"""Session-scoped stock reservation models."""

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

from pydantic import BaseModel, Field

from stockflow.models.product import utcnow


def new_reservation_id() -> str:
    return uuid4().hex


class Reservation(BaseModel):
    """Provisional hold on stock that has already been decremented."""

    reservation_id: str = Field(default_factory=new_reservation_id)
    product_id: int
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(ge=0)
    created_at: datetime = Field(default_factory=utcnow)

    def is_older_than(self, seconds: float, now: datetime | None = None) -> bool:
        """Check if the reservation was created more than ``seconds`` ago."""
        now = now or utcnow()
        return now - self.created_at > timedelta(seconds=seconds)


class ReservationReceipt(BaseModel):
    """What the caller gets back from a successful reservation."""

    reservation_id: str
    product_id: int
    quantity: int
    unit_price: Decimal
    stock_remaining: int


class StockValidation(BaseModel):
    """Advisory availability answer; carries no guarantee."""

    product_id: int
    quantity: int
    available: bool
    unit_price: Decimal
    current_stock: int
