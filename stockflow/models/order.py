"""Order-related data models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from stockflow.models.product import utcnow


class OrderStatus(str, Enum):
    """Order status progression."""

    PENDING_FULFILLMENT = "pending_fulfillment"
    FULFILLED = "fulfilled"
    CANCELED = "canceled"


class OrderItem(BaseModel):
    """Line of a placed order. Immutable once the order exists."""

    order_id: int = 0
    product_id: int
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(ge=0)

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * Decimal(self.quantity)


class OrderItemRequest(BaseModel):
    """Line as submitted by a caller, before stock has been committed.

    Bounds are checked by the order service so that bad input surfaces as
    ``InvalidOrder`` rather than a model validation error.
    """

    product_id: int
    quantity: int
    unit_price: Decimal | None = None
    reservation_id: str | None = None


class Order(BaseModel):
    """Complete order details."""

    id: int = 0
    status: OrderStatus = OrderStatus.PENDING_FULFILLMENT
    items: list[OrderItem] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    last_updated: datetime = Field(default_factory=utcnow)
    version: int = 0

    @property
    def total(self) -> Decimal:
        return sum((item.subtotal for item in self.items), Decimal("0.00"))