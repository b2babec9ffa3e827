"""Catalog product model."""

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(BaseModel):
    """Catalog product with its stock level.

    ``version`` is bumped by the store on every committed write and is the
    token compared when writing stock back.
    """

    id: int = 0
    name: str = Field(min_length=1, max_length=100)
    price: Decimal = Field(ge=0)
    stock_quantity: int = Field(ge=0)
    version: int = 0
    last_updated: datetime = Field(default_factory=utcnow)

    def is_available(self, quantity: int = 1) -> bool:
        """Check if the requested quantity is currently in stock."""
        return self.stock_quantity >= quantity


class ProductCreate(BaseModel):
    """Fields accepted when adding a product to the catalog."""

    name: str
    price: Decimal
    stock_quantity: int = 0


class ProductUpdate(BaseModel):
    """Fields accepted when editing a product.

    Stock is not editable here; it only moves through the ledger.
    ``version`` must be the version the editor read; stale edits are
    rejected.
    """

    name: str
    price: Decimal
    version: int
