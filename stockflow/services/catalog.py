"""Catalog management - product CRUD and restocking."""

from decimal import Decimal

from stockflow.exceptions import InvalidProduct, ProductInUse, ProductNotFound
from stockflow.models.product import Product, ProductCreate, ProductUpdate
from stockflow.services.ledger import InventoryLedger
from stockflow.stores.base import OrderStore, ProductStore
from stockflow.utils.logging import get_logger

logger = get_logger(__name__)

DEMO_PRODUCTS = [
    ProductCreate(name="Laptop", price=Decimal("1200.00"), stock_quantity=10),
    ProductCreate(name="Smartphone", price=Decimal("800.00"), stock_quantity=15),
    ProductCreate(name="Tablet", price=Decimal("400.00"), stock_quantity=20),
    ProductCreate(name="Headphones", price=Decimal("150.00"), stock_quantity=30),
]


class ProductService:
    """Product catalog. Stock changes after creation go through the ledger."""

    def __init__(
        self,
        products: ProductStore,
        orders: OrderStore,
        ledger: InventoryLedger,
    ):
        self.products = products
        self.orders = orders
        self.ledger = ledger

    async def list_products(self) -> list[Product]:
        return await self.products.get_all()

    async def get_product(self, product_id: int) -> Product:
        return await self.ledger.get_product(product_id)

    async def create_product(self, data: ProductCreate) -> Product:
        """Validate and add a product to the catalog."""
        self._validate(data.name, data.price)
        if data.stock_quantity < 0:
            raise InvalidProduct("Product stock quantity cannot be negative")

        product = await self.products.add(
            Product(
                name=data.name.strip(),
                price=data.price,
                stock_quantity=data.stock_quantity,
            )
        )
        logger.info(
            "product_created",
            product_id=product.id,
            name=product.name,
            stock_quantity=product.stock_quantity,
        )
        return product

    async def update_product(self, product_id: int, data: ProductUpdate) -> Product:
        """
        Change a product's name and price.

        ``data.version`` must match the stored version, otherwise the edit
        was made against stale data and ``ConcurrencyConflict`` is raised.
        """
        self._validate(data.name, data.price)

        current = await self.ledger.get_product(product_id)
        edited = current.model_copy(
            update={
                "name": data.name.strip(),
                "price": data.price,
                "version": data.version,
            }
        )
        product = await self.products.update(edited)
        logger.info("product_updated", product_id=product_id, version=product.version)
        return product

    async def restock(self, product_id: int, quantity: int) -> int:
        """Add ``quantity`` units of stock; returns the new level."""
        if quantity <= 0:
            raise InvalidProduct("Restock quantity must be positive")
        return await self.ledger.adjust_stock(product_id, -quantity)

    async def delete_product(self, product_id: int) -> None:
        """
        Delete a product that no order refers to.

        The reference check and the delete are separate store calls, so an
        order placed in between can still end up pointing at the deleted
        product. Canceling such an order skips the missing product's stock.
        """
        if await self.products.get_by_id(product_id) is None:
            raise ProductNotFound(product_id)

        if await self.orders.references_product(product_id):
            logger.warning("product_delete_refused", product_id=product_id)
            raise ProductInUse(product_id)

        await self.products.delete(product_id)
        logger.info("product_deleted", product_id=product_id)

    async def check_stock_availability(self, product_id: int, quantity: int) -> bool:
        return await self.ledger.check_available(product_id, quantity)

    async def seed(self, products: list[ProductCreate] = DEMO_PRODUCTS) -> list[Product]:
        """Add the demo catalog unless products already exist."""
        if await self.products.get_all():
            logger.info("catalog_seed_skipped")
            return []

        created = [await self.create_product(data) for data in products]
        logger.info("catalog_seeded", count=len(created))
        return created

    @staticmethod
    def _validate(name: str, price: Decimal) -> None:
        if not name or not name.strip():
            raise InvalidProduct("Product name cannot be empty")
        if len(name.strip()) > 100:
            raise InvalidProduct("Product name cannot exceed 100 characters")
        if price < 0:
            raise InvalidProduct("Product price cannot be negative")
