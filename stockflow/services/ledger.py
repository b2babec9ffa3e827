"""Inventory Ledger - the only writer of product stock counts."""

import asyncio

from stockflow.config import Settings, get_settings
from stockflow.exceptions import ConcurrencyConflict, InsufficientStock, ProductNotFound
from stockflow.models.product import Product
from stockflow.stores.base import ProductStore
from stockflow.utils.logging import get_logger

logger = get_logger(__name__)


class InventoryLedger:
    """
    Atomic, version-checked stock adjustments.

    Every attempt reads the row and its version, checks the result stays
    non-negative, then writes with a compare-and-swap on that version. A
    lost swap is retried with the fresh row; business failures are not.
    """

    def __init__(self, products: ProductStore, settings: Settings | None = None):
        settings = settings or get_settings()
        self.products = products
        self.max_attempts = settings.stock_max_attempts
        self.retry_delay = settings.stock_retry_delay

    async def get_product(self, product_id: int) -> Product:
        """Return a product snapshot or raise ``ProductNotFound``."""
        product = await self.products.get_by_id(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product

    async def check_available(self, product_id: int, quantity: int) -> bool:
        """
        Advisory stock check.

        The answer can be stale by the time the caller acts on it; only
        ``adjust_stock`` enforces the stock floor.
        """
        available = await self.products.check_stock(product_id, quantity)
        logger.debug(
            "stock_checked",
            product_id=product_id,
            quantity=quantity,
            available=available,
        )
        return available

    async def adjust_stock(self, product_id: int, delta: int) -> int:
        """
        Apply ``stock -= delta`` atomically.

        Args:
            product_id: Product to adjust
            delta: Positive to consume, negative to restore

        Returns:
            The committed stock quantity

        Raises:
            ProductNotFound: The product does not exist
            InsufficientStock: The result would be negative
            ConcurrencyConflict: Every attempt lost to a concurrent writer
        """
        for attempt in range(self.max_attempts):
            product = await self.get_product(product_id)

            new_quantity = product.stock_quantity - delta
            if new_quantity < 0:
                logger.warning(
                    "insufficient_stock",
                    product_id=product_id,
                    requested=delta,
                    available=product.stock_quantity,
                )
                raise InsufficientStock(product_id, delta, product.stock_quantity)

            committed = await self.products.swap_stock(
                product_id, product.version, new_quantity
            )
            if committed is not None:
                logger.info(
                    "stock_adjusted",
                    product_id=product_id,
                    delta=delta,
                    new_quantity=committed.stock_quantity,
                    version=committed.version,
                    attempt=attempt + 1,
                )
                return committed.stock_quantity

            logger.warning(
                "stock_version_conflict",
                product_id=product_id,
                expected_version=product.version,
                attempt=attempt + 1,
                max_attempts=self.max_attempts,
            )
            if attempt < self.max_attempts - 1 and self.retry_delay:
                # Exponential backoff
                await asyncio.sleep(self.retry_delay * (2**attempt))

        logger.error(
            "stock_adjustment_gave_up",
            product_id=product_id,
            delta=delta,
            attempts=self.max_attempts,
        )
        raise ConcurrencyConflict("product", product_id, self.max_attempts)

    async def restore_stock(self, product_id: int, quantity: int) -> int:
        """
        Put ``quantity`` units back and keep retrying until it commits.

        A restore can never hit the stock floor, so the only failure left is
        losing every swap to concurrent writers. Giving up would leak the
        units, so each exhausted round backs off and starts again.

        Raises:
            ProductNotFound: The product no longer exists
        """
        rounds = 0
        while True:
            try:
                return await self.adjust_stock(product_id, -quantity)
            except ConcurrencyConflict:
                rounds += 1
                logger.warning(
                    "stock_restore_retrying",
                    product_id=product_id,
                    quantity=quantity,
                    rounds=rounds,
                )
                await asyncio.sleep(self.retry_delay * min(2**rounds, 64))
