"""Seed the demo catalog and exercise it with contending orders.

Stores live in process memory, so this script builds its own container,
seeds it, places competing orders against the scarcest product and runs a
single fulfillment cycle, printing what happened at each step.
"""

import asyncio

from stockflow.config import Settings
from stockflow.exceptions import StockflowError
from stockflow.models import OrderItemRequest, OrderStatus
from stockflow.services.container import build_container
from stockflow.utils.logging import setup_logging
from stockflow.workers.fulfillment import FulfillmentScheduler


async def seed_catalog(container) -> None:
    """Seed demo products."""
    print("Seeding catalog...")

    for product in await container.catalog.seed():
        print(f"  ✓ Added {product.name} (${product.price}, stock {product.stock_quantity})")

    print("✓ Catalog seeded successfully\n")


async def place_competing_orders(container, product_id: int, quantity: int, count: int) -> None:
    """Place ``count`` concurrent orders for the same product."""
    product = await container.catalog.get_product(product_id)
    print(f"Placing {count} concurrent orders of {quantity} x {product.name} "
          f"(stock {product.stock_quantity})...")

    results = await asyncio.gather(
        *(
            container.order_service.place_order(
                [OrderItemRequest(product_id=product_id, quantity=quantity)]
            )
            for _ in range(count)
        ),
        return_exceptions=True,
    )

    for result in results:
        if isinstance(result, StockflowError):
            print(f"  ✗ {type(result).__name__}: {result}")
        elif isinstance(result, BaseException):
            raise result
        else:
            print(f"  ✓ Order {result.id} placed")

    product = await container.catalog.get_product(product_id)
    print(f"✓ Remaining stock: {product.stock_quantity}\n")


async def main() -> None:
    """Run all seed functions."""
    settings = Settings(
        log_format="text",
        log_level="WARNING",
        fulfillment_delay_min=0.0,
        fulfillment_delay_max=0.1,
    )
    setup_logging(settings)
    container = build_container(settings)

    print("\n" + "=" * 50)
    print("  Seeding Stockflow Demo Data")
    print("=" * 50 + "\n")

    await seed_catalog(container)

    # Laptop is the scarcest demo product
    await place_competing_orders(container, product_id=1, quantity=3, count=5)

    print("Running one fulfillment cycle...")
    scheduler = FulfillmentScheduler(container.order_service, settings)
    fulfilled = await scheduler.run_cycle()
    shipped = await container.order_service.get_orders_by_status(OrderStatus.FULFILLED)
    print(f"✓ Fulfilled {fulfilled} order(s); {len(shipped)} total\n")

    print("=" * 50)
    print("  ✓ All data seeded successfully!")
    print("=" * 50 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
