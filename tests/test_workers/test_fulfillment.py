"""Tests for the background fulfillment scheduler."""

import asyncio
import random

import pytest

from stockflow.config import Settings
from stockflow.models import Order, OrderItemRequest, OrderStatus, Product
from stockflow.services.orders import OrderService
from stockflow.workers.fulfillment import FulfillmentScheduler


class StaleListingOrderService(OrderService):
    """Cancels one order right after listing it, like a racing customer."""

    cancel_after_listing: int | None = None

    async def get_orders_by_status(self, status: OrderStatus) -> list[Order]:
        orders = await super().get_orders_by_status(status)
        if self.cancel_after_listing is not None:
            await self.cancel_order(self.cancel_after_listing)
        return orders


class FlakyOrderService(OrderService):
    """Fails the first listing, then behaves."""

    listings = 0

    async def get_orders_by_status(self, status: OrderStatus) -> list[Order]:
        self.listings += 1
        if self.listings == 1:
            raise ConnectionError("order store unavailable")
        return await super().get_orders_by_status(status)


async def _place(order_service: OrderService, product: Product, count: int) -> list[Order]:
    return [
        await order_service.place_order(
            [OrderItemRequest(product_id=product.id, quantity=1)]
        )
        for _ in range(count)
    ]


async def _wait_for(predicate, timeout: float = 2.0) -> None:
    async def _poll() -> None:
        while not await predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout=timeout)


@pytest.mark.asyncio
async def test_run_cycle_fulfills_pending_orders(
    order_service: OrderService,
    notifier,
    settings: Settings,
    laptop: Product,
) -> None:
    """Test that one cycle fulfills and notifies every pending order."""
    placed = await _place(order_service, laptop, 3)
    scheduler = FulfillmentScheduler(order_service, settings)

    assert await scheduler.run_cycle() == 3

    assert sorted(o.id for o in notifier.sent) == sorted(o.id for o in placed)
    assert await order_service.get_orders_by_status(OrderStatus.PENDING_FULFILLMENT) == []


@pytest.mark.asyncio
async def test_run_cycle_skips_terminal_orders(
    order_service: OrderService,
    settings: Settings,
    laptop: Product,
) -> None:
    """Test that canceled orders are never picked up."""
    placed = await _place(order_service, laptop, 2)
    await order_service.cancel_order(placed[0].id)
    scheduler = FulfillmentScheduler(order_service, settings)

    assert await scheduler.run_cycle() == 1
    assert (await order_service.get_order(placed[0].id)).status == OrderStatus.CANCELED


@pytest.mark.asyncio
async def test_concurrent_cancel_does_not_abort_cycle(
    order_store,
    ledger,
    notifier,
    settings: Settings,
    laptop: Product,
) -> None:
    """Test that an order canceled mid-cycle is skipped and the rest proceed."""
    order_service = StaleListingOrderService(order_store, ledger, notifier)
    placed = await _place(order_service, laptop, 3)
    order_service.cancel_after_listing = placed[1].id
    scheduler = FulfillmentScheduler(order_service, settings)

    assert await scheduler.run_cycle() == 2

    statuses = [(await order_service.get_order(o.id)).status for o in placed]
    assert statuses == [
        OrderStatus.FULFILLED,
        OrderStatus.CANCELED,
        OrderStatus.FULFILLED,
    ]


@pytest.mark.asyncio
async def test_notification_failure_does_not_abort_cycle(
    order_service: OrderService,
    notifier,
    settings: Settings,
    laptop: Product,
) -> None:
    """Test that one failing notification leaves later orders unaffected."""
    placed = await _place(order_service, laptop, 2)
    notifier.fail_for.add(placed[0].id)
    scheduler = FulfillmentScheduler(order_service, settings)

    assert await scheduler.run_cycle() == 1
    assert [o.id for o in notifier.sent] == [placed[1].id]


@pytest.mark.asyncio
async def test_loop_processes_new_orders_until_stopped(
    order_service: OrderService,
    settings: Settings,
    laptop: Product,
) -> None:
    """Test that the background loop keeps picking up new orders."""
    scheduler = FulfillmentScheduler(order_service, settings, rng=random.Random(7))
    task = scheduler.start()

    await _place(order_service, laptop, 2)

    async def all_fulfilled() -> bool:
        return len(await order_service.get_orders_by_status(OrderStatus.FULFILLED)) == 2

    await _wait_for(all_fulfilled)
    await scheduler.stop()

    assert task.done()
    assert task.exception() is None


@pytest.mark.asyncio
async def test_stop_interrupts_processing_delay(
    order_service: OrderService,
    laptop: Product,
) -> None:
    """Test that shutdown does not wait out a long per-order delay."""
    slow = Settings(
        _env_file=None,
        fulfillment_interval_min=60,
        fulfillment_interval_max=60,
        fulfillment_delay_min=60,
        fulfillment_delay_max=60,
    )
    order = (await _place(order_service, laptop, 1))[0]
    scheduler = FulfillmentScheduler(order_service, slow)
    scheduler.start()
    await asyncio.sleep(0.05)

    await asyncio.wait_for(scheduler.stop(), timeout=1.0)

    assert (await order_service.get_order(order.id)).status == (
        OrderStatus.PENDING_FULFILLMENT
    )


@pytest.mark.asyncio
async def test_stop_interrupts_interval(order_service: OrderService) -> None:
    """Test that shutdown does not wait out the polling interval."""
    slow = Settings(
        _env_file=None,
        fulfillment_interval_min=60,
        fulfillment_interval_max=60,
    )
    stop_event = asyncio.Event()
    scheduler = FulfillmentScheduler(order_service, slow)
    task = asyncio.create_task(scheduler.run(stop_event))
    await asyncio.sleep(0.05)

    stop_event.set()
    await asyncio.wait_for(task, timeout=1.0)


@pytest.mark.asyncio
async def test_failed_cycle_does_not_stop_loop(
    order_store,
    ledger,
    notifier,
    settings: Settings,
    laptop: Product,
) -> None:
    """Test that an error listing orders is logged and the loop carries on."""
    order_service = FlakyOrderService(order_store, ledger, notifier)
    await _place(order_service, laptop, 1)
    scheduler = FulfillmentScheduler(order_service, settings)
    scheduler.start()

    async def fulfilled() -> bool:
        return len(notifier.sent) == 1

    await _wait_for(fulfilled)
    await scheduler.stop()

    assert order_service.listings >= 2
