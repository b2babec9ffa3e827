"""Fulfillment Scheduler - background loop that ships pending orders."""

import asyncio
import random

from stockflow.config import Settings, get_settings
from stockflow.models.order import OrderStatus
from stockflow.services.orders import OrderService
from stockflow.utils.logging import get_logger

logger = get_logger(__name__)


class FulfillmentScheduler:
    """
    Periodically fulfills every order awaiting fulfillment.

    The scheduler goes through ``OrderService`` exactly like a foreground
    request would, so a concurrent cancellation simply makes its
    ``fulfill_order`` call fail for that order. Setting the stop event ends
    the loop, including any interval or processing delay in progress.
    """

    def __init__(
        self,
        order_service: OrderService,
        settings: Settings | None = None,
        rng: random.Random | None = None,
    ):
        settings = settings or get_settings()
        self.order_service = order_service
        self.interval = (settings.fulfillment_interval_min, settings.fulfillment_interval_max)
        self.processing_delay = (settings.fulfillment_delay_min, settings.fulfillment_delay_max)
        self.rng = rng or random.Random()
        self.stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """Loop until ``stop_event`` (or the scheduler's own event) is set."""
        stop_event = stop_event or self.stop_event
        logger.info("fulfillment_scheduler_started")

        while not stop_event.is_set():
            try:
                await self.run_cycle(stop_event)
            except Exception:
                logger.exception("fulfillment_cycle_failed")

            # Jittered so several workers don't poll the store in lockstep
            if await self._wait(stop_event, self.rng.uniform(*self.interval)):
                break

        logger.info("fulfillment_scheduler_stopped")

    async def run_cycle(self, stop_event: asyncio.Event | None = None) -> int:
        """
        Fulfill each pending order once.

        Returns:
            Number of orders fulfilled in this cycle
        """
        stop_event = stop_event or self.stop_event
        pending = await self.order_service.get_orders_by_status(
            OrderStatus.PENDING_FULFILLMENT
        )
        logger.info("fulfillment_cycle_started", pending=len(pending))

        fulfilled = 0
        for order in pending:
            if stop_event.is_set():
                break

            logger.info("order_processing", order_id=order.id)
            # Simulated warehouse work
            if await self._wait(stop_event, self.rng.uniform(*self.processing_delay)):
                break

            try:
                await self.order_service.fulfill_order(order.id)
            except Exception as e:
                logger.warning(
                    "order_fulfillment_failed",
                    order_id=order.id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            fulfilled += 1

        logger.info("fulfillment_cycle_finished", fulfilled=fulfilled, pending=len(pending))
        return fulfilled

    def start(self) -> asyncio.Task:
        """Run the loop as a background task on the current event loop."""
        if self._task is None or self._task.done():
            self.stop_event.clear()
            self._task = asyncio.create_task(self.run(self.stop_event))
        return self._task

    async def stop(self) -> None:
        """Signal the loop to stop and wait for it to finish."""
        self.stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None

    @staticmethod
    async def _wait(stop_event: asyncio.Event, seconds: float) -> bool:
        """Sleep up to ``seconds``; returns True if stopped meanwhile."""
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True
