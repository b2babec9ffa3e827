"""Order State Machine - placement, cancellation and fulfillment."""

from decimal import Decimal

from stockflow.exceptions import (
    InvalidOrder,
    InvalidTransition,
    OrderNotFound,
    ProductNotFound,
)
from stockflow.models.order import Order, OrderItem, OrderItemRequest, OrderStatus
from stockflow.models.product import utcnow
from stockflow.models.reservation import Reservation
from stockflow.services.ledger import InventoryLedger
from stockflow.services.notifications import NotificationSink
from stockflow.state.workflow import OrderTransitions
from stockflow.stores.base import OrderStore, ReservationStore
from stockflow.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Owns order status and keeps it consistent with stock.

    Responsibilities:
    - Commit stock for new orders, consuming session reservations
    - Restore stock when an order is canceled
    - Mark orders fulfilled and notify the customer
    """

    def __init__(
        self,
        orders: OrderStore,
        ledger: InventoryLedger,
        notifier: NotificationSink,
    ):
        self.orders = orders
        self.ledger = ledger
        self.notifier = notifier

    async def list_orders(self) -> list[Order]:
        return await self.orders.get_all()

    async def get_order(self, order_id: int) -> Order:
        order = await self.orders.get_by_id(order_id)
        if order is None:
            logger.warning("order_not_found", order_id=order_id)
            raise OrderNotFound(order_id)
        return order

    async def get_orders_by_status(self, status: OrderStatus) -> list[Order]:
        return await self.orders.get_by_status(status)

    async def place_order(
        self,
        items: list[OrderItemRequest],
        reservations: ReservationStore | None = None,
    ) -> Order:
        """
        Commit stock for every item and persist a pending order.

        Items whose ``reservation_id`` is held in ``reservations`` reuse the
        stock that reservation already took. Everything else is taken from
        the ledger now. If any step fails, stock taken so far is returned
        and claimed reservations are put back before the error propagates.

        Units a reservation held beyond what its item orders are returned
        only once the order is persisted, so a rollback never has to take
        stock back from the shelf.

        Raises:
            InvalidOrder: Empty order or malformed item
            ProductNotFound: Unknown product
            InsufficientStock: Not enough stock for an item
            ConcurrencyConflict: The ledger could not win a stock write
        """
        self._validate_items(items)

        applied: list[tuple[int, int]] = []
        surplus: list[tuple[int, int]] = []
        claimed: list[Reservation] = []
        order_items: list[OrderItem] = []

        try:
            for item in items:
                reservation = None
                if item.reservation_id and reservations is not None:
                    reservation = await reservations.remove(item.reservation_id)

                if reservation is not None:
                    claimed.append(reservation)
                    unit_price = await self._settle_reservation(
                        item, reservation, applied, surplus
                    )
                else:
                    product = await self.ledger.get_product(item.product_id)
                    await self.ledger.adjust_stock(item.product_id, item.quantity)
                    applied.append((item.product_id, item.quantity))
                    unit_price = product.price

                if item.unit_price is not None and item.unit_price > 0:
                    unit_price = item.unit_price

                order_items.append(
                    OrderItem(
                        product_id=item.product_id,
                        quantity=item.quantity,
                        unit_price=unit_price,
                    )
                )

            now = utcnow()
            order = await self.orders.add(
                Order(items=order_items, created_at=now, last_updated=now)
            )
        except BaseException:
            # Includes cancellation of the calling task
            await self._roll_back(applied, claimed, reservations)
            raise

        for product_id, quantity in surplus:
            await self._return_stock(product_id, quantity, order_id=order.id)

        logger.info(
            "order_placed",
            order_id=order.id,
            item_count=len(order.items),
            reservations_used=len(claimed),
        )
        return order

    async def cancel_order(self, order_id: int) -> Order:
        """
        Cancel a pending order and put its stock back.

        Canceling an already canceled order is a no-op. The status change is
        committed before stock is restored, so a cancel that loses a race
        with fulfillment never returns stock. Once committed, each item's
        restore keeps retrying lost swaps until it lands, because a canceled
        order is never revisited.
        """
        order = await self.get_order(order_id)

        if order.status == OrderStatus.CANCELED:
            logger.info("order_already_canceled", order_id=order_id)
            return order

        self._require_transition(order, OrderStatus.CANCELED)

        order.status = OrderStatus.CANCELED
        canceled = await self.orders.update(order)

        for item in canceled.items:
            await self._return_stock(item.product_id, item.quantity, order_id=order_id)

        logger.info("order_canceled", order_id=order_id, version=canceled.version)
        return canceled

    async def fulfill_order(self, order_id: int) -> Order:
        """
        Mark a pending order fulfilled, then notify.

        Stock was committed at placement, so nothing is adjusted here. The
        status change stays committed if the notification fails; the
        notification error is raised to the caller.
        """
        order = await self.get_order(order_id)
        self._require_transition(order, OrderStatus.FULFILLED)

        order.status = OrderStatus.FULFILLED
        fulfilled = await self.orders.update(order)
        logger.info("order_fulfilled", order_id=order_id, version=fulfilled.version)

        await self.notifier.notify_fulfilled(fulfilled)
        return fulfilled

    def _require_transition(self, order: Order, target: OrderStatus) -> None:
        if not OrderTransitions.can_transition(order.status, target):
            logger.warning(
                "invalid_order_transition",
                order_id=order.id,
                current_status=order.status.value,
                attempted=target.value,
            )
            raise InvalidTransition(order.id, order.status.value, target.value)

    @staticmethod
    def _validate_items(items: list[OrderItemRequest]) -> None:
        if not items:
            logger.warning("order_without_items")
            raise InvalidOrder("Order must contain at least one item")

        for item in items:
            if item.product_id <= 0:
                raise InvalidOrder(f"Invalid product ID {item.product_id}")
            if item.quantity <= 0:
                raise InvalidOrder(
                    f"Quantity for product {item.product_id} must be positive"
                )

    async def _settle_reservation(
        self,
        item: OrderItemRequest,
        reservation: Reservation,
        applied: list[tuple[int, int]],
        surplus: list[tuple[int, int]],
    ) -> Decimal:
        """Reconcile an item with the reservation it claims; returns its price."""
        if reservation.product_id != item.product_id:
            raise InvalidOrder(
                f"Reservation {reservation.reservation_id} holds product "
                f"{reservation.product_id}, not {item.product_id}"
            )

        # The hold already took reservation.quantity; settle the difference
        difference = item.quantity - reservation.quantity
        if difference > 0:
            await self.ledger.adjust_stock(item.product_id, difference)
            applied.append((item.product_id, difference))
        elif difference < 0:
            surplus.append((item.product_id, -difference))

        logger.info(
            "reservation_consumed",
            reservation_id=reservation.reservation_id,
            product_id=item.product_id,
            difference=difference,
        )
        return reservation.unit_price

    async def _return_stock(
        self, product_id: int, quantity: int, order_id: int | None = None
    ) -> None:
        """Put units back on the shelf; a deleted product has no shelf left."""
        try:
            await self.ledger.restore_stock(product_id, quantity)
        except ProductNotFound:
            logger.warning(
                "stock_return_skipped",
                product_id=product_id,
                quantity=quantity,
                order_id=order_id,
            )

    async def _roll_back(
        self,
        applied: list[tuple[int, int]],
        claimed: list[Reservation],
        reservations: ReservationStore | None,
    ) -> None:
        # Only positive takes are recorded, so every undo is a restore
        for product_id, quantity in reversed(applied):
            try:
                await self._return_stock(product_id, quantity)
            except Exception:
                logger.exception(
                    "order_rollback_failed", product_id=product_id, quantity=quantity
                )

        if reservations is not None:
            for reservation in claimed:
                try:
                    await reservations.insert(reservation)
                except Exception:
                    logger.exception(
                        "reservation_restore_failed",
                        reservation_id=reservation.reservation_id,
                        product_id=reservation.product_id,
                        quantity=reservation.quantity,
                    )

        if applied or claimed:
            logger.info(
                "order_rolled_back",
                adjustments=len(applied),
                reservations_restored=len(claimed),
            )
