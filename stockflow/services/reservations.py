"""Reservation Manager - session-scoped holds on stock."""

from stockflow.config import Settings, get_settings
from stockflow.exceptions import InvalidOrder
from stockflow.models.reservation import (
    Reservation,
    ReservationReceipt,
    StockValidation,
)
from stockflow.models.product import utcnow
from stockflow.services.ledger import InventoryLedger
from stockflow.stores.base import ReservationStore
from stockflow.utils.logging import get_logger

logger = get_logger(__name__)


class ReservationManager:
    """
    Holds stock for one session between "add to cart" and order submission.

    A reservation is only a record of a decrement the ledger has already
    committed; the manager never touches stock counts itself.
    """

    def __init__(
        self,
        ledger: InventoryLedger,
        reservations: ReservationStore,
        settings: Settings | None = None,
    ):
        self.ledger = ledger
        self.reservations = reservations
        self.reservation_ttl = (settings or get_settings()).reservation_ttl

    async def reserve(self, product_id: int, quantity: int) -> ReservationReceipt:
        """
        Take ``quantity`` units out of circulation for this session.

        Raises:
            InvalidOrder: Non-positive product id or quantity
            ProductNotFound: Unknown product
            InsufficientStock: Not enough stock to hold
        """
        if product_id <= 0 or quantity <= 0:
            raise InvalidOrder("Product ID and quantity must be positive")

        if self.reservation_ttl:
            await self.release_expired(self.reservation_ttl)

        product = await self.ledger.get_product(product_id)
        remaining = await self.ledger.adjust_stock(product_id, quantity)

        reservation = Reservation(
            product_id=product_id,
            quantity=quantity,
            unit_price=product.price,
        )
        try:
            await self.reservations.insert(reservation)
        except Exception:
            # No record means nobody could ever release the hold
            await self.ledger.adjust_stock(product_id, -quantity)
            raise

        logger.info(
            "stock_reserved",
            reservation_id=reservation.reservation_id,
            product_id=product_id,
            quantity=quantity,
            stock_remaining=remaining,
        )

        return ReservationReceipt(
            reservation_id=reservation.reservation_id,
            product_id=product_id,
            quantity=quantity,
            unit_price=product.price,
            stock_remaining=remaining,
        )

    async def release(self, reservation_id: str) -> bool:
        """
        Return a reservation's stock to circulation.

        Unknown or already released ids are a no-op.

        Returns:
            True if this call released the reservation
        """
        reservation = await self.reservations.remove(reservation_id)
        if reservation is None:
            logger.debug("reservation_not_found", reservation_id=reservation_id)
            return False

        try:
            await self.ledger.adjust_stock(reservation.product_id, -reservation.quantity)
        except Exception:
            await self.reservations.insert(reservation)
            raise

        logger.info(
            "reservation_released",
            reservation_id=reservation_id,
            product_id=reservation.product_id,
            quantity=reservation.quantity,
        )
        return True

    async def validate(self, product_id: int, quantity: int) -> StockValidation:
        """Advisory availability and price for UI feedback."""
        product = await self.ledger.get_product(product_id)
        available = await self.ledger.check_available(product_id, quantity)
        return StockValidation(
            product_id=product_id,
            quantity=quantity,
            available=available,
            unit_price=product.price,
            current_stock=product.stock_quantity,
        )

    async def list_reservations(self) -> list[Reservation]:
        return await self.reservations.list_all()

    async def release_expired(self, max_age: float) -> int:
        """Release every reservation in this session older than ``max_age`` seconds."""
        now = utcnow()
        released = 0
        for reservation in await self.reservations.list_all():
            if reservation.is_older_than(max_age, now=now):
                if await self.release(reservation.reservation_id):
                    released += 1

        if released:
            logger.info("expired_reservations_released", count=released, max_age=max_age)
        return released
