"""Order fulfillment notifications."""

from abc import ABC, abstractmethod

from stockflow.models.order import Order
from stockflow.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationSink(ABC):
    """Receives an order once it has been fulfilled.

    Implementations raise ``NotificationError`` when delivery fails.
    """

    @abstractmethod
    async def notify_fulfilled(self, order: Order) -> None:
        """Tell the customer their order is on its way."""


class LogNotificationSink(NotificationSink):
    """Writes the notification to the log instead of sending an email."""

    async def notify_fulfilled(self, order: Order) -> None:
        logger.info(
            "fulfillment_notification",
            channel="email",
            order_id=order.id,
            item_count=len(order.items),
            order_date=order.created_at.isoformat(),
            total=str(order.total),
        )
