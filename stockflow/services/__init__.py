"""Stock, reservation and order services."""

from stockflow.services.catalog import ProductService
from stockflow.services.container import ServiceContainer, build_container
from stockflow.services.ledger import InventoryLedger
from stockflow.services.notifications import LogNotificationSink, NotificationSink
from stockflow.services.orders import OrderService
from stockflow.services.reservations import ReservationManager

__all__ = [
    "InventoryLedger",
    "ReservationManager",
    "OrderService",
    "ProductService",
    "NotificationSink",
    "LogNotificationSink",
    "ServiceContainer",
    "build_container",
]
