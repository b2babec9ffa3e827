"""Wiring of stores and services shared by the API and the scheduler."""

from dataclasses import dataclass

from stockflow.config import Settings, get_settings
from stockflow.services.catalog import ProductService
from stockflow.services.ledger import InventoryLedger
from stockflow.services.notifications import LogNotificationSink, NotificationSink
from stockflow.services.orders import OrderService
from stockflow.services.reservations import ReservationManager
from stockflow.state.manager import StateManager
from stockflow.stores.base import OrderStore, ProductStore, ReservationRegistry
from stockflow.stores.memory import (
    InMemoryOrderStore,
    InMemoryProductStore,
    InMemoryReservationRegistry,
)
from stockflow.stores.redis_store import RedisReservationRegistry
from stockflow.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    """Everything a request or the scheduler needs, built once per process."""

    settings: Settings
    products: ProductStore
    orders: OrderStore
    registry: ReservationRegistry
    ledger: InventoryLedger
    catalog: ProductService
    order_service: OrderService
    state_manager: StateManager | None = None

    def reservations_for(self, session_id: str) -> ReservationManager:
        """Reservation manager bound to one session's reservation map."""
        return ReservationManager(
            self.ledger,
            self.registry.for_session(session_id),
            self.settings,
        )

    async def close(self) -> None:
        if self.state_manager is not None:
            await self.state_manager.disconnect()


def build_container(
    settings: Settings | None = None,
    notifier: NotificationSink | None = None,
) -> ServiceContainer:
    """Build stores and services from settings."""
    settings = settings or get_settings()

    products = InMemoryProductStore()
    orders = InMemoryOrderStore()

    state_manager = None
    if settings.reservation_backend == "redis":
        state_manager = StateManager(settings.redis_url)
        registry: ReservationRegistry = RedisReservationRegistry(
            state_manager, settings.session_ttl
        )
    else:
        registry = InMemoryReservationRegistry(settings.session_ttl)

    ledger = InventoryLedger(products, settings)
    container = ServiceContainer(
        settings=settings,
        products=products,
        orders=orders,
        registry=registry,
        ledger=ledger,
        catalog=ProductService(products, orders, ledger),
        order_service=OrderService(orders, ledger, notifier or LogNotificationSink()),
        state_manager=state_manager,
    )
    logger.info("services_built", reservation_backend=settings.reservation_backend)
    return container
