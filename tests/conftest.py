"""Pytest configuration and fixtures."""

from decimal import Decimal
from typing import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from stockflow.config import Settings
from stockflow.exceptions import NotificationError
from stockflow.models import Order, Product, ProductCreate
from stockflow.services.catalog import ProductService
from stockflow.services.container import ServiceContainer, build_container
from stockflow.services.ledger import InventoryLedger
from stockflow.services.notifications import NotificationSink
from stockflow.services.orders import OrderService
from stockflow.services.reservations import ReservationManager
from stockflow.stores.memory import (
    InMemoryOrderStore,
    InMemoryProductStore,
    InMemoryReservationStore,
)


class RecordingNotificationSink(NotificationSink):
    """Notification sink that remembers what it was sent."""

    def __init__(self) -> None:
        self.sent: list[Order] = []
        self.fail_for: set[int] = set()

    async def notify_fulfilled(self, order: Order) -> None:
        if order.id in self.fail_for:
            raise NotificationError(order.id, "mail server unavailable")
        self.sent.append(order)


@pytest.fixture
def settings() -> Settings:
    """Settings tuned for fast, deterministic tests."""
    return Settings(
        _env_file=None,
        log_format="text",
        stock_max_attempts=25,
        stock_retry_delay=0,
        reservation_ttl=0,
        reservation_backend="memory",
        fulfillment_interval_min=0.0,
        fulfillment_interval_max=0.01,
        fulfillment_delay_min=0.0,
        fulfillment_delay_max=0.0,
        seed_catalog=False,
    )


@pytest.fixture
def product_store() -> InMemoryProductStore:
    return InMemoryProductStore()


@pytest.fixture
def order_store() -> InMemoryOrderStore:
    return InMemoryOrderStore()


@pytest.fixture
def notifier() -> RecordingNotificationSink:
    return RecordingNotificationSink()


@pytest.fixture
def ledger(product_store: InMemoryProductStore, settings: Settings) -> InventoryLedger:
    return InventoryLedger(product_store, settings)


@pytest.fixture
def catalog(
    product_store: InMemoryProductStore,
    order_store: InMemoryOrderStore,
    ledger: InventoryLedger,
) -> ProductService:
    return ProductService(product_store, order_store, ledger)


@pytest.fixture
def order_service(
    order_store: InMemoryOrderStore,
    ledger: InventoryLedger,
    notifier: RecordingNotificationSink,
) -> OrderService:
    return OrderService(order_store, ledger, notifier)


@pytest.fixture
def reservation_store() -> InMemoryReservationStore:
    """A single session's reservation map."""
    return InMemoryReservationStore()


@pytest.fixture
def reservations(
    ledger: InventoryLedger,
    reservation_store: InMemoryReservationStore,
    settings: Settings,
) -> ReservationManager:
    return ReservationManager(ledger, reservation_store, settings)


@pytest.fixture
def make_product(
    catalog: ProductService,
) -> Callable[..., Awaitable[Product]]:
    """Factory that adds a product to the catalog."""

    async def _make(
        name: str = "Laptop",
        price: str = "1200.00",
        stock: int = 10,
    ) -> Product:
        return await catalog.create_product(
            ProductCreate(name=name, price=Decimal(price), stock_quantity=stock)
        )

    return _make


@pytest_asyncio.fixture
async def laptop(make_product: Callable[..., Awaitable[Product]]) -> Product:
    """Laptop with 10 units in stock."""
    return await make_product("Laptop", "1200.00", 10)


@pytest_asyncio.fixture
async def headphones(make_product: Callable[..., Awaitable[Product]]) -> Product:
    """Headphones with 2 units in stock."""
    return await make_product("Headphones", "150.00", 2)


@pytest.fixture
def container(
    settings: Settings,
    notifier: RecordingNotificationSink,
) -> ServiceContainer:
    return build_container(settings, notifier)


@pytest_asyncio.fixture
async def test_client(
    container: ServiceContainer,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client bound to the test container."""
    from stockflow.main import app

    app.state.container = container
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
