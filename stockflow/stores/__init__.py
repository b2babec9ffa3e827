"""Storage interfaces and implementations."""

from stockflow.stores.base import (
    OrderStore,
    ProductStore,
    ReservationRegistry,
    ReservationStore,
)
from stockflow.stores.memory import (
    InMemoryOrderStore,
    InMemoryProductStore,
    InMemoryReservationRegistry,
    InMemoryReservationStore,
)
from stockflow.stores.redis_store import RedisReservationRegistry, RedisReservationStore

__all__ = [
    "OrderStore",
    "ProductStore",
    "ReservationRegistry",
    "ReservationStore",
    "InMemoryOrderStore",
    "InMemoryProductStore",
    "InMemoryReservationRegistry",
    "InMemoryReservationStore",
    "RedisReservationRegistry",
    "RedisReservationStore",
]
