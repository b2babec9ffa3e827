"""In-process stores standing in for a single transactional database.

Rows are copied on every read and write so callers never share mutable
state with the store. Each compare-and-swap runs under a store-wide lock,
the same guarantee a database gives a single conditional UPDATE. Reads
yield to the event loop to behave like a network round-trip.
"""

import asyncio
import time
from typing import Callable

from stockflow.exceptions import ConcurrencyConflict, OrderNotFound, ProductNotFound
from stockflow.models.order import Order, OrderStatus
from stockflow.models.product import Product, utcnow
from stockflow.models.reservation import Reservation
from stockflow.stores.base import (
    OrderStore,
    ProductStore,
    ReservationRegistry,
    ReservationStore,
)


class InMemoryProductStore(ProductStore):
    def __init__(self) -> None:
        self._rows: dict[int, Product] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def get_all(self) -> list[Product]:
        await asyncio.sleep(0)
        return [row.model_copy(deep=True) for row in self._rows.values()]

    async def get_by_id(self, product_id: int) -> Product | None:
        await asyncio.sleep(0)
        row = self._rows.get(product_id)
        return row.model_copy(deep=True) if row else None

    async def add(self, product: Product) -> Product:
        async with self._lock:
            row = product.model_copy(
                update={"id": self._next_id, "version": 1, "last_updated": utcnow()},
                deep=True,
            )
            self._rows[row.id] = row
            self._next_id += 1
        return row.model_copy(deep=True)

    async def update(self, product: Product) -> Product:
        async with self._lock:
            current = self._rows.get(product.id)
            if current is None:
                raise ProductNotFound(product.id)
            if current.version != product.version:
                raise ConcurrencyConflict("product", product.id)
            row = product.model_copy(
                update={"version": current.version + 1, "last_updated": utcnow()},
                deep=True,
            )
            self._rows[row.id] = row
        return row.model_copy(deep=True)

    async def delete(self, product_id: int) -> None:
        async with self._lock:
            if self._rows.pop(product_id, None) is None:
                raise ProductNotFound(product_id)

    async def check_stock(self, product_id: int, quantity: int) -> bool:
        product = await self.get_by_id(product_id)
        return product is not None and product.is_available(quantity)

    async def swap_stock(
        self,
        product_id: int,
        expected_version: int,
        new_quantity: int,
    ) -> Product | None:
        async with self._lock:
            current = self._rows.get(product_id)
            if current is None:
                raise ProductNotFound(product_id)
            if current.version != expected_version:
                return None
            row = current.model_copy(
                update={
                    "stock_quantity": new_quantity,
                    "version": current.version + 1,
                    "last_updated": utcnow(),
                }
            )
            self._rows[product_id] = row
        return row.model_copy(deep=True)


class InMemoryOrderStore(OrderStore):
    def __init__(self) -> None:
        self._rows: dict[int, Order] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def get_all(self) -> list[Order]:
        await asyncio.sleep(0)
        return [row.model_copy(deep=True) for row in self._rows.values()]

    async def get_by_id(self, order_id: int) -> Order | None:
        await asyncio.sleep(0)
        row = self._rows.get(order_id)
        return row.model_copy(deep=True) if row else None

    async def add(self, order: Order) -> Order:
        async with self._lock:
            order_id = self._next_id
            self._next_id += 1
            row = order.model_copy(
                update={
                    "id": order_id,
                    "version": 1,
                    "items": [
                        item.model_copy(update={"order_id": order_id})
                        for item in order.items
                    ],
                },
                deep=True,
            )
            self._rows[order_id] = row
        return row.model_copy(deep=True)

    async def update(self, order: Order) -> Order:
        async with self._lock:
            current = self._rows.get(order.id)
            if current is None:
                raise OrderNotFound(order.id)
            if current.version != order.version:
                raise ConcurrencyConflict("order", order.id)
            row = order.model_copy(
                update={"version": current.version + 1, "last_updated": utcnow()},
                deep=True,
            )
            self._rows[order.id] = row
        return row.model_copy(deep=True)

    async def get_by_status(self, status: OrderStatus) -> list[Order]:
        await asyncio.sleep(0)
        return [
            row.model_copy(deep=True)
            for row in self._rows.values()
            if row.status == status
        ]

    async def references_product(self, product_id: int) -> bool:
        await asyncio.sleep(0)
        return any(
            item.product_id == product_id
            for row in self._rows.values()
            for item in row.items
        )


class InMemoryReservationStore(ReservationStore):
    def __init__(self) -> None:
        self._reservations: dict[str, Reservation] = {}

    async def insert(self, reservation: Reservation) -> None:
        self._reservations[reservation.reservation_id] = reservation.model_copy()

    async def lookup(self, reservation_id: str) -> Reservation | None:
        reservation = self._reservations.get(reservation_id)
        return reservation.model_copy() if reservation else None

    async def remove(self, reservation_id: str) -> Reservation | None:
        # dict.pop cannot be interleaved, so at most one caller gets the entry
        return self._reservations.pop(reservation_id, None)

    async def list_all(self) -> list[Reservation]:
        return [r.model_copy() for r in self._reservations.values()]


class InMemoryReservationRegistry(ReservationRegistry):
    """Per-session reservation maps that lapse after ``ttl`` idle seconds.

    Matches the Redis backend, where a session's hash expires ``ttl``
    seconds after its last use. A ``ttl`` of 0 keeps sessions forever.
    """

    def __init__(
        self,
        ttl: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self.clock = clock
        self._sessions: dict[str, InMemoryReservationStore] = {}
        self._last_used: dict[str, float] = {}

    def for_session(self, session_id: str) -> ReservationStore:
        now = self.clock()
        if self.ttl:
            self._evict_idle(now)

        if session_id not in self._sessions:
            self._sessions[session_id] = InMemoryReservationStore()
        self._last_used[session_id] = now
        return self._sessions[session_id]

    def __len__(self) -> int:
        return len(self._sessions)

    def _evict_idle(self, now: float) -> None:
        idle = [
            session_id
            for session_id, last_used in self._last_used.items()
            if now - last_used > self.ttl
        ]
        for session_id in idle:
            del self._sessions[session_id]
            del self._last_used[session_id]
