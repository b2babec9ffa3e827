"""Storage interfaces consumed by the ledger, reservations and orders."""

from abc import ABC, abstractmethod

from stockflow.models.order import Order, OrderStatus
from stockflow.models.product import Product
from stockflow.models.reservation import Reservation


class ProductStore(ABC):
    """Authoritative product rows, each carrying a version token."""

    @abstractmethod
    async def get_all(self) -> list[Product]:
        """Return every product."""

    @abstractmethod
    async def get_by_id(self, product_id: int) -> Product | None:
        """Return a snapshot of the product, or None."""

    @abstractmethod
    async def add(self, product: Product) -> Product:
        """Insert a product, assigning its id and initial version."""

    @abstractmethod
    async def update(self, product: Product) -> Product:
        """Write a product back if its version is still current.

        Raises ``ConcurrencyConflict`` when the stored version moved on and
        ``ProductNotFound`` when the row is gone.
        """

    @abstractmethod
    async def delete(self, product_id: int) -> None:
        """Remove a product. Raises ``ProductNotFound`` if absent."""

    @abstractmethod
    async def check_stock(self, product_id: int, quantity: int) -> bool:
        """Return True iff the product exists with at least ``quantity``."""

    @abstractmethod
    async def swap_stock(
        self,
        product_id: int,
        expected_version: int,
        new_quantity: int,
    ) -> Product | None:
        """Atomically set stock if the row is still at ``expected_version``.

        Returns the committed row, or None when another writer got there
        first. Raises ``ProductNotFound`` when the row is gone.
        """


class OrderStore(ABC):
    """Authoritative order rows, each carrying a version token."""

    @abstractmethod
    async def get_all(self) -> list[Order]:
        """Return every order."""

    @abstractmethod
    async def get_by_id(self, order_id: int) -> Order | None:
        """Return a snapshot of the order, or None."""

    @abstractmethod
    async def add(self, order: Order) -> Order:
        """Insert an order, assigning its id and initial version."""

    @abstractmethod
    async def update(self, order: Order) -> Order:
        """Write an order back if its version is still current.

        Raises ``ConcurrencyConflict`` on a lost race and ``OrderNotFound``
        when the row is gone.
        """

    @abstractmethod
    async def get_by_status(self, status: OrderStatus) -> list[Order]:
        """Return orders currently in ``status``."""

    @abstractmethod
    async def references_product(self, product_id: int) -> bool:
        """Return True if any order has an item for ``product_id``."""


class ReservationStore(ABC):
    """One session's reservation map."""

    @abstractmethod
    async def insert(self, reservation: Reservation) -> None:
        """Store a reservation under its id."""

    @abstractmethod
    async def lookup(self, reservation_id: str) -> Reservation | None:
        """Return the reservation without removing it."""

    @abstractmethod
    async def remove(self, reservation_id: str) -> Reservation | None:
        """Remove and return the reservation.

        Concurrent callers race on this; only one receives the reservation,
        the rest get None.
        """

    @abstractmethod
    async def list_all(self) -> list[Reservation]:
        """Return all reservations held by the session."""


class ReservationRegistry(ABC):
    """Hands out the reservation map belonging to a session."""

    @abstractmethod
    def for_session(self, session_id: str) -> ReservationStore:
        """Return the reservation store for ``session_id``."""
