"""Redis-backed session reservation maps.

Each session owns one hash, ``reservations:{session_id}``, whose fields are
reservation ids. The hash expires ``session_ttl`` seconds after its last
write, mirroring the lifetime of the client's session.
"""

from stockflow.models.reservation import Reservation
from stockflow.state.manager import StateManager
from stockflow.stores.base import ReservationRegistry, ReservationStore

KEY_PREFIX = "reservations"


def session_key(session_id: str) -> str:
    """Generate Redis key for a session's reservation hash."""
    return f"{KEY_PREFIX}:{session_id}"


class RedisReservationStore(ReservationStore):
    def __init__(self, state: StateManager, session_id: str, ttl: int) -> None:
        self.state = state
        self.key = session_key(session_id)
        self.ttl = ttl

    async def insert(self, reservation: Reservation) -> None:
        await self.state.hset(
            self.key,
            reservation.reservation_id,
            reservation.model_dump(mode="json"),
        )
        if self.ttl:
            await self.state.expire(self.key, self.ttl)

    async def lookup(self, reservation_id: str) -> Reservation | None:
        data = await self.state.hget(self.key, reservation_id)
        return Reservation(**data) if data else None

    async def remove(self, reservation_id: str) -> Reservation | None:
        data = await self.state.hpop(self.key, reservation_id)
        return Reservation(**data) if data else None

    async def list_all(self) -> list[Reservation]:
        data = await self.state.hgetall(self.key)
        return [Reservation(**value) for value in data.values()]


class RedisReservationRegistry(ReservationRegistry):
    def __init__(self, state: StateManager, ttl: int) -> None:
        self.state = state
        self.ttl = ttl

    def for_session(self, session_id: str) -> ReservationStore:
        return RedisReservationStore(self.state, session_id, self.ttl)
