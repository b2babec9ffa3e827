"""Delete every session reservation map from Redis.

Stock held by those reservations is not returned; run this only against a
store that is being reset as well.
"""

import asyncio

from stockflow.config import get_settings
from stockflow.state.manager import StateManager
from stockflow.stores.redis_store import KEY_PREFIX


async def reset_reservations() -> None:
    """Clear all reservation hashes from Redis."""
    print("\n⚠️  WARNING: This will delete ALL session reservations from Redis!")
    response = input("Are you sure? (yes/no): ")

    if response.lower() != "yes":
        print("Cancelled.")
        return

    state_manager = StateManager(get_settings().redis_url)
    await state_manager.connect()
    deleted = await state_manager.delete_matching(f"{KEY_PREFIX}:*")
    await state_manager.disconnect()

    print(f"✓ Cleared {deleted} reservation map(s)\n")


if __name__ == "__main__":
    asyncio.run(reset_reservations())
