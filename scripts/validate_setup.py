"""Validate that the service is properly configured and its backends respond."""

import asyncio
import sys

import httpx
from pydantic import ValidationError

from stockflow.config import Settings
from stockflow.state.manager import StateManager


async def check_python_version() -> bool:
    """Check if Python version is 3.11+."""
    print("Checking Python version...")

    version = sys.version_info
    if version.major < 3 or (version.major == 3 and version.minor < 11):
        print(f"  ❌ Python {version.major}.{version.minor} detected")
        print("  → Python 3.11+ required")
        return False

    print(f"  ✓ Python {version.major}.{version.minor} detected")
    return True


async def check_settings() -> bool:
    """Check that environment variables and .env parse into valid settings."""
    print("\nChecking configuration...")

    try:
        settings = Settings()
    except ValidationError as e:
        print("  ❌ Invalid configuration:")
        for error in e.errors():
            print(f"     - {'.'.join(str(p) for p in error['loc'])}: {error['msg']}")
        return False

    print(f"  ✓ Environment: {settings.environment}")
    print(f"  ✓ Reservation backend: {settings.reservation_backend}")
    print(
        "  ✓ Fulfillment interval: "
        f"{settings.fulfillment_interval_min}-{settings.fulfillment_interval_max}s"
    )
    return True


async def check_redis() -> bool:
    """Check Redis when it backs session reservations."""
    print("\nChecking Redis...")

    settings = Settings()
    if settings.reservation_backend != "redis":
        print("  ℹ️  Reservations kept in memory, Redis not required")
        return True

    state_manager = StateManager(settings.redis_url)
    try:
        await state_manager.ping()
    except Exception as e:
        print(f"  ❌ Redis not reachable at {settings.redis_url}: {e}")
        return False
    finally:
        await state_manager.disconnect()

    print("  ✓ Redis is responding")
    return True


async def check_api() -> bool:
    """Check the health endpoint if the API is running."""
    print("\nChecking API...")

    settings = Settings()
    url = f"http://localhost:{settings.api_port}/health"
    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(url, timeout=5.0)
    except httpx.HTTPError:
        print("  ℹ️  API not running (run 'python -m stockflow.main')")
        return True

    if response.status_code == 200:
        print("  ✓ API is responding")
    else:
        print(f"  ⚠️  API returned status {response.status_code}")
    return True


async def main() -> None:
    """Run all validation checks."""
    print("\n" + "=" * 60)
    print("  Stockflow - Setup Validation")
    print("=" * 60 + "\n")

    checks = [
        ("Python Version", check_python_version),
        ("Configuration", check_settings),
        ("Redis", check_redis),
        ("API", check_api),
    ]

    results = []
    for name, check in checks:
        try:
            result = await check()
            results.append((name, result))
        except Exception as e:
            print(f"  ❌ Error during {name} check: {e}")
            results.append((name, False))

    print("\n" + "=" * 60)
    print("  Validation Summary")
    print("=" * 60)

    all_passed = True
    for name, passed in results:
        status = "✓" if passed else "❌"
        print(f"  {status} {name}")
        if not passed:
            all_passed = False

    print("=" * 60)

    if not all_passed:
        print("\n❌ Some checks failed. Please fix the issues above.")
        sys.exit(1)

    print("\n✅ All checks passed! System is ready.\n")


if __name__ == "__main__":
    asyncio.run(main())
