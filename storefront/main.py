"""
Storefront Cart

Wires the session identity, cart store client, cart cache, merge
coordinator and ownership switch together. The rendering layer reads
``storefront.cache`` and subscribes to ``storefront.ownership``; the
authentication service calls ``ownership.login`` / ``ownership.logout``.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

import httpx

from cartlines import CartOwner

from .core.config import Settings, get_settings
from .core.session import JsonFileStore, KeyValueStore, SessionIdentity
from .services.cart_cache import CartCache
from .services.cart_store import CartStoreClient
from .services.merge import MergeCoordinator
from .services.ownership import OwnershipSwitch

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@dataclass
class Storefront:
    """The cart subsystem as seen by the rest of the application"""
    settings: Settings
    session: SessionIdentity
    store: CartStoreClient
    cache: CartCache
    coordinator: MergeCoordinator
    ownership: OwnershipSwitch

    async def close(self) -> None:
        await self.store.close()


def build_storefront(
    settings: Optional[Settings] = None,
    session_store: Optional[KeyValueStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Storefront:
    """
    Assemble the cart subsystem.

    Args:
        settings: Settings to use (defaults to the cached environment settings)
        session_store: Durable store for the session token; defaults to a
            JSON file at ``settings.session_store_path``
        transport: Optional httpx transport for the cart service client
    """
    settings = settings or get_settings()

    if session_store is None:
        path = settings.get_session_store_path()
        session_store = JsonFileStore(path) if path else None

    session = SessionIdentity(session_store, key=settings.session_key)
    store = CartStoreClient(
        cart_service_url=settings.cart_service_url,
        timeout=settings.request_timeout,
        transport=transport,
    )
    cache = CartCache(store, CartOwner.guest(session.get_or_create()))
    coordinator = MergeCoordinator(store, cache, timeout=settings.merge_timeout)
    ownership = OwnershipSwitch(
        session,
        cache,
        coordinator,
        retire_guest_token=settings.retire_guest_token_after_merge,
    )

    return Storefront(
        settings=settings,
        session=session,
        store=store,
        cache=cache,
        coordinator=coordinator,
        ownership=ownership,
    )


@asynccontextmanager
async def open_storefront(
    settings: Optional[Settings] = None,
    session_store: Optional[KeyValueStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
):
    """Build the storefront, load the guest cart, and close the client on exit"""
    storefront = build_storefront(settings, session_store, transport)
    logger.info(f"Cart service URL: {storefront.settings.cart_service_url}")
    if storefront.session.degraded:
        logger.warning("Running without a durable session store")

    await storefront.ownership.start()
    try:
        yield storefront
    finally:
        await storefront.close()


async def _demo(user_id: str, access_token: str) -> None:
    """Add a guest item, log in, and show the merged cart"""
    async with open_storefront() as storefront:
        await storefront.cache.add_line("prod-001", 2)
        logger.info(f"Guest cart: {storefront.cache.current().as_quantities()}")

        result = await storefront.ownership.login(user_id, access_token)
        if result.warning:
            logger.warning(result.warning)
        logger.info(f"Account cart: {result.merge.cart.as_quantities()}")


if __name__ == "__main__":
    import sys

    configure_logging(get_settings())
    if len(sys.argv) != 3:
        print("usage: python -m storefront.main <user_id> <access_token>")
        sys.exit(2)
    asyncio.run(_demo(sys.argv[1], sys.argv[2]))
