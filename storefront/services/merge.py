"""
Login-time merge of a guest cart into an account cart.

The merge never fails a login. Network errors, rejections and timeouts
are logged and reported in the returned ``MergeOutcome``; the cart then
shows whatever the account cart already held.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from cartlines import CartOwner
from ..core.errors import CartStoreError, MergeFailed
from .cart_cache import CartCache
from .cart_store import Cart, CartStoreClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeOutcome:
    """Result of one merge run"""
    merged: bool
    cart: Cart
    error: Optional[MergeFailed] = None
    refreshed: bool = True

    @property
    def warning(self) -> Optional[str]:
        return str(self.error) if self.error else None


class MergeCoordinator:
    """
    Runs the guest-to-account merge and then refreshes the cache.

    The service sums guest and account quantities per product (clamped to
    the line maximum) and writes the result under the account, leaving the
    guest cart in place. Concurrent runs for the same guest and account
    share one in-flight task.
    """

    def __init__(self, store: CartStoreClient, cache: CartCache, timeout: float = 15.0):
        self.store = store
        self.cache = cache
        self.timeout = timeout
        self._inflight: dict[tuple[str, str], asyncio.Task] = {}

    async def run(self, guest: CartOwner, account: CartOwner) -> MergeOutcome:
        """Merge ``guest`` into ``account``; never raises for remote failures"""
        pair = (guest.key, account.key)
        task = self._inflight.get(pair)
        if task is None:
            task = asyncio.ensure_future(self._run(guest, account))
            self._inflight[pair] = task
            task.add_done_callback(lambda done: self._forget(pair, done))
        else:
            logger.info(f"Merge into {account.key} already in flight - joining it")

        return await asyncio.shield(task)

    def in_flight(self, guest: CartOwner, account: CartOwner) -> bool:
        """Whether a merge of ``guest`` into ``account`` is running"""
        return (guest.key, account.key) in self._inflight

    def _forget(self, pair: tuple[str, str], task: asyncio.Task) -> None:
        if self._inflight.get(pair) is task:
            del self._inflight[pair]

    async def _run(self, guest: CartOwner, account: CartOwner) -> MergeOutcome:
        error = None
        try:
            merged = await asyncio.wait_for(self.store.merge(guest, account), timeout=self.timeout)
            logger.info(f"Merged guest cart into {account.key}: {merged.item_count} items")
        except asyncio.TimeoutError:
            error = MergeFailed(f"Cart merge timed out after {self.timeout}s")
        except (CartStoreError, ValueError) as e:
            error = MergeFailed(f"Cart merge failed: {e}")

        if error:
            logger.warning(f"{error} - continuing with the account cart as it is")

        # Re-read only after the merge call has resolved, and only if the
        # account is still the current owner.
        refreshed = False
        if self.cache.owner == account:
            try:
                await self.cache.refresh()
                refreshed = True
            except CartStoreError as e:
                logger.warning(f"Could not refresh cart after login: {e}")
        else:
            logger.info("Cart owner changed during merge - skipping refresh")

        return MergeOutcome(
            merged=error is None,
            cart=self.cache.current(),
            error=error,
            refreshed=refreshed,
        )
