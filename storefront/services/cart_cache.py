"""Local mirror of the current owner's cart"""

import logging
from typing import Any, Awaitable, Callable, Optional

from cartlines import CartOwner
from .cart_store import Cart, CartStoreClient

logger = logging.getLogger(__name__)

CartListener = Callable[[Cart], Any]


class CartCache:
    """
    Holds the last confirmed cart of exactly one owner.

    Every read and mutation is tagged with the ownership generation active
    when it was dispatched. Switching owner bumps the generation, so results
    that arrive for a previous owner are dropped instead of leaking into the
    new owner's view. The snapshot only changes on a confirmed result; a
    failed call leaves the last known good cart in place.
    """

    def __init__(self, store: CartStoreClient, owner: CartOwner):
        self.store = store
        self._owner = owner
        self._generation = 0
        self._read_seq = 0
        self._applied_seq = 0
        self._snapshot = Cart.empty(owner)
        self._listeners: list[CartListener] = []

    @property
    def owner(self) -> CartOwner:
        return self._owner

    @property
    def generation(self) -> int:
        return self._generation

    def current(self) -> Cart:
        """Last confirmed cart for the current owner"""
        return self._snapshot

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Call ``listener`` with every new snapshot; returns an unsubscribe function"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def switch_owner(self, owner: CartOwner) -> None:
        """
        Point the cache at ``owner``.

        A different owner discards the snapshot without reading anything.
        The same owner with a new credential keeps the snapshot.
        """
        if owner == self._owner:
            self._owner = owner
            return
        self.reset(owner)

    def reset(self, owner: CartOwner) -> None:
        """Start over with an empty cart for ``owner``"""
        logger.info(f"Cart owner switched to {owner.kind.value}")
        self._owner = owner
        self._generation += 1
        self._publish(Cart.empty(owner))

    async def refresh(self) -> Cart:
        """Re-read the current owner's cart from the cart service"""
        generation = self._generation
        self._read_seq += 1
        seq = self._read_seq

        cart = await self.store.read(self._owner)

        if generation != self._generation:
            logger.info("Dropping cart read for a previous owner")
            return self._snapshot
        return self._apply(seq, cart)

    # ==================== Mutations ====================

    async def add_line(self, product_ref: str, quantity: int = 1) -> Optional[Cart]:
        return await self._mutate("add_line", self.store.add_line, product_ref, quantity)

    async def set_line_quantity(self, product_ref: str, quantity: int) -> Optional[Cart]:
        return await self._mutate(
            "set_line_quantity", self.store.set_line_quantity, product_ref, quantity
        )

    async def remove_line(self, product_ref: str) -> Optional[Cart]:
        return await self._mutate("remove_line", self.store.remove_line, product_ref)

    async def clear(self) -> Optional[Cart]:
        return await self._mutate("clear", self.store.clear)

    async def _mutate(
        self,
        action: str,
        call: Callable[..., Awaitable[Cart]],
        *args: Any,
    ) -> Optional[Cart]:
        """
        Run a store mutation for the current owner and publish its result.

        The store answers with the whole confirmed cart, so no second read
        is made. Returns that cart, or None when ownership changed while the
        call was in flight and the result was discarded. Store errors
        propagate with the snapshot untouched.
        """
        owner = self._owner
        generation = self._generation
        self._read_seq += 1
        seq = self._read_seq

        cart = await call(owner, *args)

        if generation != self._generation:
            logger.info(f"Discarding {action} result: cart owner changed while in flight")
            return None
        return self._apply(seq, cart)

    def _apply(self, seq: int, cart: Cart) -> Cart:
        if seq < self._applied_seq:
            logger.debug("Dropping out-of-order cart result")
            return self._snapshot
        self._applied_seq = seq
        self._publish(Cart(owner=self._owner, lines=cart.lines))
        return self._snapshot

    def _publish(self, cart: Cart) -> None:
        self._snapshot = cart
        for listener in list(self._listeners):
            try:
                listener(cart)
            except Exception:
                logger.exception("Cart listener failed")
