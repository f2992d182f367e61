"""Store doubles used to inject failures and delays"""

import asyncio
from typing import Optional

from cartlines import CartOwner
from storefront.services.cart_store import Cart, CartStoreClient


class DelegatingStore:
    """Forwards every call to a real cart store client"""

    def __init__(self, inner: CartStoreClient):
        self.inner = inner
        self.merge_calls = 0

    async def read(self, owner: CartOwner) -> Cart:
        return await self.inner.read(owner)

    async def add_line(self, owner: CartOwner, product_ref: str, quantity: int = 1) -> Cart:
        return await self.inner.add_line(owner, product_ref, quantity)

    async def set_line_quantity(self, owner: CartOwner, product_ref: str, quantity: int) -> Cart:
        return await self.inner.set_line_quantity(owner, product_ref, quantity)

    async def remove_line(self, owner: CartOwner, product_ref: str) -> Cart:
        return await self.inner.remove_line(owner, product_ref)

    async def clear(self, owner: CartOwner) -> Cart:
        return await self.inner.clear(owner)

    async def merge(self, source: CartOwner, target: CartOwner) -> Cart:
        self.merge_calls += 1
        return await self.inner.merge(source, target)


class FailingMergeStore(DelegatingStore):
    """Merge raises the given error; everything else works"""

    def __init__(self, inner: CartStoreClient, error: Exception):
        super().__init__(inner)
        self.error = error

    async def merge(self, source: CartOwner, target: CartOwner) -> Cart:
        self.merge_calls += 1
        raise self.error


class SlowMergeStore(DelegatingStore):
    """Merge waits ``delay`` seconds before reaching the service"""

    def __init__(self, inner: CartStoreClient, delay: float):
        super().__init__(inner)
        self.delay = delay

    async def merge(self, source: CartOwner, target: CartOwner) -> Cart:
        self.merge_calls += 1
        await asyncio.sleep(self.delay)
        return await self.inner.merge(source, target)


class GatedStore(DelegatingStore):
    """Mutations and reads block until their gate is opened"""

    def __init__(self, inner: CartStoreClient):
        super().__init__(inner)
        self.add_gate: Optional[asyncio.Event] = None
        self.read_gate: Optional[asyncio.Event] = None

    async def add_line(self, owner: CartOwner, product_ref: str, quantity: int = 1) -> Cart:
        if self.add_gate is not None:
            await self.add_gate.wait()
        return await super().add_line(owner, product_ref, quantity)

    async def read(self, owner: CartOwner) -> Cart:
        if self.read_gate is not None:
            await self.read_gate.wait()
        return await super().read(owner)


class FailingReadStore(DelegatingStore):
    """Reads raise the given error once ``fail_reads`` is set"""

    def __init__(self, inner: CartStoreClient, error: Exception):
        super().__init__(inner)
        self.error = error
        self.fail_reads = False

    async def read(self, owner: CartOwner) -> Cart:
        if self.fail_reads:
            raise self.error
        return await super().read(owner)
