"""
Login and logout flows end to end.

The storefront components run against the real cart service in-process;
store doubles from ``helpers`` inject merge failures, delays and read
errors where a flow needs them.
"""

import asyncio

import httpx
import pytest

from cartlines import CartOwner
from cart_service.main import app
from storefront.core.config import Settings
from storefront.core.errors import RemoteUnreachable
from storefront.core.session import MemoryStore
from storefront.main import open_storefront
from storefront.services.cart_cache import CartCache
from storefront.services.cart_store import CartStoreClient
from storefront.services.merge import MergeCoordinator
from storefront.services.ownership import AuthState, OwnershipSwitch

from .helpers import DelegatingStore, FailingMergeStore, FailingReadStore, SlowMergeStore

USER_ID = "user-42"


def wire(session, store, timeout: float = 5.0, retire: bool = True) -> OwnershipSwitch:
    cache = CartCache(store, CartOwner.guest(session.get_or_create()))
    coordinator = MergeCoordinator(store, cache, timeout=timeout)
    return OwnershipSwitch(session, cache, coordinator, retire_guest_token=retire)


class TestLogin:

    @pytest.mark.asyncio
    async def test_guest_items_are_added_to_account_cart(self, session, store, account, account_token):
        switch = wire(session, DelegatingStore(store))
        await switch.start()
        await switch.cache.add_line("prod-001", 2)
        await store.add_line(account, "prod-001", 1)

        result = await switch.login(USER_ID, account_token)

        assert result.success
        assert result.warning is None
        assert result.merge.merged
        assert switch.state == AuthState.AUTHENTICATED
        assert switch.cache.current().owner == account
        assert switch.cache.current().as_quantities() == {"prod-001": 3}

    @pytest.mark.asyncio
    async def test_lines_on_one_side_only_are_kept(self, session, store, account, account_token):
        switch = wire(session, store)
        await switch.start()
        await switch.cache.add_line("prod-001", 2)
        await switch.cache.add_line("prod-002", 1)
        await store.add_line(account, "prod-001", 1)
        await store.add_line(account, "prod-003", 3)

        await switch.login(USER_ID, account_token)

        assert switch.cache.current().as_quantities() == {"prod-001": 3, "prod-002": 1, "prod-003": 3}
        assert switch.cache.current().item_count == 7

    @pytest.mark.asyncio
    async def test_merged_quantity_is_clamped(self, session, store, account, account_token):
        switch = wire(session, store)
        await switch.start()
        await switch.cache.add_line("prod-004", 8)
        await store.add_line(account, "prod-004", 5)

        await switch.login(USER_ID, account_token)

        assert switch.cache.current().as_quantities() == {"prod-004": 10}

    @pytest.mark.asyncio
    async def test_empty_guest_cart_shows_account_cart(self, session, store, account, account_token):
        switch = wire(session, store)
        await switch.start()
        await store.add_line(account, "prod-003", 2)

        result = await switch.login(USER_ID, account_token)

        assert result.merge.merged
        assert switch.cache.current().as_quantities() == {"prod-003": 2}

    @pytest.mark.asyncio
    async def test_repeated_login_with_same_guest_does_not_double(self, session, store, account_token):
        switch = wire(session, store, retire=False)
        await switch.start()
        await switch.cache.add_line("prod-001", 2)

        await switch.login(USER_ID, account_token)
        await switch.logout()
        await switch.login(USER_ID, account_token)
        await switch.login(USER_ID, account_token)

        assert switch.cache.current().as_quantities() == {"prod-001": 2}

    @pytest.mark.asyncio
    async def test_guest_token_is_retired_after_merge(self, session, store, account_token):
        switch = wire(session, store)
        await switch.start()
        token = session.get_or_create()

        await switch.login(USER_ID, account_token)

        assert session.get_or_create() != token

    @pytest.mark.asyncio
    async def test_duplicate_logins_share_one_merge(self, session, store, account_token):
        slow = SlowMergeStore(store, delay=0.05)
        switch = wire(session, slow)
        await switch.start()
        await switch.cache.add_line("prod-001", 2)
        token = session.get_or_create()

        first, second = await asyncio.gather(
            switch.login(USER_ID, account_token),
            switch.login(USER_ID, account_token),
        )

        assert slow.merge_calls == 1
        assert first.success and second.success
        assert switch.cache.current().as_quantities() == {"prod-001": 2}
        assert session.get_or_create() != token


class TestMergeFailure:

    @pytest.mark.asyncio
    async def test_unreachable_service_does_not_fail_login(self, session, store, account, account_token):
        failing = FailingMergeStore(store, RemoteUnreachable("connection refused"))
        switch = wire(session, failing)
        await switch.start()
        await switch.cache.add_line("prod-001", 2)
        await store.add_line(account, "prod-003", 1)
        token = session.get_or_create()

        result = await switch.login(USER_ID, account_token)

        assert result.success
        assert not result.merge.merged
        assert "Cart merge failed" in result.warning
        assert switch.state == AuthState.AUTHENTICATED
        assert switch.cache.current().as_quantities() == {"prod-003": 1}
        assert session.get_or_create() == token

    @pytest.mark.asyncio
    async def test_slow_merge_times_out_without_failing_login(self, session, store, account, account_token):
        slow = SlowMergeStore(store, delay=1.0)
        switch = wire(session, slow, timeout=0.05)
        await switch.start()
        await switch.cache.add_line("prod-001", 2)

        result = await switch.login(USER_ID, account_token)

        assert result.success
        assert not result.merge.merged
        assert "timed out" in result.warning
        assert (await store.read(account)).is_empty

    @pytest.mark.asyncio
    async def test_failed_refresh_after_merge_does_not_fail_login(self, session, store, account, account_token):
        failing = FailingReadStore(store, RemoteUnreachable("connection reset"))
        switch = wire(session, failing)
        await switch.start()
        await switch.cache.add_line("prod-001", 2)
        failing.fail_reads = True

        result = await switch.login(USER_ID, account_token)

        assert result.success
        assert result.merge.merged
        assert not result.merge.refreshed
        assert switch.cache.current().owner == account
        assert (await store.read(account)).as_quantities() == {"prod-001": 2}


class TestLogout:

    @pytest.mark.asyncio
    async def test_logout_shows_empty_guest_cart(self, session, store, account_token):
        switch = wire(session, store)
        await switch.start()
        await switch.cache.add_line("prod-001", 2)
        await switch.login(USER_ID, account_token)

        cart = await switch.logout()

        assert switch.state == AuthState.ANONYMOUS
        assert cart.is_empty
        assert cart.owner.is_guest
        assert (await switch.cache.refresh()).is_empty

    @pytest.mark.asyncio
    async def test_account_cart_is_kept_across_cycles(self, session, store, account, account_token):
        switch = wire(session, store)
        await switch.start()

        for cycle in range(1, 4):
            await switch.cache.add_line("prod-002")
            await switch.login(USER_ID, account_token)
            assert switch.cache.current().as_quantities() == {"prod-002": cycle}

            await switch.logout()
            assert switch.cache.current().is_empty

        assert (await store.read(account)).as_quantities() == {"prod-002": 3}

    @pytest.mark.asyncio
    async def test_logout_during_merge_keeps_account_lines_out_of_guest_view(
        self, session, store, account, account_token
    ):
        slow = SlowMergeStore(store, delay=0.05)
        switch = wire(session, slow)
        await switch.start()
        await switch.cache.add_line("prod-001", 2)

        login = asyncio.ensure_future(switch.login(USER_ID, account_token))
        await asyncio.sleep(0.01)
        await switch.logout()
        result = await login

        assert result.success
        assert not result.merge.refreshed
        assert switch.state == AuthState.ANONYMOUS
        assert switch.cache.current().is_empty
        assert switch.cache.owner.ident == session.get_or_create()
        assert (await store.read(account)).as_quantities() == {"prod-001": 2}


class TestEvents:

    @pytest.mark.asyncio
    async def test_ownership_changes_are_announced(self, session, store, account, guest, account_token):
        switch = wire(session, store)
        await switch.start()
        events = []
        switch.subscribe(events.append)

        await switch.login(USER_ID, account_token)
        await switch.logout()

        assert [(e.previous.kind, e.current.kind) for e in events] == [
            (guest.kind, account.kind),
            (account.kind, guest.kind),
        ]
        assert events[0].merge is not None and events[0].merge.merged
        assert events[1].merge is None
        assert events[1].cart.is_empty


@pytest.mark.asyncio
async def test_open_storefront_loads_guest_cart(account_token):
    settings = Settings(cart_service_url="http://cart.test", session_store_path=None)
    session_store = MemoryStore()

    async with open_storefront(settings, session_store, transport=httpx.ASGITransport(app=app)) as storefront:
        await storefront.cache.add_line("prod-001", 2)
        token = session_store.values["cartSessionId"]

        result = await storefront.ownership.login(USER_ID, account_token)

        assert result.success
        assert storefront.cache.current().as_quantities() == {"prod-001": 2}
        assert session_store.values["cartSessionId"] != token


class TestRobustness:

    @pytest.mark.asyncio
    async def test_malformed_read_after_merge_does_not_fail_login(self, session, account_token):
        merged_cart = {"cart": {"owner": "account", "lines": [{"product_ref": "prod-001", "quantity": 2}]}}

        def handler(request):
            if request.method == "POST" and request.url.path == "/api/cart/merge":
                return httpx.Response(200, json=merged_cart)
            return httpx.Response(200, json={"status": "ok"})

        client = CartStoreClient("http://cart.test", transport=httpx.MockTransport(handler))
        try:
            switch = wire(session, client)
            await switch.start()

            result = await switch.login(USER_ID, account_token)
        finally:
            await client.close()

        assert result.success
        assert result.merge.merged
        assert not result.merge.refreshed
        assert switch.state == AuthState.AUTHENTICATED

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_fail_login(self, session, store, account_token):
        switch = wire(session, store)
        await switch.start()
        await switch.cache.add_line("prod-001", 2)
        events = []

        def crash(event):
            raise RuntimeError("renderer crashed")

        switch.subscribe(crash)
        switch.subscribe(events.append)

        result = await switch.login(USER_ID, account_token)

        assert result.success
        assert len(events) == 1
        assert switch.cache.current().as_quantities() == {"prod-001": 2}

    @pytest.mark.asyncio
    async def test_login_for_current_account_skips_merge(self, session, store, account_token):
        counting = DelegatingStore(store)
        switch = wire(session, counting)
        await switch.start()
        await switch.cache.add_line("prod-001", 2)
        await switch.login(USER_ID, account_token)
        token = session.get_or_create()
        events = []
        switch.subscribe(events.append)

        again = await switch.login(USER_ID, account_token)

        assert again.success
        assert again.merge is None
        assert again.warning is None
        assert counting.merge_calls == 1
        assert session.get_or_create() == token
        assert events == []
        assert switch.cache.current().as_quantities() == {"prod-001": 2}

    @pytest.mark.asyncio
    async def test_unsubscribe_twice_is_harmless(self, session, store):
        switch = wire(session, store)
        unsubscribe = switch.subscribe(lambda event: None)

        unsubscribe()
        unsubscribe()
