"""Drives cart ownership across login and logout"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from cartlines import CartOwner
from ..core.errors import CartStoreError
from ..core.session import SessionIdentity
from .cart_cache import CartCache
from .cart_store import Cart
from .merge import MergeCoordinator, MergeOutcome

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    """Authentication state as seen by the cart"""
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class OwnershipChanged:
    """Emitted once an ownership transition has settled"""
    previous: CartOwner
    current: CartOwner
    cart: Cart
    merge: Optional[MergeOutcome] = None


@dataclass(frozen=True)
class LoginResult:
    """Login as reported to the caller; success never depends on the merge"""
    success: bool
    owner: CartOwner
    merge: Optional[MergeOutcome] = None

    @property
    def warning(self) -> Optional[str]:
        return self.merge.warning if self.merge else None


OwnershipListener = Callable[[OwnershipChanged], Any]


class OwnershipSwitch:
    """
    Reacts to authentication transitions.

    ``Anonymous(token) --login--> Authenticated(user)`` switches the cache
    to the account, merges the guest cart and refreshes, strictly in that
    order. ``Authenticated(user) --logout--> Anonymous(token)`` resets the
    cache to an empty guest cart without reading the old guest cart. The
    cycle can repeat any number of times.
    """

    def __init__(
        self,
        session: SessionIdentity,
        cache: CartCache,
        coordinator: MergeCoordinator,
        retire_guest_token: bool = True,
    ):
        self.session = session
        self.cache = cache
        self.coordinator = coordinator
        self.retire_guest_token = retire_guest_token
        self._listeners: list[OwnershipListener] = []

    @property
    def owner(self) -> CartOwner:
        return self.cache.owner

    @property
    def state(self) -> AuthState:
        if self.cache.owner.is_account:
            return AuthState.AUTHENTICATED
        return AuthState.ANONYMOUS

    def subscribe(self, listener: OwnershipListener) -> Callable[[], None]:
        """Call ``listener`` after every ownership change; returns an unsubscribe function"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def start(self) -> Cart:
        """Load the guest cart at startup"""
        guest = CartOwner.guest(self.session.get_or_create())
        self.cache.switch_owner(guest)
        try:
            await self.cache.refresh()
        except CartStoreError as e:
            logger.warning(f"Could not load guest cart at startup: {e}")
        return self.cache.current()

    async def login(self, user_id: str, access_token: str) -> LoginResult:
        """
        Handle a successful login from the authentication service.

        Returns once the merge and the refresh after it have both resolved.
        """
        previous = self.cache.owner
        guest = CartOwner.guest(self.session.get_or_create())
        account = CartOwner.account(user_id, access_token)

        if previous == account and not self.coordinator.in_flight(guest, account):
            return await self._relogin(account)

        self.cache.switch_owner(account)
        outcome = await self.coordinator.run(guest, account)

        if outcome.merged and self.retire_guest_token:
            self._retire(guest)

        self._emit(OwnershipChanged(previous, self.cache.owner, self.cache.current(), outcome))
        return LoginResult(success=True, owner=account, merge=outcome)

    async def logout(self) -> Cart:
        """Handle a logout: back to an empty guest cart"""
        previous = self.cache.owner
        guest = CartOwner.guest(self.session.get_or_create())

        self.cache.reset(guest)

        self._emit(OwnershipChanged(previous, guest, self.cache.current()))
        return self.cache.current()

    async def _relogin(self, account: CartOwner) -> LoginResult:
        # Already signed in as this account; take the new credential only
        logger.info(f"Already logged in as {account.key} - skipping merge")
        self.cache.switch_owner(account)
        try:
            await self.cache.refresh()
        except CartStoreError as e:
            logger.warning(f"Could not refresh cart after login: {e}")
        return LoginResult(success=True, owner=account)

    def _retire(self, guest: CartOwner) -> None:
        # A duplicate login may have rotated the token already
        if self.session.get_or_create() != guest.ident:
            return
        fresh = CartOwner.guest(self.session.rotate())
        logger.info("Guest session retired after merge")

        # Logged out while the merge was running
        if self.cache.owner == guest:
            self.cache.reset(fresh)

    def _emit(self, event: OwnershipChanged) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Ownership listener failed")
