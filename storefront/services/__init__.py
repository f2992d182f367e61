# Cart services

from .cart_store import Cart, CartStoreClient
from .cart_cache import CartCache
from .merge import MergeCoordinator, MergeOutcome
from .ownership import AuthState, LoginResult, OwnershipChanged, OwnershipSwitch

__all__ = [
    "Cart",
    "CartStoreClient",
    "CartCache",
    "MergeCoordinator",
    "MergeOutcome",
    "AuthState",
    "LoginResult",
    "OwnershipChanged",
    "OwnershipSwitch",
]
