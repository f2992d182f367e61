"""Storefront cart errors"""

from typing import Optional


class CartError(Exception):
    """Base exception for storefront cart errors"""
    pass


class IdentityUnavailable(CartError):
    """The durable store holding the session token cannot be used"""
    pass


class CartStoreError(CartError):
    """A call to the cart service failed"""
    pass


class RemoteUnreachable(CartStoreError):
    """The cart service could not be reached or did not answer in time"""
    pass


class RemoteRejected(CartStoreError):
    """The cart service refused the call"""

    def __init__(self, message: str, status_code: int, code: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class MergeFailed(CartError):
    """The login-time merge of a guest cart did not complete"""
    pass
