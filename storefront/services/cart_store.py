"""
Cart Store Client

HTTP client for the cart service. Every call names the owner it is made
for; the owner decides whether the request carries the guest session
header or the account bearer token, never both.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from cartlines import CartLine, CartOwner, CartTotals
from ..core.errors import RemoteRejected, RemoteUnreachable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cart:
    """A cart as last confirmed by the cart service.

    Totals are derived from ``lines`` each time they are read.
    """
    owner: CartOwner
    lines: tuple[CartLine, ...] = ()

    @classmethod
    def empty(cls, owner: CartOwner) -> "Cart":
        return cls(owner=owner)

    @property
    def totals(self) -> CartTotals:
        return CartTotals.from_lines(list(self.lines))

    @property
    def item_count(self) -> int:
        return self.totals.item_count

    @property
    def subtotal(self) -> float:
        return self.totals.subtotal

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def quantity_of(self, product_ref: str) -> int:
        for line in self.lines:
            if line.product_ref == product_ref:
                return line.quantity
        return 0

    def as_quantities(self) -> dict[str, int]:
        """Lines as a product reference to quantity mapping"""
        return {line.product_ref: line.quantity for line in self.lines}


class CartStoreClient:
    """
    Client for the cart service API.

    Transport failures and timeouts raise ``RemoteUnreachable``; any error
    status raises ``RemoteRejected``. Nothing is swallowed here.
    """

    def __init__(
        self,
        cart_service_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize cart store client.

        Args:
            cart_service_url: Base URL of the cart service
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (in-process ASGI in tests)
        """
        self.base_url = cart_service_url.rstrip("/")
        self._http_client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    def _owner_headers(self, owner: CartOwner) -> dict[str, str]:
        if owner.is_guest:
            return {"X-Session-ID": owner.ident}
        if not owner.credential:
            raise ValueError(f"Account owner {owner.ident} has no access token")
        return {"Authorization": f"Bearer {owner.credential}"}

    async def _request(
        self,
        method: str,
        path: str,
        owner: Optional[CartOwner] = None,
        body: Optional[dict] = None,
    ) -> dict[str, Any]:
        """Make an HTTP request addressed to ``owner``"""
        url = f"{self.base_url}{path}"
        headers = {"Accept": "application/json"}
        if owner is not None:
            headers.update(self._owner_headers(owner))

        try:
            response = await self._http_client.request(
                method=method,
                url=url,
                headers=headers,
                json=body,
            )
        except httpx.TimeoutException as e:
            logger.error(f"Request timed out: {method} {path}")
            raise RemoteUnreachable(f"{method} {path} timed out: {e}")
        except httpx.TransportError as e:
            logger.error(f"Request failed: {method} {path} - {e}")
            raise RemoteUnreachable(f"{method} {path} failed: {e}")

        if response.status_code >= 400:
            logger.error(f"Request failed: {response.status_code} - {response.text}")
            code, message = self._error_details(response)
            raise RemoteRejected(message, status_code=response.status_code, code=code)

        try:
            return response.json()
        except ValueError:
            raise RemoteRejected(
                f"Malformed response from {method} {path}",
                status_code=response.status_code,
            )

    @staticmethod
    def _error_details(response: httpx.Response) -> tuple[Optional[str], str]:
        try:
            payload = response.json()
        except ValueError:
            return None, response.text or f"HTTP {response.status_code}"

        detail = payload.get("detail") if isinstance(payload, dict) else None

        if isinstance(detail, dict):
            return detail.get("code"), detail.get("message", "Request rejected")
        if isinstance(detail, list):
            return "VALIDATION_ERROR", "Validation failed"
        return None, str(detail or f"HTTP {response.status_code}")

    def _to_cart(self, owner: CartOwner, data: dict[str, Any]) -> Cart:
        try:
            lines = data["cart"].get("lines", [])
            return Cart(
                owner=owner,
                lines=tuple(CartLine.model_validate(line) for line in lines),
            )
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            logger.error(f"Malformed cart in response: {e}")
            raise RemoteRejected(f"Malformed response: no valid cart ({e})", status_code=200)

    # ==================== Cart APIs ====================

    async def read(self, owner: CartOwner) -> Cart:
        """Get the owner's cart (empty if none exists yet)"""
        return self._to_cart(owner, await self._request("GET", "/api/cart", owner))

    async def add_line(self, owner: CartOwner, product_ref: str, quantity: int = 1) -> Cart:
        """Add a product to the owner's cart"""
        data = await self._request(
            "POST",
            "/api/cart/items",
            owner,
            body={"product_ref": product_ref, "quantity": quantity},
        )
        return self._to_cart(owner, data)

    async def set_line_quantity(self, owner: CartOwner, product_ref: str, quantity: int) -> Cart:
        """Set a line's quantity; zero or less removes it"""
        data = await self._request(
            "PUT",
            f"/api/cart/items/{quote(product_ref, safe='')}",
            owner,
            body={"quantity": quantity},
        )
        return self._to_cart(owner, data)

    async def remove_line(self, owner: CartOwner, product_ref: str) -> Cart:
        """Remove a line from the owner's cart"""
        data = await self._request(
            "DELETE",
            f"/api/cart/items/{quote(product_ref, safe='')}",
            owner,
        )
        return self._to_cart(owner, data)

    async def clear(self, owner: CartOwner) -> Cart:
        """Remove every line from the owner's cart"""
        return self._to_cart(owner, await self._request("DELETE", "/api/cart", owner))

    async def merge(self, source: CartOwner, target: CartOwner) -> Cart:
        """
        Merge a guest cart into an account cart.

        The call is made as ``target``; the guest cart is named in the body
        and left in place by the service.
        """
        if not source.is_guest or not target.is_account:
            raise ValueError("Merge goes from a guest cart into an account cart")

        data = await self._request(
            "POST",
            "/api/cart/merge",
            target,
            body={"guest_session_id": source.ident},
        )
        return self._to_cart(target, data)

    # ==================== Catalog APIs ====================

    async def get_product(self, product_ref: str) -> dict:
        """Get display attributes for a product reference"""
        return await self._request("GET", f"/api/products/{quote(product_ref, safe='')}")
