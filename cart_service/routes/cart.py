"""Cart API routes for the cart service"""

import logging
from fastapi import APIRouter, Depends

from cartlines import CartLine, CartOwner, CartTotals
from ..models.cart import (
    CartPayload,
    AddLineRequest,
    SetLineQuantityRequest,
    MergeRequest,
    CartResponse,
)
from ..database.carts import cart_db
from ..database.products import product_db
from ..security.owner import api_error, require_account, resolve_owner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["Cart"])


def render_cart(owner: CartOwner, lines: dict[str, int]) -> CartPayload:
    """Decorate stored lines with catalog attributes and derive totals"""
    cart_lines = []
    for product_ref, quantity in lines.items():
        product = product_db.get_product(product_ref)
        cart_lines.append(
            CartLine(
                product_ref=product_ref,
                quantity=quantity,
                name=product.name if product else None,
                unit_price=product.price if product else None,
            )
        )

    totals = CartTotals.from_lines(cart_lines)
    return CartPayload(
        owner=owner.kind,
        lines=cart_lines,
        item_count=totals.item_count,
        subtotal=totals.subtotal,
        updated_at=cart_db.last_updated(owner.key),
    )


@router.get("", response_model=CartResponse)
async def get_cart(owner: CartOwner = Depends(resolve_owner)):
    """Get the caller's cart; an unknown owner gets an empty cart"""
    return CartResponse(cart=render_cart(owner, cart_db.get_lines(owner.key)))


@router.post("/items", response_model=CartResponse)
async def add_line(
    request: AddLineRequest,
    owner: CartOwner = Depends(resolve_owner),
):
    """Add a product, growing its line if already present"""
    product = product_db.get_product(request.product_ref)
    if not product:
        raise api_error(404, "PRODUCT_NOT_FOUND", "Product not found")

    if not product.in_stock:
        raise api_error(400, "OUT_OF_STOCK", "Product is out of stock")

    lines = cart_db.add_line(owner.key, request.product_ref, request.quantity)
    return CartResponse(
        cart=render_cart(owner, lines),
        message=f"Added {request.quantity}x {product.name} to cart",
    )


@router.put("/items/{product_ref}", response_model=CartResponse)
async def set_line_quantity(
    product_ref: str,
    request: SetLineQuantityRequest,
    owner: CartOwner = Depends(resolve_owner),
):
    """Set a line's quantity; zero or less removes the line"""
    current = cart_db.get_lines(owner.key)
    if request.quantity > 0 and product_ref not in current:
        raise api_error(404, "LINE_NOT_FOUND", "Item not in cart")

    lines = cart_db.set_line_quantity(owner.key, product_ref, request.quantity)
    return CartResponse(cart=render_cart(owner, lines), message="Cart updated")


@router.delete("/items/{product_ref}", response_model=CartResponse)
async def remove_line(
    product_ref: str,
    owner: CartOwner = Depends(resolve_owner),
):
    """Remove a line from the cart"""
    lines = cart_db.remove_line(owner.key, product_ref)
    return CartResponse(cart=render_cart(owner, lines), message="Item removed")


@router.delete("", response_model=CartResponse)
async def clear_cart(owner: CartOwner = Depends(resolve_owner)):
    """Clear all lines from the cart"""
    lines = cart_db.clear_cart(owner.key)
    return CartResponse(cart=render_cart(owner, lines), message="Cart cleared")


@router.post("/merge", response_model=CartResponse)
async def merge_cart(
    request: MergeRequest,
    owner: CartOwner = Depends(require_account),
):
    """
    Merge a guest cart into the caller's account cart.

    Called after login. Quantities are summed and clamped per line; the
    guest cart is left untouched so a retried call is harmless.
    """
    guest = CartOwner.guest(request.guest_session_id)
    lines = cart_db.merge_guest_cart(owner.key, guest.key)
    logger.info(f"Merged guest cart into {owner.key}: {len(lines)} lines")
    return CartResponse(cart=render_cart(owner, lines), message="Cart merged")
