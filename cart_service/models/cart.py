"""Cart request and response models"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from cartlines import CartLine, OwnerKind


class CartPayload(BaseModel):
    """A cart as returned over the API.

    Totals are computed from ``lines`` when the payload is built.
    ``updated_at`` is the last committed write, absent for a cart that
    has never been written.
    """
    owner: OwnerKind
    lines: list[CartLine] = []
    item_count: int = 0
    subtotal: float = 0.0
    updated_at: Optional[datetime] = None


class AddLineRequest(BaseModel):
    """Request to add a product to the cart"""
    product_ref: str = Field(min_length=1)
    quantity: int = Field(default=1, gt=0)


class SetLineQuantityRequest(BaseModel):
    """Request to set a line's quantity; zero or less removes it"""
    quantity: int


class MergeRequest(BaseModel):
    """Request to merge a guest cart into the caller's account cart"""
    guest_session_id: str = Field(min_length=1)


class CartResponse(BaseModel):
    """Cart API response"""
    cart: CartPayload
    message: Optional[str] = None
