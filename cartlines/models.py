"""Cart Data Models"""

from dataclasses import dataclass, field
from typing import Optional
from enum import Enum

from pydantic import BaseModel, Field

from .consolidate import MAX_LINE_QUANTITY


class OwnerKind(str, Enum):
    """Who a cart is addressed by"""
    GUEST = "guest"
    ACCOUNT = "account"


@dataclass(frozen=True)
class CartOwner:
    """
    Addressing identity for every cart call.

    A guest owner is keyed by its session token, an account owner by its
    user id. The account credential rides along but is not part of the
    identity, so a refreshed token still addresses the same cart.
    """
    kind: OwnerKind
    ident: str
    credential: Optional[str] = field(default=None, compare=False, repr=False)

    @classmethod
    def guest(cls, session_token: str) -> "CartOwner":
        return cls(kind=OwnerKind.GUEST, ident=session_token)

    @classmethod
    def account(cls, user_id: str, access_token: Optional[str] = None) -> "CartOwner":
        return cls(kind=OwnerKind.ACCOUNT, ident=user_id, credential=access_token)

    @property
    def key(self) -> str:
        return f"{self.kind.value}:{self.ident}"

    @property
    def is_guest(self) -> bool:
        return self.kind == OwnerKind.GUEST

    @property
    def is_account(self) -> bool:
        return self.kind == OwnerKind.ACCOUNT


class CartLine(BaseModel):
    """One product reference and its quantity.

    ``name`` and ``unit_price`` are catalog display attributes filled in
    when a cart is read; they are never part of the stored record.
    """
    product_ref: str
    quantity: int = Field(gt=0, le=MAX_LINE_QUANTITY)
    name: Optional[str] = None
    unit_price: Optional[float] = None

    @property
    def line_total(self) -> float:
        if self.unit_price is None:
            return 0.0
        return round(self.unit_price * self.quantity, 2)


class CartTotals(BaseModel):
    """Totals derived from a list of lines"""
    item_count: int = 0
    subtotal: float = 0.0

    @classmethod
    def from_lines(cls, lines: list[CartLine]) -> "CartTotals":
        return cls(
            item_count=sum(line.quantity for line in lines),
            subtotal=round(sum(line.line_total for line in lines), 2),
        )
