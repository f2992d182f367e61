# Cart line model and consolidation rules
# Shared by the cart service backend and the storefront client

from .models import CartLine, CartOwner, CartTotals, OwnerKind
from .consolidate import (
    MAX_LINE_QUANTITY,
    add_quantity,
    clamp_quantity,
    merge_lines,
    merge_with_receipt,
    set_quantity,
)

__all__ = [
    "CartLine",
    "CartOwner",
    "CartTotals",
    "OwnerKind",
    "MAX_LINE_QUANTITY",
    "add_quantity",
    "clamp_quantity",
    "merge_lines",
    "merge_with_receipt",
    "set_quantity",
]
