# Cart Service Models

from .product import Product, ProductCategory
from .cart import (
    CartPayload,
    AddLineRequest,
    SetLineQuantityRequest,
    MergeRequest,
    CartResponse,
)

__all__ = [
    "Product",
    "ProductCategory",
    "CartPayload",
    "AddLineRequest",
    "SetLineQuantityRequest",
    "MergeRequest",
    "CartResponse",
]
