"""Catalog lookup routes for the cart service"""

from fastapi import APIRouter

from ..models.product import Product
from ..database.products import product_db
from ..security.owner import api_error

router = APIRouter(prefix="/api/products", tags=["Products"])


@router.get("/{product_id}", response_model=Product)
async def get_product(product_id: str):
    """Resolve a product reference to its display attributes"""
    product = product_db.get_product(product_id)
    if not product:
        raise api_error(404, "PRODUCT_NOT_FOUND", "Product not found")
    return product
