"""In-memory catalog used to resolve product references"""

from typing import Optional
from ..models.product import Product, ProductCategory

# Seed catalog
PRODUCTS: dict[str, Product] = {
    "prod-001": Product(
        id="prod-001",
        name="Nebula Drifter Hoodie",
        price=64.00,
        category=ProductCategory.APPAREL,
        stock_quantity=40,
    ),
    "prod-002": Product(
        id="prod-002",
        name="Zorblax Vinyl Figure",
        price=29.50,
        category=ProductCategory.COLLECTIBLES,
        stock_quantity=120,
    ),
    "prod-003": Product(
        id="prod-003",
        name="Tractor Beam Desk Lamp",
        price=89.99,
        category=ProductCategory.GADGETS,
        stock_quantity=15,
    ),
    "prod-004": Product(
        id="prod-004",
        name="Crop Circle Art Print",
        price=18.00,
        category=ProductCategory.PRINTS,
        stock_quantity=200,
    ),
    "prod-005": Product(
        id="prod-005",
        name="Mothership Snow Globe",
        price=42.25,
        category=ProductCategory.COLLECTIBLES,
        in_stock=False,
        stock_quantity=0,
    ),
}


class ProductDatabase:
    """In-memory catalog for the cart service"""

    def __init__(self):
        self.products = PRODUCTS.copy()

    def get_product(self, product_id: str) -> Optional[Product]:
        """Get a product by ID"""
        return self.products.get(product_id)


# Singleton instance
product_db = ProductDatabase()
