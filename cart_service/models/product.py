"""Catalog models for the cart service"""

from pydantic import BaseModel, Field
from enum import Enum


class ProductCategory(str, Enum):
    APPAREL = "apparel"
    COLLECTIBLES = "collectibles"
    GADGETS = "gadgets"
    PRINTS = "prints"


class Product(BaseModel):
    """Catalog entry the cart refers to by id"""
    id: str
    name: str
    price: float = Field(gt=0)
    currency: str = "USD"
    category: ProductCategory
    in_stock: bool = True
    stock_quantity: int = Field(ge=0, default=100)

    class Config:
        from_attributes = True
