"""
Product catalog models.
"""

from typing import List

from pydantic import BaseModel, Field


class Product(BaseModel):
    """A product as stored in the catalog."""

    id: str
    name: str
    price: float = Field(ge=0)
    stock: int = Field(default=0, ge=0)


class ProductUpdate(BaseModel):
    """Body of a product write."""

    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    stock: int = Field(default=0, ge=0)


class ProductPage(BaseModel):
    """One page of the product listing."""

    page: int
    page_size: int
    total: int
    items: List[Product]
