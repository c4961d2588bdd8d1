"""
Product catalog: the source of truth the edge cache shields.
"""

from .models import Product, ProductPage, ProductUpdate
from .repository import ProductRepository

__all__ = ["Product", "ProductPage", "ProductUpdate", "ProductRepository"]
