"""
In-memory product catalog standing in for the slow database.
"""

import asyncio
from typing import Dict, Iterable, Optional

from shared.logging import get_logger
from shared.errors import NotFoundError
from .models import Product, ProductPage, ProductUpdate


SEED_PRODUCTS = [
    Product(id="1", name="Mechanical Keyboard", price=89.0, stock=40),
    Product(id="2", name="USB-C Hub", price=34.5, stock=120),
    Product(id="42", name="Noise Cancelling Headphones", price=249.0, stock=12),
]


class ProductRepository:
    """Product store with an artificial per-query latency."""

    def __init__(self, products: Optional[Iterable[Product]] = None, latency_ms: int = 0):
        self.latency_ms = latency_ms
        self.logger = get_logger("edge.catalog")
        self._products: Dict[str, Product] = {
            product.id: product for product in (SEED_PRODUCTS if products is None else products)
        }
        self.query_count = 0

    async def _simulate_latency(self):
        self.query_count += 1
        if self.latency_ms:
            await asyncio.sleep(self.latency_ms / 1000)

    async def find_by_id(self, product_id: str) -> Product:
        await self._simulate_latency()
        product = self._products.get(product_id)
        if product is None:
            raise NotFoundError("Product not found", {"product_id": product_id})
        self.logger.debug("Loaded product from catalog", product_id=product_id)
        return product

    async def list_page(self, page: int, page_size: int) -> ProductPage:
        await self._simulate_latency()
        ordered = sorted(self._products.values(), key=lambda product: product.id)
        start = (page - 1) * page_size
        return ProductPage(
            page=page,
            page_size=page_size,
            total=len(ordered),
            items=ordered[start:start + page_size],
        )

    async def upsert(self, product_id: str, update: ProductUpdate) -> Product:
        await self._simulate_latency()
        product = Product(id=product_id, **update.model_dump())
        self._products[product_id] = product
        self.logger.info("Product saved", product_id=product_id)
        return product

    async def delete(self, product_id: str) -> None:
        await self._simulate_latency()
        if self._products.pop(product_id, None) is None:
            raise NotFoundError("Product not found", {"product_id": product_id})
        self.logger.info("Product deleted", product_id=product_id)
