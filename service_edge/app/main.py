"""
Edge service: rate-limited, read-through cached product API.
"""

from typing import Dict, Optional

from fastapi import FastAPI, Query, Request, Response

from shared.base_service import BaseService
from shared.config import ServiceConfig
from .caching import CacheAsideGateway, ModelCodec, cache_key
from .catalog import Product, ProductPage, ProductRepository, ProductUpdate
from .ratelimit import FailurePolicy, RateLimitMiddleware, WindowRateLimiter
from .store import KeyValueStore, build_store


PRODUCT_NAMESPACE = "product"
PRODUCT_LIST_NAMESPACE = "products:list"


class EdgeService(BaseService):
    """Edge service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        store: Optional[KeyValueStore] = None,
        repository: Optional[ProductRepository] = None,
    ):
        super().__init__("edge", 8000, config)
        self.store = store or build_store(self.config.store_url, self.config.store_socket_timeout)
        self.repository = repository or ProductRepository(latency_ms=self.config.catalog_latency_ms)

        self.cache_gateway = CacheAsideGateway(self.store, metrics=self.metrics)
        self.product_codec = ModelCodec(Product)
        self.page_codec = ModelCodec(ProductPage)

        self.rate_limiter = WindowRateLimiter(
            self.store,
            FailurePolicy(self.config.rate_limit_failure_policy),
            metrics=self.metrics,
        )
        self.rate_limit_middleware = RateLimitMiddleware(
            self.rate_limiter,
            window_seconds=self.config.rate_limit_window_seconds,
            max_requests=self.config.rate_limit_max_requests,
            trust_proxy_headers=self.config.rate_limit_trust_proxy_headers,
        )

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.store.close()

        self._setup_product_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.edge_service = self

    async def _check_dependencies(self) -> Dict[str, str]:
        """Report key-value store reachability."""
        return {"store": "ok" if await self.store.ping() else "unavailable"}

    def _setup_product_routes(self):
        """Set up catalog routes."""

        @self.app.get("/")
        async def root():
            return {"service": self.service_name, "message": "Edge cache service"}

        @self.app.get("/api/v1/products/{product_id}")
        async def get_product(product_id: str, request: Request, response: Response):
            """Read one product through the cache."""
            decision = await self.rate_limit_middleware.check_request(request)
            self.rate_limit_middleware.set_headers(response, decision)

            result = await self.cache_gateway.lookup(
                cache_key(PRODUCT_NAMESPACE, product_id),
                self.config.product_ttl_seconds,
                lambda: self.repository.find_by_id(product_id),
                codec=self.product_codec,
            )
            return {"source": result.source, "data": result.value.model_dump()}

        @self.app.get("/api/v1/products")
        async def list_products(
            request: Request,
            response: Response,
            page: int = Query(default=1, ge=1),
            page_size: int = Query(default=20, ge=1, le=100),
        ):
            """Read one listing page through the cache."""
            decision = await self.rate_limit_middleware.check_request(request)
            self.rate_limit_middleware.set_headers(response, decision)

            result = await self.cache_gateway.lookup(
                cache_key(PRODUCT_LIST_NAMESPACE, page, page_size),
                self.config.product_list_ttl_seconds,
                lambda: self.repository.list_page(page, page_size),
                codec=self.page_codec,
            )
            return {"source": result.source, "data": result.value.model_dump()}

        @self.app.put("/api/v1/products/{product_id}")
        async def put_product(product_id: str, update: ProductUpdate, request: Request, response: Response):
            """Write a product, then drop the entries it makes stale."""
            decision = await self.rate_limit_middleware.check_request(request, scope="write")
            self.rate_limit_middleware.set_headers(response, decision)

            key = cache_key(PRODUCT_NAMESPACE, product_id)
            product = await self.repository.upsert(product_id, update)
            invalidated = await self._invalidate_product(key)
            return {"data": product.model_dump(), "cache_invalidated": invalidated}

        @self.app.delete("/api/v1/products/{product_id}")
        async def delete_product(product_id: str, request: Request, response: Response):
            """Delete a product, then drop the entries it makes stale."""
            decision = await self.rate_limit_middleware.check_request(request, scope="write")
            self.rate_limit_middleware.set_headers(response, decision)

            key = cache_key(PRODUCT_NAMESPACE, product_id)
            await self.repository.delete(product_id)
            invalidated = await self._invalidate_product(key)
            return {"deleted": product_id, "cache_invalidated": invalidated}

    async def _invalidate_product(self, key: str) -> bool:
        """Runs after the catalog write has committed."""
        invalidated = await self.cache_gateway.invalidate(key)
        await self.cache_gateway.invalidate_prefix(PRODUCT_LIST_NAMESPACE)
        return invalidated


def create_app(
    config: Optional[ServiceConfig] = None,
    store: Optional[KeyValueStore] = None,
    repository: Optional[ProductRepository] = None,
) -> FastAPI:
    """Create FastAPI application."""
    return EdgeService(config=config, store=store, repository=repository).app


if __name__ == "__main__":
    EdgeService().run()
