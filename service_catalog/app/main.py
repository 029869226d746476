"""
Catalog service: versioned product CRUD API over a cached store.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Query, Request, Response

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import NotFoundError

from .cache.base import ProductCache
from .cache.memory_cache import InMemoryProductCache
from .cache.redis_cache import RedisProductCache
from .persistence.base import ProductRepository
from .persistence.memory import InMemoryProductRepository
from .persistence.postgres import PostgreSQLProductRepository
from .products.models import (
    PagedResult,
    Product,
    ProductCreateRequest,
    ProductDto,
    ProductUpdateRequest,
)
from .products.service import ProductService


SERVICE_NAME = "catalog"
SERVICE_PORT = 8020

SEED_PRODUCTS = [
    ("Laptop", "High-performance laptop", 1299.99, 10),
    ("Mouse", "Wireless mouse", 29.99, 50),
    ("Keyboard", "Mechanical keyboard", 89.99, 30),
]


def _not_found(product_id: uuid.UUID) -> NotFoundError:
    return NotFoundError(f"Product with ID {product_id} not found", {"product_id": str(product_id)})


class CatalogService(BaseService):
    """Catalog service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        repository: Optional[ProductRepository] = None,
        cache: Optional[ProductCache] = None,
    ):
        super().__init__(SERVICE_NAME, SERVICE_PORT, config)

        # Components live as long as the service instance
        self.repository = repository or self._build_repository()
        self.cache = cache or self._build_cache()
        self.products = ProductService(self.repository, self.cache, self.metrics)

        self._setup_catalog_routes()

    def _build_repository(self) -> ProductRepository:
        if self.config.store_backend == "memory":
            return InMemoryProductRepository()
        return PostgreSQLProductRepository(self.config.postgres_dsn)

    def _build_cache(self) -> ProductCache:
        if self.config.cache_backend == "redis":
            return RedisProductCache(self.config.redis_url)
        return InMemoryProductCache()

    def _setup_catalog_routes(self):
        """Set up catalog-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": SERVICE_NAME,
                "message": "Catalog Service",
                "version": "1.0.0",
                "api_versions": ["v1", "v2"],
                "cache_backend": self.cache.cache_type,
            }

        v1 = self._build_v1_router()
        self.app.include_router(v1, prefix="/api/v1/products", tags=["products v1"])
        # Unversioned routes behave as v1
        self.app.include_router(v1, prefix="/api/products", tags=["products"])
        self.app.include_router(self._build_v2_router(), prefix="/api/v2/products", tags=["products v2"])

    def _build_v1_router(self) -> APIRouter:
        router = APIRouter()
        products = self.products

        @router.get("", response_model=List[ProductDto])
        async def list_products():
            """Get all products."""
            return await products.get_all()

        @router.get("/{product_id}", response_model=ProductDto)
        async def get_product(product_id: uuid.UUID):
            """Get a product by ID."""
            product = await products.get_by_id(product_id)
            if product is None:
                raise _not_found(product_id)
            return product

        @router.post("", response_model=ProductDto, status_code=201)
        async def create_product(payload: ProductCreateRequest, request: Request, response: Response):
            """Create a new product."""
            product = await products.create(payload)
            response.headers["Location"] = f"{request.url.path.rstrip('/')}/{product.id}"
            return product

        @router.put("/{product_id}", status_code=204)
        async def update_product(product_id: uuid.UUID, payload: ProductUpdateRequest):
            """Update an existing product."""
            if not await products.update(product_id, payload):
                raise _not_found(product_id)
            return Response(status_code=204)

        @router.delete("/{product_id}", status_code=204)
        async def delete_product(product_id: uuid.UUID):
            """Delete a product."""
            if not await products.delete(product_id):
                raise _not_found(product_id)
            return Response(status_code=204)

        return router

    def _build_v2_router(self) -> APIRouter:
        router = APIRouter()
        products = self.products

        @router.get("", response_model=PagedResult)
        async def list_products(
            page: int = Query(1, ge=1, description="Page number"),
            page_size: int = Query(10, ge=1, le=100, description="Items per page")
        ):
            """Get products one page at a time."""
            return PagedResult.from_items(await products.get_all(), page, page_size)

        @router.get("/{product_id}", response_model=ProductDto)
        async def get_product(product_id: uuid.UUID):
            """Get a product by ID."""
            product = await products.get_by_id(product_id)
            if product is None:
                raise _not_found(product_id)
            return product

        return router

    async def _check_dependencies(self):
        """Check catalog service dependencies."""
        return {
            "cache": "ok" if await self.cache.health_check() else "error",
            "store": "ok" if await self.repository.health_check() else "error",
        }

    async def start(self):
        """Start catalog service components."""
        await self.repository.start()
        await self.cache.start()

        if self.config.seed_data:
            await self._seed()

        self.logger.info(
            "Catalog service started",
            store=type(self.repository).__name__,
            cache=self.cache.cache_type
        )

    async def stop(self):
        """Stop catalog service components."""
        await self.cache.stop()
        await self.repository.stop()

        self.logger.info("Catalog service stopped")

    async def _seed(self):
        if await self.repository.count() > 0:
            return

        for name, description, price, stock in SEED_PRODUCTS:
            await self.repository.create(Product.create(name, description, price, stock))

        self.logger.info("Seeded catalog", count=len(SEED_PRODUCTS))


def create_app(config: Optional[ServiceConfig] = None):
    """Create catalog service application."""
    service = CatalogService(config)
    return service.app


if __name__ == "__main__":
    CatalogService().run()
