"""
Product use cases with cache-aside reads and invalidate-on-write.

The service is the only component that talks to both the store and the
cache. Store failures propagate to the caller. Cache failures never do: a
failed read falls back to the store and a failed invalidation after a
committed write is logged, leaving at most a TTL-bounded stale entry.
"""

import uuid
from contextlib import nullcontext
from typing import Any, Awaitable, Callable, List, Optional

from shared.logging import get_logger, set_product_id
from shared.metrics import MetricsCollector
from shared.tracing import trace_operation
from ..cache.base import ProductCache
from ..persistence.base import ProductRepository
from .models import (
    Product,
    ProductCreateRequest,
    ProductDto,
    ProductUpdateRequest,
)


class ProductService:
    """Catalog orchestration over a product store and a product cache."""

    def __init__(self, repository: ProductRepository, cache: ProductCache, metrics: Optional[MetricsCollector] = None):
        self.repository = repository
        self.cache = cache
        self.metrics = metrics
        self.logger = get_logger("catalog.products.service")

    async def get_by_id(self, product_id: uuid.UUID) -> Optional[ProductDto]:
        set_product_id(str(product_id))
        self.logger.info("Getting product")

        cached = await self._cache_read("get", self.cache.get, product_id)
        if cached is not None:
            self._record_cache("cache_hits_total", "product")
            return cached
        self._record_cache("cache_misses_total", "product")

        product = await self._store("get_by_id", self.repository.get_by_id, product_id)
        if product is None:
            return None

        dto = ProductDto.from_product(product)
        await self._cache_write("set", self.cache.set, product_id, dto)
        return dto

    async def get_all(self) -> List[ProductDto]:
        set_product_id(None)
        self.logger.info("Getting all products")

        cached = await self._cache_read("get_all", self.cache.get_all)
        if cached is not None:
            self._record_cache("cache_hits_total", "all_products")
            return cached
        self._record_cache("cache_misses_total", "all_products")

        products = await self._store("get_all", self.repository.get_all)
        dtos = [ProductDto.from_product(product) for product in products]
        await self._cache_write("set_all", self.cache.set_all, dtos)
        return dtos

    async def create(self, request: ProductCreateRequest) -> ProductDto:
        set_product_id(None)
        self.logger.info("Creating product", name=request.name)

        product = Product.create(request.name, request.description, request.price, request.stock)
        created = await self._store("create", self.repository.create, product)
        set_product_id(str(created.id))

        dto = ProductDto.from_product(created)
        # Pre-warm; also drops the aggregate
        await self._cache_write("set", self.cache.set, created.id, dto)
        return dto

    async def update(self, product_id: uuid.UUID, request: ProductUpdateRequest) -> bool:
        set_product_id(str(product_id))
        self.logger.info("Updating product")

        product = await self._store("get_by_id", self.repository.get_by_id, product_id)
        if product is None:
            return False

        self._apply_changes(product, request)

        updated = await self._store("update", self.repository.update, product)
        if updated:
            await self._cache_write("remove", self.cache.remove, product_id)
        return updated

    async def delete(self, product_id: uuid.UUID) -> bool:
        set_product_id(str(product_id))
        self.logger.info("Deleting product")

        deleted = await self._store("delete", self.repository.delete, product_id)
        if deleted:
            await self._cache_write("remove", self.cache.remove, product_id)
        return deleted

    @staticmethod
    def _apply_changes(product: Product, request: ProductUpdateRequest) -> None:
        changes = request.changes()
        if "name" in changes:
            product.update_name(changes["name"])
        if "description" in changes:
            product.update_description(changes["description"])
        if "price" in changes:
            product.update_price(changes["price"])
        if "stock" in changes:
            product.update_stock(changes["stock"])

    async def _store(self, operation: str, func: Callable[..., Awaitable[Any]], *args) -> Any:
        timer = (
            self.metrics.time_operation("store_operation_duration_seconds", operation=operation)
            if self.metrics else nullcontext()
        )
        if self.metrics:
            self.metrics.increment_counter("store_operations_total", operation=operation)

        with trace_operation(f"catalog.store.{operation}"), timer:
            return await func(*args)

    async def _cache_read(self, operation: str, func: Callable[..., Awaitable[Any]], *args) -> Any:
        try:
            return await func(*args)
        except Exception as e:
            self.logger.warning("Cache read failed, falling back to store", operation=operation, error=str(e))
            self._record_cache_error(operation)
            return None

    async def _cache_write(self, operation: str, func: Callable[..., Awaitable[Any]], *args) -> None:
        try:
            await func(*args)
        except Exception as e:
            self.logger.error(
                "Cache update failed, entry may be stale until it expires",
                operation=operation,
                error=str(e)
            )
            self._record_cache_error(operation)

    def _record_cache(self, metric_name: str, cache_type: str) -> None:
        if self.metrics:
            self.metrics.increment_counter(metric_name, cache_type=cache_type)

    def _record_cache_error(self, operation: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("cache_errors_total", operation=operation)
