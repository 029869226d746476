"""
In-process product cache.
"""

import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from shared.logging import get_logger
from ..products.models import ProductDto
from .base import (
    ABSOLUTE_EXPIRATION,
    ALL_PRODUCTS_KEY,
    SLIDING_EXPIRATION,
    ProductCache,
    product_key,
)


@dataclass
class _CacheEntry:
    value: Any
    absolute_expires_at: float
    sliding_expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= min(self.absolute_expires_at, self.sliding_expires_at)


class InMemoryProductCache(ProductCache):
    """Single-node cache held in a dictionary.

    Expired entries are evicted when they are looked up and swept on every
    write, so keys that are never read again do not accumulate. The clock is
    injectable so expiry can be exercised without sleeping.
    """

    cache_type = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.logger = get_logger("catalog.cache.memory")
        self._clock = clock
        self._entries: Dict[str, _CacheEntry] = {}
        self.absolute_ttl = ABSOLUTE_EXPIRATION.total_seconds()
        self.sliding_ttl = SLIDING_EXPIRATION.total_seconds()

    def _read(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        now = self._clock()
        if entry.is_expired(now):
            del self._entries[key]
            return None

        entry.sliding_expires_at = now + self.sliding_ttl
        return entry.value

    def _write(self, key: str, value: Any) -> None:
        now = self._clock()
        self._sweep(now)
        self._entries[key] = _CacheEntry(
            value=value,
            absolute_expires_at=now + self.absolute_ttl,
            sliding_expires_at=now + self.sliding_ttl,
        )

    def _sweep(self, now: float) -> None:
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]

    async def get(self, product_id: uuid.UUID) -> Optional[ProductDto]:
        product = self._read(product_key(product_id))
        if product is None:
            self.logger.debug("Cache miss for product", product_id=str(product_id))
            return None

        self.logger.debug("Cache hit for product", product_id=str(product_id))
        return product.model_copy()

    async def get_all(self) -> Optional[List[ProductDto]]:
        products = self._read(ALL_PRODUCTS_KEY)
        if products is None:
            self.logger.debug("Cache miss for all products")
            return None

        self.logger.debug("Cache hit for all products")
        return [product.model_copy() for product in products]

    async def set(self, product_id: uuid.UUID, product: ProductDto) -> None:
        self._write(product_key(product_id), product.model_copy())
        self.logger.debug("Cached product", product_id=str(product_id))
        await self.remove_all()

    async def set_all(self, products: List[ProductDto]) -> None:
        self._write(ALL_PRODUCTS_KEY, [product.model_copy() for product in products])
        self.logger.debug("Cached all products", count=len(products))

    async def remove(self, product_id: uuid.UUID) -> None:
        self._entries.pop(product_key(product_id), None)
        self.logger.debug("Removed cache for product", product_id=str(product_id))
        await self.remove_all()

    async def remove_all(self) -> None:
        self._entries.pop(ALL_PRODUCTS_KEY, None)
        self.logger.debug("Removed cache for all products")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
