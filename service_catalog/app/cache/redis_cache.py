"""
Redis caching layer for the Catalog Service.

Each entry is stored as a hash holding the JSON payload together with its
absolute expiry (epoch seconds) and sliding window (seconds). The key TTL is
always the earlier of the two deadlines, so Redis evicts idle entries on its
own; a hit re-arms the TTL without ever passing the absolute expiry.
"""

import json
import time
import uuid
from typing import Any, Callable, List, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.logging import get_logger
from shared.errors import ExternalServiceError
from ..products.models import ProductDto
from .base import (
    ABSOLUTE_EXPIRATION,
    ALL_PRODUCTS_KEY,
    SLIDING_EXPIRATION,
    ProductCache,
    product_key,
)


DATA_FIELD = "data"
ABSOLUTE_EXPIRY_FIELD = "absexp"
SLIDING_FIELD = "sldexp"


class RedisProductCache(ProductCache):
    """Cache shared between service instances through Redis."""

    cache_type = "redis"

    def __init__(
        self,
        redis_url: str,
        client: Optional[redis.Redis] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.redis_url = redis_url
        self.logger = get_logger("catalog.cache.redis")
        self.redis: Optional[redis.Redis] = client
        self._clock = clock
        self.absolute_ttl = ABSOLUTE_EXPIRATION.total_seconds()
        self.sliding_ttl = SLIDING_EXPIRATION.total_seconds()

    async def start(self):
        """Start the Redis cache."""
        if self.redis is None:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30
            )

        try:
            await self.redis.ping()
        except (RedisError, OSError) as e:
            self.logger.error("Failed to start Redis cache", error=str(e))
            raise ExternalServiceError("redis", str(e))

        self.logger.info("Redis cache started")

    async def stop(self):
        """Stop the Redis cache."""
        if self.redis:
            await self.redis.aclose()
            self.logger.info("Redis cache stopped")

    def _ttl_ms(self, absolute_expires_at: float, sliding: float) -> int:
        remaining = absolute_expires_at - self._clock()
        return int(min(sliding, remaining) * 1000)

    async def _read(self, key: str) -> Optional[Any]:
        entry = await self.redis.hgetall(key)
        if not entry or DATA_FIELD not in entry:
            return None

        absolute_expires_at = float(entry[ABSOLUTE_EXPIRY_FIELD])
        sliding = float(entry[SLIDING_FIELD])
        ttl_ms = self._ttl_ms(absolute_expires_at, sliding)
        if ttl_ms <= 0:
            await self.redis.delete(key)
            return None

        # Sliding renewal
        await self.redis.pexpire(key, ttl_ms)
        return json.loads(entry[DATA_FIELD])

    async def _write(self, key: str, payload: Any) -> None:
        absolute_expires_at = self._clock() + self.absolute_ttl
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.hset(key, mapping={
                DATA_FIELD: json.dumps(payload),
                ABSOLUTE_EXPIRY_FIELD: repr(absolute_expires_at),
                SLIDING_FIELD: repr(self.sliding_ttl),
            })
            pipe.pexpire(key, self._ttl_ms(absolute_expires_at, self.sliding_ttl))
            await pipe.execute()

    async def get(self, product_id: uuid.UUID) -> Optional[ProductDto]:
        key = product_key(product_id)
        try:
            data = await self._read(key)
            if data is None:
                self.logger.debug("Cache miss for product", product_id=str(product_id))
                return None
            product = ProductDto.model_validate(data)
        except (RedisError, OSError, ValueError, KeyError) as e:
            self.logger.error("Error getting cached product", product_id=str(product_id), error=str(e))
            return None

        self.logger.debug("Cache hit for product", product_id=str(product_id))
        return product

    async def get_all(self) -> Optional[List[ProductDto]]:
        try:
            data = await self._read(ALL_PRODUCTS_KEY)
            if data is None:
                self.logger.debug("Cache miss for all products")
                return None
            products = [ProductDto.model_validate(item) for item in data]
        except (RedisError, OSError, ValueError, KeyError, TypeError) as e:
            self.logger.error("Error getting cached products", error=str(e))
            return None

        self.logger.debug("Cache hit for all products")
        return products

    async def set(self, product_id: uuid.UUID, product: ProductDto) -> None:
        try:
            await self._write(product_key(product_id), product.model_dump(mode="json"))
            self.logger.debug("Cached product", product_id=str(product_id))
        except (RedisError, OSError) as e:
            self.logger.error("Error caching product", product_id=str(product_id), error=str(e))

        await self.remove_all()

    async def set_all(self, products: List[ProductDto]) -> None:
        try:
            await self._write(ALL_PRODUCTS_KEY, [product.model_dump(mode="json") for product in products])
            self.logger.debug("Cached all products", count=len(products))
        except (RedisError, OSError) as e:
            self.logger.error("Error caching all products", error=str(e))

    async def remove(self, product_id: uuid.UUID) -> None:
        try:
            await self.redis.delete(product_key(product_id))
            self.logger.debug("Removed cache for product", product_id=str(product_id))
        except (RedisError, OSError) as e:
            self.logger.error("Error removing cached product", product_id=str(product_id), error=str(e))

        await self.remove_all()

    async def remove_all(self) -> None:
        try:
            await self.redis.delete(ALL_PRODUCTS_KEY)
            self.logger.debug("Removed cache for all products")
        except (RedisError, OSError) as e:
            self.logger.error("Error removing cached products", error=str(e))

    async def health_check(self) -> bool:
        """Check Redis health."""
        if self.redis is None:
            return False
        try:
            await self.redis.ping()
            return True
        except (RedisError, OSError):
            return False
