"""
Shared fixtures for Catalog service tests.
"""

from typing import Any, Dict, Optional, Tuple

import pytest

from shared.test_helpers import FakeClock, test_environment
from service_catalog.app.cache.memory_cache import InMemoryProductCache
from service_catalog.app.cache.redis_cache import RedisProductCache
from service_catalog.app.persistence.memory import InMemoryProductRepository
from service_catalog.app.products.service import ProductService
from shared.metrics import get_metrics_collector


class StubRedis:
    """Dictionary-backed stand-in for the handful of redis.asyncio calls the cache makes."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.data: Dict[str, Tuple[Dict[str, str], Optional[float]]] = {}
        self.closed = False

    def _live(self, key: str) -> Optional[Dict[str, str]]:
        item = self.data.get(key)
        if item is None:
            return None
        fields, expires_at = item
        if expires_at is not None and self.clock() >= expires_at:
            del self.data[key]
            return None
        return fields

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        self.closed = True

    async def hgetall(self, key: str) -> Dict[str, str]:
        return dict(self._live(key) or {})

    async def hset(self, key: str, mapping: Dict[str, Any]) -> int:
        fields = self._live(key) or {}
        fields.update({name: str(value) for name, value in mapping.items()})
        self.data[key] = (fields, None)
        return len(mapping)

    async def pexpire(self, key: str, milliseconds: int) -> bool:
        if self._live(key) is None:
            return False
        fields, _ = self.data[key]
        self.data[key] = (fields, self.clock() + milliseconds / 1000)
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._live(key) is not None:
                removed += 1
            self.data.pop(key, None)
        return removed

    def ttl_of(self, key: str) -> Optional[float]:
        item = self.data.get(key)
        if item is None or item[1] is None:
            return None
        return item[1] - self.clock()

    def pipeline(self, transaction: bool = True) -> "StubPipeline":
        return StubPipeline(self)


class StubPipeline:
    def __init__(self, redis: StubRedis):
        self.redis = redis
        self.commands = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    def hset(self, key: str, mapping: Dict[str, Any]):
        self.commands.append((self.redis.hset, (key,), {"mapping": mapping}))
        return self

    def pexpire(self, key: str, milliseconds: int):
        self.commands.append((self.redis.pexpire, (key, milliseconds), {}))
        return self

    async def execute(self):
        results = []
        for command, args, kwargs in self.commands:
            results.append(await command(*args, **kwargs))
        self.commands = []
        return results


@pytest.fixture
def clock():
    """Manually advanced clock."""
    return FakeClock()


@pytest.fixture
def memory_cache(clock):
    """In-memory cache driven by the fake clock."""
    return InMemoryProductCache(clock=clock)


@pytest.fixture
def stub_redis(clock):
    """Redis stand-in sharing the fake clock."""
    return StubRedis(clock)


@pytest.fixture
def redis_cache(stub_redis, clock):
    """Redis cache wired to the stand-in client."""
    return RedisProductCache("redis://localhost:6379/0", client=stub_redis, clock=clock)


@pytest.fixture
def repository():
    """Empty in-memory product store."""
    return InMemoryProductRepository()


@pytest.fixture
def metrics():
    """Catalog metrics collector with a private registry."""
    return get_metrics_collector("catalog")


@pytest.fixture
def product_service(repository, memory_cache, metrics):
    """ProductService over in-memory store and cache."""
    return ProductService(repository, memory_cache, metrics)


@pytest.fixture
def test_config():
    """In-memory catalog configuration."""
    return test_environment.get_test_config()
