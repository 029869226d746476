"""
Product cache contract and expiry policy shared by every backend.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import List, Optional

from ..products.models import ProductDto


ABSOLUTE_EXPIRATION = timedelta(minutes=5)
SLIDING_EXPIRATION = timedelta(minutes=1)

PRODUCT_KEY_PREFIX = "products:"
ALL_PRODUCTS_KEY = "products:all"


def product_key(product_id: uuid.UUID) -> str:
    return f"{PRODUCT_KEY_PREFIX}{product_id}"


class ProductCache(ABC):
    """Best-effort cache of product projections.

    Entries live for at most ``ABSOLUTE_EXPIRATION`` after being written and
    are dropped earlier when not read for ``SLIDING_EXPIRATION``. Writing or
    removing a single product always drops the ``ALL_PRODUCTS_KEY`` aggregate,
    which is never maintained incrementally.

    Implementations must not raise for backend failures: a failed read is a
    miss and a failed write is logged and dropped.
    """

    cache_type = "base"

    async def start(self):
        """Connect to the backend."""

    async def stop(self):
        """Disconnect from the backend."""

    @abstractmethod
    async def get(self, product_id: uuid.UUID) -> Optional[ProductDto]:
        ...

    @abstractmethod
    async def get_all(self) -> Optional[List[ProductDto]]:
        ...

    @abstractmethod
    async def set(self, product_id: uuid.UUID, product: ProductDto) -> None:
        """Cache one product and invalidate the aggregate."""

    @abstractmethod
    async def set_all(self, products: List[ProductDto]) -> None:
        """Cache the aggregate; single-product entries are untouched."""

    @abstractmethod
    async def remove(self, product_id: uuid.UUID) -> None:
        """Drop one product and invalidate the aggregate."""

    @abstractmethod
    async def remove_all(self) -> None:
        """Drop the aggregate only."""

    async def health_check(self) -> bool:
        return True
