"""
Store contract for products.
"""

import uuid
from abc import ABC, abstractmethod
from typing import List, Optional

from ..products.models import Product


class ProductRepository(ABC):
    """Durable product storage; the source of truth for the catalog."""

    async def start(self):
        """Acquire resources."""

    async def stop(self):
        """Release resources."""

    @abstractmethod
    async def get_by_id(self, product_id: uuid.UUID) -> Optional[Product]:
        ...

    @abstractmethod
    async def get_all(self) -> List[Product]:
        """Return every product in creation order."""

    @abstractmethod
    async def create(self, product: Product) -> Product:
        ...

    @abstractmethod
    async def update(self, product: Product) -> bool:
        """Persist a modified product. False when it no longer exists."""

    @abstractmethod
    async def delete(self, product_id: uuid.UUID) -> bool:
        ...

    @abstractmethod
    async def count(self) -> int:
        ...

    async def health_check(self) -> bool:
        return True
