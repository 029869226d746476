"""
In-process product store.

Holds ``ProductRecord`` copies rather than live entities so that callers
mutating a ``Product`` never change stored state without calling ``update``.
"""

import uuid
from typing import Dict, List, Optional

from shared.logging import get_logger
from ..products.models import Product, ProductRecord
from .base import ProductRepository


class InMemoryProductRepository(ProductRepository):
    """Dictionary-backed store, owned by the service instance that creates it."""

    def __init__(self):
        self.logger = get_logger("catalog.persistence.memory")
        # dict preserves insertion order, which is creation order here
        self._records: Dict[uuid.UUID, ProductRecord] = {}

    async def get_by_id(self, product_id: uuid.UUID) -> Optional[Product]:
        record = self._records.get(product_id)
        return Product.from_record(record) if record else None

    async def get_all(self) -> List[Product]:
        return [Product.from_record(record) for record in self._records.values()]

    async def create(self, product: Product) -> Product:
        self._records[product.id] = product.to_record()
        self.logger.info("Product created", product_id=str(product.id))
        return Product.from_record(self._records[product.id])

    async def update(self, product: Product) -> bool:
        if product.id not in self._records:
            return False

        self._records[product.id] = product.to_record()
        self.logger.info("Product updated", product_id=str(product.id))
        return True

    async def delete(self, product_id: uuid.UUID) -> bool:
        if self._records.pop(product_id, None) is None:
            return False

        self.logger.info("Product deleted", product_id=str(product_id))
        return True

    async def count(self) -> int:
        return len(self._records)
