"""
PostgreSQL persistence layer for the Catalog Service.
"""

import uuid
from decimal import Decimal
from typing import List, Optional

import asyncpg
from shared.logging import get_logger
from shared.errors import ExternalServiceError
from ..products.models import Product, ProductRecord
from .base import ProductRepository


class PostgreSQLProductRepository(ProductRepository):
    """PostgreSQL-backed product store.

    Errors are not converted into empty results; the store is the source of
    truth and its failures reach the caller.
    """

    def __init__(self, dsn: str):
        self.dsn = dsn
        self.logger = get_logger("catalog.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Start the persistence layer."""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=2,
                max_size=10,
                command_timeout=30
            )

            await self._create_tables()

            self.logger.info("PostgreSQL persistence started")

        except (OSError, asyncpg.PostgresError) as e:
            self.logger.error("Failed to start PostgreSQL persistence", error=str(e))
            raise ExternalServiceError("postgres", str(e))

    async def stop(self):
        """Stop the persistence layer."""
        if self.pool:
            await self.pool.close()
            self.logger.info("PostgreSQL persistence stopped")

    async def _create_tables(self):
        """Create database tables."""
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS products (
                    id UUID PRIMARY KEY,
                    name VARCHAR(200) NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    price NUMERIC NOT NULL CHECK (price > 0),
                    stock INTEGER NOT NULL CHECK (stock >= 0),
                    created_at TIMESTAMP WITH TIME ZONE NOT NULL,
                    updated_at TIMESTAMP WITH TIME ZONE
                );
            """)

            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_products_created_at ON products(created_at);
            """)

    async def get_by_id(self, product_id: uuid.UUID) -> Optional[Product]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow("""
                SELECT * FROM products WHERE id = $1
            """, product_id)

            if not row:
                return None

            return Product.from_record(self._row_to_record(row))

    async def get_all(self) -> List[Product]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT * FROM products ORDER BY created_at ASC
            """)

            return [Product.from_record(self._row_to_record(row)) for row in rows]

    async def create(self, product: Product) -> Product:
        record = product.to_record()
        async with self.pool.acquire() as conn:
            await conn.execute("""
                INSERT INTO products (id, name, description, price, stock, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7)
            """,
                record.id, record.name, record.description, Decimal(str(record.price)),
                record.stock, record.created_at, record.updated_at
            )

        self.logger.info("Product created", product_id=str(product.id))
        return product

    async def update(self, product: Product) -> bool:
        record = product.to_record()
        async with self.pool.acquire() as conn:
            result = await conn.execute("""
                UPDATE products SET
                    name = $2,
                    description = $3,
                    price = $4,
                    stock = $5,
                    updated_at = $6
                WHERE id = $1
            """,
                record.id, record.name, record.description, Decimal(str(record.price)),
                record.stock, record.updated_at
            )

        if result == "UPDATE 1":
            self.logger.info("Product updated", product_id=str(product.id))
            return True

        self.logger.warning("Product not found for update", product_id=str(product.id))
        return False

    async def delete(self, product_id: uuid.UUID) -> bool:
        async with self.pool.acquire() as conn:
            result = await conn.execute("""
                DELETE FROM products WHERE id = $1
            """, product_id)

        if result == "DELETE 1":
            self.logger.info("Product deleted", product_id=str(product_id))
            return True

        self.logger.warning("Product not found for deletion", product_id=str(product_id))
        return False

    async def count(self) -> int:
        async with self.pool.acquire() as conn:
            count = await conn.fetchval("SELECT COUNT(*) FROM products")
            return count or 0

    def _row_to_record(self, row) -> ProductRecord:
        """Convert database row to ProductRecord."""
        return ProductRecord(
            id=row['id'],
            name=row['name'],
            description=row['description'],
            price=float(row['price']),
            stock=row['stock'],
            created_at=row['created_at'],
            updated_at=row['updated_at']
        )

    async def health_check(self) -> bool:
        """Check database health."""
        if not self.pool:
            return False
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
                return True
        except (OSError, asyncpg.PostgresError):
            return False
