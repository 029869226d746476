"""
Product data models for the Catalog Service.

``Product`` is the domain entity. Application code creates it through
``Product.create`` which enforces the invariants; stores rehydrate persisted
rows through ``ProductRecord`` and ``Product.from_record``.
"""

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from shared.errors import ValidationError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _validate_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise ValidationError("Name cannot be empty", {"field": "name"})
    return name


def _validate_price(price: float) -> float:
    if price is None or not math.isfinite(price):
        raise ValidationError("Price must be a finite number", {"field": "price", "value": str(price)})
    if price <= 0:
        raise ValidationError("Price must be greater than zero", {"field": "price", "value": price})
    return price


def _validate_stock(stock: int) -> int:
    if stock is None or stock < 0:
        raise ValidationError("Stock cannot be negative", {"field": "stock", "value": stock})
    return stock


@dataclass
class ProductRecord:
    """Plain persisted representation of a product row."""
    id: uuid.UUID
    name: str
    description: str
    price: float
    stock: int
    created_at: datetime
    updated_at: Optional[datetime] = None


@dataclass
class Product:
    """Catalog product entity."""
    id: uuid.UUID
    name: str
    description: str
    price: float
    stock: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def create(cls, name: str, description: Optional[str], price: float, stock: int) -> "Product":
        """Build a new product, generating its id and creation timestamp."""
        return cls(
            id=uuid.uuid4(),
            name=_validate_name(name),
            description=description or "",
            price=_validate_price(price),
            stock=_validate_stock(stock),
            created_at=_utcnow(),
        )

    @classmethod
    def from_record(cls, record: ProductRecord) -> "Product":
        """Rehydrate a product from its persisted record."""
        return cls(
            id=record.id,
            name=record.name,
            description=record.description,
            price=record.price,
            stock=record.stock,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def to_record(self) -> ProductRecord:
        return ProductRecord(
            id=self.id,
            name=self.name,
            description=self.description,
            price=self.price,
            stock=self.stock,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def update_name(self, name: str) -> None:
        self.name = _validate_name(name)
        self.updated_at = _utcnow()

    def update_description(self, description: Optional[str]) -> None:
        self.description = description or ""
        self.updated_at = _utcnow()

    def update_price(self, price: float) -> None:
        self.price = _validate_price(price)
        self.updated_at = _utcnow()

    def update_stock(self, stock: int) -> None:
        self.stock = _validate_stock(stock)
        self.updated_at = _utcnow()


class ProductDto(BaseModel):
    """Externally visible product projection."""
    id: uuid.UUID
    name: str
    description: str = ""
    price: float
    stock: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_product(cls, product: Product) -> "ProductDto":
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            stock=product.stock,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class ProductCreateRequest(BaseModel):
    """Request model for creating a product."""
    name: str = Field(..., description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    price: float = Field(..., description="Unit price, must be positive")
    stock: int = Field(..., description="Units in stock, must not be negative")


class ProductUpdateRequest(BaseModel):
    """Request model for updating a product. Omitted fields are left unchanged."""
    name: Optional[str] = Field(None, description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    price: Optional[float] = Field(None, description="Unit price, must be positive")
    stock: Optional[int] = Field(None, description="Units in stock, must not be negative")

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class PagedResult(BaseModel):
    """Paginated product listing."""
    items: List[ProductDto]
    page: int
    page_size: int
    total_count: int
    total_pages: int

    @classmethod
    def from_items(cls, items: List[ProductDto], page: int, page_size: int) -> "PagedResult":
        total_count = len(items)
        start = (page - 1) * page_size
        return cls(
            items=items[start:start + page_size],
            page=page,
            page_size=page_size,
            total_count=total_count,
            total_pages=math.ceil(total_count / page_size),
        )
