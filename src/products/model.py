from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
from pydantic import Field
from src.schemas.base import CamelModel
from src.entities.product import ProductStatus


class ProductCreate(CamelModel):
    name: str = Field(min_length=1)
    description: str
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    sub_category_id: UUID
    status: ProductStatus = ProductStatus.DRAFT
    tags: List[str] = []


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    sub_category_id: Optional[UUID] = None
    status: Optional[ProductStatus] = None
    tags: Optional[List[str]] = None


class ProductResponse(CamelModel):
    id: UUID
    name: str
    description: str
    price: Decimal
    sub_category_id: UUID
    sub_category_name: Optional[str] = None
    sub_category_path: Optional[str] = None
    status: ProductStatus
    tags: List[str] = []
    views: int
    created_at: datetime
    updated_at: datetime


class ProductStats(CamelModel):
    total_products: int
    active_products: int
    draft_products: int
    tagged_products: int
    average_price: float
    percentage_active: float
