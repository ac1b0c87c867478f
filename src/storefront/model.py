from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import UUID
from src.schemas.base import CamelModel


class ProductSort(str, Enum):
    NEWEST = "newest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    POPULAR = "popular"


class StoreCategory(CamelModel):
    id: UUID
    name: str
    description: str
    parent_id: Optional[UUID] = None
    product_count: int = 0
    subcategories: List["StoreCategory"] = []


class StoreProduct(CamelModel):
    id: UUID
    name: str
    description: str
    price: Decimal
    tags: List[str] = []
    sub_category_id: UUID
    category_name: Optional[str] = None
    created_at: datetime


class StoreProductDetail(StoreProduct):
    category_path: Optional[str] = None
    views: int


class FilterOption(CamelModel):
    value: str
    label: str
    count: int = 0


class PriceRange(CamelModel):
    min: Decimal
    max: Decimal


class ProductFilters(CamelModel):
    categories: List[FilterOption] = []
    price_range: PriceRange


class FilterCategory(CamelModel):
    id: UUID
    name: str
    parent_id: Optional[UUID] = None
    subcategories: List["FilterCategory"] = []


class FilterMetadata(CamelModel):
    categories: List[FilterCategory] = []
    price_range: PriceRange
