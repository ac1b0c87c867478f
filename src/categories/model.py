from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID
from pydantic import ConfigDict, Field
from src.schemas.base import CamelModel
from src.entities.category import CategoryStatus


class CategoryCreate(CamelModel):
    name: str = Field(min_length=1)
    description: str
    parent_id: Optional[UUID] = None


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    parent_id: Optional[UUID] = None


class CategoryStatusUpdate(CamelModel):
    status: CategoryStatus


class Reassignment(CamelModel):
    child_id: UUID
    new_parent_id: UUID


class DeleteCategoryOptions(CamelModel):
    mode: Literal["cascade", "reassign"]
    reassignments: List[Reassignment] = []


class CategoryResponse(CamelModel):
    id: UUID
    name: str
    description: str
    status: CategoryStatus
    parent_id: Optional[UUID] = None
    parent_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CategoryDetailResponse(CategoryResponse):
    children: List[CategoryResponse] = []


class CategoryNode(CategoryResponse):
    """Snapshot imutável guardado no cache de categorias."""

    model_config = ConfigDict(frozen=True)

    children: List[CategoryResponse] = []


class CategoryWithProducts(CategoryResponse):
    products: int = 0
    children: Optional[List["CategoryWithProducts"]] = None


class CategoryWithPath(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    category_path: str
    description: str
    status: CategoryStatus
    parent_id: Optional[UUID] = None
    parent_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CategoryStats(CamelModel):
    total_categories: int
    parent_categories: int
    sub_categories: int
    active_categories: int
    active_parent_categories: int
    active_sub_categories: int
    percentage_active_categories: float
    percentage_active_parents: float
    percentage_active_sub_categories: float
