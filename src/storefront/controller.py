from decimal import Decimal
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request

from . import model
from . import service
from ..database.core import DbSession
from ..schemas.pagination import PageParams, get_page_params
from ..schemas.response import ApiResponse

router = APIRouter(prefix="/store", tags=["Storefront"])


@router.get("/categories", response_model=ApiResponse[List[model.StoreCategory]])
async def get_categories(request: Request, db: DbSession):
    categories = await service.get_categories(db)
    return ApiResponse.success(request, "Categorias recuperadas", categories)


@router.get("/categories/{id}", response_model=ApiResponse[model.StoreCategory])
async def get_category(request: Request, db: DbSession, id: UUID):
    category = await service.get_category_by_id(db, id)
    return ApiResponse.success(request, "Categoria recuperada", category)


@router.get("/products", response_model=ApiResponse[List[model.StoreProduct]])
async def get_products(
    request: Request,
    db: DbSession,
    params: Annotated[PageParams, Depends(get_page_params)],
    category_id: Optional[UUID] = None,
    search: Optional[str] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    sort: model.ProductSort = model.ProductSort.NEWEST,
):
    products, meta = await service.get_products(
        db, params, category_id, search, min_price, max_price, sort
    )
    return ApiResponse.success(request, "Produtos recuperados", products, meta)


@router.get("/products/filters", response_model=ApiResponse[model.ProductFilters])
async def get_product_filters(request: Request, db: DbSession):
    filters = await service.get_product_filters(db)
    return ApiResponse.success(request, "Filtros recuperados", filters)


@router.get("/filters/metadata", response_model=ApiResponse[model.FilterMetadata])
async def get_filter_metadata(request: Request, db: DbSession):
    metadata = await service.get_filter_metadata(db)
    return ApiResponse.success(request, "Metadados de filtros recuperados", metadata)


@router.get("/products/{id}", response_model=ApiResponse[model.StoreProductDetail])
async def get_product(request: Request, db: DbSession, id: UUID):
    product = await service.get_product_by_id(db, id)
    return ApiResponse.success(request, "Produto recuperado", product)
