from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from . import model
from . import service
from ..activity_logs.service import log_admin_activity, set_activity_resource_id
from ..auth.service import CurrentAdmin
from ..config import settings
from ..database.core import DbSession
from ..entities.product import ProductStatus
from ..rate_limiting import limiter
from ..schemas.pagination import PageParams, get_page_params
from ..schemas.response import ApiResponse

router = APIRouter(prefix="/admin/products", tags=["CMS - Products"])

Page = Annotated[PageParams, Depends(get_page_params)]

protected = [Depends(log_admin_activity)]


def _to_response(products) -> List[model.ProductResponse]:
    return [model.ProductResponse.model_validate(p) for p in products]


@router.get("", response_model=ApiResponse[List[model.ProductResponse]])
async def get_products(
    request: Request,
    db: DbSession,
    params: Page,
    status: Optional[ProductStatus] = None,
):
    products, meta = await service.get_products(db, params, status)
    return ApiResponse.success(request, "Produtos recuperados", _to_response(products), meta)


@router.get("/search", response_model=ApiResponse[List[model.ProductResponse]])
async def search_products(
    request: Request, db: DbSession, params: Page, query: Optional[str] = None
):
    products, meta = await service.search_products(db, query, params)
    return ApiResponse.success(request, "Resultados da busca", _to_response(products), meta)


@router.get("/stats", response_model=ApiResponse[model.ProductStats])
async def get_product_stats(request: Request, db: DbSession):
    stats = await service.get_product_stats(db)
    return ApiResponse.success(request, "Estatísticas de produtos recuperadas", stats)


@router.get("/{id}", response_model=ApiResponse[model.ProductResponse])
async def get_product(request: Request, db: DbSession, id: UUID):
    product = await service.get_product_by_id(db, id)
    return ApiResponse.success(
        request, "Produto recuperado", model.ProductResponse.model_validate(product)
    )


@router.post(
    "",
    response_model=ApiResponse[model.ProductResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=protected,
)
@limiter.limit(settings.ADMIN_RATE_LIMIT)
async def create_product(
    request: Request, db: DbSession, admin: CurrentAdmin, product: model.ProductCreate
):
    new_product = await service.create_product(admin, db, product)
    set_activity_resource_id(request, new_product.id)
    return ApiResponse.success(
        request, "Produto criado", model.ProductResponse.model_validate(new_product)
    )


@router.patch(
    "/{id}", response_model=ApiResponse[model.ProductResponse], dependencies=protected
)
@limiter.limit(settings.ADMIN_RATE_LIMIT)
async def update_product(
    request: Request,
    db: DbSession,
    admin: CurrentAdmin,
    id: UUID,
    product_update: model.ProductUpdate,
):
    product = await service.update_product(admin, db, id, product_update)
    return ApiResponse.success(
        request, "Produto atualizado", model.ProductResponse.model_validate(product)
    )


@router.delete("/{id}", response_model=ApiResponse[None], dependencies=protected)
@limiter.limit(settings.ADMIN_RATE_LIMIT)
async def delete_product(request: Request, db: DbSession, admin: CurrentAdmin, id: UUID):
    await service.delete_product(admin, db, id)
    return ApiResponse.success(request, "Produto excluído")
