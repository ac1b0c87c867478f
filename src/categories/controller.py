from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from . import model
from . import service
from ..activity_logs.service import (
    log_admin_activity,
    set_activity_resource_id,
    set_activity_verb,
)
from ..auth.service import CurrentAdmin
from ..config import settings
from ..database.core import DbSession
from ..rate_limiting import limiter
from ..schemas.pagination import PageParams, get_page_params
from ..schemas.response import ApiResponse
from ..utils.cache import CategoryCacheDep, CategoryStatsCacheDep

router = APIRouter(prefix="/admin/categories", tags=["CMS - Categories"])

Page = Annotated[PageParams, Depends(get_page_params)]

# Rotas de escrita: exigem administrador e são registradas no log de atividades
protected = [Depends(log_admin_activity)]


# ========== Leitura (pública) ==========


@router.get("", response_model=ApiResponse[List[model.CategoryWithProducts]])
async def get_categories(
    request: Request, db: DbSession, cache: CategoryCacheDep, params: Page
):
    categories, meta = await service.get_categories(db, cache, params)
    return ApiResponse.success(request, "Categorias recuperadas", categories, meta)


@router.get("/parents", response_model=ApiResponse[List[model.CategoryWithProducts]])
async def get_parent_categories(request: Request, db: DbSession, cache: CategoryCacheDep):
    parents = await service.get_parent_categories(db, cache)
    return ApiResponse.success(request, "Categorias pai recuperadas", parents)


@router.get("/children", response_model=ApiResponse[List[model.CategoryWithPath]])
async def get_sub_categories(request: Request, db: DbSession, cache: CategoryCacheDep):
    subs = await service.get_sub_categories(db, cache)
    return ApiResponse.success(request, "Subcategorias recuperadas", subs)


@router.get("/search", response_model=ApiResponse[List[model.CategoryWithProducts]])
async def search_categories(
    request: Request, db: DbSession, params: Page, query: Optional[str] = None
):
    categories, meta = await service.search_categories(db, query, params)
    message = "Resultados da busca" if categories else "Nenhum resultado encontrado"
    return ApiResponse.success(request, message, categories, meta)


@router.get("/stats", response_model=ApiResponse[model.CategoryStats])
async def get_category_stats(
    request: Request, db: DbSession, stats_cache: CategoryStatsCacheDep
):
    stats = await service.get_category_stats(db, stats_cache)
    return ApiResponse.success(request, "Estatísticas de categorias recuperadas", stats)


@router.get("/{id}", response_model=ApiResponse[model.CategoryDetailResponse])
async def get_category(request: Request, db: DbSession, id: UUID):
    category = await service.get_category_by_id(db, id)
    return ApiResponse.success(
        request,
        "Categoria recuperada",
        model.CategoryDetailResponse.model_validate(category),
    )


# ========== Escrita (administrador) ==========


@router.post(
    "",
    response_model=ApiResponse[model.CategoryResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=protected,
)
@limiter.limit(settings.ADMIN_RATE_LIMIT)
async def create_category(
    request: Request,
    db: DbSession,
    cache: CategoryCacheDep,
    admin: CurrentAdmin,
    category: model.CategoryCreate,
):
    new_category = await service.create_category(admin, db, cache, category)
    set_activity_resource_id(request, new_category.id)
    return ApiResponse.success(
        request, "Categoria criada", model.CategoryResponse.model_validate(new_category)
    )


@router.patch(
    "/{id}",
    response_model=ApiResponse[model.CategoryResponse],
    dependencies=protected,
)
@limiter.limit(settings.ADMIN_RATE_LIMIT)
async def update_category(
    request: Request,
    db: DbSession,
    cache: CategoryCacheDep,
    admin: CurrentAdmin,
    id: UUID,
    category_update: model.CategoryUpdate,
):
    category, changed = await service.update_category(
        admin, db, cache, id, category_update
    )
    message = "Categoria atualizada" if changed else "Nenhuma alteração detectada"
    return ApiResponse.success(
        request, message, model.CategoryResponse.model_validate(category)
    )


@router.patch(
    "/{id}/status",
    response_model=ApiResponse[model.CategoryResponse],
    dependencies=protected,
)
@limiter.limit(settings.ADMIN_RATE_LIMIT)
async def update_category_status(
    request: Request,
    db: DbSession,
    cache: CategoryCacheDep,
    admin: CurrentAdmin,
    id: UUID,
    status_update: model.CategoryStatusUpdate,
):
    category = await service.update_category_status(admin, db, cache, id, status_update)
    message = (
        "Categoria e subcategorias desativadas"
        if status_update.status.value == "Inactive"
        else "Status da categoria atualizado"
    )
    return ApiResponse.success(
        request, message, model.CategoryResponse.model_validate(category)
    )


@router.delete("/{id}", response_model=ApiResponse[None], dependencies=protected)
@limiter.limit(settings.ADMIN_RATE_LIMIT)
async def delete_category(
    request: Request, db: DbSession, cache: CategoryCacheDep, admin: CurrentAdmin, id: UUID
):
    await service.delete_category(admin, db, cache, id)
    return ApiResponse.success(request, "Categoria excluída")


@router.post(
    "/{id}/delete-with-options",
    response_model=ApiResponse[None],
    dependencies=protected,
)
@limiter.limit(settings.ADMIN_RATE_LIMIT)
async def delete_category_with_options(
    request: Request,
    db: DbSession,
    cache: CategoryCacheDep,
    admin: CurrentAdmin,
    id: UUID,
    options: model.DeleteCategoryOptions,
):
    set_activity_verb(request, "deleted")
    await service.delete_category_with_options(admin, db, cache, id, options)
    message = (
        "Categoria e subcategorias excluídas"
        if options.mode == "cascade"
        else "Categoria excluída e subcategorias reatribuídas"
    )
    return ApiResponse.success(request, message)
