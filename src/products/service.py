import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from . import model
from ..entities.admin import Admin
from ..entities.category import Category
from ..entities.product import Product, ProductStatus
from ..exceptions.products import (
    InvalidSubCategoryError,
    ProductNotFoundError,
    ProductSearchError,
    ProductWriteError,
)
from ..schemas.pagination import PageParams, Pagination

logger = logging.getLogger(__name__)


async def _paginate_products(
    db: AsyncSession, filters: list, params: PageParams
) -> Tuple[List[Product], Pagination]:
    total = await db.scalar(select(func.count(Product.id)).filter(*filters))
    result = await db.execute(
        select(Product)
        .filter(*filters)
        .order_by(Product.created_at.desc())
        .limit(params.limit)
        .offset(params.offset)
        .options(selectinload(Product.sub_category))
    )
    return result.scalars().all(), Pagination.create(total, params.page, params.limit)


async def get_products(
    db: AsyncSession, params: PageParams, status: Optional[ProductStatus] = None
) -> Tuple[List[Product], Pagination]:
    filters = [Product.status == status] if status else []
    products, meta = await _paginate_products(db, filters, params)
    logger.info(f"Recuperada a página {params.page} de produtos")
    return products, meta


async def search_products(
    db: AsyncSession, query: str | None, params: PageParams
) -> Tuple[List[Product], Pagination]:
    if not query or not query.strip():
        raise ProductSearchError()
    pattern = f"%{query.strip()}%"
    filters = [or_(Product.name.ilike(pattern), Product.description.ilike(pattern))]
    products, meta = await _paginate_products(db, filters, params)
    logger.info(f"Busca de produtos por '{query}' retornou {meta.total} resultados")
    return products, meta


async def get_product_stats(db: AsyncSession) -> model.ProductStats:
    is_active = Product.status == ProductStatus.ACTIVE
    row = (
        await db.execute(
            select(
                func.count(Product.id),
                func.count(Product.id).filter(is_active),
                func.count(Product.id).filter(Product.status == ProductStatus.DRAFT),
                func.count(Product.id).filter(func.json_array_length(Product.tags) > 0),
                func.avg(Product.price),
            )
        )
    ).one()
    total, active, draft, tagged, average_price = row

    logger.info(f"Estatísticas de produtos calculadas para {total} produtos")
    return model.ProductStats(
        total_products=total,
        active_products=active,
        draft_products=draft,
        tagged_products=tagged,
        average_price=float(average_price or 0),
        percentage_active=active / total * 100 if total else 0,
    )


async def get_product_by_id(db: AsyncSession, product_id: UUID) -> Product:
    result = await db.execute(
        select(Product)
        .filter(Product.id == product_id)
        .options(selectinload(Product.sub_category))
    )
    product = result.scalars().first()
    if not product:
        logger.warning(f"Produto de ID {product_id} não encontrado")
        raise ProductNotFoundError(product_id)
    return product


async def _validate_sub_category(db: AsyncSession, sub_category_id: UUID) -> Category:
    sub_category = await db.get(Category, sub_category_id)
    if not sub_category or sub_category.parent_id is None:
        logger.warning(f"Subcategoria inválida para produto: {sub_category_id}")
        raise InvalidSubCategoryError(sub_category_id)
    return sub_category


async def _commit(db: AsyncSession, action: str):
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Falha ao {action}: {e}")
        raise ProductWriteError(str(e))


async def create_product(
    admin: Admin, db: AsyncSession, product: model.ProductCreate
) -> Product:
    await _validate_sub_category(db, product.sub_category_id)
    new_product = Product(**product.model_dump())
    db.add(new_product)
    await _commit(db, "criar produto")
    logger.info(f"Novo produto {new_product.id} registrado pelo administrador {admin.email}")
    return await get_product_by_id(db, new_product.id)


async def update_product(
    admin: Admin, db: AsyncSession, product_id: UUID, product_update: model.ProductUpdate
) -> Product:
    product = await get_product_by_id(db, product_id)
    product_data = product_update.model_dump(exclude_unset=True, exclude_none=True)
    if "sub_category_id" in product_data:
        await _validate_sub_category(db, product_data["sub_category_id"])

    for field, value in product_data.items():
        setattr(product, field, value)

    await _commit(db, "atualizar produto")
    logger.info(f"Produto {product_id} atualizado pelo administrador {admin.email}")
    # Recarrega para trazer a subcategoria nova e o updated_at
    result = await db.execute(
        select(Product)
        .filter(Product.id == product_id)
        .options(selectinload(Product.sub_category))
        .execution_options(populate_existing=True)
    )
    return result.scalars().one()


async def delete_product(admin: Admin, db: AsyncSession, product_id: UUID) -> None:
    product = await get_product_by_id(db, product_id)
    await db.delete(product)
    await _commit(db, "excluir produto")
    logger.info(f"Produto de ID {product_id} foi excluído pelo administrador {admin.email}")
