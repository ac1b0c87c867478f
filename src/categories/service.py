import asyncio
import logging
from typing import Dict, List, Tuple
from uuid import UUID

from sqlalchemy import delete, func, select, update, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from . import model
from ..config import settings
from ..entities.admin import Admin
from ..entities.category import Category, CategoryStatus
from ..entities.product import Product
from ..exceptions.categories import (
    CategoryFetchError,
    CategoryHasChildrenError,
    CategoryHasProductsError,
    CategoryNotFoundError,
    CategorySearchError,
    CategoryWriteError,
    InvalidParentCategoryError,
    ParentCategoryNotFoundError,
    ReassignmentParentNotFoundError,
)
from ..schemas.pagination import PageParams, Pagination, paginate
from ..utils.cache import CategoryCache, CategoryTree, TTLSlot

logger = logging.getLogger(__name__)


# ========== Leitura com cache (read-through) ==========


async def _run_with_timeout(coro, description: str):
    """
    Executa uma busca no banco respeitando DB_TIMEOUT_SECONDS.
    Qualquer falha vira CategoryFetchError (500) e nada é gravado no cache.
    """
    try:
        return await asyncio.wait_for(coro, timeout=settings.DB_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        logger.error(f"Tempo esgotado ao buscar {description}")
        raise CategoryFetchError(f"Tempo esgotado ao buscar {description}")
    except SQLAlchemyError as e:
        logger.error(f"Erro de banco ao buscar {description}: {e}")
        raise CategoryFetchError(f"Falha ao buscar {description}")


async def count_products_by_category(
    db: AsyncSession, category_ids: List[UUID]
) -> Dict[str, int]:
    if not category_ids:
        return {}
    result = await db.execute(
        select(Product.sub_category_id, func.count(Product.id))
        .filter(Product.sub_category_id.in_(category_ids))
        .group_by(Product.sub_category_id)
    )
    return {str(category_id): count for category_id, count in result.all()}


async def fetch_category_tree(db: AsyncSession) -> CategoryTree:
    result = await db.execute(
        select(Category)
        .filter(Category.parent_id.is_(None))
        .order_by(Category.created_at.asc())
        .options(selectinload(Category.children))
        .execution_options(populate_existing=True)
    )
    parents = [model.CategoryNode.model_validate(c) for c in result.scalars().all()]

    category_ids = []
    for parent in parents:
        category_ids.append(parent.id)
        category_ids.extend(child.id for child in parent.children)

    product_counts = await count_products_by_category(db, category_ids)
    return CategoryTree(parents, product_counts)


async def fetch_sub_categories(db: AsyncSession) -> List[model.CategoryWithPath]:
    result = await db.execute(
        select(Category)
        .filter(Category.parent_id.is_not(None))
        .order_by(Category.parent_name.asc(), Category.name.asc())
        .execution_options(populate_existing=True)
    )
    return [
        model.CategoryWithPath(
            id=c.id,
            name=c.name,
            category_path=build_category_path(c.parent_name, c.name),
            description=c.description,
            status=c.status,
            parent_id=c.parent_id,
            parent_name=c.parent_name,
            created_at=c.created_at,
            updated_at=c.updated_at,
        )
        for c in result.scalars().all()
    ]


def build_category_path(parent_name: str | None, name: str) -> str:
    if parent_name:
        return f"{parent_name} → {name}"
    return name


async def get_category_tree(db: AsyncSession, cache: CategoryCache) -> CategoryTree:
    tree = cache.get_tree()
    if tree is None:
        tree = await _run_with_timeout(fetch_category_tree(db), "árvore de categorias")
        cache.set_tree(tree.parents, tree.product_counts)
    return tree


async def get_sub_categories(
    db: AsyncSession, cache: CategoryCache
) -> List[model.CategoryWithPath]:
    subs = cache.get_subs()
    if subs is None:
        subs = await _run_with_timeout(fetch_sub_categories(db), "subcategorias")
        cache.set_subs(subs)
    logger.info(f"Recuperadas {len(subs)} subcategorias")
    return subs


def to_category_with_products(
    parent: model.CategoryNode,
    product_counts: Dict[str, int],
    include_children: bool = True,
) -> model.CategoryWithProducts:
    # O total do pai é a soma dos produtos das subcategorias
    children = [
        model.CategoryWithProducts(
            **child.model_dump(), products=product_counts.get(str(child.id), 0)
        )
        for child in parent.children
    ]
    return model.CategoryWithProducts(
        **parent.model_dump(exclude={"children"}),
        products=sum(child.products for child in children),
        children=children if include_children else None,
    )


async def get_categories(
    db: AsyncSession, cache: CategoryCache, params: PageParams
) -> Tuple[List[model.CategoryWithProducts], Pagination]:
    parents, product_counts = await get_category_tree(db, cache)
    page = [to_category_with_products(p, product_counts) for p in paginate(parents, params)]
    logger.info(f"Recuperada a página {params.page} da árvore de categorias")
    return page, Pagination.create(len(parents), params.page, params.limit)


async def get_parent_categories(
    db: AsyncSession, cache: CategoryCache
) -> List[model.CategoryWithProducts]:
    parents, product_counts = await get_category_tree(db, cache)
    return [
        to_category_with_products(p, product_counts, include_children=False)
        for p in parents
    ]


# ========== Leitura sem cache ==========


async def search_categories(
    db: AsyncSession, query: str | None, params: PageParams
) -> Tuple[List[model.CategoryWithProducts], Pagination]:
    if not query or not query.strip():
        raise CategorySearchError()

    pattern = f"%{query.strip()}%"
    filters = [
        Category.parent_id.is_(None),
        or_(Category.name.ilike(pattern), Category.description.ilike(pattern)),
    ]

    total = await db.scalar(select(func.count(Category.id)).filter(*filters))
    if not total:
        return [], Pagination.create(0, params.page, params.limit)

    result = await db.execute(
        select(Category)
        .filter(*filters)
        .order_by(Category.created_at.asc())
        .limit(params.limit)
        .offset(params.offset)
        .options(selectinload(Category.children))
        .execution_options(populate_existing=True)
    )
    parents = [model.CategoryNode.model_validate(c) for c in result.scalars().all()]

    category_ids = []
    for parent in parents:
        category_ids.append(parent.id)
        category_ids.extend(child.id for child in parent.children)
    product_counts = await count_products_by_category(db, category_ids)

    logger.info(f"Busca de categorias por '{query}' retornou {total} resultados")
    return (
        [to_category_with_products(p, product_counts) for p in parents],
        Pagination.create(total, params.page, params.limit),
    )


def _percentage(numerator: int, denominator: int) -> float:
    if denominator == 0:
        return 0
    return numerator / denominator * 100


async def get_category_stats(db: AsyncSession, stats_cache: TTLSlot) -> model.CategoryStats:
    stats = stats_cache.get()
    if stats is not None:
        return stats

    is_parent = Category.parent_id.is_(None)
    is_active = Category.status == CategoryStatus.ACTIVE
    row = (
        await db.execute(
            select(
                func.count(Category.id),
                func.count(Category.id).filter(is_parent),
                func.count(Category.id).filter(is_active),
                func.count(Category.id).filter(is_parent, is_active),
            )
        )
    ).one()
    total, parents, active, active_parents = row
    subs = total - parents
    active_subs = active - active_parents

    stats = model.CategoryStats(
        total_categories=total,
        parent_categories=parents,
        sub_categories=subs,
        active_categories=active,
        active_parent_categories=active_parents,
        active_sub_categories=active_subs,
        percentage_active_categories=_percentage(active, total),
        percentage_active_parents=_percentage(active_parents, parents),
        percentage_active_sub_categories=_percentage(active_subs, subs),
    )
    stats_cache.set(stats)
    return stats


async def get_category_by_id(db: AsyncSession, category_id: UUID) -> Category:
    result = await db.execute(
        select(Category)
        .filter(Category.id == category_id)
        .options(selectinload(Category.children))
        .execution_options(populate_existing=True)
    )
    category = result.scalars().first()
    if not category:
        logger.warning(f"Categoria de ID {category_id} não encontrada")
        raise CategoryNotFoundError(category_id)
    logger.info(f"Categoria de ID {category_id} recuperada")
    return category


# ========== Escrita (sempre invalida o cache) ==========


async def _get_category(db: AsyncSession, category_id: UUID) -> Category:
    category = await db.get(Category, category_id)
    if not category:
        logger.warning(f"Categoria de ID {category_id} não encontrada")
        raise CategoryNotFoundError(category_id)
    return category


async def _get_top_level_parent(db: AsyncSession, parent_id: UUID) -> Category:
    parent = await db.get(Category, parent_id)
    if not parent:
        raise ParentCategoryNotFoundError(parent_id)
    if parent.parent_id is not None:
        raise InvalidParentCategoryError()
    return parent


async def _count_children(db: AsyncSession, category_id: UUID) -> int:
    return await db.scalar(
        select(func.count(Category.id)).filter(Category.parent_id == category_id)
    )


async def _count_products(db: AsyncSession, category_ids: List[UUID]) -> int:
    return await db.scalar(
        select(func.count(Product.id)).filter(Product.sub_category_id.in_(category_ids))
    )


async def _commit(db: AsyncSession, action: str):
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Falha ao {action}: {e}")
        raise CategoryWriteError(str(e))


async def create_category(
    admin: Admin, db: AsyncSession, cache: CategoryCache, category: model.CategoryCreate
) -> Category:
    parent = None
    if category.parent_id is not None:
        parent = await _get_top_level_parent(db, category.parent_id)

    new_category = Category(
        name=category.name,
        description=category.description,
        parent_id=parent.id if parent else None,
        parent_name=parent.name if parent else None,
    )
    db.add(new_category)
    await _commit(db, "criar categoria")
    await db.refresh(new_category)
    cache.invalidate()

    logger.info(
        f"Nova categoria {new_category.id} registrada pelo administrador {admin.email}"
    )
    return new_category


def has_changes(update_data: model.CategoryUpdate, existing: Category) -> bool:
    if update_data.name is not None and update_data.name != existing.name:
        return True
    if update_data.description is not None and update_data.description != existing.description:
        return True
    if update_data.parent_id is not None and update_data.parent_id != existing.parent_id:
        return True
    return False


async def update_category(
    admin: Admin,
    db: AsyncSession,
    cache: CategoryCache,
    category_id: UUID,
    category_update: model.CategoryUpdate,
) -> Tuple[Category, bool]:
    """
    Atualiza nome, descrição e/ou pai. Retorna (categoria, houve_alteração).
    Renomear um pai reescreve o parent_name dos filhos.
    """
    category = await _get_category(db, category_id)

    if not has_changes(category_update, category):
        logger.info(f"Nenhuma alteração detectada na categoria {category_id}")
        return category, False

    if category_update.parent_id is not None:
        if category_update.parent_id == category_id:
            raise InvalidParentCategoryError("A categoria não pode ser pai de si mesma")
        parent = await _get_top_level_parent(db, category_update.parent_id)
        if await _count_children(db, category_id) > 0:
            raise InvalidParentCategoryError(
                "Uma categoria com subcategorias não pode ser movida para outro pai"
            )
        category.parent_id = parent.id
        category.parent_name = parent.name

    renamed = category_update.name is not None and category_update.name != category.name
    if category_update.name is not None:
        category.name = category_update.name
    if category_update.description is not None:
        category.description = category_update.description

    if renamed:
        await db.execute(
            update(Category)
            .where(Category.parent_id == category_id)
            .values(parent_name=category.name)
        )

    await _commit(db, "atualizar categoria")
    await db.refresh(category)
    cache.invalidate()

    logger.info(
        f"Categoria {category_id} atualizada pelo administrador {admin.email}"
    )
    return category, True


async def update_category_status(
    admin: Admin,
    db: AsyncSession,
    cache: CategoryCache,
    category_id: UUID,
    status_update: model.CategoryStatusUpdate,
) -> Category:
    category = await _get_category(db, category_id)
    category.status = status_update.status

    # Desativar um pai desativa todas as subcategorias na mesma transação
    if status_update.status == CategoryStatus.INACTIVE:
        await db.execute(
            update(Category)
            .where(Category.parent_id == category_id)
            .values(status=CategoryStatus.INACTIVE)
        )

    await _commit(db, "atualizar status da categoria")
    await db.refresh(category)
    cache.invalidate()

    logger.info(
        f"Status da categoria {category_id} alterado para {status_update.status.value} "
        f"pelo administrador {admin.email}"
    )
    return category


async def delete_category(
    admin: Admin, db: AsyncSession, cache: CategoryCache, category_id: UUID
) -> None:
    category = await _get_category(db, category_id)

    if await _count_children(db, category_id) > 0:
        raise CategoryHasChildrenError(category_id)
    if await _count_products(db, [category_id]) > 0:
        raise CategoryHasProductsError(category_id)

    await db.delete(category)
    await _commit(db, "excluir categoria")
    cache.invalidate()

    logger.info(
        f"Categoria de ID {category_id} foi excluída pelo administrador {admin.email}"
    )


async def delete_category_with_options(
    admin: Admin,
    db: AsyncSession,
    cache: CategoryCache,
    category_id: UUID,
    options: model.DeleteCategoryOptions,
) -> None:
    category = await _get_category(db, category_id)

    try:
        if options.mode == "cascade":
            child_ids = (
                await db.scalars(
                    select(Category.id).filter(Category.parent_id == category_id)
                )
            ).all()
            if await _count_products(db, [category_id, *child_ids]) > 0:
                raise CategoryHasProductsError(category_id)
            await db.execute(delete(Category).where(Category.parent_id == category_id))

        else:
            for reassignment in options.reassignments:
                new_parent = await db.get(Category, reassignment.new_parent_id)
                if not new_parent:
                    raise ReassignmentParentNotFoundError()
                if new_parent.parent_id is not None or new_parent.id == category_id:
                    raise InvalidParentCategoryError(
                        "As novas categorias pai devem ser de nível superior"
                    )
                await db.execute(
                    update(Category)
                    .where(
                        Category.id == reassignment.child_id,
                        Category.parent_id == category_id,
                    )
                    .values(parent_id=new_parent.id, parent_name=new_parent.name)
                )

            if await _count_children(db, category_id) > 0:
                raise CategoryHasChildrenError(category_id)
            if await _count_products(db, [category_id]) > 0:
                raise CategoryHasProductsError(category_id)

        # Os filhos foram removidos ou reatribuídos via SQL em massa
        db.expire(category, ["children"])
        await db.delete(category)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Falha ao excluir categoria {category_id} ({options.mode}): {e}")
        raise CategoryWriteError(str(e))
    except Exception:
        await db.rollback()
        raise

    cache.invalidate()
    logger.info(
        f"Categoria de ID {category_id} excluída ({options.mode}) "
        f"pelo administrador {admin.email}"
    )
