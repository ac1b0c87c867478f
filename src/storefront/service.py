import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from . import model
from ..entities.category import Category, CategoryStatus
from ..entities.product import Product, ProductStatus
from ..exceptions.categories import CategoryNotFoundError
from ..exceptions.products import ProductNotFoundError
from ..schemas.pagination import PageParams, Pagination

logger = logging.getLogger(__name__)

SORT_ORDER = {
    model.ProductSort.NEWEST: [Product.created_at.desc()],
    model.ProductSort.PRICE_ASC: [Product.price.asc(), Product.created_at.desc()],
    model.ProductSort.PRICE_DESC: [Product.price.desc(), Product.created_at.desc()],
    model.ProductSort.POPULAR: [Product.views.desc(), Product.created_at.desc()],
}


async def _count_active_products(db: AsyncSession) -> Dict[UUID, int]:
    result = await db.execute(
        select(Product.sub_category_id, func.count(Product.id))
        .filter(Product.status == ProductStatus.ACTIVE)
        .group_by(Product.sub_category_id)
    )
    return dict(result.all())


def _to_store_category(category: Category, counts: Dict[UUID, int]) -> model.StoreCategory:
    return model.StoreCategory(
        id=category.id,
        name=category.name,
        description=category.description,
        parent_id=category.parent_id,
        product_count=counts.get(category.id, 0),
    )


async def get_categories(db: AsyncSession) -> List[model.StoreCategory]:
    """Categorias ativas em hierarquia (pai -> subcategorias), ordenadas por nome."""
    result = await db.execute(
        select(Category)
        .filter(Category.status == CategoryStatus.ACTIVE)
        .order_by(Category.name.asc())
    )
    categories = result.scalars().all()
    counts = await _count_active_products(db)

    by_id = {c.id: _to_store_category(c, counts) for c in categories}
    parents = []
    for category in categories:
        node = by_id[category.id]
        if category.parent_id is None:
            parents.append(node)
        elif category.parent_id in by_id:
            by_id[category.parent_id].subcategories.append(node)

    logger.info(f"Recuperadas {len(parents)} categorias da loja")
    return parents


async def get_category_by_id(db: AsyncSession, category_id: UUID) -> model.StoreCategory:
    category = await db.scalar(
        select(Category).filter(
            Category.id == category_id, Category.status == CategoryStatus.ACTIVE
        )
    )
    if not category:
        logger.warning(f"Categoria ativa de ID {category_id} não encontrada na loja")
        raise CategoryNotFoundError(category_id)

    result = await db.execute(
        select(Category)
        .filter(
            Category.parent_id == category_id, Category.status == CategoryStatus.ACTIVE
        )
        .order_by(Category.name.asc())
    )
    counts = await _count_active_products(db)

    store_category = _to_store_category(category, counts)
    store_category.subcategories = [
        _to_store_category(c, counts) for c in result.scalars().all()
    ]
    return store_category


def _to_store_product(product: Product) -> model.StoreProduct:
    return model.StoreProduct(
        id=product.id,
        name=product.name,
        description=product.description,
        price=product.price,
        tags=product.tags or [],
        sub_category_id=product.sub_category_id,
        category_name=product.sub_category_name,
        created_at=product.created_at,
    )


async def get_products(
    db: AsyncSession,
    params: PageParams,
    category_id: Optional[UUID] = None,
    search: Optional[str] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    sort: model.ProductSort = model.ProductSort.NEWEST,
) -> Tuple[List[model.StoreProduct], Pagination]:
    filters = [
        Product.status == ProductStatus.ACTIVE,
        Category.status == CategoryStatus.ACTIVE,
    ]
    if category_id is not None:
        # Um ID de categoria pai também traz os produtos das subcategorias
        filters.append(
            or_(Category.id == category_id, Category.parent_id == category_id)
        )
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        filters.append(
            or_(Product.name.ilike(pattern), Product.description.ilike(pattern))
        )
    if min_price is not None:
        filters.append(Product.price >= min_price)
    if max_price is not None:
        filters.append(Product.price <= max_price)

    total = await db.scalar(
        select(func.count(Product.id))
        .join(Category, Product.sub_category_id == Category.id)
        .filter(*filters)
    )
    result = await db.execute(
        select(Product)
        .join(Category, Product.sub_category_id == Category.id)
        .filter(*filters)
        .order_by(*SORT_ORDER[sort])
        .limit(params.limit)
        .offset(params.offset)
        .options(selectinload(Product.sub_category))
    )
    products = [_to_store_product(p) for p in result.scalars().all()]

    logger.info(f"Recuperada a página {params.page} de produtos da loja ({total} no total)")
    return products, Pagination.create(total, params.page, params.limit)


async def get_product_by_id(db: AsyncSession, product_id: UUID) -> model.StoreProductDetail:
    result = await db.execute(
        select(Product)
        .filter(Product.id == product_id, Product.status == ProductStatus.ACTIVE)
        .options(selectinload(Product.sub_category))
    )
    product = result.scalars().first()
    if not product:
        logger.warning(f"Produto ativo de ID {product_id} não encontrado na loja")
        raise ProductNotFoundError(product_id)

    await db.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(
            views=func.coalesce(Product.views, 0) + 1,
            # Visualização não conta como edição do produto
            updated_at=Product.updated_at,
        )
    )
    await db.commit()
    await db.refresh(product, ["views"])

    return model.StoreProductDetail(
        **_to_store_product(product).model_dump(),
        category_path=product.sub_category_path,
        views=product.views,
    )


async def _price_range(
    db: AsyncSession, default_max: Decimal, *filters
) -> model.PriceRange:
    row = (
        await db.execute(
            select(func.min(Product.price), func.max(Product.price))
            .select_from(Product)
            .join(Category, Product.sub_category_id == Category.id)
            .filter(
                Product.status == ProductStatus.ACTIVE,
                Category.status == CategoryStatus.ACTIVE,
                *filters,
            )
        )
    ).one()
    min_price, max_price = row
    return model.PriceRange(
        min=min_price if min_price is not None else Decimal("0"),
        max=max_price if max_price is not None else default_max,
    )


async def get_product_filters(db: AsyncSession) -> model.ProductFilters:
    """
    Opções de filtro para a listagem de produtos.

    Categorias ativas com pelo menos um produto ativo (ordenadas por nome) e a
    faixa de preço dos produtos visíveis. Sem produtos, a faixa é 0 a 0.
    """
    result = await db.execute(
        select(Category.id, Category.name, func.count(Product.id))
        .join(Product, Product.sub_category_id == Category.id)
        .filter(
            Category.status == CategoryStatus.ACTIVE,
            Product.status == ProductStatus.ACTIVE,
        )
        .group_by(Category.id, Category.name)
        .order_by(Category.name.asc())
    )
    categories = [
        model.FilterOption(value=str(category_id), label=name, count=count)
        for category_id, name, count in result.all()
    ]
    price_range = await _price_range(db, Decimal("0"))

    logger.info(f"Filtros da loja montados com {len(categories)} categorias")
    return model.ProductFilters(categories=categories, price_range=price_range)


async def get_filter_metadata(db: AsyncSession) -> model.FilterMetadata:
    """Árvore de categorias ativas (por data de criação) e faixa de preço para os filtros."""
    result = await db.execute(
        select(Category)
        .filter(Category.status == CategoryStatus.ACTIVE)
        .order_by(Category.created_at.asc())
    )
    categories = result.scalars().all()

    nodes = {
        c.id: model.FilterCategory(id=c.id, name=c.name, parent_id=c.parent_id)
        for c in categories
    }
    parents = []
    for category in categories:
        node = nodes[category.id]
        if category.parent_id is None:
            parents.append(node)
        elif category.parent_id in nodes:
            nodes[category.parent_id].subcategories.append(node)

    # Produtos com preço zero não entram na faixa
    price_range = await _price_range(db, Decimal("1000"), Product.price > 0)
    return model.FilterMetadata(categories=parents, price_range=price_range)
