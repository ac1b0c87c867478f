import math
from dataclasses import dataclass

from fastapi import Query

from .base import CamelModel

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def create(cls, total: int, page: int, limit: int):
        total_pages = math.ceil(total / limit) if limit > 0 else 0
        return cls(page=page, limit=limit, total=total, total_pages=total_pages)


@dataclass
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def get_page_params(
    page: int = Query(default=1), limit: int = Query(default=DEFAULT_LIMIT)
) -> PageParams:
    # Valores fora da faixa voltam ao padrão em vez de gerar 422
    if page < 1:
        page = 1
    if limit < 1 or limit > MAX_LIMIT:
        limit = DEFAULT_LIMIT
    return PageParams(page=page, limit=limit)


def paginate(items: list, params: PageParams) -> list:
    return items[params.offset : params.offset + params.limit]
