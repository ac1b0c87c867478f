from typing import Any, Generic, Optional, TypeVar

from fastapi import Request

from ..config import settings
from .base import CamelModel
from .pagination import Pagination

T = TypeVar("T")


class ApiResponse(CamelModel, Generic[T]):
    message: str
    data: Optional[T] = None
    meta: Optional[Pagination] = None
    error: bool = False
    requested_entity: Optional[str] = None

    @classmethod
    def success(
        cls, request: Request, message: str, data: Any = None, meta: Pagination = None
    ):
        return cls(
            message=message,
            data=data,
            meta=meta,
            requested_entity=requested_entity(request),
        )


def requested_entity(request: Request) -> str:
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    if path is None:
        return f"{request.method} {request.url.path}"
    # Rotas incluídas com include_router podem guardar o path sem o prefixo da API
    if not path.startswith(settings.API_PREFIX):
        path = f"{settings.API_PREFIX}{path}"
    return f"{request.method} {request.scope.get('root_path', '')}{path}"


def error_body(request: Request, message: Any) -> dict:
    return {
        "message": message,
        "data": None,
        "meta": None,
        "error": True,
        "requestedEntity": requested_entity(request),
    }
