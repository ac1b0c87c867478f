"""
Registro das ações dos administradores (audit trail).

``log_admin_activity`` é uma dependência com ``yield`` anexada às rotas de
escrita do CMS: tira um snapshot do recurso antes do handler, executa o handler
e grava uma entrada ``success`` (com o snapshot depois) ou ``failed`` (com o
status e a mensagem da HTTPException).
"""
import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy import func, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth.service import CurrentAdmin
from ..database.core import DbSession
from ..entities.activity_log import (
    ActivityLog,
    RESOURCE_TYPE_ADMIN,
    RESOURCE_TYPE_CATEGORY,
    RESOURCE_TYPE_PRODUCT,
    STATUS_FAILED,
    STATUS_SUCCESS,
)
from ..entities.admin import Admin
from ..entities.category import Category
from ..entities.product import Product
from ..schemas.pagination import PageParams, Pagination

logger = logging.getLogger(__name__)

PATH_TO_RESOURCE_TYPE = {
    "categories": RESOURCE_TYPE_CATEGORY,
    "products": RESOURCE_TYPE_PRODUCT,
    "admins": RESOURCE_TYPE_ADMIN,
}

RESOURCE_TYPE_TO_ENTITY = {
    RESOURCE_TYPE_CATEGORY: Category,
    RESOURCE_TYPE_PRODUCT: Product,
    RESOURCE_TYPE_ADMIN: Admin,
}

RESOURCE_TYPE_TO_NAME_FIELD = {
    RESOURCE_TYPE_CATEGORY: "name",
    RESOURCE_TYPE_PRODUCT: "name",
    RESOURCE_TYPE_ADMIN: "email",
}

METHOD_TO_ACTION_VERB = {
    "POST": "created",
    "PATCH": "updated",
    "PUT": "updated",
    "DELETE": "deleted",
}

SENSITIVE_FIELDS = {"password_hash"}


def _is_id_segment(segment: str) -> bool:
    try:
        UUID(segment)
        return True
    except ValueError:
        return False


def extract_resource_type(path: str) -> str | None:
    """
    "/api/v1/admin/categories/<uuid>/status" -> "category"
    Percorre o path do fim para o começo ignorando IDs e segmentos desconhecidos.
    """
    for segment in reversed([p for p in path.split("/") if p]):
        if _is_id_segment(segment):
            continue
        if segment in PATH_TO_RESOURCE_TYPE:
            return PATH_TO_RESOURCE_TYPE[segment]
    return None


def get_client_ip(request: Request) -> str | None:
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip
    return request.client.host if request.client else None


async def fetch_resource_snapshot(
    db: AsyncSession, resource_type: str, resource_id: str | None
) -> Dict[str, Any] | None:
    entity = RESOURCE_TYPE_TO_ENTITY.get(resource_type)
    if entity is None or not resource_id:
        return None
    try:
        obj = await db.get(entity, UUID(resource_id), populate_existing=True)
    except (ValueError, SQLAlchemyError) as e:
        logger.warning(f"[activity-logging] falha ao buscar {resource_type} {resource_id}: {e}")
        return None
    if obj is None:
        return None
    return jsonable_encoder(
        {
            attr.key: getattr(obj, attr.key)
            for attr in inspect(obj).mapper.column_attrs
            if attr.key not in SENSITIVE_FIELDS
        }
    )


def extract_resource_name(resource_type: str, snapshot: Dict[str, Any] | None) -> str | None:
    if not snapshot:
        return None
    field = RESOURCE_TYPE_TO_NAME_FIELD.get(resource_type)
    value = snapshot.get(field) if field else None
    return str(value) if value is not None else None


async def record_activity(
    db: AsyncSession,
    request: Request,
    admin_id: UUID,
    admin_email: str,
    action: str,
    resource_type: str,
    resource_id: str | None,
    resource_name: str | None,
    status: str,
    changes: Dict[str, Any] | None = None,
    error_message: str | None = None,
) -> ActivityLog | None:
    """Grava a entrada de auditoria. Uma falha aqui nunca derruba a requisição."""
    activity = ActivityLog(
        admin_id=admin_id,
        admin_email=admin_email,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id or "",
        resource_name=resource_name,
        changes=changes,
        status=status,
        error_message=error_message,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )
    try:
        db.add(activity)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"[activity-logging] falha ao gravar log de atividade: {e}")
        return None

    logger.info(
        f"[activity-logging] {action}: {resource_type}/{resource_id}/{resource_name} "
        f"por {admin_email} ({status})"
    )
    return activity


def set_activity_resource_id(request: Request, resource_id: Any) -> None:
    """Usado por handlers de criação para informar o ID do recurso recém-criado."""
    request.state.activity_resource_id = str(resource_id)


def set_activity_verb(request: Request, verb: str) -> None:
    """Sobrescreve o verbo derivado do método HTTP (ex.: POST .../delete-with-options)."""
    request.state.activity_verb = verb


async def log_admin_activity(request: Request, db: DbSession, admin: CurrentAdmin):
    if request.method == "GET":
        yield
        return

    resource_type = extract_resource_type(request.url.path)
    verb = METHOD_TO_ACTION_VERB.get(request.method)
    if resource_type is None or verb is None:
        logger.warning(
            f"[activity-logging] rota sem recurso identificável: {request.method} {request.url.path}"
        )
        yield
        return

    # A sessão pode ser revertida abaixo, o que expira o objeto do administrador
    admin_id, admin_email = admin.id, admin.email

    resource_id = request.path_params.get("id")
    before = None
    if resource_id is not None:
        before = await fetch_resource_snapshot(db, resource_type, str(resource_id))
    resource_name = extract_resource_name(resource_type, before)

    try:
        yield
    except HTTPException as exc:
        await db.rollback()
        action = f"{getattr(request.state, 'activity_verb', verb)}_{resource_type}"
        await record_activity(
            db,
            request,
            admin_id,
            admin_email,
            action,
            resource_type,
            getattr(request.state, "activity_resource_id", None)
            or (str(resource_id) if resource_id is not None else None),
            resource_name,
            STATUS_FAILED,
            error_message=f"{exc.status_code}: {exc.detail}",
        )
        logger.warning(
            f"[activity-logging] falha: {action} por {admin_email} - status {exc.status_code}"
        )
        raise

    action = f"{getattr(request.state, 'activity_verb', verb)}_{resource_type}"
    resource_id = getattr(request.state, "activity_resource_id", None) or (
        str(resource_id) if resource_id is not None else None
    )
    after = await fetch_resource_snapshot(db, resource_type, resource_id)
    await record_activity(
        db,
        request,
        admin_id,
        admin_email,
        action,
        resource_type,
        resource_id,
        extract_resource_name(resource_type, after) or resource_name,
        STATUS_SUCCESS,
        changes={"before": before, "after": after},
    )


# ========== Consultas ==========


async def get_activity_logs(
    db: AsyncSession,
    params: PageParams,
    admin_id: Optional[UUID] = None,
    resource_type: Optional[str] = None,
    action: Optional[str] = None,
    status: Optional[str] = None,
) -> Tuple[List[ActivityLog], Pagination]:
    filters = []
    if admin_id is not None:
        filters.append(ActivityLog.admin_id == admin_id)
    if resource_type:
        filters.append(ActivityLog.resource_type == resource_type)
    if action:
        filters.append(ActivityLog.action == action)
    if status:
        filters.append(ActivityLog.status == status)

    total = await db.scalar(select(func.count(ActivityLog.id)).filter(*filters))
    result = await db.execute(
        select(ActivityLog)
        .filter(*filters)
        .order_by(ActivityLog.created_at.desc())
        .limit(params.limit)
        .offset(params.offset)
    )
    logs = result.scalars().all()
    logger.info(f"Recuperados {len(logs)} logs de atividade")
    return logs, Pagination.create(total, params.page, params.limit)
