from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request

from . import model
from . import service
from ..auth.service import CurrentAdmin
from ..database.core import DbSession
from ..schemas.pagination import PageParams, get_page_params
from ..schemas.response import ApiResponse

router = APIRouter(prefix="/admin/activity-logs", tags=["CMS - Activity Logs"])

Page = Annotated[PageParams, Depends(get_page_params)]


@router.get("", response_model=ApiResponse[List[model.ActivityLogResponse]])
async def get_activity_logs(
    request: Request,
    db: DbSession,
    admin: CurrentAdmin,
    params: Page,
    admin_id: Optional[UUID] = None,
    resource_type: Optional[str] = None,
    action: Optional[str] = None,
    status: Optional[str] = None,
):
    logs, meta = await service.get_activity_logs(
        db, params, admin_id, resource_type, action, status
    )
    return ApiResponse.success(
        request,
        "Logs de atividade recuperados",
        [model.ActivityLogResponse.model_validate(log) for log in logs],
        meta,
    )


@router.get(
    "/admins/{admin_id}", response_model=ApiResponse[List[model.ActivityLogResponse]]
)
async def get_admin_activity_logs(
    request: Request, db: DbSession, admin: CurrentAdmin, admin_id: UUID, params: Page
):
    logs, meta = await service.get_activity_logs(db, params, admin_id=admin_id)
    return ApiResponse.success(
        request,
        "Logs de atividade do administrador recuperados",
        [model.ActivityLogResponse.model_validate(log) for log in logs],
        meta,
    )
