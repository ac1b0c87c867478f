from typing import Annotated
from fastapi import APIRouter, Depends, Request, Response
from fastapi.security import OAuth2PasswordRequestForm
from . import model
from . import service
from ..config import settings
from ..database.core import DbSession
from ..rate_limiting import limiter
from ..schemas.response import ApiResponse
from logging import getLogger

logger = getLogger(__name__)

router = APIRouter(prefix="/admin/auth", tags=["CMS - Auth"])

ADMIN_COOKIE_HTTPONLY = True
ADMIN_COOKIE_SAMESITE = "lax"


def set_admin_cookie(response: Response, token: str):
    response.set_cookie(
        key=service.ADMIN_COOKIE_NAME,
        value=token,
        httponly=ADMIN_COOKIE_HTTPONLY,
        secure=settings.COOKIE_SECURE,
        samesite=ADMIN_COOKIE_SAMESITE,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


def clear_admin_cookie(response: Response):
    response.delete_cookie(
        key=service.ADMIN_COOKIE_NAME,
        path="/",
        httponly=ADMIN_COOKIE_HTTPONLY,
        secure=settings.COOKIE_SECURE,
        samesite=ADMIN_COOKIE_SAMESITE,
    )


@router.post("/login", response_model=model.Token)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login_for_access_token(
    request: Request,
    response: Response,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: DbSession,
):
    token = await service.login_for_access_token(form_data, db)
    set_admin_cookie(response, token.access_token)
    return token


@router.post("/logout", response_model=ApiResponse[None])
async def logout(request: Request, response: Response):
    clear_admin_cookie(response)
    return ApiResponse.success(request, "Logout realizado com sucesso")


@router.get("/me", response_model=ApiResponse[model.Admin])
async def get_current_admin(request: Request, admin: service.CurrentAdmin):
    return ApiResponse.success(
        request, "Administrador recuperado", model.Admin.model_validate(admin)
    )
