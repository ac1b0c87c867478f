from datetime import timedelta, datetime, timezone
from typing import Annotated
from uuid import UUID, uuid4
from fastapi import Depends, Request
from passlib.context import CryptContext
import jwt
from jwt import PyJWTError, ExpiredSignatureError, InvalidTokenError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from fastapi.security import OAuth2PasswordRequestForm, OAuth2PasswordBearer
from src.entities.admin import Admin, AdminRole, AdminStatus
from src.config import settings
from . import model
from ..exceptions.auth import (
    AdminAlreadyExistsError,
    AdminForbiddenError,
    AuthenticationError,
)
from ..database.core import DbSession
import logging

ADMIN_COOKIE_NAME = "admin_token"

oauth2_bearer = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/admin/auth/login", auto_error=False
)
bcrypt_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return bcrypt_context.hash(password)


async def authenticate_admin(email: str, password: str, db: AsyncSession) -> Admin | bool:
    result = await db.execute(select(Admin).filter(Admin.email == email))
    admin = result.scalars().first()
    if not admin or not verify_password(password, admin.password_hash):
        logging.warning(f"Falha na autenticação para o email: {email}")
        return False
    return admin


def create_access_token(
    email: str,
    admin_id: UUID,
    expires_delta: timedelta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
) -> str:
    encode = {
        "sub": email,
        "id": str(admin_id),
        "type": "access",
        "exp": datetime.now(timezone.utc) + expires_delta,
        "jti": str(uuid4()),
    }
    return jwt.encode(encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> model.TokenData:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        if payload.get("type") != "access":
            raise InvalidTokenError("Invalid token type")
        return model.TokenData(admin_id=payload.get("id"), email=payload.get("sub"))
    except ExpiredSignatureError:
        raise AuthenticationError(message="Token expirado")
    except InvalidTokenError:
        raise AuthenticationError(message="Token inválido")
    except PyJWTError as e:
        logging.warning(f"Falha na verificação de Token: {str(e)}")
        raise AuthenticationError()


def get_token(
    request: Request, bearer_token: Annotated[str | None, Depends(oauth2_bearer)]
) -> str:
    # Cookie primeiro, depois o header Authorization
    token = request.cookies.get(ADMIN_COOKIE_NAME) or bearer_token
    if not token:
        raise AuthenticationError(message="Token de acesso ausente")
    return token


async def get_current_admin(
    token: Annotated[str, Depends(get_token)], db: DbSession
) -> Admin:
    token_data = verify_token(token)
    try:
        admin_id = token_data.get_uuid()
    except ValueError:
        raise AuthenticationError(message="Token inválido")

    result = await db.execute(select(Admin).filter(Admin.id == admin_id))
    admin = result.scalars().first()
    if not admin:
        raise AuthenticationError(message="Administrador não encontrado")
    if admin.status != AdminStatus.ACTIVE:
        logging.warning(f"Acesso negado ao administrador {admin.email}: {admin.status.value}")
        raise AdminForbiddenError(message="Administrador inativo ou suspenso")
    return admin


CurrentAdmin = Annotated[Admin, Depends(get_current_admin)]


async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm, db: AsyncSession
) -> model.Token:
    admin = await authenticate_admin(
        email=form_data.username, password=form_data.password, db=db
    )

    if not admin:
        raise AuthenticationError(message="Email ou senha inválidos")

    if admin.status != AdminStatus.ACTIVE:
        logging.warning(f"Login recusado para administrador {admin.email}: {admin.status.value}")
        raise AuthenticationError(message="Administrador inativo ou suspenso")

    admin.last_login_at = datetime.now(timezone.utc)
    await db.commit()

    access_token = create_access_token(admin.email, admin.id)
    logging.info(f"Administrador autenticado: {admin.email}")
    return model.Token(access_token=access_token, token_type="bearer")


async def create_admin(
    db: AsyncSession,
    email: str,
    password: str,
    name: str,
    role: AdminRole = AdminRole.ADMIN,
) -> Admin:
    result = await db.execute(select(Admin).filter(Admin.email == email))
    if result.scalars().first():
        raise AdminAlreadyExistsError(email)

    admin = Admin(
        email=email,
        name=name,
        password_hash=get_password_hash(password),
        role=role,
        status=AdminStatus.ACTIVE,
    )
    db.add(admin)
    await db.commit()
    await db.refresh(admin)
    logging.info(f"Administrador {email} criado com papel {role.value}")
    return admin
