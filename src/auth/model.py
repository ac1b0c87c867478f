from datetime import datetime
from uuid import UUID
from pydantic import EmailStr, BaseModel
from src.schemas.base import CamelModel
from src.entities.admin import AdminRole, AdminStatus


class Admin(CamelModel):
    id: UUID
    email: EmailStr
    name: str
    role: AdminRole
    status: AdminStatus
    last_login_at: datetime | None = None
    joined_at: datetime


class Token(BaseModel):
    access_token: str
    token_type: str


class TokenData(CamelModel):
    admin_id: str | None = None
    email: str | None = None

    def get_uuid(self) -> UUID | None:
        if self.admin_id:
            return UUID(self.admin_id)
