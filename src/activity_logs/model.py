from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID
from src.schemas.base import CamelModel


class ActivityLogResponse(CamelModel):
    id: UUID
    admin_id: UUID
    admin_email: str
    action: str
    resource_type: str
    resource_id: str
    resource_name: Optional[str] = None
    changes: Optional[Dict[str, Any]] = None
    status: str
    error_message: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
