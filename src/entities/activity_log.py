from sqlalchemy import Column, String, Text, DateTime, JSON, Index
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime, timezone
from ..database.core import Base

RESOURCE_TYPE_CATEGORY = "category"
RESOURCE_TYPE_PRODUCT = "product"
RESOURCE_TYPE_ADMIN = "admin"

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"


class ActivityLog(Base):
    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("idx_activity_admin_date", "admin_id", "created_at"),
        Index("idx_activity_resource_date", "resource_type", "created_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    admin_id = Column(UUID(as_uuid=True), nullable=False)
    admin_email = Column(String, nullable=False)
    # created_product, updated_category, deleted_category...
    action = Column(String, nullable=False, index=True)
    resource_type = Column(String, nullable=False)
    resource_id = Column(String, nullable=False, default="", index=True)
    resource_name = Column(String, nullable=True)
    # {"before": {...}, "after": {...}}
    changes = Column(JSON, nullable=True)
    status = Column(String, nullable=False, default=STATUS_SUCCESS)
    error_message = Column(Text, nullable=True)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self):
        return f"<ActivityLog(action='{self.action}', resource_id='{self.resource_id}')>"
