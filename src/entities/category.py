from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum
from datetime import datetime, timezone
from ..database.core import Base


class CategoryStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class Category(Base):
    __tablename__ = "categories"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    status = Column(
        Enum(
            CategoryStatus,
            name="category_status",
            native_enum=False,
            length=20,
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
        default=CategoryStatus.INACTIVE,
    )
    parent_id = Column(
        UUID(as_uuid=True), ForeignKey("categories.id"), nullable=True, index=True
    )
    # Nome do pai desnormalizado, mantido em sincronia pelo service
    parent_name = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    parent = relationship(
        "Category", remote_side=[id], back_populates="children", lazy="raise"
    )
    children = relationship(
        "Category",
        back_populates="parent",
        order_by="Category.created_at",
        lazy="raise",
        passive_deletes=True,
    )

    @property
    def is_parent(self) -> bool:
        return self.parent_id is None

    def __repr__(self):
        return f"<Category(name='{self.name}', parent_id='{self.parent_id}')>"
