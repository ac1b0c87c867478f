from sqlalchemy import (
    Column,
    String,
    Text,
    DateTime,
    ForeignKey,
    Integer,
    DECIMAL,
    JSON,
    CheckConstraint,
    Enum,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum
from datetime import datetime, timezone
from ..database.core import Base


class ProductStatus(str, enum.Enum):
    ACTIVE = "Active"
    DRAFT = "Draft"


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (CheckConstraint("price >= 0", name="ck_products_price"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False)
    price = Column(DECIMAL(12, 2), nullable=False)
    sub_category_id = Column(
        UUID(as_uuid=True), ForeignKey("categories.id"), nullable=False, index=True
    )
    status = Column(
        Enum(
            ProductStatus,
            name="product_status",
            native_enum=False,
            length=20,
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
        default=ProductStatus.DRAFT,
        index=True,
    )
    tags = Column(JSON, nullable=False, default=list)
    views = Column(Integer, nullable=False, default=0)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    sub_category = relationship("Category", lazy="raise")

    @property
    def sub_category_name(self) -> str | None:
        return self.sub_category.name if self.sub_category else None

    @property
    def sub_category_path(self) -> str | None:
        if not self.sub_category:
            return None
        if self.sub_category.parent_name:
            return f"{self.sub_category.parent_name} → {self.sub_category.name}"
        return self.sub_category.name

    def __repr__(self):
        return f"<Product(name='{self.name}', status='{self.status}')>"
