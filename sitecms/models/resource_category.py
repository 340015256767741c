"""Resource category ORM model (self-referential tree)."""
import uuid

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from sitecms.models.base import Base, TimestampMixin, UUIDMixin

DEFAULT_CATEGORY_COLOR = "#3B82F6"


class ResourceCategory(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "resource_categories"
    __table_args__ = (Index("ix_resource_categories_parent_id", "parent_id"),)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default=DEFAULT_CATEGORY_COLOR)
    icon: Mapped[str | None] = mapped_column(String(50), nullable=True)
    featured_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    # No ORM relationship for parent/children: trees are rebuilt from an
    # id-indexed arena in services.category_hierarchy.
    parent_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("resource_categories.id", ondelete="RESTRICT"), nullable=True
    )
    meta_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    meta_description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    meta_keywords: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    resource_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
