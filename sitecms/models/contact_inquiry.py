"""Contact inquiry ORM model."""
import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sitecms.models.base import Base, TimestampMixin, UUIDMixin, pg_enum


class InquiryStatus(str, enum.Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class InquiryPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ContactInquiry(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "contact_inquiries"
    __table_args__ = (
        Index("ix_contact_inquiries_email_created_at", "email", "created_at"),
        Index("ix_contact_inquiries_status", "status"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    service: Mapped[str | None] = mapped_column(String(100), nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[InquiryStatus] = mapped_column(
        pg_enum(InquiryStatus, name="inquiry_status"), nullable=False, default=InquiryStatus.NEW
    )
    priority: Mapped[InquiryPriority] = mapped_column(
        pg_enum(InquiryPriority, name="inquiry_priority"), nullable=False, default=InquiryPriority.MEDIUM
    )
    source: Mapped[str] = mapped_column(String(50), nullable=False, default="website")
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONB, nullable=True)
    assigned_to: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    assignee = relationship("User", foreign_keys=[assigned_to], lazy="selectin")

    @property
    def reference_number(self) -> str:
        return f"HIS-{self.id.hex[:8].upper()}"
