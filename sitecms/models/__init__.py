"""SQLAlchemy ORM models - staff users plus the five content tables."""
from sitecms.models.base import Base, TimestampMixin, UUIDMixin
from sitecms.models.user import User, UserRole
from sitecms.models.contact_inquiry import ContactInquiry, InquiryPriority, InquiryStatus
from sitecms.models.faq_category import ActiveStatus, FaqCategory
from sitecms.models.faq import Faq
from sitecms.models.resource_category import ResourceCategory
from sitecms.models.resource import Resource, ResourceStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "User",
    "UserRole",
    "ContactInquiry",
    "InquiryPriority",
    "InquiryStatus",
    "ActiveStatus",
    "FaqCategory",
    "Faq",
    "ResourceCategory",
    "Resource",
    "ResourceStatus",
]
