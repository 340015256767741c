"""Contact inquiry data access layer."""
from datetime import datetime

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.models.contact_inquiry import ContactInquiry, InquiryPriority, InquiryStatus
from sitecms.repositories.listing import ListingSpec
from sitecms.utils.helpers import parse_uuid

_PRIORITY_RANK = case(
    (ContactInquiry.priority == InquiryPriority.URGENT, 0),
    (ContactInquiry.priority == InquiryPriority.HIGH, 1),
    (ContactInquiry.priority == InquiryPriority.MEDIUM, 2),
    else_=3,
)


def _enum_clause(column, enum_cls):
    def build(value: str):
        try:
            return column == enum_cls(value.lower())
        except ValueError:
            return None
    return build


def _assigned_clause(value: str):
    if value.lower() == "unassigned":
        return ContactInquiry.assigned_to.is_(None)
    user_id = parse_uuid(value)
    return None if user_id is None else ContactInquiry.assigned_to == user_id


CONTACT_LISTING = ListingSpec(
    model=ContactInquiry,
    filters={
        "status": _enum_clause(ContactInquiry.status, InquiryStatus),
        "priority": _enum_clause(ContactInquiry.priority, InquiryPriority),
        "service": lambda value: ContactInquiry.service == value,
        "assigned_to": _assigned_clause,
    },
    search_fields=(ContactInquiry.name, ContactInquiry.email, ContactInquiry.company, ContactInquiry.message),
    sorts={
        "latest": (ContactInquiry.created_at.desc(),),
        "oldest": (ContactInquiry.created_at.asc(),),
        "priority": (_PRIORITY_RANK.asc(), ContactInquiry.created_at.desc()),
    },
    default_sort="latest",
    default_per_page=15,
    max_per_page=100,
)


async def find_recent_duplicate(
    db: AsyncSession, email: str, message: str, since: datetime,
) -> ContactInquiry | None:
    q = (
        select(ContactInquiry)
        .where(
            ContactInquiry.email == email,
            ContactInquiry.message == message,
            ContactInquiry.created_at >= since,
        )
        .limit(1)
    )
    return (await db.execute(q)).scalar_one_or_none()


async def stats(db: AsyncSession, since_today: datetime, since_week: datetime) -> dict[str, int]:
    """Dashboard counters. Always global, never filtered."""
    q = select(
        func.count(ContactInquiry.id),
        func.count(ContactInquiry.id).filter(ContactInquiry.status == InquiryStatus.NEW),
        func.count(ContactInquiry.id).filter(ContactInquiry.status == InquiryStatus.IN_PROGRESS),
        func.count(ContactInquiry.id).filter(ContactInquiry.status == InquiryStatus.RESOLVED),
        func.count(ContactInquiry.id).filter(ContactInquiry.status == InquiryStatus.CLOSED),
        func.count(ContactInquiry.id).filter(ContactInquiry.priority == InquiryPriority.URGENT),
        func.count(ContactInquiry.id).filter(ContactInquiry.assigned_to.is_(None)),
        func.count(ContactInquiry.id).filter(ContactInquiry.created_at >= since_today),
        func.count(ContactInquiry.id).filter(ContactInquiry.created_at >= since_week),
    )
    row = (await db.execute(q)).one()
    keys = ("total", "new", "in_progress", "resolved", "closed", "urgent", "unassigned", "today", "this_week")
    return dict(zip(keys, row))
