"""Contact inquiry business logic: public submission and staff workflow."""
import uuid
from collections.abc import Mapping
from datetime import datetime, timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.config import settings
from sitecms.exceptions import DuplicateSubmission, NotFoundError, ValidationError
from sitecms.models.contact_inquiry import ContactInquiry, InquiryStatus
from sitecms.models.user import User
from sitecms.repositories import common, contact_repository
from sitecms.repositories.contact_repository import CONTACT_LISTING
from sitecms.repositories.listing import Page, count_by, paginate
from sitecms.schemas.contact import ContactInquiryCreate, ContactInquiryUpdate
from sitecms.services import cache_service
from sitecms.utils.helpers import utc_now

logger = structlog.get_logger()

ENTITY = "contact"


async def submit_inquiry(
    db: AsyncSession,
    data: ContactInquiryCreate,
    metadata: dict | None = None,
    *,
    now: datetime | None = None,
) -> ContactInquiry:
    """Store a public submission unless the same email sent the same message recently."""
    now = now or utc_now()
    since = now - timedelta(minutes=settings.CONTACT_DUPLICATE_WINDOW_MINUTES)
    duplicate = await contact_repository.find_recent_duplicate(db, data.email, data.message, since)
    if duplicate is not None:
        logger.info("contact_duplicate_rejected", duplicate_of=str(duplicate.id))
        raise DuplicateSubmission()

    inquiry = ContactInquiry(
        name=data.name,
        email=data.email,
        company=data.company,
        phone=data.phone,
        service=data.service,
        message=data.message,
        source="website",
        metadata_={**(metadata or {}), "submitted_at": now.isoformat()},
        created_at=now,
        updated_at=now,
    )
    db.add(inquiry)
    await db.flush()
    logger.info("contact_inquiry_submitted", inquiry_id=str(inquiry.id), reference=inquiry.reference_number)
    await cache_service.commit_and_invalidate(db, ENTITY)
    return inquiry


async def list_inquiries(
    db: AsyncSession, params: Mapping, page: int = 1, per_page: int | None = None,
) -> tuple[Page, dict[str, int]]:
    result = await paginate(db, CONTACT_LISTING, params, page=page, per_page=per_page)
    by_status = await count_by(db, CONTACT_LISTING, params, ContactInquiry.status)
    status_counts = {status.value: by_status.get(status, 0) for status in InquiryStatus}
    return result, status_counts


async def get_inquiry(db: AsyncSession, inquiry_id: uuid.UUID) -> ContactInquiry:
    inquiry = await common.get_by_id(db, ContactInquiry, inquiry_id)
    if inquiry is None:
        raise NotFoundError("Contact inquiry not found.")
    return inquiry


async def update_inquiry(
    db: AsyncSession, inquiry: ContactInquiry, data: ContactInquiryUpdate, user: User,
) -> ContactInquiry:
    changes = data.model_dump(exclude_unset=True)
    if "status" in changes and changes["status"] is None:
        raise ValidationError.for_field("status", "Status cannot be empty.")
    if "priority" in changes and changes["priority"] is None:
        raise ValidationError.for_field("priority", "Priority cannot be empty.")
    if changes.get("assigned_to") is not None and await db.get(User, changes["assigned_to"]) is None:
        raise ValidationError.for_field("assigned_to", "The selected staff member does not exist.")

    new_status = changes.get("status")
    if (
        new_status == InquiryStatus.IN_PROGRESS
        and inquiry.status == InquiryStatus.NEW
        and inquiry.responded_at is None
    ):
        inquiry.responded_at = utc_now()

    for key, value in changes.items():
        setattr(inquiry, key, value)
    await db.flush()
    logger.info("contact_inquiry_updated", inquiry_id=str(inquiry.id), user_id=str(user.id), fields=sorted(changes))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return await common.get_by_id(db, ContactInquiry, inquiry.id)


async def delete_inquiry(db: AsyncSession, inquiry: ContactInquiry, user: User) -> None:
    await db.delete(inquiry)
    await db.flush()
    logger.info("contact_inquiry_deleted", inquiry_id=str(inquiry.id), user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)


async def get_stats(db: AsyncSession) -> dict[str, int]:
    async def load() -> dict[str, int]:
        now = utc_now()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        return await contact_repository.stats(db, start_of_day, now - timedelta(days=7))

    return await cache_service.remember(
        cache_service.stats_key(ENTITY), load, settings.STATS_CACHE_TTL_SECONDS
    )
