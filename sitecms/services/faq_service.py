"""FAQ business logic: public reads and votes, staff CRUD."""
import uuid
from collections.abc import Mapping

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.config import settings
from sitecms.exceptions import NotFoundError, ValidationError
from sitecms.models.faq import Faq
from sitecms.models.faq_category import ActiveStatus, FaqCategory
from sitecms.models.user import User
from sitecms.repositories import common, faq_repository
from sitecms.repositories.faq_repository import FAQ_LISTING
from sitecms.repositories.listing import Page, count_by, paginate
from sitecms.schemas.common import PaginationMeta
from sitecms.schemas.faq import FaqCreate, FaqResponse, FaqUpdate
from sitecms.services import cache_service, counter_service
from sitecms.utils.helpers import slugify

logger = structlog.get_logger()

ENTITY = "faq"
BULK_ACTIONS = ("activate", "deactivate", "feature", "unfeature", "delete")


def _dump(faq: Faq) -> dict:
    return FaqResponse.model_validate(faq).model_dump(mode="json")


# --- Public ---

async def public_list(db: AsyncSession, params: Mapping, page: int = 1, per_page: int | None = None) -> dict:
    """Active FAQs grouped by category, with per-category counts in the same filter context."""
    normalized = FAQ_LISTING.normalize(params)
    per_page = FAQ_LISTING.clamp(per_page)
    key = cache_service.list_key(ENTITY, "index", {**normalized, "page": page, "per_page": per_page})

    async def load() -> dict:
        scope = faq_repository.active_scope()
        result = await paginate(db, FAQ_LISTING, normalized, scope=scope, page=page, per_page=per_page)
        faqs = [_dump(f) for f in result.items]
        grouped: dict[str, list[dict]] = {}
        for faq in faqs:
            slug = faq["category"]["slug"] if faq["category"] else "uncategorized"
            grouped.setdefault(slug, []).append(faq)
        counts = await count_by(db, FAQ_LISTING, normalized, Faq.category_id, scope=scope)
        slugs = dict((await db.execute(
            select(FaqCategory.id, FaqCategory.slug).where(FaqCategory.id.in_(list(counts)))
        )).all()) if counts else {}
        return {
            "faqs": faqs,
            "grouped_faqs": grouped,
            "categories": {slugs[cid]: n for cid, n in counts.items() if cid in slugs},
            "total_count": result.total,
            "pagination": PaginationMeta.from_page(result).model_dump(by_alias=True),
        }

    return await cache_service.remember(key, load)


async def public_detail(db: AsyncSession, slug: str, viewer_key: str) -> dict:
    async def load() -> dict | None:
        faq = await faq_repository.get_by_slug(db, slug)
        if faq is None:
            return None
        return {
            "faq": _dump(faq),
            "related_faqs": [_dump(f) for f in await faq_repository.related(db, faq)],
        }

    data = await cache_service.remember(cache_service.detail_key(ENTITY, slug), load)
    if data is None:
        raise NotFoundError("FAQ not found.")
    await counter_service.record_view(db, ENTITY, uuid.UUID(data["faq"]["id"]), viewer_key)
    return data


async def vote(db: AsyncSession, slug: str, helpful: bool) -> dict:
    faq = await faq_repository.get_by_slug(db, slug)
    if faq is None:
        raise NotFoundError("FAQ not found.")
    helpful_count, not_helpful_count = await counter_service.record_helpful_vote(db, faq.id, helpful)
    await cache_service.commit_and_invalidate(db, ENTITY)
    total = helpful_count + not_helpful_count
    return {
        "helpful_count": helpful_count,
        "not_helpful_count": not_helpful_count,
        "helpfulness_ratio": round(helpful_count / total, 3) if total else 0.0,
    }


# --- Admin ---

async def list_faqs(
    db: AsyncSession, params: Mapping, page: int = 1, per_page: int | None = None,
) -> tuple[Page, dict[str, int]]:
    result = await paginate(db, FAQ_LISTING, params, page=page, per_page=per_page)
    by_status = await count_by(db, FAQ_LISTING, params, Faq.status)
    return result, {s.value: by_status.get(s, 0) for s in ActiveStatus}


async def get_faq(db: AsyncSession, faq_id: uuid.UUID) -> Faq:
    faq = await common.get_by_id(db, Faq, faq_id)
    if faq is None:
        raise NotFoundError("FAQ not found.")
    return faq


async def _check_category(db: AsyncSession, category_id: uuid.UUID) -> None:
    if await db.get(FaqCategory, category_id) is None:
        raise ValidationError.for_field("category_id", "The selected category is invalid.")


async def _resolve_slug(db: AsyncSession, requested: str | None, question: str, exclude_id=None) -> str:
    if requested:
        slug = slugify(requested)
        if await common.slug_exists(db, Faq, slug, exclude_id):
            raise ValidationError.for_field("slug", "This slug is already taken.")
        return slug
    return await common.unique_slug(db, Faq, question, exclude_id)


async def create_faq(db: AsyncSession, data: FaqCreate, user: User) -> Faq:
    await _check_category(db, data.category_id)
    faq = Faq(
        **data.model_dump(exclude={"slug"}),
        slug=await _resolve_slug(db, data.slug, data.question),
        created_by=user.id,
        updated_by=user.id,
    )
    db.add(faq)
    await db.flush()
    logger.info("faq_created", faq_id=str(faq.id), user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return await get_faq(db, faq.id)


async def update_faq(db: AsyncSession, faq: Faq, data: FaqUpdate, user: User) -> Faq:
    changes = data.model_dump(exclude_unset=True)
    for required in ("question", "answer", "category_id", "status", "is_featured", "sort_order"):
        if required in changes and changes[required] is None:
            raise ValidationError.for_field(required, f"The {required.replace('_', ' ')} field cannot be empty.")
    if "category_id" in changes:
        await _check_category(db, changes["category_id"])
    if "slug" in changes:
        changes["slug"] = await _resolve_slug(db, changes["slug"], changes.get("question", faq.question), faq.id)
    if "tags" in changes and changes["tags"] is None:
        changes["tags"] = []

    for key, value in changes.items():
        setattr(faq, key, value)
    faq.updated_by = user.id
    await db.flush()
    logger.info("faq_updated", faq_id=str(faq.id), user_id=str(user.id), fields=sorted(changes))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return await get_faq(db, faq.id)


async def delete_faq(db: AsyncSession, faq: Faq, user: User) -> None:
    await db.delete(faq)
    await db.flush()
    logger.info("faq_deleted", faq_id=str(faq.id), user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)


async def toggle_status(db: AsyncSession, faq: Faq, user: User) -> Faq:
    faq.status = ActiveStatus.INACTIVE if faq.status == ActiveStatus.ACTIVE else ActiveStatus.ACTIVE
    faq.updated_by = user.id
    await db.flush()
    logger.info("faq_status_toggled", faq_id=str(faq.id), status=faq.status.value, user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return await get_faq(db, faq.id)


async def toggle_featured(db: AsyncSession, faq: Faq, user: User) -> Faq:
    faq.is_featured = not faq.is_featured
    faq.updated_by = user.id
    await db.flush()
    logger.info("faq_featured_toggled", faq_id=str(faq.id), featured=faq.is_featured, user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return await get_faq(db, faq.id)


async def bulk_action(db: AsyncSession, action: str, ids: list[uuid.UUID], user: User) -> int:
    if action not in BULK_ACTIONS:
        raise ValidationError.for_field("action", f"Action must be one of: {', '.join(BULK_ACTIONS)}.")
    faqs = await common.get_many(db, Faq, ids)
    if not faqs:
        raise NotFoundError("No matching FAQs.")
    for faq in faqs:
        if action == "delete":
            await db.delete(faq)
            continue
        if action in ("activate", "deactivate"):
            faq.status = ActiveStatus.ACTIVE if action == "activate" else ActiveStatus.INACTIVE
        else:
            faq.is_featured = action == "feature"
        faq.updated_by = user.id
    await db.flush()
    logger.info("faq_bulk_action", action=action, count=len(faqs), user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return len(faqs)


async def get_stats(db: AsyncSession) -> dict:
    """Global FAQ dashboard numbers."""
    async def load() -> dict:
        totals = (await db.execute(select(
            func.count(Faq.id),
            func.count(Faq.id).filter(Faq.status == ActiveStatus.ACTIVE),
            func.count(Faq.id).filter(Faq.is_featured.is_(True)),
            func.coalesce(func.sum(Faq.view_count), 0),
            func.coalesce(func.sum(Faq.helpful_count), 0),
            func.coalesce(func.sum(Faq.not_helpful_count), 0),
        ))).one()
        total, active, featured, views, helpful, not_helpful = totals
        per_category = (await db.execute(
            select(FaqCategory.name, func.count(Faq.id))
            .join(Faq, Faq.category_id == FaqCategory.id)
            .group_by(FaqCategory.name)
        )).all()
        most_viewed = (await db.execute(
            select(Faq.id, Faq.question, Faq.view_count).order_by(Faq.view_count.desc(), Faq.id.asc()).limit(5)
        )).all()
        most_helpful = (await db.execute(
            select(Faq.id, Faq.question, Faq.helpful_count).order_by(Faq.helpful_count.desc(), Faq.id.asc()).limit(5)
        )).all()
        return {
            "total": total,
            "active": active,
            "inactive": total - active,
            "featured": featured,
            "total_views": int(views),
            "total_helpful": int(helpful),
            "total_not_helpful": int(not_helpful),
            "categories": {name: count for name, count in per_category},
            "most_viewed": [{"id": str(i), "question": q, "view_count": v} for i, q, v in most_viewed],
            "most_helpful": [{"id": str(i), "question": q, "helpful_count": h} for i, q, h in most_helpful],
        }

    return await cache_service.remember(cache_service.stats_key(ENTITY), load, settings.STATS_CACHE_TTL_SECONDS)
