"""Resource business logic: public library reads, engagement, staff CRUD."""
import uuid
from collections.abc import Mapping
from datetime import datetime

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.config import settings
from sitecms.exceptions import NotFoundError, ValidationError
from sitecms.models.resource import Resource, ResourceStatus
from sitecms.models.resource_category import ResourceCategory
from sitecms.models.user import User
from sitecms.repositories import common, resource_repository
from sitecms.repositories.listing import Page, count_by, paginate
from sitecms.repositories.resource_repository import ADMIN_RESOURCE_LISTING, RESOURCE_LISTING
from sitecms.schemas.common import PaginationMeta
from sitecms.schemas.resource import (
    ResourceAdminResponse,
    ResourceCreate,
    ResourceDetail,
    ResourceLink,
    ResourceListItem,
    ResourceUpdate,
)
from sitecms.schemas.resource_category import ResourceCategoryResponse
from sitecms.services import cache_service, category_hierarchy, counter_service
from sitecms.services.scoring import compute_seo_score, estimate_read_time, word_count
from sitecms.utils.helpers import as_utc, parse_uuid, slugify, utc_now

logger = structlog.get_logger()

ENTITY = "resource"
BULK_ACTIONS = ("publish", "unpublish", "feature", "unfeature", "trend", "untrend", "delete")


def _item(resource: Resource) -> dict:
    return ResourceListItem.model_validate(resource).model_dump(mode="json")


def _link(resource: Resource | None) -> dict | None:
    return ResourceLink.model_validate(resource).model_dump(mode="json") if resource else None


def schema_org(resource: Resource) -> dict:
    """schema.org Article structured data for the detail page."""
    detail = ResourceDetail.model_validate(resource)
    published = as_utc(resource.published_at)
    modified = as_utc(resource.updated_at)
    return {
        "@context": "https://schema.org",
        "@type": "Article",
        "headline": resource.title,
        "description": resource.excerpt,
        "image": detail.featured_image_url,
        "author": {"@type": "Person", "name": resource.author.name if resource.author else None},
        "publisher": {"@type": "Organization", "name": settings.APP_NAME, "url": settings.APP_URL},
        "datePublished": published.isoformat() if published else None,
        "dateModified": modified.isoformat() if modified else None,
        "mainEntityOfPage": {"@type": "WebPage", "@id": detail.full_url},
        "keywords": ", ".join(resource.tags or []),
        "articleSection": resource.category.name if resource.category else None,
        "wordCount": word_count(resource.content),
        "timeRequired": f"PT{resource.read_time}M",
    }


# --- Public ---

async def _category_counts(db: AsyncSession, normalized: Mapping) -> list[dict]:
    counts = await count_by(
        db, RESOURCE_LISTING, normalized, Resource.category_id, scope=resource_repository.published_scope()
    )
    if not counts:
        return []
    rows = (await db.execute(
        select(ResourceCategory).where(ResourceCategory.id.in_(list(counts)))
        .order_by(ResourceCategory.sort_order.asc(), ResourceCategory.name.asc())
    )).scalars().all()
    return [{"id": str(c.id), "name": c.name, "slug": c.slug, "count": counts[c.id]} for c in rows]


async def public_list(db: AsyncSession, params: Mapping, page: int = 1, per_page: int | None = None) -> dict:
    normalized = RESOURCE_LISTING.normalize(params)
    normalized.pop("status", None)
    normalized.pop("author", None)
    per_page = RESOURCE_LISTING.clamp(per_page)
    key = cache_service.list_key(ENTITY, "index", {**normalized, "page": page, "per_page": per_page})

    async def load() -> dict:
        scope = resource_repository.published_scope()
        result = await paginate(db, RESOURCE_LISTING, normalized, scope=scope, page=page, per_page=per_page)
        featured = await resource_repository.list_published(
            db, Resource.is_featured.is_(True), order_by=(Resource.published_at.desc(),), limit=3
        )
        trending = await resource_repository.list_published(
            db, Resource.is_trending.is_(True), order_by=(Resource.share_count.desc(),), limit=5
        )
        return {
            "resources": [_item(r) for r in result.items],
            "pagination": PaginationMeta.from_page(result).model_dump(by_alias=True),
            "category_counts": await _category_counts(db, normalized),
            "featured_resources": [_item(r) for r in featured],
            "trending_resources": [_item(r) for r in trending],
            "total_count": result.total,
            "filters_applied": normalized,
        }

    return await cache_service.remember(key, load)


async def featured(db: AsyncSession, limit: int = 6) -> list[dict]:
    async def load() -> list[dict]:
        rows = await resource_repository.list_published(
            db, Resource.is_featured.is_(True), order_by=(Resource.published_at.desc(),), limit=limit
        )
        return [_item(r) for r in rows]

    return await cache_service.remember(cache_service.list_key(ENTITY, "featured", {"limit": limit}), load)


async def trending(db: AsyncSession, limit: int = 8) -> list[dict]:
    async def load() -> list[dict]:
        rows = await resource_repository.list_published(
            db, Resource.is_trending.is_(True), order_by=(Resource.share_count.desc(),), limit=limit
        )
        return [_item(r) for r in rows]

    return await cache_service.remember(cache_service.list_key(ENTITY, "trending", {"limit": limit}), load)


async def search(
    db: AsyncSession, q: str, category: str | None = None, page: int = 1, per_page: int | None = None,
) -> dict:
    params = {"search": q, "category": category, "sort": "latest"}
    normalized = RESOURCE_LISTING.normalize(params)
    per_page = RESOURCE_LISTING.clamp(per_page)
    key = cache_service.list_key(ENTITY, "search", {**normalized, "page": page, "per_page": per_page})

    async def load() -> dict:
        result = await paginate(
            db, RESOURCE_LISTING, normalized, scope=resource_repository.published_scope(),
            page=page, per_page=per_page,
        )
        return {
            "resources": [_item(r) for r in result.items],
            "pagination": PaginationMeta.from_page(result).model_dump(by_alias=True),
            "search_query": q,
            "category_filter": normalized.get("category"),
        }

    return await cache_service.remember(key, load)


async def _resolve_category(db: AsyncSession, value: str) -> ResourceCategory:
    """Look a category up by id, slug or name."""
    category_id = parse_uuid(value)
    if category_id is not None:
        category = await db.get(ResourceCategory, category_id)
    else:
        q = select(ResourceCategory).where((ResourceCategory.slug == value) | (ResourceCategory.name == value))
        category = (await db.execute(q.limit(1))).scalar_one_or_none()
    if category is None or not category.is_active:
        raise NotFoundError("Category not found.")
    return category


async def by_category(
    db: AsyncSession, category_ref: str, params: Mapping, page: int = 1, per_page: int | None = None,
) -> dict:
    normalized = RESOURCE_LISTING.normalize({**params, "category": category_ref})
    for name in ("status", "author"):
        normalized.pop(name, None)
    per_page = RESOURCE_LISTING.clamp(per_page)
    key = cache_service.list_key(ENTITY, "category", {**normalized, "page": page, "per_page": per_page})

    async def load() -> dict:
        category = await _resolve_category(db, category_ref)
        scope = resource_repository.published_scope()
        result = await paginate(db, RESOURCE_LISTING, normalized, scope=scope, page=page, per_page=per_page)
        return {
            "resources": [_item(r) for r in result.items],
            "pagination": PaginationMeta.from_page(result).model_dump(by_alias=True),
            "category": ResourceCategoryResponse.model_validate(category).model_dump(mode="json"),
            "category_stats": await resource_repository.category_stats(db, Resource.category_id == category.id),
        }

    return await cache_service.remember(key, load)


async def categories_with_counts(db: AsyncSession) -> list[dict]:
    async def load() -> list[dict]:
        counts = await resource_repository.published_counts_by_category(db)
        rows = (await db.execute(
            select(ResourceCategory)
            .where(ResourceCategory.is_active.is_(True))
            .order_by(ResourceCategory.sort_order.asc(), ResourceCategory.name.asc())
        )).scalars().all()
        return [
            {"id": str(c.id), "name": c.name, "slug": c.slug, "color": c.color, "count": counts.get(c.id, 0)}
            for c in rows
        ]

    return await cache_service.remember(cache_service.list_key(ENTITY, "categories", {}), load)


async def tags(db: AsyncSession, limit: int = 30) -> list[dict]:
    async def load() -> list[dict]:
        return await resource_repository.popular_tags(db, limit)

    return await cache_service.remember(cache_service.list_key(ENTITY, "tags", {"limit": limit}), load)


async def public_detail(db: AsyncSession, slug: str, viewer_key: str) -> dict:
    async def load() -> dict | None:
        resource = await resource_repository.get_by_slug(db, slug)
        if resource is None:
            return None
        nxt, prev = await resource_repository.adjacent(db, resource)
        detail = ResourceDetail.model_validate(resource).model_dump(mode="json")
        return {
            "resource": detail,
            "related_resources": [_item(r) for r in await resource_repository.related(db, resource)],
            "next_resource": _link(nxt),
            "previous_resource": _link(prev),
            "meta": {"canonical_url": detail["full_url"], "schema_org": schema_org(resource)},
        }

    data = await cache_service.remember(cache_service.detail_key(ENTITY, slug), load)
    if data is None:
        raise NotFoundError("Resource not found.")
    await counter_service.record_view(db, ENTITY, uuid.UUID(data["resource"]["id"]), viewer_key)
    return data


async def share(db: AsyncSession, slug: str) -> int:
    resource = await resource_repository.get_by_slug(db, slug)
    if resource is None:
        raise NotFoundError("Resource not found.")
    count = await counter_service.record_share(db, resource.id)
    logger.info("resource_shared", resource_id=str(resource.id), share_count=count)
    return count


# --- Admin ---

async def list_resources(
    db: AsyncSession, params: Mapping, page: int = 1, per_page: int | None = None,
) -> tuple[Page, dict[str, int]]:
    result = await paginate(db, ADMIN_RESOURCE_LISTING, params, page=page, per_page=per_page)
    by_status = await count_by(db, ADMIN_RESOURCE_LISTING, params, Resource.status)
    return result, {s.value: by_status.get(s, 0) for s in ResourceStatus}


async def get_resource(db: AsyncSession, resource_id: uuid.UUID) -> Resource:
    resource = await common.get_by_id(db, Resource, resource_id)
    if resource is None:
        raise NotFoundError("Resource not found.")
    return resource


def admin_payload(resource: Resource) -> dict:
    return ResourceAdminResponse.model_validate(resource).model_dump(mode="json")


async def _check_category(db: AsyncSession, category_id: uuid.UUID) -> None:
    if await db.get(ResourceCategory, category_id) is None:
        raise ValidationError.for_field("category_id", "The selected category does not exist.")


async def _check_author(db: AsyncSession, author_id: uuid.UUID) -> None:
    if await db.get(User, author_id) is None:
        raise ValidationError.for_field("author_id", "The selected author does not exist.")


async def _resolve_slug(db: AsyncSession, requested: str | None, title: str, exclude_id=None) -> str:
    if requested:
        slug = slugify(requested)
        if await common.slug_exists(db, Resource, slug, exclude_id):
            raise ValidationError.for_field("slug", "This URL slug is already taken. Please choose a different one.")
        return slug
    return await common.unique_slug(db, Resource, title, exclude_id)


def apply_status(resource: Resource, status: ResourceStatus, published_at: datetime | None = None) -> None:
    """Keep is_published in step with status; stamp published_at on first publish."""
    resource.status = status
    resource.is_published = status == ResourceStatus.PUBLISHED
    if not resource.is_published:
        return
    if published_at is not None:
        resource.published_at = published_at
    elif resource.published_at is None:
        resource.published_at = utc_now()


async def create_resource(db: AsyncSession, data: ResourceCreate, user: User) -> Resource:
    await _check_category(db, data.category_id)
    author_id = data.author_id or user.id
    await _check_author(db, author_id)

    resource = Resource(
        **data.model_dump(exclude={"slug", "status", "published_at", "read_time", "author_id"}),
        author_id=author_id,
        slug=await _resolve_slug(db, data.slug, data.title),
        read_time=data.read_time or estimate_read_time(data.content),
    )
    apply_status(resource, data.status, data.published_at)
    resource.seo_score = compute_seo_score(resource)
    db.add(resource)
    await db.flush()
    await category_hierarchy.adjust_resource_count(db, resource.category_id, 1)
    logger.info("resource_created", resource_id=str(resource.id), user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return await get_resource(db, resource.id)


async def update_resource(db: AsyncSession, resource: Resource, data: ResourceUpdate, user: User) -> Resource:
    changes = data.model_dump(exclude_unset=True)
    for required in ("title", "excerpt", "content", "category_id", "author_id", "status",
                     "is_featured", "is_trending", "read_time"):
        if required in changes and changes[required] is None:
            raise ValidationError.for_field(required, f"The {required.replace('_', ' ')} field cannot be empty.")

    old_category_id = resource.category_id
    if "category_id" in changes:
        await _check_category(db, changes["category_id"])
    if "author_id" in changes:
        await _check_author(db, changes["author_id"])
    if "slug" in changes:
        changes["slug"] = await _resolve_slug(db, changes["slug"], changes.get("title", resource.title), resource.id)
    if "content" in changes and "read_time" not in changes:
        changes["read_time"] = estimate_read_time(changes["content"])
    for listish in ("tags", "gallery_images"):
        if listish in changes and changes[listish] is None:
            changes[listish] = []

    status = changes.pop("status", resource.status)
    published_at = changes.pop("published_at", None)
    for key, value in changes.items():
        setattr(resource, key, value)
    apply_status(resource, status, published_at)
    resource.seo_score = compute_seo_score(resource)
    await db.flush()
    await category_hierarchy.reassign_resource_count(db, old_category_id, resource.category_id)
    logger.info("resource_updated", resource_id=str(resource.id), user_id=str(user.id), fields=sorted(changes))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return await get_resource(db, resource.id)


async def delete_resource(db: AsyncSession, resource: Resource, user: User) -> None:
    category_id = resource.category_id
    await db.delete(resource)
    await db.flush()
    await category_hierarchy.adjust_resource_count(db, category_id, -1)
    logger.info("resource_deleted", resource_id=str(resource.id), user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)


async def bulk_action(db: AsyncSession, action: str, ids: list[uuid.UUID], user: User) -> int:
    if action not in BULK_ACTIONS:
        raise ValidationError.for_field("action", f"Action must be one of: {', '.join(BULK_ACTIONS)}.")
    resources = await common.get_many(db, Resource, ids)
    if not resources:
        raise NotFoundError("No matching resources.")
    for resource in resources:
        if action == "delete":
            await db.delete(resource)
            await db.flush()
            await category_hierarchy.adjust_resource_count(db, resource.category_id, -1)
            continue
        if action == "publish":
            apply_status(resource, ResourceStatus.PUBLISHED)
        elif action == "unpublish":
            apply_status(resource, ResourceStatus.DRAFT)
        elif action in ("feature", "unfeature"):
            resource.is_featured = action == "feature"
        else:
            resource.is_trending = action == "trend"
    await db.flush()
    logger.info("resource_bulk_action", action=action, count=len(resources), user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return len(resources)


async def regenerate_seo_score(db: AsyncSession, resource: Resource, user: User) -> int:
    resource.seo_score = compute_seo_score(resource)
    await db.flush()
    logger.info("resource_seo_scored", resource_id=str(resource.id), score=resource.seo_score, user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return resource.seo_score


async def analytics(db: AsyncSession) -> dict:
    """Global library numbers for the admin dashboard."""
    async def load() -> dict:
        totals = (await db.execute(select(
            func.count(Resource.id),
            func.count(Resource.id).filter(Resource.is_featured.is_(True)),
            func.count(Resource.id).filter(Resource.is_trending.is_(True)),
            func.coalesce(func.sum(Resource.view_count), 0),
            func.coalesce(func.sum(Resource.share_count), 0),
            func.avg(Resource.seo_score),
            func.avg(Resource.read_time),
        ))).one()
        total, featured_count, trending_count, views, shares, avg_seo, avg_read = totals
        by_status = dict((await db.execute(
            select(Resource.status, func.count()).group_by(Resource.status)
        )).all())
        by_category = (await db.execute(
            select(ResourceCategory.name, func.count(Resource.id))
            .join(Resource, Resource.category_id == ResourceCategory.id)
            .group_by(ResourceCategory.name)
            .order_by(func.count(Resource.id).desc(), ResourceCategory.name.asc())
        )).all()
        top_viewed = (await db.execute(
            select(Resource).order_by(Resource.view_count.desc(), Resource.id.asc()).limit(5)
        )).scalars().all()
        low_seo = (await db.execute(
            select(Resource).order_by(Resource.seo_score.asc(), Resource.id.asc()).limit(5)
        )).scalars().all()
        return {
            "total": total,
            "status_counts": {s.value: by_status.get(s, 0) for s in ResourceStatus},
            "featured": featured_count,
            "trending": trending_count,
            "total_views": int(views),
            "total_shares": int(shares),
            "avg_seo_score": round(float(avg_seo), 1) if avg_seo is not None else 0.0,
            "avg_read_time": round(float(avg_read), 1) if avg_read is not None else 0.0,
            "by_category": {name: count for name, count in by_category},
            "top_viewed": [{"id": str(r.id), "title": r.title, "view_count": r.view_count} for r in top_viewed],
            "needs_seo_work": [{"id": str(r.id), "title": r.title, "seo_score": r.seo_score} for r in low_seo],
        }

    return await cache_service.remember(cache_service.stats_key(ENTITY), load, settings.STATS_CACHE_TTL_SECONDS)
