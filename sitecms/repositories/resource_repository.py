"""Resource data access layer."""
import uuid as _uuid
from collections import Counter

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.models.resource import Resource, ResourceStatus
from sitecms.models.resource_category import ResourceCategory
from sitecms.models.user import User
from sitecms.repositories.listing import ListingSpec
from sitecms.utils.helpers import parse_bool, parse_uuid, utc_now


def category_clause(value: str):
    category_id = parse_uuid(value)
    if category_id is not None:
        return Resource.category_id == category_id
    matching = select(ResourceCategory.id).where(
        or_(ResourceCategory.slug == value, ResourceCategory.name == value)
    )
    return Resource.category_id.in_(matching)


def _tag_clause(value: str):
    return cast(Resource.tags, String).contains(f'"{value}"', autoescape=True)


def _flag(column):
    def build(value: str):
        flag = parse_bool(value)
        return None if flag is None else column.is_(flag)
    return build


def _status_clause(value: str):
    try:
        return Resource.status == ResourceStatus(value.lower())
    except ValueError:
        return None


def _author_clause(value: str):
    author_id = parse_uuid(value)
    if author_id is not None:
        return Resource.author_id == author_id
    return Resource.author_id.in_(select(User.id).where(User.name == value))


RESOURCE_LISTING = ListingSpec(
    model=Resource,
    filters={
        "category": category_clause,
        "tag": _tag_clause,
        "featured": _flag(Resource.is_featured),
        "trending": _flag(Resource.is_trending),
        "status": _status_clause,
        "author": _author_clause,
    },
    search_fields=(Resource.title, Resource.excerpt, Resource.content),
    sorts={
        "latest": (Resource.published_at.desc(), Resource.created_at.desc()),
        "oldest": (Resource.published_at.asc(), Resource.created_at.asc()),
        "popular": (Resource.view_count.desc(),),
        "trending": (Resource.share_count.desc(),),
        "title": (Resource.title.asc(),),
        "seo": (Resource.seo_score.desc(),),
    },
    default_sort="latest",
    default_per_page=12,
    max_per_page=50,
)

ADMIN_RESOURCE_LISTING = ListingSpec(
    model=Resource,
    filters=RESOURCE_LISTING.filters,
    search_fields=RESOURCE_LISTING.search_fields,
    sorts={
        **RESOURCE_LISTING.sorts,
        "latest": (Resource.created_at.desc(),),
        "oldest": (Resource.created_at.asc(),),
    },
    default_sort="latest",
    default_per_page=15,
    max_per_page=100,
)


def published_scope():
    """Publicly visible: published with a publication time that has passed."""
    return [Resource.is_published.is_(True), Resource.published_at <= utc_now()]


async def get_by_slug(db: AsyncSession, slug: str, *, published_only: bool = True) -> Resource | None:
    q = select(Resource).where(Resource.slug == slug)
    if published_only:
        q = q.where(*published_scope())
    return (await db.execute(q)).scalar_one_or_none()


async def list_published(db: AsyncSession, *criteria, order_by=(), limit: int = 10) -> list[Resource]:
    q = (
        select(Resource)
        .where(*published_scope(), *criteria)
        .order_by(*order_by, Resource.id.asc())
        .limit(limit)
    )
    return list((await db.execute(q)).scalars().all())


async def related(db: AsyncSession, resource: Resource, limit: int = 4) -> list[Resource]:
    return await list_published(
        db,
        Resource.id != resource.id,
        Resource.category_id == resource.category_id,
        order_by=(Resource.view_count.desc(),),
        limit=limit,
    )


async def adjacent(db: AsyncSession, resource: Resource) -> tuple[Resource | None, Resource | None]:
    """(next, previous) by published_at."""
    if resource.published_at is None:
        return None, None
    nxt = await list_published(
        db, Resource.published_at > resource.published_at, order_by=(Resource.published_at.asc(),), limit=1
    )
    prev = await list_published(
        db, Resource.published_at < resource.published_at, order_by=(Resource.published_at.desc(),), limit=1
    )
    return (nxt[0] if nxt else None), (prev[0] if prev else None)


async def popular_tags(db: AsyncSession, limit: int = 30) -> list[dict]:
    rows = (await db.execute(select(Resource.tags).where(*published_scope()))).scalars().all()
    counts = Counter(tag for tags in rows for tag in (tags or []))
    return [{"tag": tag, "count": count} for tag, count in counts.most_common(limit)]


async def category_stats(db: AsyncSession, *criteria) -> dict:
    q = select(
        func.count(Resource.id),
        func.coalesce(func.sum(Resource.view_count), 0),
        func.avg(Resource.read_time),
    ).where(*published_scope(), *criteria)
    total, views, avg_read = (await db.execute(q)).one()
    return {
        "total_resources": total,
        "total_views": int(views or 0),
        "avg_read_time": round(float(avg_read), 1) if avg_read is not None else 0.0,
    }


async def published_counts_by_category(db: AsyncSession) -> dict[_uuid.UUID, int]:
    q = select(Resource.category_id, func.count()).where(*published_scope()).group_by(Resource.category_id)
    return dict((await db.execute(q)).all())
