"""Resource category data access layer."""
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.models.resource_category import ResourceCategory
from sitecms.repositories.listing import ListingSpec
from sitecms.utils.helpers import parse_bool, parse_uuid


def _status_clause(value: str):
    value = value.lower()
    if value == "active":
        return ResourceCategory.is_active.is_(True)
    if value == "inactive":
        return ResourceCategory.is_active.is_(False)
    return None


def _featured_clause(value: str):
    flag = parse_bool(value)
    return None if flag is None else ResourceCategory.is_featured.is_(flag)


def _parent_clause(value: str):
    if value.lower() == "root":
        return ResourceCategory.parent_id.is_(None)
    parent_id = parse_uuid(value)
    return None if parent_id is None else ResourceCategory.parent_id == parent_id


def _parent_only_clause(value: str):
    return ResourceCategory.parent_id.is_(None) if parse_bool(value) else None


RESOURCE_CATEGORY_LISTING = ListingSpec(
    model=ResourceCategory,
    filters={
        "status": _status_clause,
        "featured": _featured_clause,
        "parent": _parent_clause,
        "parent_only": _parent_only_clause,
    },
    search_fields=(ResourceCategory.name, ResourceCategory.description),
    sorts={
        "ordered": (ResourceCategory.sort_order.asc(), ResourceCategory.name.asc()),
        "name": (ResourceCategory.name.asc(),),
        "resource_count": (ResourceCategory.resource_count.desc(),),
        "latest": (ResourceCategory.created_at.desc(),),
    },
    default_sort="ordered",
    default_per_page=15,
    max_per_page=100,
)


async def get_by_slug(db: AsyncSession, slug: str, *, active_only: bool = True) -> ResourceCategory | None:
    q = select(ResourceCategory).where(ResourceCategory.slug == slug)
    if active_only:
        q = q.where(ResourceCategory.is_active.is_(True))
    return (await db.execute(q)).scalar_one_or_none()


async def list_active(db: AsyncSession, *criteria, order_by=(), limit: int | None = None) -> list[ResourceCategory]:
    q = (
        select(ResourceCategory)
        .where(ResourceCategory.is_active.is_(True), *criteria)
        .order_by(*order_by, ResourceCategory.sort_order.asc(), ResourceCategory.name.asc(), ResourceCategory.id.asc())
    )
    if limit is not None:
        q = q.limit(limit)
    return list((await db.execute(q)).scalars().all())


async def popular(db: AsyncSession, limit: int = 10) -> list[ResourceCategory]:
    return await list_active(
        db, ResourceCategory.resource_count > 0, order_by=(ResourceCategory.resource_count.desc(),), limit=limit
    )


async def status_counts(db: AsyncSession) -> dict[str, int]:
    q = select(
        func.count(ResourceCategory.id),
        func.count(ResourceCategory.id).filter(ResourceCategory.is_active.is_(True)),
        func.count(ResourceCategory.id).filter(ResourceCategory.is_featured.is_(True)),
        func.count(ResourceCategory.id).filter(ResourceCategory.parent_id.is_(None)),
    )
    total, active, featured, roots = (await db.execute(q)).one()
    return {
        "total": total,
        "active": active,
        "inactive": total - active,
        "featured": featured,
        "root": roots,
        "child": total - roots,
    }
