"""Data access helpers shared by every entity repository."""
import uuid as _uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.utils.helpers import slugify


async def slug_exists(db: AsyncSession, model, slug: str, exclude_id: _uuid.UUID | None = None) -> bool:
    q = select(model.id).where(model.slug == slug)
    if exclude_id is not None:
        q = q.where(model.id != exclude_id)
    return (await db.execute(q.limit(1))).first() is not None


async def unique_slug(db: AsyncSession, model, source: str, exclude_id: _uuid.UUID | None = None) -> str:
    """Slugify ``source`` and append -1, -2, ... until no other row uses it."""
    base = slugify(source) or "item"
    slug = base
    counter = 1
    while await slug_exists(db, model, slug, exclude_id):
        slug = f"{base}-{counter}"
        counter += 1
    return slug


async def next_sort_order(db: AsyncSession, model) -> int:
    current = (await db.execute(select(func.max(model.sort_order)))).scalar()
    return (current or 0) + 1


async def get_by_id(db: AsyncSession, model, entity_id: _uuid.UUID, *, for_update: bool = False):
    q = select(model).where(model.id == entity_id).execution_options(populate_existing=True)
    if for_update:
        q = q.with_for_update()
    return (await db.execute(q)).scalar_one_or_none()


async def get_many(db: AsyncSession, model, ids: list[_uuid.UUID], *, for_update: bool = False) -> list:
    q = select(model).where(model.id.in_(ids)).execution_options(populate_existing=True)
    if for_update:
        q = q.with_for_update()
    return list((await db.execute(q)).scalars().all())
