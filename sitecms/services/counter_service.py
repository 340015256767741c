"""Engagement counters. Every increment is one atomic UPDATE ... RETURNING."""
import uuid

import structlog
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.config import settings
from sitecms.models.faq import Faq
from sitecms.models.resource import Resource
from sitecms.utils.kv_store import get_store

logger = structlog.get_logger()

_MODELS = {"faq": Faq, "resource": Resource}


async def _increment(db: AsyncSession, model, entity_id: uuid.UUID, column: str) -> int | None:
    col = getattr(model, column)
    stmt = (
        update(model)
        .where(model.id == entity_id)
        .values({col: col + 1})
        .returning(col)
        .execution_options(synchronize_session=False)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def record_view(db: AsyncSession, entity: str, entity_id: uuid.UUID, viewer_key: str) -> bool:
    """Count a view at most once per (entity, viewer) per dedup window. True when counted."""
    store = await get_store()
    marker = f"view:{entity}:{entity_id}:{viewer_key}"
    if not await store.add(marker, settings.VIEW_DEDUP_WINDOW_SECONDS):
        return False
    await _increment(db, _MODELS[entity], entity_id, "view_count")
    return True


async def record_helpful_vote(db: AsyncSession, faq_id: uuid.UUID, is_helpful: bool) -> tuple[int, int]:
    """Unconditional vote. Returns (helpful_count, not_helpful_count) after the update."""
    column = "helpful_count" if is_helpful else "not_helpful_count"
    stmt = (
        update(Faq)
        .where(Faq.id == faq_id)
        .values({column: getattr(Faq, column) + 1})
        .returning(Faq.helpful_count, Faq.not_helpful_count)
        .execution_options(synchronize_session=False)
    )
    helpful, not_helpful = (await db.execute(stmt)).one()
    logger.info("faq_vote_recorded", faq_id=str(faq_id), helpful=is_helpful)
    return helpful, not_helpful


async def record_share(db: AsyncSession, resource_id: uuid.UUID) -> int:
    return await _increment(db, Resource, resource_id, "share_count") or 0
