"""FAQ category business logic."""
import uuid
from collections.abc import Mapping

import structlog
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.exceptions import ConflictError, NotFoundError, ValidationError
from sitecms.models.faq import Faq
from sitecms.models.faq_category import ActiveStatus, FaqCategory
from sitecms.models.user import User
from sitecms.repositories import common, faq_repository
from sitecms.repositories.faq_repository import FAQ_CATEGORY_LISTING
from sitecms.repositories.listing import Page, paginate
from sitecms.schemas.common import ReorderItem
from sitecms.schemas.faq_category import FaqCategoryBrief, FaqCategoryCreate, FaqCategoryUpdate
from sitecms.services import cache_service
from sitecms.utils.helpers import slugify

logger = structlog.get_logger()

ENTITY = "faq_category"
BULK_ACTIONS = ("activate", "deactivate", "delete")


async def list_categories(
    db: AsyncSession, params: Mapping, page: int = 1, per_page: int | None = None,
) -> tuple[Page, dict[uuid.UUID, int]]:
    result = await paginate(db, FAQ_CATEGORY_LISTING, params, page=page, per_page=per_page)
    counts = await faq_repository.faq_counts_by_category(db, Faq.category_id.in_([c.id for c in result.items]))
    return result, counts


async def public_categories(db: AsyncSession) -> list[dict]:
    """Active categories with the number of publicly visible FAQs in each."""
    async def load() -> list[dict]:
        categories = await faq_repository.list_active_categories(db)
        counts = await faq_repository.faq_counts_by_category(db, *faq_repository.active_scope())
        return [
            {**FaqCategoryBrief.model_validate(c).model_dump(mode="json"),
             "description": c.description, "faq_count": counts.get(c.id, 0)}
            for c in categories
        ]

    return await cache_service.remember(cache_service.list_key(ENTITY, "public", {}), load)


async def get_category(db: AsyncSession, category_id: uuid.UUID, *, for_update: bool = False) -> FaqCategory:
    category = await common.get_by_id(db, FaqCategory, category_id, for_update=for_update)
    if category is None:
        raise NotFoundError("FAQ category not found.")
    return category


async def _check_name(db: AsyncSession, name: str, exclude_id: uuid.UUID | None = None) -> None:
    if await faq_repository.category_name_taken(db, name, exclude_id):
        raise ConflictError(f"An FAQ category named '{name}' already exists.")


async def _resolve_slug(db: AsyncSession, requested: str | None, name: str, exclude_id=None) -> str:
    if requested:
        slug = slugify(requested)
        if not slug:
            raise ValidationError.for_field("slug", "The slug must contain letters or numbers.")
        if await common.slug_exists(db, FaqCategory, slug, exclude_id):
            raise ConflictError("This slug is already taken.")
        return slug
    return await common.unique_slug(db, FaqCategory, name, exclude_id)


async def create_category(db: AsyncSession, data: FaqCategoryCreate, user: User) -> FaqCategory:
    name = data.name.strip()
    await _check_name(db, name)
    category = FaqCategory(
        **data.model_dump(exclude={"name", "slug", "sort_order"}),
        name=name,
        slug=await _resolve_slug(db, data.slug, name),
        sort_order=data.sort_order if data.sort_order is not None else await common.next_sort_order(db, FaqCategory),
        created_by=user.id,
        updated_by=user.id,
    )
    db.add(category)
    await db.flush()
    logger.info("faq_category_created", category_id=str(category.id), user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return category


async def update_category(
    db: AsyncSession, category: FaqCategory, data: FaqCategoryUpdate, user: User,
) -> FaqCategory:
    changes = data.model_dump(exclude_unset=True)
    if "name" in changes:
        if not changes["name"]:
            raise ValidationError.for_field("name", "Name is required.")
        changes["name"] = changes["name"].strip()
        await _check_name(db, changes["name"], category.id)
    if "slug" in changes:
        changes["slug"] = await _resolve_slug(db, changes["slug"], changes.get("name", category.name), category.id)
    if "status" in changes and changes["status"] is None:
        raise ValidationError.for_field("status", "Status cannot be empty.")
    if "sort_order" in changes and changes["sort_order"] is None:
        changes.pop("sort_order")

    for key, value in changes.items():
        setattr(category, key, value)
    category.updated_by = user.id
    await db.flush()
    logger.info("faq_category_updated", category_id=str(category.id), user_id=str(user.id), fields=sorted(changes))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return category


async def delete_category(db: AsyncSession, category_id: uuid.UUID, user: User) -> None:
    category = await get_category(db, category_id, for_update=True)
    if await faq_repository.faqs_in_category_exist(db, [category.id]):
        raise ConflictError("Cannot delete a category that still has FAQs. Move or delete them first.")
    await db.delete(category)
    await db.flush()
    logger.info("faq_category_deleted", category_id=str(category_id), user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)


async def toggle_status(db: AsyncSession, category: FaqCategory, user: User) -> FaqCategory:
    category.status = ActiveStatus.INACTIVE if category.status == ActiveStatus.ACTIVE else ActiveStatus.ACTIVE
    category.updated_by = user.id
    await db.flush()
    logger.info("faq_category_status_toggled", category_id=str(category.id), status=category.status.value)
    await cache_service.commit_and_invalidate(db, ENTITY)
    return category


async def bulk_action(db: AsyncSession, action: str, ids: list[uuid.UUID], user: User) -> int:
    """Apply ``action`` to every id. Deletion is all-or-nothing."""
    if action not in BULK_ACTIONS:
        raise ValidationError.for_field("action", f"Action must be one of: {', '.join(BULK_ACTIONS)}.")
    categories = await common.get_many(db, FaqCategory, ids, for_update=(action == "delete"))
    if not categories:
        raise NotFoundError("No matching FAQ categories.")

    if action == "delete":
        in_use = await faq_repository.faqs_in_category_exist(db, [c.id for c in categories])
        if in_use:
            names = ", ".join(sorted(c.name for c in categories if c.id in in_use))
            raise ConflictError(f"Cannot delete categories that still have FAQs: {names}.")
        for category in categories:
            await db.delete(category)
    else:
        status = ActiveStatus.ACTIVE if action == "activate" else ActiveStatus.INACTIVE
        for category in categories:
            category.status = status
            category.updated_by = user.id
    await db.flush()
    logger.info("faq_category_bulk_action", action=action, count=len(categories), user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return len(categories)


async def reorder(db: AsyncSession, items: list[ReorderItem], user: User) -> int:
    for item in items:
        await db.execute(
            update(FaqCategory)
            .where(FaqCategory.id == item.id)
            .values(sort_order=item.sort_order, updated_by=user.id)
            .execution_options(synchronize_session=False)
        )
    logger.info("faq_categories_reordered", count=len(items), user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return len(items)
