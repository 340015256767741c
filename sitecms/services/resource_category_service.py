"""Resource category business logic: public navigation and staff CRUD."""
import uuid
from collections.abc import Mapping

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.exceptions import ConflictError, NotFoundError, ValidationError
from sitecms.models.resource import Resource
from sitecms.models.resource_category import DEFAULT_CATEGORY_COLOR, ResourceCategory
from sitecms.models.user import User
from sitecms.repositories import common, resource_category_repository, resource_repository
from sitecms.repositories.listing import Page, paginate
from sitecms.repositories.resource_category_repository import RESOURCE_CATEGORY_LISTING
from sitecms.repositories.resource_repository import RESOURCE_LISTING
from sitecms.schemas.common import PaginationMeta, ReorderItem
from sitecms.schemas.resource import ResourceListItem
from sitecms.schemas.resource_category import (
    ResourceCategoryBrief,
    ResourceCategoryCreate,
    ResourceCategoryResponse,
    ResourceCategoryUpdate,
)
from sitecms.services import cache_service
from sitecms.services.category_hierarchy import CategoryTree, load_tree, reconcile_resource_counts
from sitecms.utils.helpers import slugify

logger = structlog.get_logger()

ENTITY = "resource_category"
BULK_ACTIONS = ("activate", "deactivate", "feature", "unfeature", "delete")


def _brief(category: ResourceCategory) -> dict:
    return ResourceCategoryBrief.model_validate(category).model_dump(mode="json")


def _full(category: ResourceCategory, tree: CategoryTree | None = None, published: dict | None = None) -> dict:
    data = ResourceCategoryResponse.model_validate(category).model_dump(mode="json")
    if tree is not None:
        data["hierarchy_level"] = tree.level(category.id)
        data["children"] = [_brief(c) for c in tree.children(category.id) if c.is_active]
    if published is not None:
        data["active_resources_count"] = published.get(category.id, 0)
    return data


# --- Public ---

async def public_list(db: AsyncSession, params: Mapping, page: int = 1, per_page: int | None = None) -> dict:
    normalized = RESOURCE_CATEGORY_LISTING.normalize(params)
    normalized.pop("status", None)
    per_page = RESOURCE_CATEGORY_LISTING.clamp(per_page)
    key = cache_service.list_key(ENTITY, "index", {**normalized, "page": page, "per_page": per_page})

    async def load() -> dict:
        result = await paginate(
            db, RESOURCE_CATEGORY_LISTING, normalized,
            scope=[ResourceCategory.is_active.is_(True)], page=page, per_page=per_page,
        )
        tree = await load_tree(db)
        published = await resource_repository.published_counts_by_category(db)
        return {
            "categories": [_full(c, tree, published) for c in result.items],
            "pagination": PaginationMeta.from_page(result).model_dump(by_alias=True),
        }

    return await cache_service.remember(key, load)


async def _active_by_slug(db: AsyncSession, slug: str) -> ResourceCategory:
    category = await resource_category_repository.get_by_slug(db, slug)
    if category is None:
        raise NotFoundError("Category not found.")
    return category


async def public_detail(
    db: AsyncSession, slug: str, params: Mapping, page: int = 1, per_page: int | None = None,
) -> dict:
    """Category with parent, children, breadcrumb and its published resources."""
    normalized = RESOURCE_LISTING.normalize(params)
    for name in ("status", "author", "category"):
        normalized.pop(name, None)
    per_page = RESOURCE_LISTING.clamp(per_page)
    key = cache_service.list_key(ENTITY, f"detail:{slug}", {**normalized, "page": page, "per_page": per_page})

    async def load() -> dict:
        category = await _active_by_slug(db, slug)
        tree = await load_tree(db)
        published = await resource_repository.published_counts_by_category(db)
        parent = tree.by_id.get(category.parent_id) if category.parent_id else None
        result = await paginate(
            db, RESOURCE_LISTING, normalized,
            scope=[*resource_repository.published_scope(), Resource.category_id == category.id],
            page=page, per_page=per_page,
        )
        return {
            "category": {
                **_full(category, tree, published),
                "parent": _brief(parent) if parent else None,
                "breadcrumb": tree.breadcrumb(category.id),
            },
            "resources": [ResourceListItem.model_validate(r).model_dump(mode="json") for r in result.items],
            "pagination": PaginationMeta.from_page(result).model_dump(by_alias=True),
        }

    return await cache_service.remember(key, load)


async def hierarchy(db: AsyncSession) -> list[dict]:
    async def load() -> list[dict]:
        return (await load_tree(db)).build_hierarchy()

    return await cache_service.remember(cache_service.list_key(ENTITY, "hierarchy", {}), load)


async def flat_list(db: AsyncSession) -> list[dict]:
    async def load() -> list[dict]:
        return (await load_tree(db)).flat_list()

    return await cache_service.remember(cache_service.list_key(ENTITY, "flat", {}), load)


async def popular(db: AsyncSession, limit: int = 10) -> list[dict]:
    async def load() -> list[dict]:
        return [_full(c) for c in await resource_category_repository.popular(db, limit)]

    return await cache_service.remember(cache_service.list_key(ENTITY, "popular", {"limit": limit}), load)


async def featured_with_resources(db: AsyncSession, per_category: int = 6) -> list[dict]:
    """Featured categories, each with its latest published resources."""
    async def load() -> list[dict]:
        categories = await resource_category_repository.list_active(db, ResourceCategory.is_featured.is_(True))
        items = []
        for category in categories:
            latest = await resource_repository.list_published(
                db, Resource.category_id == category.id,
                order_by=(Resource.published_at.desc(),), limit=per_category,
            )
            items.append({
                **_full(category),
                "resources": [ResourceListItem.model_validate(r).model_dump(mode="json") for r in latest],
            })
        return items

    return await cache_service.remember(cache_service.list_key(ENTITY, "featured", {}), load)


async def stats(db: AsyncSession) -> dict:
    async def load() -> dict:
        active = ResourceCategory.is_active.is_(True)
        total, roots, featured, with_resources, categorized = (await db.execute(select(
            func.count(ResourceCategory.id).filter(active),
            func.count(ResourceCategory.id).filter(active, ResourceCategory.parent_id.is_(None)),
            func.count(ResourceCategory.id).filter(active, ResourceCategory.is_featured.is_(True)),
            func.count(ResourceCategory.id).filter(active, ResourceCategory.resource_count > 0),
            func.coalesce(func.sum(ResourceCategory.resource_count).filter(active), 0),
        ))).one()
        return {
            "total_categories": total,
            "root_categories": roots,
            "featured_categories": featured,
            "categories_with_resources": with_resources,
            "total_resources_categorized": int(categorized),
            "popular_categories": [_full(c) for c in await resource_category_repository.popular(db, 5)],
        }

    return await cache_service.remember(cache_service.stats_key(ENTITY), load)


async def search(db: AsyncSession, q: str, limit: int = 20) -> list[dict]:
    normalized = RESOURCE_CATEGORY_LISTING.normalize({"search": q, "sort": "resource_count"})
    key = cache_service.list_key(ENTITY, "search", {**normalized, "limit": limit})

    async def load() -> list[dict]:
        result = await paginate(
            db, RESOURCE_CATEGORY_LISTING, normalized,
            scope=[ResourceCategory.is_active.is_(True)], page=1, per_page=limit,
        )
        return [_full(c) for c in result.items]

    return await cache_service.remember(key, load)


async def breadcrumb(db: AsyncSession, slug: str) -> list[dict]:
    async def load() -> list[dict] | None:
        category = await resource_category_repository.get_by_slug(db, slug)
        if category is None:
            return None
        return (await load_tree(db)).breadcrumb(category.id)

    data = await cache_service.remember(cache_service.list_key(ENTITY, "breadcrumb", {"slug": slug}), load)
    if data is None:
        raise NotFoundError("Category not found.")
    return data


async def related(db: AsyncSession, slug: str, limit: int = 6) -> list[dict]:
    """Siblings by resource count first, then popular categories, never the category itself."""
    async def load() -> list[dict]:
        category = await _active_by_slug(db, slug)
        picked: list[ResourceCategory] = []
        if category.parent_id is not None:
            picked = await resource_category_repository.list_active(
                db,
                ResourceCategory.parent_id == category.parent_id,
                ResourceCategory.id != category.id,
                order_by=(ResourceCategory.resource_count.desc(),),
                limit=limit,
            )
        if len(picked) < limit:
            seen = {c.id for c in picked} | {category.id}
            for candidate in await resource_category_repository.popular(db, (limit - len(picked)) * 2 + 1):
                if len(picked) >= limit:
                    break
                if candidate.id not in seen:
                    picked.append(candidate)
                    seen.add(candidate.id)
        return [_full(c) for c in picked[:limit]]

    return await cache_service.remember(
        cache_service.list_key(ENTITY, "related", {"slug": slug, "limit": limit}), load
    )


async def analytics(db: AsyncSession) -> dict:
    async def load() -> dict:
        tree = await load_tree(db)
        active = [c for c in tree.by_id.values() if c.is_active]
        top = sorted((c for c in active if c.resource_count > 0), key=lambda c: (-c.resource_count, c.name))[:10]
        featured = [c for c in active if c.is_featured]
        return {
            "top_categories": [{"name": c.name, "slug": c.slug, "resource_count": c.resource_count} for c in top],
            "featured_stats": {
                "total": len(featured),
                "with_resources": sum(1 for c in featured if c.resource_count > 0),
            },
            "hierarchy_stats": {
                "root_categories": sum(1 for c in active if c.parent_id is None),
                "subcategories": sum(1 for c in active if c.parent_id is not None),
                "max_depth": tree.max_depth(),
            },
        }

    return await cache_service.remember(cache_service.list_key(ENTITY, "analytics", {}), load)


# --- Admin ---

async def list_categories(
    db: AsyncSession, params: Mapping, page: int = 1, per_page: int | None = None,
) -> tuple[list[dict], Page, dict[str, int]]:
    result = await paginate(db, RESOURCE_CATEGORY_LISTING, params, page=page, per_page=per_page)
    tree = await load_tree(db)
    items = []
    for category in result.items:
        data = _full(category, tree)
        parent = tree.by_id.get(category.parent_id) if category.parent_id else None
        data["parent"] = _brief(parent) if parent else None
        data["can_delete"] = tree.can_delete(category)
        items.append(data)
    return items, result, await resource_category_repository.status_counts(db)


async def get_category(db: AsyncSession, category_id: uuid.UUID, *, for_update: bool = False) -> ResourceCategory:
    category = await common.get_by_id(db, ResourceCategory, category_id, for_update=for_update)
    if category is None:
        raise NotFoundError("Resource category not found.")
    return category


async def category_detail(db: AsyncSession, category: ResourceCategory) -> dict:
    tree = await load_tree(db)
    data = _full(category, tree)
    data["breadcrumb"] = tree.breadcrumb(category.id)
    data["can_delete"] = tree.can_delete(category)
    return data


async def _resolve_slug(db: AsyncSession, requested: str | None, name: str, exclude_id=None) -> str:
    if requested:
        slug = slugify(requested)
        if not slug:
            raise ValidationError.for_field("slug", "The slug must contain letters or numbers.")
        if await common.slug_exists(db, ResourceCategory, slug, exclude_id):
            raise ConflictError("This slug is already taken.")
        return slug
    return await common.unique_slug(db, ResourceCategory, name, exclude_id)


async def create_category(db: AsyncSession, data: ResourceCategoryCreate, user: User) -> ResourceCategory:
    if data.parent_id is not None and await db.get(ResourceCategory, data.parent_id) is None:
        raise ValidationError.for_field("parent_id", "The selected parent category does not exist.")
    category = ResourceCategory(
        **data.model_dump(exclude={"slug", "color", "sort_order"}),
        slug=await _resolve_slug(db, data.slug, data.name),
        color=data.color or DEFAULT_CATEGORY_COLOR,
        sort_order=data.sort_order if data.sort_order is not None
        else await common.next_sort_order(db, ResourceCategory),
        resource_count=0,
    )
    db.add(category)
    await db.flush()
    logger.info("resource_category_created", category_id=str(category.id), user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return category


async def update_category(
    db: AsyncSession, category: ResourceCategory, data: ResourceCategoryUpdate, user: User,
) -> ResourceCategory:
    changes = data.model_dump(exclude_unset=True)
    for required in ("name", "is_active", "is_featured"):
        if required in changes and changes[required] is None:
            raise ValidationError.for_field(required, f"The {required.replace('_', ' ')} field cannot be empty.")
    if "parent_id" in changes and changes["parent_id"] is not None:
        tree = await load_tree(db)
        if changes["parent_id"] not in tree.by_id:
            raise ValidationError.for_field("parent_id", "The selected parent category does not exist.")
        tree.validate_parent(category.id, changes["parent_id"])
    if "slug" in changes:
        changes["slug"] = await _resolve_slug(db, changes["slug"], changes.get("name", category.name), category.id)
    if "color" in changes and changes["color"] is None:
        changes["color"] = DEFAULT_CATEGORY_COLOR
    if "sort_order" in changes and changes["sort_order"] is None:
        changes.pop("sort_order")

    for key, value in changes.items():
        setattr(category, key, value)
    await db.flush()
    logger.info("resource_category_updated", category_id=str(category.id), user_id=str(user.id), fields=sorted(changes))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return category


async def _categories_with_resources(db: AsyncSession, ids: list[uuid.UUID]) -> set[uuid.UUID]:
    q = select(Resource.category_id).where(Resource.category_id.in_(ids)).distinct()
    return set((await db.execute(q)).scalars().all())


async def delete_category(db: AsyncSession, category_id: uuid.UUID, user: User) -> None:
    """Delete inside the request transaction with the row locked, re-checking children and resources."""
    category = await get_category(db, category_id, for_update=True)
    tree = await load_tree(db)
    if not tree.can_delete(category) or await _categories_with_resources(db, [category.id]):
        raise ConflictError("Cannot delete a category that has resources or subcategories.")
    await db.delete(category)
    await db.flush()
    logger.info("resource_category_deleted", category_id=str(category_id), user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)


async def bulk_action(db: AsyncSession, action: str, ids: list[uuid.UUID], user: User) -> int:
    """Apply ``action`` to every id. Deletion is all-or-nothing."""
    if action not in BULK_ACTIONS:
        raise ValidationError.for_field("action", f"Action must be one of: {', '.join(BULK_ACTIONS)}.")
    categories = await common.get_many(db, ResourceCategory, ids, for_update=(action == "delete"))
    if not categories:
        raise NotFoundError("No matching resource categories.")

    if action == "delete":
        tree = await load_tree(db)
        with_resources = await _categories_with_resources(db, [c.id for c in categories])
        blocked = [c for c in categories if not tree.can_delete(c) or c.id in with_resources]
        if blocked:
            names = ", ".join(sorted(c.name for c in blocked))
            raise ConflictError(f"Cannot delete categories with resources or subcategories: {names}.")
        for category in categories:
            await db.delete(category)
        await db.flush()
    else:
        for category in categories:
            if action in ("activate", "deactivate"):
                category.is_active = action == "activate"
            else:
                category.is_featured = action == "feature"
        await db.flush()
    logger.info("resource_category_bulk_action", action=action, count=len(categories), user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return len(categories)


async def reorder(db: AsyncSession, items: list[ReorderItem], user: User) -> int:
    for item in items:
        await db.execute(
            update(ResourceCategory)
            .where(ResourceCategory.id == item.id)
            .values(sort_order=item.sort_order)
            .execution_options(synchronize_session=False)
        )
    logger.info("resource_categories_reordered", count=len(items), user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return len(items)


async def reconcile(db: AsyncSession, user: User) -> dict[str, int]:
    corrected = await reconcile_resource_counts(db)
    logger.info("resource_counts_reconciled", corrected=len(corrected), user_id=str(user.id))
    await cache_service.commit_and_invalidate(db, ENTITY)
    return corrected


async def export_rows(db: AsyncSession) -> list[dict]:
    """Every category, active or not, with its parent name and live resource count."""
    tree = await load_tree(db)
    counts = dict(
        (await db.execute(select(Resource.category_id, func.count()).group_by(Resource.category_id))).all()
    )
    rows = []
    for category in sorted(tree.by_id.values(), key=lambda c: (c.name, c.id)):
        parent = tree.by_id.get(category.parent_id) if category.parent_id else None
        rows.append({
            "id": str(category.id),
            "name": category.name,
            "slug": category.slug,
            "description": category.description,
            "parent": parent.name if parent else None,
            "children_count": len(tree.children(category.id)),
            "resource_count": counts.get(category.id, 0),
            "is_active": category.is_active,
            "is_featured": category.is_featured,
            "created_at": category.created_at.strftime("%Y-%m-%d %H:%M:%S") if category.created_at else None,
        })
    return rows
