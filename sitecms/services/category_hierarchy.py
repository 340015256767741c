"""Resource category tree: hierarchy, breadcrumbs, cycle checks, count upkeep.

Categories only hold a ``parent_id``. ``CategoryTree`` indexes every row by id
and groups children by parent, so all traversals are iterative walks over that
arena and stay finite even if the stored data already contains a cycle.
"""
import uuid
from collections import defaultdict
from collections.abc import Iterable

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.exceptions import CircularReferenceError
from sitecms.models.resource import Resource
from sitecms.models.resource_category import ResourceCategory
from sitecms.schemas.resource_category import ResourceCategoryBrief, ResourceCategoryResponse

LEVEL_PREFIX = "— "


def _order_key(category) -> tuple:
    return (category.sort_order or 0, category.name or "")


class CategoryTree:
    def __init__(self, categories: Iterable[ResourceCategory]):
        self.by_id: dict[uuid.UUID, ResourceCategory] = {c.id: c for c in categories}
        self._children: dict[uuid.UUID, list[ResourceCategory]] = defaultdict(list)
        roots = []
        for category in self.by_id.values():
            if category.parent_id is None or category.parent_id not in self.by_id:
                roots.append(category)
            else:
                self._children[category.parent_id].append(category)
        for children in self._children.values():
            children.sort(key=_order_key)
        self.roots = sorted(roots, key=_order_key)

    def children(self, category_id: uuid.UUID) -> list[ResourceCategory]:
        return list(self._children.get(category_id, ()))

    def has_children(self, category_id: uuid.UUID) -> bool:
        return bool(self._children.get(category_id))

    def ancestors(self, category_id: uuid.UUID) -> list[ResourceCategory]:
        """Ancestors ordered from the root down, excluding the category itself."""
        chain: list[ResourceCategory] = []
        seen = {category_id}
        current = self.by_id.get(category_id)
        while current is not None and current.parent_id is not None:
            if current.parent_id in seen:
                break
            seen.add(current.parent_id)
            current = self.by_id.get(current.parent_id)
            if current is not None:
                chain.append(current)
        chain.reverse()
        return chain

    def descendants(self, category_id: uuid.UUID) -> set[uuid.UUID]:
        found: set[uuid.UUID] = set()
        stack = [category_id]
        while stack:
            for child in self._children.get(stack.pop(), ()):
                if child.id not in found and child.id != category_id:
                    found.add(child.id)
                    stack.append(child.id)
        return found

    def level(self, category_id: uuid.UUID) -> int:
        return len(self.ancestors(category_id))

    def breadcrumb(self, category_id: uuid.UUID) -> list[dict]:
        category = self.by_id.get(category_id)
        if category is None:
            return []
        return [
            {"id": str(c.id), "name": c.name, "slug": c.slug, "url": ResourceCategoryBrief.model_validate(c).url}
            for c in [*self.ancestors(category_id), category]
        ]

    def _walk(self) -> Iterable[tuple[ResourceCategory, int]]:
        """Depth-first pre-order over the whole forest, yielding (category, level)."""
        seen: set[uuid.UUID] = set()
        stack = [(root, 0) for root in reversed(self.roots)]
        while stack:
            category, level = stack.pop()
            if category.id in seen:
                continue
            seen.add(category.id)
            yield category, level
            stack.extend((child, level + 1) for child in reversed(self._children.get(category.id, ())))

    def build_hierarchy(self) -> list[dict]:
        """Active roots, each with nested active children, ordered by (sort_order, name)."""
        nodes: dict[uuid.UUID, dict] = {}
        hierarchy: list[dict] = []
        for category, level in self._walk():
            if not category.is_active:
                continue
            parent_node = nodes.get(category.parent_id) if category.parent_id else None
            if level > 0 and parent_node is None:
                # inactive ancestor hides the whole branch
                continue
            node = ResourceCategoryResponse.model_validate(category).model_dump(mode="json")
            node["hierarchy_level"] = level
            node["children"] = []
            nodes[category.id] = node
            if parent_node is None:
                hierarchy.append(node)
            else:
                parent_node["children"].append(node)
        return hierarchy

    def flat_list(self) -> list[dict]:
        """Active categories in tree order with level, label and breadcrumb."""
        items = []
        visible: set[uuid.UUID] = set()
        for category, level in self._walk():
            if not category.is_active or (level > 0 and category.parent_id not in visible):
                continue
            visible.add(category.id)
            items.append({
                "id": str(category.id),
                "name": category.name,
                "label": f"{LEVEL_PREFIX * level}{category.name}",
                "slug": category.slug,
                "parent_id": str(category.parent_id) if category.parent_id else None,
                "hierarchy_level": level,
                "breadcrumb": self.breadcrumb(category.id),
            })
        return items

    def max_depth(self) -> int:
        return max((level for _, level in self._walk()), default=-1) + 1

    def validate_parent(self, category_id: uuid.UUID | None, parent_id: uuid.UUID | None) -> None:
        """Reject a parent that is the category itself or any of its descendants."""
        if parent_id is None or category_id is None:
            return
        if parent_id == category_id or parent_id in self.descendants(category_id):
            raise CircularReferenceError()

    def can_delete(self, category: ResourceCategory) -> bool:
        return (category.resource_count or 0) == 0 and not self.has_children(category.id)


async def load_tree(db: AsyncSession) -> CategoryTree:
    rows = (await db.execute(select(ResourceCategory))).scalars().all()
    return CategoryTree(rows)


async def adjust_resource_count(db: AsyncSession, category_id: uuid.UUID | None, delta: int) -> None:
    """Atomically move one category's resource_count by ``delta``, never below zero."""
    if category_id is None or delta == 0:
        return
    stmt = update(ResourceCategory).where(ResourceCategory.id == category_id)
    if delta < 0:
        stmt = stmt.where(ResourceCategory.resource_count >= -delta)
    await db.execute(
        stmt.values(resource_count=ResourceCategory.resource_count + delta).execution_options(
            synchronize_session=False
        )
    )


async def reassign_resource_count(db: AsyncSession, old_id: uuid.UUID | None, new_id: uuid.UUID | None) -> None:
    if old_id == new_id:
        return
    await adjust_resource_count(db, old_id, -1)
    await adjust_resource_count(db, new_id, 1)


async def reconcile_resource_counts(db: AsyncSession) -> dict[str, int]:
    """Recompute every resource_count from the resources table. Returns corrected counts."""
    actual = dict(
        (await db.execute(select(Resource.category_id, func.count()).group_by(Resource.category_id))).all()
    )
    corrected: dict[str, int] = {}
    for category in (await db.execute(select(ResourceCategory))).scalars().all():
        expected = actual.get(category.id, 0)
        if category.resource_count != expected:
            category.resource_count = expected
            corrected[str(category.id)] = expected
    await db.flush()
    return corrected
