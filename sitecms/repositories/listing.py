"""Generic filter + search + sort + paginate pipeline shared by every listing.

Each entity declares a ``ListingSpec``: recognized filter keys mapped to
predicate builders, a search field whitelist, named sort modes and page size
limits. Unrecognized keys are ignored, blank values and ``"all"`` count as
absent, unknown sort modes fall back to the default. Every ordering ends
with ``id`` ascending so pages are deterministic.
"""
import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import ColumnElement, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

Predicate = Callable[[str], ColumnElement[bool] | None]

_ABSENT = {"", "all"}


@dataclass(frozen=True)
class ListingSpec:
    model: Any
    filters: Mapping[str, Predicate] = field(default_factory=dict)
    search_fields: Sequence[Any] = ()
    sorts: Mapping[str, Sequence[Any]] = field(default_factory=dict)
    default_sort: str = "latest"
    default_per_page: int = 15
    max_per_page: int = 100

    def normalize(self, params: Mapping[str, Any]) -> dict[str, str]:
        """Recognized, trimmed, non-blank parameters. Used for queries and cache keys."""
        keys = set(self.filters)
        if self.search_fields:
            keys.add("search")
        normalized: dict[str, str] = {}
        for key in keys:
            value = params.get(key)
            if value is None:
                continue
            text = str(value).strip()
            if text.lower() in _ABSENT:
                continue
            normalized[key] = text
        sort = str(params.get("sort") or "").strip().lower()
        normalized["sort"] = sort if sort in self.sorts else self.default_sort
        return normalized

    def where_clauses(self, normalized: Mapping[str, str]) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        term = normalized.get("search")
        if term and self.search_fields:
            clauses.append(or_(*(f.icontains(term, autoescape=True) for f in self.search_fields)))
        for key, builder in self.filters.items():
            value = normalized.get(key)
            if value is None:
                continue
            clause = builder(value)
            if clause is not None:
                clauses.append(clause)
        return clauses

    def order_by(self, sort: str | None) -> list[Any]:
        columns = self.sorts.get(sort or self.default_sort) or self.sorts.get(self.default_sort, ())
        return [*columns, self.model.id.asc()]

    def clamp(self, per_page: int | None) -> int:
        if per_page is None or per_page < 1:
            return self.default_per_page
        return min(per_page, self.max_per_page)


@dataclass
class Page:
    items: list
    total: int
    current_page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def from_(self) -> int | None:
        if not self.items:
            return None
        return (self.current_page - 1) * self.per_page + 1

    @property
    def to(self) -> int | None:
        if not self.items:
            return None
        return self.from_ + len(self.items) - 1


async def paginate(
    db: AsyncSession,
    spec: ListingSpec,
    params: Mapping[str, Any],
    *,
    scope: Sequence[ColumnElement[bool]] = (),
    page: int = 1,
    per_page: int | None = None,
) -> Page:
    """Run one listing. ``scope`` clauses (e.g. "published only") always apply."""
    normalized = spec.normalize(params)
    criteria = [*scope, *spec.where_clauses(normalized)]
    per_page = spec.clamp(per_page)
    page = max(1, page)

    count_q = select(func.count()).select_from(spec.model).where(*criteria)
    total = (await db.execute(count_q)).scalar() or 0

    query = (
        select(spec.model)
        .where(*criteria)
        .order_by(*spec.order_by(normalized["sort"]))
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    rows = (await db.execute(query)).scalars().all()
    return Page(items=list(rows), total=total, current_page=page, per_page=per_page)


async def count_by(
    db: AsyncSession,
    spec: ListingSpec,
    params: Mapping[str, Any],
    column: Any,
    *,
    scope: Sequence[ColumnElement[bool]] = (),
) -> dict[Any, int]:
    """Group counts over ``column`` in the same filter context as ``paginate``."""
    normalized = spec.normalize(params)
    query = (
        select(column, func.count())
        .select_from(spec.model)
        .where(*scope, *spec.where_clauses(normalized))
        .group_by(column)
    )
    return {key: count for key, count in (await db.execute(query)).all()}
