"""FAQ and FAQ category data access layer."""
import uuid as _uuid

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.models.faq import Faq
from sitecms.models.faq_category import ActiveStatus, FaqCategory
from sitecms.repositories.listing import ListingSpec
from sitecms.utils.helpers import parse_bool, parse_uuid


def _status(column):
    def build(value: str):
        try:
            return column == ActiveStatus(value.lower())
        except ValueError:
            return None
    return build


def _faq_category_clause(value: str):
    category_id = parse_uuid(value)
    if category_id is not None:
        return Faq.category_id == category_id
    return Faq.category_id.in_(select(FaqCategory.id).where(FaqCategory.slug == value))


def _featured_clause(value: str):
    flag = parse_bool(value)
    return None if flag is None else Faq.is_featured.is_(flag)


FAQ_LISTING = ListingSpec(
    model=Faq,
    filters={
        "category": _faq_category_clause,
        "featured": _featured_clause,
        "status": _status(Faq.status),
    },
    search_fields=(Faq.question, Faq.answer, cast(Faq.tags, String)),
    sorts={
        "ordered": (Faq.sort_order.asc(), Faq.created_at.desc()),
        "latest": (Faq.created_at.desc(),),
        "oldest": (Faq.created_at.asc(),),
        "popular": (Faq.view_count.desc(),),
        "helpful": (Faq.helpful_count.desc(),),
        "question": (Faq.question.asc(),),
    },
    default_sort="ordered",
    default_per_page=50,
    max_per_page=100,
)

FAQ_CATEGORY_LISTING = ListingSpec(
    model=FaqCategory,
    filters={"status": _status(FaqCategory.status)},
    search_fields=(FaqCategory.name, FaqCategory.description),
    sorts={
        "ordered": (FaqCategory.sort_order.asc(), FaqCategory.name.asc()),
        "name": (FaqCategory.name.asc(),),
        "latest": (FaqCategory.created_at.desc(),),
    },
    default_sort="ordered",
    default_per_page=15,
    max_per_page=100,
)


def active_scope():
    """Publicly visible FAQs: active, in an active category."""
    return [
        Faq.status == ActiveStatus.ACTIVE,
        Faq.category_id.in_(select(FaqCategory.id).where(FaqCategory.status == ActiveStatus.ACTIVE)),
    ]


async def get_by_slug(db: AsyncSession, slug: str, *, active_only: bool = True) -> Faq | None:
    q = select(Faq).where(Faq.slug == slug)
    if active_only:
        q = q.where(*active_scope())
    return (await db.execute(q)).scalar_one_or_none()


async def list_active_categories(db: AsyncSession) -> list[FaqCategory]:
    q = (
        select(FaqCategory)
        .where(FaqCategory.status == ActiveStatus.ACTIVE)
        .order_by(FaqCategory.sort_order.asc(), FaqCategory.name.asc(), FaqCategory.id.asc())
    )
    return list((await db.execute(q)).scalars().all())


async def faq_counts_by_category(db: AsyncSession, *criteria) -> dict[_uuid.UUID, int]:
    q = select(Faq.category_id, func.count()).where(*criteria).group_by(Faq.category_id)
    return dict((await db.execute(q)).all())


async def category_name_taken(db: AsyncSession, name: str, exclude_id: _uuid.UUID | None = None) -> bool:
    q = select(FaqCategory.id).where(func.lower(FaqCategory.name) == name.lower())
    if exclude_id is not None:
        q = q.where(FaqCategory.id != exclude_id)
    return (await db.execute(q.limit(1))).first() is not None


async def related(db: AsyncSession, faq: Faq, limit: int = 5) -> list[Faq]:
    q = (
        select(Faq)
        .where(*active_scope(), Faq.category_id == faq.category_id, Faq.id != faq.id)
        .order_by(Faq.sort_order.asc(), Faq.view_count.desc(), Faq.id.asc())
        .limit(limit)
    )
    return list((await db.execute(q)).scalars().all())


async def faqs_in_category_exist(db: AsyncSession, category_ids: list[_uuid.UUID]) -> set[_uuid.UUID]:
    q = select(Faq.category_id).where(Faq.category_id.in_(category_ids)).distinct()
    return set((await db.execute(q)).scalars().all())
