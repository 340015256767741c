"""Seed a staff admin plus sample FAQ and resource library content for local testing.

Usage (from the project root):
    python scripts/seed_test_data.py

Prerequisites:
    - DB is running and migrated (alembic upgrade head)
    - SEED_ADMIN_PASSWORD may be set to override the default dev password
"""
import asyncio
import os
import sys
from pathlib import Path

# Windows: asyncpg requires SelectorEventLoop
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Allow imports from the project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from sitecms.config import settings
from sitecms.models import Base  # noqa: F401  registers all models
from sitecms.models.faq_category import FaqCategory
from sitecms.models.resource import ResourceStatus
from sitecms.models.resource_category import ResourceCategory
from sitecms.models.user import User, UserRole
from sitecms.schemas.faq import FaqCreate
from sitecms.schemas.faq_category import FaqCategoryCreate
from sitecms.schemas.resource import ResourceCreate
from sitecms.schemas.resource_category import ResourceCategoryCreate
from sitecms.services import faq_category_service, faq_service, resource_category_service, resource_service
from sitecms.services.auth_service import hash_password

ADMIN_EMAIL = "admin@sitecms.local"

FAQ_CATEGORIES = {
    "General": [
        ("What services does your company provide?",
         "We provide ERP implementation, process automation and business consulting for growing companies."),
        ("How long does a typical project take?",
         "Most implementations take between eight and sixteen weeks depending on scope and integrations."),
    ],
    "Support": [
        ("How do I reach the support team?",
         "Use the contact form on the website or email the support address listed in your service agreement."),
    ],
}

RESOURCE_TREE = [
    ("Guides", None),
    ("ERP Guides", "Guides"),
    ("Case Studies", None),
]

ARTICLE_BODY = " ".join(
    ["<p>Implementing an ERP system touches finance, operations and reporting at the same time.</p>"] * 40
)


async def _admin(session: AsyncSession) -> User:
    admin = (await session.execute(select(User).where(User.email == ADMIN_EMAIL))).scalars().first()
    if admin is None:
        admin = User(
            email=ADMIN_EMAIL,
            password_hash=hash_password(os.environ.get("SEED_ADMIN_PASSWORD", "admin12345")),
            name="Site Admin",
            role=UserRole.ADMIN,
        )
        session.add(admin)
        await session.commit()
        print(f"Created admin: {ADMIN_EMAIL} (id={admin.id})")
    else:
        print(f"Admin already exists: {ADMIN_EMAIL} (id={admin.id})")
    return admin


async def seed(session: AsyncSession) -> None:
    admin = await _admin(session)

    # ── FAQ categories and questions (idempotent by name) ───────────────────
    for name, questions in FAQ_CATEGORIES.items():
        category = (await session.execute(select(FaqCategory).where(FaqCategory.name == name))).scalars().first()
        if category is not None:
            print(f"FAQ category already exists: {name}")
            continue
        category = await faq_category_service.create_category(session, FaqCategoryCreate(name=name), admin)
        for question, answer in questions:
            await faq_service.create_faq(
                session, FaqCreate(question=question, answer=answer, category_id=category.id), admin
            )
        print(f"Created FAQ category: {name} ({len(questions)} questions)")

    # ── Resource category tree and one published article ────────────────────
    by_name: dict[str, ResourceCategory] = {}
    for name, parent in RESOURCE_TREE:
        existing = (await session.execute(
            select(ResourceCategory).where(ResourceCategory.name == name)
        )).scalars().first()
        if existing is None:
            parent_id = by_name[parent].id if parent else None
            existing = await resource_category_service.create_category(
                session, ResourceCategoryCreate(name=name, parent_id=parent_id, is_featured=parent is None), admin
            )
            print(f"Created resource category: {name}")
        by_name[name] = existing

    article = ResourceCreate(
        title="A practical checklist for your first ERP rollout",
        excerpt="Everything we check before an ERP go-live, from data migration to user training.",
        content=ARTICLE_BODY,
        category_id=by_name["ERP Guides"].id,
        tags=["erp", "checklist", "implementation"],
        status=ResourceStatus.PUBLISHED,
    )
    if not by_name["ERP Guides"].resource_count:
        resource = await resource_service.create_resource(session, article, admin)
        print(f"Created resource: {resource.slug} (seo_score={resource.seo_score})")

    print()
    print("─" * 60)
    print("Seeded successfully!")
    print(f"  admin login = {ADMIN_EMAIL}")
    print("─" * 60)


async def main() -> None:
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        await seed(session)
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
