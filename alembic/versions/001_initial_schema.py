"""Initial schema - staff users, contact inquiries, FAQ and resource library.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TABLES = ["users", "contact_inquiries", "faq_categories", "faqs", "resource_categories", "resources"]


def _id() -> sa.Column:
    return sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()"))


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _staff_fk(name: str) -> sa.Column:
    return sa.Column(name, UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


def upgrade() -> None:
    # --- ENUM types ---
    user_role = sa.Enum("admin", "editor", name="user_role")
    inquiry_status = sa.Enum("new", "in_progress", "resolved", "closed", name="inquiry_status")
    inquiry_priority = sa.Enum("low", "medium", "high", "urgent", name="inquiry_priority")
    active_status = sa.Enum("active", "inactive", name="active_status")
    resource_status = sa.Enum("draft", "review", "published", "archived", name="resource_status")

    # --- 1. users ---
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_active", sa.Boolean, server_default=sa.text("true")),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    # --- 2. contact_inquiries ---
    op.create_table(
        "contact_inquiries",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("company", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("service", sa.String(100), nullable=True),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("status", inquiry_status, nullable=False, server_default=sa.text("'new'")),
        sa.Column("priority", inquiry_priority, nullable=False, server_default=sa.text("'medium'")),
        sa.Column("source", sa.String(50), nullable=False, server_default=sa.text("'website'")),
        sa.Column("metadata", JSONB, nullable=True),
        _staff_fk("assigned_to"),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_contact_inquiries_email_created_at", "contact_inquiries", ["email", "created_at"])
    op.create_index("ix_contact_inquiries_status", "contact_inquiries", ["status"])

    # --- 3. faq_categories ---
    op.create_table(
        "faq_categories",
        _id(),
        sa.Column("name", sa.String(255), unique=True, nullable=False),
        sa.Column("slug", sa.String(255), unique=True, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("icon", sa.String(50), nullable=True),
        sa.Column("color", sa.String(7), nullable=True),
        sa.Column("status", active_status, nullable=False, server_default=sa.text("'active'")),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("meta_title", sa.String(255), nullable=True),
        sa.Column("meta_description", sa.String(500), nullable=True),
        _staff_fk("created_by"),
        _staff_fk("updated_by"),
        *_timestamps(),
    )

    # --- 4. faqs ---
    op.create_table(
        "faqs",
        _id(),
        sa.Column("question", sa.Text, nullable=False),
        sa.Column("answer", sa.Text, nullable=False),
        sa.Column(
            "category_id", UUID(as_uuid=True),
            sa.ForeignKey("faq_categories.id", ondelete="RESTRICT"), nullable=False,
        ),
        sa.Column("slug", sa.String(255), unique=True, nullable=False),
        sa.Column("status", active_status, nullable=False, server_default=sa.text("'active'")),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("is_featured", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("tags", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("view_count", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("helpful_count", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("not_helpful_count", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("meta_description", sa.String(500), nullable=True),
        _staff_fk("created_by"),
        _staff_fk("updated_by"),
        *_timestamps(),
        sa.CheckConstraint(
            "view_count >= 0 AND helpful_count >= 0 AND not_helpful_count >= 0",
            name="ck_faqs_counters_non_negative",
        ),
    )
    op.create_index("ix_faqs_category_id", "faqs", ["category_id"])

    # --- 5. resource_categories ---
    op.create_table(
        "resource_categories",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), unique=True, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("color", sa.String(7), nullable=False, server_default=sa.text("'#3B82F6'")),
        sa.Column("icon", sa.String(50), nullable=True),
        sa.Column("featured_image", sa.String(500), nullable=True),
        sa.Column(
            "parent_id", UUID(as_uuid=True),
            sa.ForeignKey("resource_categories.id", ondelete="RESTRICT"), nullable=True,
        ),
        sa.Column("meta_title", sa.String(255), nullable=True),
        sa.Column("meta_description", sa.String(500), nullable=True),
        sa.Column("meta_keywords", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("is_featured", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("resource_count", sa.Integer, nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.CheckConstraint("resource_count >= 0", name="ck_resource_categories_count_non_negative"),
        sa.CheckConstraint("parent_id IS NULL OR parent_id <> id", name="ck_resource_categories_not_own_parent"),
    )
    op.create_index("ix_resource_categories_parent_id", "resource_categories", ["parent_id"])

    # --- 6. resources ---
    op.create_table(
        "resources",
        _id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), unique=True, nullable=False),
        sa.Column("excerpt", sa.String(500), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column(
            "category_id", UUID(as_uuid=True),
            sa.ForeignKey("resource_categories.id", ondelete="RESTRICT"), nullable=False,
        ),
        sa.Column("author_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("tags", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("status", resource_status, nullable=False, server_default=sa.text("'draft'")),
        sa.Column("is_published", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("is_featured", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("is_trending", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("featured_image", sa.String(500), nullable=True),
        sa.Column("gallery_images", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("read_time", sa.Integer, nullable=False, server_default=sa.text("1")),
        sa.Column("view_count", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("share_count", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("like_count", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("seo_score", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("meta_title", sa.String(60), nullable=True),
        sa.Column("meta_description", sa.String(160), nullable=True),
        sa.Column("meta_keywords", sa.String(255), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "view_count >= 0 AND share_count >= 0 AND like_count >= 0",
            name="ck_resources_counters_non_negative",
        ),
        sa.CheckConstraint("seo_score BETWEEN 0 AND 100", name="ck_resources_seo_score_range"),
    )
    op.create_index("ix_resources_category_id", "resources", ["category_id"])
    op.create_index("ix_resources_published", "resources", ["is_published", "published_at"])
    op.create_index("ix_resources_author_id", "resources", ["author_id"])

    # --- updated_at trigger ---
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    for table in TABLES:
        op.execute(f"""
            CREATE TRIGGER trigger_update_{table}_updated_at
            BEFORE UPDATE ON {table}
            FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
        """)


def downgrade() -> None:
    for table in TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS trigger_update_{table}_updated_at ON {table}")
    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")

    for table in reversed(TABLES):
        op.drop_table(table)

    for enum in ["user_role", "inquiry_status", "inquiry_priority", "active_status", "resource_status"]:
        op.execute(f"DROP TYPE IF EXISTS {enum}")
