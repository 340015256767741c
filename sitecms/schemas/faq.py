"""FAQ request/response schemas."""
import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from sitecms.models.faq_category import ActiveStatus
from sitecms.schemas.faq_category import FaqCategoryBrief
from sitecms.utils.helpers import clean_tags

SLUG_PATTERN = r"^[a-z0-9-]+$"


class FaqCreate(BaseModel):
    question: str = Field(min_length=10, max_length=500)
    answer: str = Field(min_length=20, max_length=5000)
    category_id: uuid.UUID
    slug: str | None = Field(None, max_length=255, pattern=SLUG_PATTERN)
    status: ActiveStatus = ActiveStatus.ACTIVE
    sort_order: int = Field(0, ge=0, le=9999)
    is_featured: bool = False
    tags: list[str] = Field(default_factory=list, max_length=10)
    meta_description: str | None = Field(None, max_length=300)

    @field_validator("question", "answer", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return str(v or "").strip()

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        if any(len(t) > 50 for t in v):
            raise ValueError("Each tag cannot exceed 50 characters.")
        return clean_tags(v)


class FaqUpdate(BaseModel):
    question: str | None = Field(None, min_length=10, max_length=500)
    answer: str | None = Field(None, min_length=20, max_length=5000)
    category_id: uuid.UUID | None = None
    slug: str | None = Field(None, max_length=255, pattern=SLUG_PATTERN)
    status: ActiveStatus | None = None
    sort_order: int | None = Field(None, ge=0, le=9999)
    is_featured: bool | None = None
    tags: list[str] | None = Field(None, max_length=10)
    meta_description: str | None = Field(None, max_length=300)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        if v and any(len(t) > 50 for t in v):
            raise ValueError("Each tag cannot exceed 50 characters.")
        return clean_tags(v)


class FaqVoteRequest(BaseModel):
    helpful: bool


class FaqResponse(BaseModel):
    id: uuid.UUID
    question: str
    answer: str
    slug: str
    category_id: uuid.UUID
    category: FaqCategoryBrief | None = None
    status: ActiveStatus
    sort_order: int
    is_featured: bool
    tags: list[str] = []
    view_count: int
    helpful_count: int
    not_helpful_count: int
    helpfulness_ratio: float
    meta_description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class FaqAdminResponse(FaqResponse):
    created_by: uuid.UUID | None = None
    updated_by: uuid.UUID | None = None
