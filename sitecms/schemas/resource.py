"""Resource request/response schemas."""
import uuid
from datetime import datetime

from pydantic import BaseModel, Field, computed_field, field_validator

from sitecms.config import settings
from sitecms.models.resource import ResourceStatus
from sitecms.schemas.faq import SLUG_PATTERN
from sitecms.schemas.resource_category import ResourceCategoryBrief
from sitecms.utils.helpers import clean_tags, storage_url


def _check_tags(v: list[str] | None) -> list[str] | None:
    if v and any(len(t) > 50 for t in v):
        raise ValueError("Each tag cannot be longer than 50 characters.")
    return clean_tags(v)


class ResourceCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    slug: str | None = Field(None, max_length=255, pattern=SLUG_PATTERN)
    excerpt: str = Field(min_length=1, max_length=500)
    content: str = Field(min_length=100)
    category_id: uuid.UUID
    author_id: uuid.UUID | None = None
    tags: list[str] = Field(default_factory=list, max_length=10)
    status: ResourceStatus = ResourceStatus.DRAFT
    is_featured: bool = False
    is_trending: bool = False
    featured_image: str | None = Field(None, max_length=500)
    gallery_images: list[str] = Field(default_factory=list, max_length=5)
    read_time: int | None = Field(None, ge=1, le=60)
    meta_title: str | None = Field(None, max_length=60)
    meta_description: str | None = Field(None, max_length=160)
    meta_keywords: str | None = Field(None, max_length=255)
    published_at: datetime | None = None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return _check_tags(v)


class ResourceUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, max_length=255, pattern=SLUG_PATTERN)
    excerpt: str | None = Field(None, min_length=1, max_length=500)
    content: str | None = Field(None, min_length=100)
    category_id: uuid.UUID | None = None
    author_id: uuid.UUID | None = None
    tags: list[str] | None = Field(None, max_length=10)
    status: ResourceStatus | None = None
    is_featured: bool | None = None
    is_trending: bool | None = None
    featured_image: str | None = Field(None, max_length=500)
    gallery_images: list[str] | None = Field(None, max_length=5)
    read_time: int | None = Field(None, ge=1, le=60)
    meta_title: str | None = Field(None, max_length=60)
    meta_description: str | None = Field(None, max_length=160)
    meta_keywords: str | None = Field(None, max_length=255)
    published_at: datetime | None = None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        return _check_tags(v)


class AuthorBrief(BaseModel):
    id: uuid.UUID
    name: str

    model_config = {"from_attributes": True}


class ResourceLink(BaseModel):
    id: uuid.UUID
    title: str
    slug: str

    model_config = {"from_attributes": True}


class ResourceListItem(BaseModel):
    id: uuid.UUID
    title: str
    slug: str
    excerpt: str
    category: ResourceCategoryBrief | None = None
    author: AuthorBrief | None = None
    tags: list[str] = []
    featured_image: str | None = None
    is_featured: bool
    is_trending: bool
    published_at: datetime | None = None
    read_time: int
    view_count: int
    share_count: int
    like_count: int
    seo_score: int

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def featured_image_url(self) -> str | None:
        return storage_url(self.featured_image, settings.APP_URL)

    @computed_field
    @property
    def full_url(self) -> str:
        return f"{settings.FRONTEND_URL}/resources/{self.slug}"

    @computed_field
    @property
    def reading_time_text(self) -> str:
        return f"{self.read_time} min read"


class ResourceDetail(ResourceListItem):
    content: str
    gallery_images: list[str] = []
    status: ResourceStatus
    is_published: bool
    meta_title: str | None = None
    meta_description: str | None = None
    meta_keywords: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @computed_field
    @property
    def gallery_images_urls(self) -> list[str]:
        return [storage_url(ref, settings.APP_URL) for ref in self.gallery_images if ref]


class ResourceAdminResponse(ResourceDetail):
    category_id: uuid.UUID
    author_id: uuid.UUID
