"""Resource category request/response schemas."""
import uuid
from datetime import datetime

from pydantic import BaseModel, Field, computed_field

from sitecms.config import settings
from sitecms.utils.helpers import storage_url

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class ResourceCategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    slug: str | None = Field(None, max_length=255)
    description: str | None = None
    color: str | None = Field(None, pattern=HEX_COLOR)
    icon: str | None = Field(None, max_length=50)
    featured_image: str | None = Field(None, max_length=500)
    parent_id: uuid.UUID | None = None
    meta_title: str | None = Field(None, max_length=255)
    meta_description: str | None = Field(None, max_length=500)
    meta_keywords: str | None = Field(None, max_length=255)
    is_active: bool = True
    is_featured: bool = False
    sort_order: int | None = Field(None, ge=0)


class ResourceCategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, max_length=255)
    description: str | None = None
    color: str | None = Field(None, pattern=HEX_COLOR)
    icon: str | None = Field(None, max_length=50)
    featured_image: str | None = Field(None, max_length=500)
    parent_id: uuid.UUID | None = None
    meta_title: str | None = Field(None, max_length=255)
    meta_description: str | None = Field(None, max_length=500)
    meta_keywords: str | None = Field(None, max_length=255)
    is_active: bool | None = None
    is_featured: bool | None = None
    sort_order: int | None = Field(None, ge=0)


class ResourceCategoryBrief(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    color: str
    icon: str | None = None

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def url(self) -> str:
        return f"{settings.FRONTEND_URL}/resources/category/{self.slug}"


class ResourceCategoryResponse(ResourceCategoryBrief):
    description: str | None = None
    featured_image: str | None = None
    parent_id: uuid.UUID | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    meta_keywords: str | None = None
    is_active: bool
    is_featured: bool
    sort_order: int
    resource_count: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @computed_field
    @property
    def featured_image_url(self) -> str | None:
        return storage_url(self.featured_image, settings.APP_URL)
