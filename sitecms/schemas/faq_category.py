"""FAQ category request/response schemas."""
import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from sitecms.models.faq_category import ActiveStatus
from sitecms.schemas.resource_category import HEX_COLOR


class FaqCategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    slug: str | None = Field(None, max_length=255)
    description: str | None = None
    icon: str | None = Field(None, max_length=50)
    color: str | None = Field(None, pattern=HEX_COLOR)
    status: ActiveStatus = ActiveStatus.ACTIVE
    sort_order: int | None = Field(None, ge=0, le=9999)
    meta_title: str | None = Field(None, max_length=255)
    meta_description: str | None = Field(None, max_length=500)


class FaqCategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, max_length=255)
    description: str | None = None
    icon: str | None = Field(None, max_length=50)
    color: str | None = Field(None, pattern=HEX_COLOR)
    status: ActiveStatus | None = None
    sort_order: int | None = Field(None, ge=0, le=9999)
    meta_title: str | None = Field(None, max_length=255)
    meta_description: str | None = Field(None, max_length=500)


class FaqCategoryBrief(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    icon: str | None = None
    color: str | None = None

    model_config = {"from_attributes": True}


class FaqCategoryResponse(FaqCategoryBrief):
    description: str | None = None
    status: ActiveStatus
    sort_order: int
    meta_title: str | None = None
    meta_description: str | None = None
    created_by: uuid.UUID | None = None
    updated_by: uuid.UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
