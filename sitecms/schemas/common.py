"""Shared response schemas."""
import uuid
from typing import Any

from pydantic import BaseModel, Field


class PaginationMeta(BaseModel):
    current_page: int
    last_page: int
    per_page: int
    total: int
    from_: int | None = Field(None, alias="from")
    to: int | None = None

    model_config = {"populate_by_name": True}

    @classmethod
    def from_page(cls, page) -> "PaginationMeta":
        return cls(
            current_page=page.current_page,
            last_page=page.last_page,
            per_page=page.per_page,
            total=page.total,
            from_=page.from_,
            to=page.to,
        )


class APIResponse(BaseModel):
    success: bool = True
    data: Any = None
    message: str | None = None
    pagination: PaginationMeta | None = None


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: dict[str, list[str]] | None = None
    retry_after: int | None = None


class BulkActionRequest(BaseModel):
    action: str
    ids: list[uuid.UUID] = Field(min_length=1)


class ReorderItem(BaseModel):
    id: uuid.UUID
    sort_order: int = Field(ge=0)


class ReorderRequest(BaseModel):
    items: list[ReorderItem] = Field(min_length=1)
