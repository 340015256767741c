"""Staff FAQ category management endpoints."""
import uuid

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.dependencies import get_db, require_role
from sitecms.models.user import User
from sitecms.schemas.common import APIResponse, BulkActionRequest, PaginationMeta, ReorderRequest
from sitecms.schemas.faq_category import FaqCategoryCreate, FaqCategoryResponse, FaqCategoryUpdate
from sitecms.services import faq_category_service

router = APIRouter()


def _dump(category, faq_count: int | None = None) -> dict:
    data = FaqCategoryResponse.model_validate(category).model_dump(mode="json")
    if faq_count is not None:
        data["faq_count"] = faq_count
    return data


# GET /admin/faq-categories
@router.get("", response_model=APIResponse)
async def list_categories(
    request: Request,
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1),
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    result, counts = await faq_category_service.list_categories(db, request.query_params, page, per_page)
    return APIResponse(
        data=[_dump(c, counts.get(c.id, 0)) for c in result.items],
        pagination=PaginationMeta.from_page(result),
    )


# POST /admin/faq-categories/bulk
@router.post("/bulk", response_model=APIResponse)
async def bulk_action(
    body: BulkActionRequest,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    count = await faq_category_service.bulk_action(db, body.action, body.ids, caller)
    return APIResponse(data={"affected": count}, message=f"Bulk {body.action} applied to {count} categories")


# POST /admin/faq-categories/reorder
@router.post("/reorder", response_model=APIResponse)
async def reorder(
    body: ReorderRequest,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    count = await faq_category_service.reorder(db, body.items, caller)
    return APIResponse(data={"affected": count}, message="Categories reordered")


# POST /admin/faq-categories
@router.post("", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    body: FaqCategoryCreate,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    category = await faq_category_service.create_category(db, body, caller)
    return APIResponse(data=_dump(category), message="FAQ category created")


# GET /admin/faq-categories/{id}
@router.get("/{category_id}", response_model=APIResponse)
async def show_category(
    category_id: uuid.UUID,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=_dump(await faq_category_service.get_category(db, category_id)))


# PUT /admin/faq-categories/{id}
@router.put("/{category_id}", response_model=APIResponse)
async def update_category(
    category_id: uuid.UUID,
    body: FaqCategoryUpdate,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    category = await faq_category_service.get_category(db, category_id)
    updated = await faq_category_service.update_category(db, category, body, caller)
    return APIResponse(data=_dump(updated), message="FAQ category updated")


# DELETE /admin/faq-categories/{id}
@router.delete("/{category_id}", response_model=APIResponse)
async def delete_category(
    category_id: uuid.UUID,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    await faq_category_service.delete_category(db, category_id, caller)
    return APIResponse(message="FAQ category deleted")


# POST /admin/faq-categories/{id}/toggle-status
@router.post("/{category_id}/toggle-status", response_model=APIResponse)
async def toggle_status(
    category_id: uuid.UUID,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    category = await faq_category_service.get_category(db, category_id)
    return APIResponse(data=_dump(await faq_category_service.toggle_status(db, category, caller)))
