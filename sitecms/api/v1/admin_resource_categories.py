"""Staff resource category management endpoints."""
import uuid

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.dependencies import get_db, require_role
from sitecms.models.user import User
from sitecms.schemas.common import APIResponse, BulkActionRequest, PaginationMeta, ReorderRequest
from sitecms.schemas.resource_category import ResourceCategoryCreate, ResourceCategoryUpdate
from sitecms.services import resource_category_service

router = APIRouter()


# GET /admin/resource-categories
@router.get("", response_model=APIResponse)
async def list_categories(
    request: Request,
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1),
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    items, result, status_counts = await resource_category_service.list_categories(
        db, request.query_params, page, per_page
    )
    return APIResponse(
        data={"items": items, "status_counts": status_counts},
        pagination=PaginationMeta.from_page(result),
    )


# GET /admin/resource-categories/hierarchy
@router.get("/hierarchy", response_model=APIResponse)
async def category_hierarchy(
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=await resource_category_service.hierarchy(db))


# GET /admin/resource-categories/flat
@router.get("/flat", response_model=APIResponse)
async def category_flat_list(
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=await resource_category_service.flat_list(db))


# GET /admin/resource-categories/analytics
@router.get("/analytics", response_model=APIResponse)
async def category_analytics(
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=await resource_category_service.analytics(db))


# GET /admin/resource-categories/export
@router.get("/export", response_model=APIResponse)
async def export_categories(
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=await resource_category_service.export_rows(db))


# POST /admin/resource-categories/reconcile
@router.post("/reconcile", response_model=APIResponse)
async def reconcile_counts(
    caller: User = require_role("admin"),
    db: AsyncSession = Depends(get_db),
):
    corrected = await resource_category_service.reconcile(db, caller)
    return APIResponse(data={"corrected": corrected}, message=f"{len(corrected)} category counts corrected")


# POST /admin/resource-categories/bulk
@router.post("/bulk", response_model=APIResponse)
async def bulk_action(
    body: BulkActionRequest,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    count = await resource_category_service.bulk_action(db, body.action, body.ids, caller)
    return APIResponse(data={"affected": count}, message=f"Bulk {body.action} applied to {count} categories")


# POST /admin/resource-categories/reorder
@router.post("/reorder", response_model=APIResponse)
async def reorder(
    body: ReorderRequest,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    count = await resource_category_service.reorder(db, body.items, caller)
    return APIResponse(data={"affected": count}, message="Categories reordered")


# POST /admin/resource-categories
@router.post("", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    body: ResourceCategoryCreate,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    category = await resource_category_service.create_category(db, body, caller)
    data = await resource_category_service.category_detail(db, category)
    return APIResponse(data=data, message="Resource category created")


# GET /admin/resource-categories/{id}
@router.get("/{category_id}", response_model=APIResponse)
async def show_category(
    category_id: uuid.UUID,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    category = await resource_category_service.get_category(db, category_id)
    return APIResponse(data=await resource_category_service.category_detail(db, category))


# PUT /admin/resource-categories/{id}
@router.put("/{category_id}", response_model=APIResponse)
async def update_category(
    category_id: uuid.UUID,
    body: ResourceCategoryUpdate,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    category = await resource_category_service.get_category(db, category_id)
    updated = await resource_category_service.update_category(db, category, body, caller)
    data = await resource_category_service.category_detail(db, updated)
    return APIResponse(data=data, message="Resource category updated")


# DELETE /admin/resource-categories/{id}
@router.delete("/{category_id}", response_model=APIResponse)
async def delete_category(
    category_id: uuid.UUID,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    await resource_category_service.delete_category(db, category_id, caller)
    return APIResponse(message="Resource category deleted")
