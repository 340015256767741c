"""Staff resource library management endpoints."""
import uuid

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.dependencies import get_db, require_role
from sitecms.models.user import User
from sitecms.schemas.common import APIResponse, BulkActionRequest, PaginationMeta
from sitecms.schemas.resource import ResourceCreate, ResourceUpdate
from sitecms.services import resource_service

router = APIRouter()


# GET /admin/resources
@router.get("", response_model=APIResponse)
async def list_resources(
    request: Request,
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1),
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    result, status_counts = await resource_service.list_resources(db, request.query_params, page, per_page)
    return APIResponse(
        data={
            "items": [resource_service.admin_payload(r) for r in result.items],
            "status_counts": status_counts,
        },
        pagination=PaginationMeta.from_page(result),
    )


# GET /admin/resources/analytics
@router.get("/analytics", response_model=APIResponse)
async def resource_analytics(
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=await resource_service.analytics(db))


# POST /admin/resources/bulk
@router.post("/bulk", response_model=APIResponse)
async def bulk_action(
    body: BulkActionRequest,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    count = await resource_service.bulk_action(db, body.action, body.ids, caller)
    return APIResponse(data={"affected": count}, message=f"Bulk {body.action} applied to {count} resources")


# POST /admin/resources
@router.post("", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
async def create_resource(
    body: ResourceCreate,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    resource = await resource_service.create_resource(db, body, caller)
    return APIResponse(data=resource_service.admin_payload(resource), message="Resource created")


# GET /admin/resources/{id}
@router.get("/{resource_id}", response_model=APIResponse)
async def show_resource(
    resource_id: uuid.UUID,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    resource = await resource_service.get_resource(db, resource_id)
    return APIResponse(data=resource_service.admin_payload(resource))


# PUT /admin/resources/{id}
@router.put("/{resource_id}", response_model=APIResponse)
async def update_resource(
    resource_id: uuid.UUID,
    body: ResourceUpdate,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    resource = await resource_service.get_resource(db, resource_id)
    updated = await resource_service.update_resource(db, resource, body, caller)
    return APIResponse(data=resource_service.admin_payload(updated), message="Resource updated")


# DELETE /admin/resources/{id}
@router.delete("/{resource_id}", response_model=APIResponse)
async def delete_resource(
    resource_id: uuid.UUID,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    resource = await resource_service.get_resource(db, resource_id)
    await resource_service.delete_resource(db, resource, caller)
    return APIResponse(message="Resource deleted")


# POST /admin/resources/{id}/seo-score
@router.post("/{resource_id}/seo-score", response_model=APIResponse)
async def regenerate_seo_score(
    resource_id: uuid.UUID,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    resource = await resource_service.get_resource(db, resource_id)
    score = await resource_service.regenerate_seo_score(db, resource, caller)
    return APIResponse(data={"seo_score": score}, message="SEO score updated")
