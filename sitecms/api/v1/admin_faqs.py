"""Staff FAQ management endpoints."""
import uuid

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.dependencies import get_db, require_role
from sitecms.models.user import User
from sitecms.schemas.common import APIResponse, BulkActionRequest, PaginationMeta
from sitecms.schemas.faq import FaqAdminResponse, FaqCreate, FaqUpdate
from sitecms.services import faq_service

router = APIRouter()


def _dump(faq) -> dict:
    return FaqAdminResponse.model_validate(faq).model_dump(mode="json")


# GET /admin/faqs
@router.get("", response_model=APIResponse)
async def list_faqs(
    request: Request,
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1),
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    result, status_counts = await faq_service.list_faqs(db, request.query_params, page, per_page)
    return APIResponse(
        data={"items": [_dump(f) for f in result.items], "status_counts": status_counts},
        pagination=PaginationMeta.from_page(result),
    )


# GET /admin/faqs/stats
@router.get("/stats", response_model=APIResponse)
async def faq_stats(
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=await faq_service.get_stats(db))


# POST /admin/faqs/bulk
@router.post("/bulk", response_model=APIResponse)
async def bulk_action(
    body: BulkActionRequest,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    count = await faq_service.bulk_action(db, body.action, body.ids, caller)
    return APIResponse(data={"affected": count}, message=f"Bulk {body.action} applied to {count} FAQs")


# POST /admin/faqs
@router.post("", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
async def create_faq(
    body: FaqCreate,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    faq = await faq_service.create_faq(db, body, caller)
    return APIResponse(data=_dump(faq), message="FAQ created")


# GET /admin/faqs/{id}
@router.get("/{faq_id}", response_model=APIResponse)
async def show_faq(
    faq_id: uuid.UUID,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=_dump(await faq_service.get_faq(db, faq_id)))


# PUT /admin/faqs/{id}
@router.put("/{faq_id}", response_model=APIResponse)
async def update_faq(
    faq_id: uuid.UUID,
    body: FaqUpdate,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    faq = await faq_service.get_faq(db, faq_id)
    return APIResponse(data=_dump(await faq_service.update_faq(db, faq, body, caller)), message="FAQ updated")


# DELETE /admin/faqs/{id}
@router.delete("/{faq_id}", response_model=APIResponse)
async def delete_faq(
    faq_id: uuid.UUID,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    faq = await faq_service.get_faq(db, faq_id)
    await faq_service.delete_faq(db, faq, caller)
    return APIResponse(message="FAQ deleted")


# POST /admin/faqs/{id}/toggle-status
@router.post("/{faq_id}/toggle-status", response_model=APIResponse)
async def toggle_status(
    faq_id: uuid.UUID,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    faq = await faq_service.get_faq(db, faq_id)
    return APIResponse(data=_dump(await faq_service.toggle_status(db, faq, caller)))


# POST /admin/faqs/{id}/toggle-featured
@router.post("/{faq_id}/toggle-featured", response_model=APIResponse)
async def toggle_featured(
    faq_id: uuid.UUID,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    faq = await faq_service.get_faq(db, faq_id)
    return APIResponse(data=_dump(await faq_service.toggle_featured(db, faq, caller)))
