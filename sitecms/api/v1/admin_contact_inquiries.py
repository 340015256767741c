"""Staff endpoints for working through contact inquiries."""
import uuid

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.dependencies import get_db, require_role
from sitecms.models.user import User
from sitecms.schemas.common import APIResponse, PaginationMeta
from sitecms.schemas.contact import ContactInquiryResponse, ContactInquiryUpdate
from sitecms.services import contact_service

router = APIRouter()


def _dump(inquiry) -> dict:
    return ContactInquiryResponse.model_validate(inquiry).model_dump(mode="json")


# GET /admin/contact-inquiries
@router.get("", response_model=APIResponse)
async def list_inquiries(
    request: Request,
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1),
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    result, status_counts = await contact_service.list_inquiries(db, request.query_params, page, per_page)
    return APIResponse(
        data={"items": [_dump(i) for i in result.items], "status_counts": status_counts},
        pagination=PaginationMeta.from_page(result),
    )


# GET /admin/contact-inquiries/stats
@router.get("/stats", response_model=APIResponse)
async def inquiry_stats(
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=await contact_service.get_stats(db))


# GET /admin/contact-inquiries/{id}
@router.get("/{inquiry_id}", response_model=APIResponse)
async def show_inquiry(
    inquiry_id: uuid.UUID,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=_dump(await contact_service.get_inquiry(db, inquiry_id)))


# PUT /admin/contact-inquiries/{id}
@router.put("/{inquiry_id}", response_model=APIResponse)
async def update_inquiry(
    inquiry_id: uuid.UUID,
    body: ContactInquiryUpdate,
    caller: User = require_role("admin", "editor"),
    db: AsyncSession = Depends(get_db),
):
    inquiry = await contact_service.get_inquiry(db, inquiry_id)
    updated = await contact_service.update_inquiry(db, inquiry, body, caller)
    return APIResponse(data=_dump(updated), message="Inquiry updated")


# DELETE /admin/contact-inquiries/{id}
@router.delete("/{inquiry_id}", response_model=APIResponse)
async def delete_inquiry(
    inquiry_id: uuid.UUID,
    caller: User = require_role("admin"),
    db: AsyncSession = Depends(get_db),
):
    inquiry = await contact_service.get_inquiry(db, inquiry_id)
    await contact_service.delete_inquiry(db, inquiry, caller)
    return APIResponse(message="Inquiry deleted")
