"""Public contact form endpoint."""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.dependencies import client_ip, get_db
from sitecms.schemas.common import APIResponse
from sitecms.schemas.contact import ContactInquiryCreate, ContactSubmitted
from sitecms.services import contact_service

router = APIRouter()


# POST /contact
@router.post("", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
async def submit_contact(
    body: ContactInquiryCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    metadata = {
        "ip_address": client_ip(request),
        "user_agent": request.headers.get("user-agent"),
        "referrer": request.headers.get("referer"),
    }
    inquiry = await contact_service.submit_inquiry(db, body, metadata)
    return APIResponse(
        data=ContactSubmitted.model_validate(inquiry).model_dump(mode="json"),
        message="Thank you for your inquiry. We will get back to you soon.",
    )
