"""Public FAQ endpoints."""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.dependencies import get_db, get_viewer_key
from sitecms.schemas.common import APIResponse
from sitecms.schemas.faq import FaqVoteRequest
from sitecms.services import faq_service

router = APIRouter()


# GET /faqs
@router.get("", response_model=APIResponse)
async def list_faqs(
    request: Request,
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    data = await faq_service.public_list(db, request.query_params, page, per_page)
    return APIResponse(data=data)


# GET /faqs/{slug}
@router.get("/{slug}", response_model=APIResponse)
async def show_faq(
    slug: str,
    viewer: str = Depends(get_viewer_key),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=await faq_service.public_detail(db, slug, viewer))


# POST /faqs/{slug}/helpful
@router.post("/{slug}/helpful", response_model=APIResponse)
async def vote_helpful(
    slug: str,
    body: FaqVoteRequest,
    db: AsyncSession = Depends(get_db),
):
    data = await faq_service.vote(db, slug, body.helpful)
    return APIResponse(data=data, message="Thank you for your feedback!")
