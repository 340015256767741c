"""Public FAQ category endpoint."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.dependencies import get_db
from sitecms.schemas.common import APIResponse
from sitecms.services import faq_category_service

router = APIRouter()


# GET /faq-categories
@router.get("", response_model=APIResponse)
async def list_categories(db: AsyncSession = Depends(get_db)):
    return APIResponse(data=await faq_category_service.public_categories(db))
