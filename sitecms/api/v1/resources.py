"""Public resource library endpoints."""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.dependencies import get_db, get_viewer_key
from sitecms.schemas.common import APIResponse
from sitecms.services import resource_service

router = APIRouter()


# GET /resources
@router.get("", response_model=APIResponse)
async def list_resources(
    request: Request,
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=await resource_service.public_list(db, request.query_params, page, per_page))


# GET /resources/featured
@router.get("/featured", response_model=APIResponse)
async def featured_resources(
    limit: int = Query(6, ge=1, le=20),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=await resource_service.featured(db, limit))


# GET /resources/trending
@router.get("/trending", response_model=APIResponse)
async def trending_resources(
    limit: int = Query(8, ge=1, le=20),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=await resource_service.trending(db, limit))


# GET /resources/categories
@router.get("/categories", response_model=APIResponse)
async def resource_categories(db: AsyncSession = Depends(get_db)):
    return APIResponse(data=await resource_service.categories_with_counts(db))


# GET /resources/tags
@router.get("/tags", response_model=APIResponse)
async def popular_tags(
    limit: int = Query(30, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=await resource_service.tags(db, limit))


# GET /resources/search
@router.get("/search", response_model=APIResponse)
async def search_resources(
    q: str = Query(..., min_length=2, max_length=255),
    category: str | None = None,
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=await resource_service.search(db, q.strip(), category, page, per_page))


# GET /resources/category/{category}
@router.get("/category/{category}", response_model=APIResponse)
async def resources_by_category(
    category: str,
    request: Request,
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    data = await resource_service.by_category(db, category, request.query_params, page, per_page)
    return APIResponse(data=data)


# GET /resources/{slug}
@router.get("/{slug}", response_model=APIResponse)
async def show_resource(
    slug: str,
    viewer: str = Depends(get_viewer_key),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=await resource_service.public_detail(db, slug, viewer))


# POST /resources/{slug}/share
@router.post("/{slug}/share", response_model=APIResponse)
async def share_resource(slug: str, db: AsyncSession = Depends(get_db)):
    count = await resource_service.share(db, slug)
    return APIResponse(data={"share_count": count}, message="Share recorded.")
