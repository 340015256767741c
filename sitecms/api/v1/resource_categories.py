"""Public resource category navigation endpoints."""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.dependencies import get_db
from sitecms.schemas.common import APIResponse
from sitecms.services import resource_category_service

router = APIRouter()


# GET /resource-categories
@router.get("", response_model=APIResponse)
async def list_categories(
    request: Request,
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    data = await resource_category_service.public_list(db, request.query_params, page, per_page)
    return APIResponse(data=data)


# GET /resource-categories/hierarchy
@router.get("/hierarchy", response_model=APIResponse)
async def category_hierarchy(db: AsyncSession = Depends(get_db)):
    return APIResponse(data=await resource_category_service.hierarchy(db))


# GET /resource-categories/flat
@router.get("/flat", response_model=APIResponse)
async def category_flat_list(db: AsyncSession = Depends(get_db)):
    return APIResponse(data=await resource_category_service.flat_list(db))


# GET /resource-categories/popular
@router.get("/popular", response_model=APIResponse)
async def popular_categories(
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=await resource_category_service.popular(db, limit))


# GET /resource-categories/featured
@router.get("/featured", response_model=APIResponse)
async def featured_categories(db: AsyncSession = Depends(get_db)):
    return APIResponse(data=await resource_category_service.featured_with_resources(db))


# GET /resource-categories/stats
@router.get("/stats", response_model=APIResponse)
async def category_stats(db: AsyncSession = Depends(get_db)):
    return APIResponse(data=await resource_category_service.stats(db))


# GET /resource-categories/search
@router.get("/search", response_model=APIResponse)
async def search_categories(
    q: str = Query(..., min_length=2, max_length=100),
    limit: int = Query(20, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=await resource_category_service.search(db, q.strip(), limit))


# GET /resource-categories/analytics
@router.get("/analytics", response_model=APIResponse)
async def category_analytics(db: AsyncSession = Depends(get_db)):
    return APIResponse(data=await resource_category_service.analytics(db))


# GET /resource-categories/{slug}
@router.get("/{slug}", response_model=APIResponse)
async def show_category(
    slug: str,
    request: Request,
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    data = await resource_category_service.public_detail(db, slug, request.query_params, page, per_page)
    return APIResponse(data=data)


# GET /resource-categories/{slug}/breadcrumb
@router.get("/{slug}/breadcrumb", response_model=APIResponse)
async def category_breadcrumb(slug: str, db: AsyncSession = Depends(get_db)):
    return APIResponse(data=await resource_category_service.breadcrumb(db, slug))


# GET /resource-categories/{slug}/related
@router.get("/{slug}/related", response_model=APIResponse)
async def related_categories(
    slug: str,
    limit: int = Query(6, ge=1, le=20),
    db: AsyncSession = Depends(get_db),
):
    return APIResponse(data=await resource_category_service.related(db, slug, limit))
