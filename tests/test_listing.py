"""Listing pipeline tests: parameter normalization, ordering and pagination."""
from sitecms.repositories.faq_repository import FAQ_LISTING
from sitecms.repositories.listing import Page
from sitecms.repositories.resource_repository import RESOURCE_LISTING
from sitecms.schemas.common import PaginationMeta


def test_normalize_drops_blank_all_and_unknown_keys():
    normalized = RESOURCE_LISTING.normalize(
        {"category": "all", "tag": "  ", "featured": "true", "search": " erp ", "color": "red"}
    )
    assert normalized == {"featured": "true", "search": "erp", "sort": "latest"}


def test_unknown_sort_falls_back_to_default():
    assert RESOURCE_LISTING.normalize({"sort": "random"})["sort"] == "latest"
    assert FAQ_LISTING.normalize({"sort": "POPULAR"})["sort"] == "popular"
    assert FAQ_LISTING.normalize({})["sort"] == "ordered"


def test_order_by_always_ends_with_id():
    columns = RESOURCE_LISTING.order_by("popular")
    assert str(columns[-1]).endswith("resources.id ASC")
    assert len(columns) == 2


def test_clamp_per_page():
    assert RESOURCE_LISTING.clamp(None) == 12
    assert RESOURCE_LISTING.clamp(0) == 12
    assert RESOURCE_LISTING.clamp(500) == 50
    assert FAQ_LISTING.clamp(75) == 75


def test_page_metadata():
    page = Page(items=list(range(10)), total=23, current_page=3, per_page=10)
    assert page.last_page == 3
    assert page.from_ == 21
    assert page.to == 30

    empty = Page(items=[], total=0, current_page=1, per_page=15)
    assert empty.last_page == 1
    assert empty.from_ is None
    assert empty.to is None


def test_pagination_meta_serializes_from_alias():
    page = Page(items=[1, 2, 3], total=3, current_page=1, per_page=12)
    meta = PaginationMeta.from_page(page).model_dump(by_alias=True)
    assert meta == {"current_page": 1, "last_page": 1, "per_page": 12, "total": 3, "from": 1, "to": 3}
