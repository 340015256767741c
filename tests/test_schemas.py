"""Schema tests."""
import pytest
from pydantic import ValidationError

from sitecms.schemas.common import APIResponse, BulkActionRequest, PaginationMeta
from sitecms.schemas.contact import ContactInquiryCreate
from sitecms.schemas.faq import FaqCreate
from sitecms.schemas.resource_category import ResourceCategoryCreate


def test_api_response_defaults():
    resp = APIResponse(data={"id": "123"}, message="OK")
    assert resp.success is True
    assert resp.pagination is None


def test_pagination_dumps_from_alias():
    meta = PaginationMeta(current_page=2, last_page=5, per_page=10, total=45, from_=11, to=20)
    dumped = APIResponse(data=[], pagination=meta).model_dump(by_alias=True)
    assert dumped["pagination"]["from"] == 11
    assert "from_" not in dumped["pagination"]


def test_bulk_request_needs_ids():
    with pytest.raises(ValidationError):
        BulkActionRequest(action="delete", ids=[])


def test_contact_phone_is_cleaned():
    data = ContactInquiryCreate(
        name="Jane Doe", email="jane@example.com", phone=" +1 (555) 123-4567 ext",
        message="Please call me back about pricing.",
    )
    assert data.phone == "+1 (555) 123-4567"
    assert data.company is None
    assert data.service is None


def test_faq_slug_pattern():
    with pytest.raises(ValidationError):
        FaqCreate(
            question="How do I get started?",
            answer="Create an account and follow the steps.",
            category_id="00000000-0000-0000-0000-000000000001",
            slug="Not A Slug",
        )


def test_category_color_must_be_hex():
    assert ResourceCategoryCreate(name="Guides", color="#10b981").color == "#10b981"
    with pytest.raises(ValidationError):
        ResourceCategoryCreate(name="Guides", color="#10b98")
