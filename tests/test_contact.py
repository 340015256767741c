"""Contact inquiry service and API tests."""
import uuid
from datetime import timedelta

import pytest

from sitecms.exceptions import DuplicateSubmission
from sitecms.models.contact_inquiry import ContactInquiry, InquiryPriority, InquiryStatus
from sitecms.schemas.contact import ContactInquiryCreate, ContactInquiryUpdate
from sitecms.services import contact_service
from sitecms.utils.helpers import utc_now

VALID_INQUIRY = {
    "name": "Jane Doe",
    "email": "Jane.Doe@Example.com ",
    "company": "  Acme Corp ",
    "phone": "+1 (555) 123-4567",
    "service": "ERP Implementation",
    "message": "  We would like a quote for an ERP implementation.  ",
}


# --- Service ---

@pytest.mark.asyncio
async def test_duplicate_within_window_is_rejected(db_session):
    data = ContactInquiryCreate.model_construct(
        name="A", email="a@b.com", company=None, phone=None, service=None, message="Hi",
    )
    t0 = utc_now()
    await contact_service.submit_inquiry(db_session, data, now=t0)

    with pytest.raises(DuplicateSubmission):
        await contact_service.submit_inquiry(db_session, data, now=t0 + timedelta(minutes=5))

    accepted = await contact_service.submit_inquiry(db_session, data, now=t0 + timedelta(minutes=11))
    assert accepted.id is not None


@pytest.mark.asyncio
async def test_same_email_different_message_is_accepted(db_session):
    first = ContactInquiryCreate(**{**VALID_INQUIRY, "message": "First question about ERP."})
    second = ContactInquiryCreate(**{**VALID_INQUIRY, "message": "Second question about ERP."})
    await contact_service.submit_inquiry(db_session, first)
    await contact_service.submit_inquiry(db_session, second)


@pytest.mark.asyncio
async def test_first_move_to_in_progress_sets_responded_at(db_session, staff):
    inquiry = await contact_service.submit_inquiry(db_session, ContactInquiryCreate(**VALID_INQUIRY))
    assert inquiry.responded_at is None

    updated = await contact_service.update_inquiry(
        db_session, inquiry, ContactInquiryUpdate(status=InquiryStatus.IN_PROGRESS), staff
    )
    assert updated.responded_at is not None
    responded_at = updated.responded_at

    updated = await contact_service.update_inquiry(
        db_session, updated, ContactInquiryUpdate(status=InquiryStatus.RESOLVED), staff
    )
    assert updated.responded_at == responded_at


# --- Public API ---

@pytest.mark.asyncio
async def test_submit_contact_normalizes_input(client, db_session):
    resp = await client.post("/api/v1/contact", json=VALID_INQUIRY, headers={"User-Agent": "pytest"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    data = body["data"]
    assert data["reference_number"] == f"HIS-{uuid.UUID(data['id']).hex[:8].upper()}"

    inquiry = await db_session.get(ContactInquiry, uuid.UUID(data["id"]))
    assert inquiry.email == "jane.doe@example.com"
    assert inquiry.company == "Acme Corp"
    assert inquiry.message == "We would like a quote for an ERP implementation."
    assert inquiry.status == InquiryStatus.NEW
    assert inquiry.priority == InquiryPriority.MEDIUM
    assert inquiry.source == "website"
    assert inquiry.metadata_["user_agent"] == "pytest"
    assert "submitted_at" in inquiry.metadata_


@pytest.mark.asyncio
async def test_submit_contact_duplicate_returns_409(client):
    first = await client.post("/api/v1/contact", json=VALID_INQUIRY)
    second = await client.post("/api/v1/contact", json=VALID_INQUIRY)
    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["success"] is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("name", "Jane 2nd"),
        ("email", "not-an-email"),
        ("service", "Astrology"),
        ("message", "short"),
        ("message", "x" * 5001),
    ],
)
async def test_submit_contact_validation(client, field, value):
    resp = await client.post("/api/v1/contact", json={**VALID_INQUIRY, field: value})
    assert resp.status_code == 422
    body = resp.json()
    assert body["success"] is False
    assert field in body["errors"]


# --- Admin API ---

@pytest.mark.asyncio
async def test_admin_requires_auth(client):
    resp = await client.get("/api/v1/admin/contact-inquiries")
    assert resp.status_code in (401, 403)
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_admin_list_filters_and_counts(client, db_session, admin_auth):
    _, headers = admin_auth
    for i, status in enumerate([InquiryStatus.NEW, InquiryStatus.NEW, InquiryStatus.RESOLVED]):
        db_session.add(ContactInquiry(
            name=f"Person {i}", email=f"p{i}@example.com", message=f"Need help with project {i}",
            status=status, priority=InquiryPriority.URGENT if i == 0 else InquiryPriority.LOW,
        ))
    await db_session.commit()

    resp = await client.get("/api/v1/admin/contact-inquiries", headers=headers)
    body = resp.json()
    assert resp.status_code == 200
    assert body["pagination"]["total"] == 3
    assert body["data"]["status_counts"] == {"new": 2, "in_progress": 0, "resolved": 1, "closed": 0}

    resp = await client.get("/api/v1/admin/contact-inquiries?status=new&sort=priority", headers=headers)
    items = resp.json()["data"]["items"]
    assert [i["name"] for i in items] == ["Person 0", "Person 1"]

    resp = await client.get("/api/v1/admin/contact-inquiries?search=project 2", headers=headers)
    assert [i["name"] for i in resp.json()["data"]["items"]] == ["Person 2"]


@pytest.mark.asyncio
async def test_admin_update_and_delete(client, admin_auth):
    user, headers = admin_auth
    created = (await client.post("/api/v1/contact", json=VALID_INQUIRY)).json()["data"]

    resp = await client.put(
        f"/api/v1/admin/contact-inquiries/{created['id']}",
        json={"status": "in_progress", "priority": "high", "assigned_to": str(user.id), "notes": "Called back"},
        headers=headers,
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "in_progress"
    assert data["priority"] == "high"
    assert data["assigned_to"] == str(user.id)
    assert data["responded_at"] is not None

    resp = await client.put(
        f"/api/v1/admin/contact-inquiries/{created['id']}",
        json={"assigned_to": str(uuid.uuid4())},
        headers=headers,
    )
    assert resp.status_code == 422
    assert "assigned_to" in resp.json()["errors"]

    resp = await client.delete(f"/api/v1/admin/contact-inquiries/{created['id']}", headers=headers)
    assert resp.status_code == 200
    resp = await client.get(f"/api/v1/admin/contact-inquiries/{created['id']}", headers=headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_admin_stats_are_cached_until_a_write(client, admin_auth):
    _, headers = admin_auth
    stats = (await client.get("/api/v1/admin/contact-inquiries/stats", headers=headers)).json()["data"]
    assert stats["total"] == 0

    await client.post("/api/v1/contact", json=VALID_INQUIRY)
    stats = (await client.get("/api/v1/admin/contact-inquiries/stats", headers=headers)).json()["data"]
    assert stats["total"] == 1
    assert stats["new"] == 1
    assert stats["today"] == 1
    assert stats["unassigned"] == 1
