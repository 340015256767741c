"""FAQ category endpoint tests."""
import pytest
from sqlalchemy import select

from sitecms.models.faq_category import ActiveStatus, FaqCategory

BASE = "/api/v1/admin/faq-categories"


@pytest.mark.asyncio
async def test_create_assigns_slug_and_next_sort_order(client, admin_auth):
    _, headers = admin_auth

    first = await client.post(BASE, json={"name": "  Getting Started "}, headers=headers)
    second = await client.post(BASE, json={"name": "Billing & Payments", "color": "#10B981"}, headers=headers)
    assert first.status_code == second.status_code == 201
    assert first.json()["data"]["name"] == "Getting Started"
    assert first.json()["data"]["slug"] == "getting-started"
    assert second.json()["data"]["slug"] == "billing-payments"
    assert second.json()["data"]["sort_order"] == first.json()["data"]["sort_order"] + 1


@pytest.mark.asyncio
async def test_duplicate_name_is_conflict(client, admin_auth, make_faq_category):
    _, headers = admin_auth
    await make_faq_category("General")

    resp = await client.post(BASE, json={"name": "general"}, headers=headers)
    assert resp.status_code == 409
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_rename_to_existing_name_is_conflict(client, admin_auth, make_faq_category):
    _, headers = admin_auth
    await make_faq_category("General")
    other = await make_faq_category("Billing")

    resp = await client.put(f"{BASE}/{other.id}", json={"name": "General"}, headers=headers)
    assert resp.status_code == 409

    resp = await client.put(f"{BASE}/{other.id}", json={"name": "Billing", "description": "Invoices"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["description"] == "Invoices"


@pytest.mark.asyncio
async def test_invalid_color_is_rejected(client, admin_auth):
    _, headers = admin_auth
    resp = await client.post(BASE, json={"name": "Colors", "color": "blue"}, headers=headers)
    assert resp.status_code == 422
    assert "color" in resp.json()["errors"]


@pytest.mark.asyncio
async def test_delete_blocked_while_faqs_exist(client, db_session, admin_auth, make_faq_category, make_faq):
    _, headers = admin_auth
    category = await make_faq_category()
    faq = await make_faq(category)

    resp = await client.delete(f"{BASE}/{category.id}", headers=headers)
    assert resp.status_code == 409
    assert (await db_session.execute(select(FaqCategory.id))).scalars().all() == [category.id]

    await client.delete(f"/api/v1/admin/faqs/{faq.id}", headers=headers)
    resp = await client.delete(f"{BASE}/{category.id}", headers=headers)
    assert resp.status_code == 200
    remaining = (await db_session.execute(select(FaqCategory.id))).scalars().all()
    assert remaining == []


@pytest.mark.asyncio
async def test_bulk_delete_is_all_or_nothing(client, db_session, admin_auth, make_faq_category, make_faq):
    _, headers = admin_auth
    empty = await make_faq_category("Empty")
    used = await make_faq_category("Used")
    await make_faq(used)

    resp = await client.post(f"{BASE}/bulk", json={
        "action": "delete", "ids": [str(empty.id), str(used.id)],
    }, headers=headers)
    assert resp.status_code == 409
    assert "Used" in resp.json()["message"]
    remaining = (await db_session.execute(select(FaqCategory.name))).scalars().all()
    assert sorted(remaining) == ["Empty", "Used"]

    resp = await client.post(f"{BASE}/bulk", json={"action": "deactivate", "ids": [str(empty.id)]}, headers=headers)
    assert resp.json()["data"] == {"affected": 1}


@pytest.mark.asyncio
async def test_reorder_changes_public_order(client, admin_auth, make_faq_category):
    _, headers = admin_auth
    first = await make_faq_category("First", sort_order=1)
    second = await make_faq_category("Second", sort_order=2)

    names = [c["name"] for c in (await client.get("/api/v1/faq-categories")).json()["data"]]
    assert names == ["First", "Second"]

    resp = await client.post(f"{BASE}/reorder", json={"items": [
        {"id": str(first.id), "sort_order": 5},
        {"id": str(second.id), "sort_order": 0},
    ]}, headers=headers)
    assert resp.status_code == 200

    names = [c["name"] for c in (await client.get("/api/v1/faq-categories")).json()["data"]]
    assert names == ["Second", "First"]


@pytest.mark.asyncio
async def test_public_categories_count_visible_faqs(client, make_faq_category, make_faq):
    general = await make_faq_category("General")
    await make_faq_category("Hidden", status=ActiveStatus.INACTIVE)
    await make_faq(general)
    await make_faq(general, "Where can I find the onboarding guide?", status=ActiveStatus.INACTIVE)

    data = (await client.get("/api/v1/faq-categories")).json()["data"]
    assert [(c["slug"], c["faq_count"]) for c in data] == [("general", 1)]


@pytest.mark.asyncio
async def test_faq_writes_refresh_public_category_counts(client, admin_auth, make_faq_category, make_faq):
    _, headers = admin_auth
    category = await make_faq_category("General")
    await make_faq(category)
    before = (await client.get("/api/v1/faq-categories")).json()["data"]
    assert before[0]["faq_count"] == 1

    resp = await client.post("/api/v1/admin/faqs", json={
        "question": "Which browsers does the portal support?",
        "answer": "All current versions of Chrome, Firefox, Safari and Edge.",
        "category_id": str(category.id),
    }, headers=headers)
    assert resp.status_code == 201
    after = (await client.get("/api/v1/faq-categories")).json()["data"]
    assert after[0]["faq_count"] == 2

    faq_id = resp.json()["data"]["id"]
    await client.delete(f"/api/v1/admin/faqs/{faq_id}", headers=headers)
    again = (await client.get("/api/v1/faq-categories")).json()["data"]
    assert again[0]["faq_count"] == 1


@pytest.mark.asyncio
async def test_toggle_status_hides_category_faqs(client, admin_auth, make_faq_category, make_faq):
    _, headers = admin_auth
    category = await make_faq_category()
    await make_faq(category)
    assert (await client.get("/api/v1/faqs")).json()["data"]["total_count"] == 1

    resp = await client.post(f"{BASE}/{category.id}/toggle-status", headers=headers)
    assert resp.json()["data"]["status"] == "inactive"
    assert (await client.get("/api/v1/faqs")).json()["data"]["total_count"] == 0


@pytest.mark.asyncio
async def test_admin_list_includes_faq_counts(client, admin_auth, make_faq_category, make_faq):
    _, headers = admin_auth
    category = await make_faq_category("General")
    await make_faq(category)
    await make_faq_category("Empty")

    body = (await client.get(f"{BASE}?sort=name", headers=headers)).json()
    assert [(c["name"], c["faq_count"]) for c in body["data"]] == [("Empty", 0), ("General", 1)]
    assert body["pagination"]["total"] == 2
