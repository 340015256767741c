"""Resource category tree endpoint tests."""
import pytest
from sqlalchemy import select

from sitecms.models.resource_category import ResourceCategory

ADMIN = "/api/v1/admin/resource-categories"
PUBLIC = "/api/v1/resource-categories"


async def _create(client, headers, name, parent_id=None, **extra) -> dict:
    payload = {"name": name, **extra}
    if parent_id:
        payload["parent_id"] = parent_id
    resp = await client.post(ADMIN, json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def _names(db_session) -> list[str]:
    return sorted((await db_session.execute(select(ResourceCategory.name))).scalars().all())


# --- Admin: tree integrity ---

@pytest.mark.asyncio
async def test_create_defaults(client, admin_auth):
    _, headers = admin_auth
    first = await _create(client, headers, "Guides")
    second = await _create(client, headers, "Case Studies", color="#10B981")

    assert first["slug"] == "guides"
    assert first["color"] == "#3B82F6"
    assert first["resource_count"] == 0
    assert first["hierarchy_level"] == 0
    assert first["breadcrumb"][0]["slug"] == "guides"
    assert first["can_delete"] is True
    assert second["color"] == "#10B981"
    assert second["sort_order"] == first["sort_order"] + 1


@pytest.mark.asyncio
async def test_create_rejects_unknown_parent_and_taken_slug(client, admin_auth):
    _, headers = admin_auth
    await _create(client, headers, "Guides")

    resp = await client.post(ADMIN, json={
        "name": "Orphan", "parent_id": "00000000-0000-0000-0000-000000000000",
    }, headers=headers)
    assert resp.status_code == 422
    assert "parent_id" in resp.json()["errors"]

    resp = await client.post(ADMIN, json={"name": "Other", "slug": "guides"}, headers=headers)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_parent_cannot_become_child_of_its_child(client, admin_auth):
    _, headers = admin_auth
    parent = await _create(client, headers, "Parent")
    child = await _create(client, headers, "Child", parent["id"])

    resp = await client.put(f"{ADMIN}/{parent['id']}", json={"parent_id": child["id"]}, headers=headers)
    assert resp.status_code == 409
    assert resp.json()["message"] == "Cannot set a descendant category as parent."

    resp = await client.put(f"{ADMIN}/{parent['id']}", json={"parent_id": parent["id"]}, headers=headers)
    assert resp.status_code == 409

    shown = (await client.get(f"{ADMIN}/{parent['id']}", headers=headers)).json()["data"]
    assert shown["parent_id"] is None


@pytest.mark.asyncio
async def test_deep_cycle_is_rejected(client, admin_auth):
    _, headers = admin_auth
    a = await _create(client, headers, "Level A")
    b = await _create(client, headers, "Level B", a["id"])
    c = await _create(client, headers, "Level C", b["id"])
    d = await _create(client, headers, "Level D", c["id"])
    assert d["hierarchy_level"] == 3
    assert [x["name"] for x in d["breadcrumb"]] == ["Level A", "Level B", "Level C", "Level D"]

    resp = await client.put(f"{ADMIN}/{a['id']}", json={"parent_id": d["id"]}, headers=headers)
    assert resp.status_code == 409

    other = await _create(client, headers, "Elsewhere")
    resp = await client.put(f"{ADMIN}/{b['id']}", json={"parent_id": other["id"]}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["hierarchy_level"] == 1


@pytest.mark.asyncio
async def test_delete_blocked_with_children_or_resources(
    client, db_session, admin_auth, make_resource_category, make_resource,
):
    _, headers = admin_auth
    parent = await make_resource_category("Guides")
    await make_resource_category("ERP Guides", parent)
    used = await make_resource_category("Case Studies")
    await make_resource(used)

    for category in (parent, used):
        resp = await client.delete(f"{ADMIN}/{category.id}", headers=headers)
        assert resp.status_code == 409
    assert await _names(db_session) == ["Case Studies", "ERP Guides", "Guides"]

    body = (await client.get(f"{ADMIN}?sort=name", headers=headers)).json()
    assert {c["name"]: c["can_delete"] for c in body["data"]["items"]} == {
        "Case Studies": False, "ERP Guides": True, "Guides": False,
    }
    assert body["data"]["status_counts"]["root"] == 2
    assert body["data"]["status_counts"]["child"] == 1


@pytest.mark.asyncio
async def test_bulk_delete_is_all_or_nothing(client, db_session, admin_auth, make_resource_category):
    _, headers = admin_auth
    parent = await make_resource_category("Guides")
    child = await make_resource_category("ERP Guides", parent)
    loose = await make_resource_category("Loose")

    resp = await client.post(f"{ADMIN}/bulk", json={
        "action": "delete", "ids": [str(parent.id), str(loose.id)],
    }, headers=headers)
    assert resp.status_code == 409
    assert "Guides" in resp.json()["message"]
    assert await _names(db_session) == ["ERP Guides", "Guides", "Loose"]

    resp = await client.post(f"{ADMIN}/bulk", json={
        "action": "delete", "ids": [str(parent.id), str(child.id), str(loose.id)],
    }, headers=headers)
    assert resp.status_code == 409
    assert await _names(db_session) == ["ERP Guides", "Guides", "Loose"]

    resp = await client.post(f"{ADMIN}/bulk", json={
        "action": "delete", "ids": [str(child.id), str(loose.id)],
    }, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"] == {"affected": 2}
    assert await _names(db_session) == ["Guides"]


@pytest.mark.asyncio
async def test_bulk_feature_and_reorder(client, admin_auth, make_resource_category):
    _, headers = admin_auth
    first = await make_resource_category("First", sort_order=1)
    second = await make_resource_category("Second", sort_order=2)

    resp = await client.post(f"{ADMIN}/bulk", json={"action": "feature", "ids": [str(second.id)]}, headers=headers)
    assert resp.json()["data"] == {"affected": 1}

    await client.post(f"{ADMIN}/reorder", json={"items": [
        {"id": str(first.id), "sort_order": 9}, {"id": str(second.id), "sort_order": 0},
    ]}, headers=headers)
    hierarchy = (await client.get(f"{PUBLIC}/hierarchy")).json()["data"]
    assert [n["name"] for n in hierarchy] == ["Second", "First"]
    assert hierarchy[0]["is_featured"] is True


@pytest.mark.asyncio
async def test_export_lists_every_category_with_live_counts(client, admin_auth, make_resource_category, make_resource):
    _, headers = admin_auth
    parent = await make_resource_category("Guides")
    child = await make_resource_category("ERP Guides", parent)
    await make_resource_category("Archive", is_active=False)
    await make_resource(child)

    resp = await client.get(f"{ADMIN}/export", headers=headers)
    assert resp.status_code == 200
    rows = {row["name"]: row for row in resp.json()["data"]}
    assert list(rows) == ["Archive", "ERP Guides", "Guides"]
    assert rows["ERP Guides"]["parent"] == "Guides"
    assert rows["ERP Guides"]["resource_count"] == 1
    assert rows["Guides"]["children_count"] == 1
    assert rows["Archive"]["is_active"] is False


@pytest.mark.asyncio
async def test_reconcile_repairs_drifted_counts(client, db_session, admin_auth, make_resource_category, make_resource):
    user, headers = admin_auth
    category = await make_resource_category()
    await make_resource(category)
    category.resource_count = 7
    await db_session.commit()

    resp = await client.post(f"{ADMIN}/reconcile", headers=headers)
    assert resp.json()["data"] == {"corrected": {str(category.id): 1}}
    await db_session.refresh(category)
    assert category.resource_count == 1


@pytest.mark.asyncio
async def test_reconcile_requires_admin(client, editor_auth):
    _, headers = editor_auth
    resp = await client.post(f"{ADMIN}/reconcile", headers=headers)
    assert resp.status_code == 403


# --- Public navigation ---

@pytest.mark.asyncio
async def test_hierarchy_flat_and_breadcrumb(client, make_resource_category):
    guides = await make_resource_category("Guides", sort_order=1)
    erp = await make_resource_category("ERP", guides, sort_order=1)
    await make_resource_category("Finance", erp)
    await make_resource_category("Hidden", guides, is_active=False)
    await make_resource_category("Case Studies", sort_order=2)

    hierarchy = (await client.get(f"{PUBLIC}/hierarchy")).json()["data"]
    assert [n["name"] for n in hierarchy] == ["Guides", "Case Studies"]
    assert [c["name"] for c in hierarchy[0]["children"]] == ["ERP"]
    assert hierarchy[0]["children"][0]["children"][0]["hierarchy_level"] == 2

    flat = (await client.get(f"{PUBLIC}/flat")).json()["data"]
    assert [i["name"] for i in flat] == ["Guides", "ERP", "Finance", "Case Studies"]

    crumbs = (await client.get(f"{PUBLIC}/finance/breadcrumb")).json()["data"]
    assert [c["slug"] for c in crumbs] == ["guides", "erp", "finance"]
    assert (await client.get(f"{PUBLIC}/nope/breadcrumb")).status_code == 404


@pytest.mark.asyncio
async def test_detail_lists_published_resources(client, make_resource_category, make_resource):
    guides = await make_resource_category("Guides")
    erp = await make_resource_category("ERP", guides)
    await make_resource(erp, "Visible guide")
    await make_resource(erp, "Draft guide", published=False)

    data = (await client.get(f"{PUBLIC}/erp")).json()["data"]
    assert data["category"]["parent"]["slug"] == "guides"
    assert data["category"]["active_resources_count"] == 1
    assert data["category"]["resource_count"] == 2
    assert [r["title"] for r in data["resources"]] == ["Visible guide"]
    assert data["pagination"]["total"] == 1

    data = (await client.get(f"{PUBLIC}/guides")).json()["data"]
    assert [c["slug"] for c in data["category"]["children"]] == ["erp"]

    assert (await client.get(f"{PUBLIC}/missing")).status_code == 404


@pytest.mark.asyncio
async def test_public_list_hides_inactive(client, make_resource_category):
    await make_resource_category("Guides")
    await make_resource_category("Retired", is_active=False)

    data = (await client.get(PUBLIC)).json()["data"]
    assert [c["name"] for c in data["categories"]] == ["Guides"]
    assert data["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_related_prefers_siblings(client, make_resource_category):
    guides = await make_resource_category("Guides")
    erp = await make_resource_category("ERP", guides)
    await make_resource_category("CRM", guides, resource_count=1)
    await make_resource_category("HR", guides, resource_count=4)
    await make_resource_category("Case Studies", resource_count=9)

    related = (await client.get(f"{PUBLIC}/{erp.slug}/related")).json()["data"]
    assert [c["name"] for c in related] == ["HR", "CRM", "Case Studies"]


@pytest.mark.asyncio
async def test_popular_search_and_stats(client, make_resource_category):
    guides = await make_resource_category("Guides", resource_count=3, is_featured=True)
    await make_resource_category("ERP Guides", guides, resource_count=5)
    await make_resource_category("Empty")

    popular = (await client.get(f"{PUBLIC}/popular")).json()["data"]
    assert [c["name"] for c in popular] == ["ERP Guides", "Guides"]

    found = (await client.get(f"{PUBLIC}/search", params={"q": "guides"})).json()["data"]
    assert [c["name"] for c in found] == ["ERP Guides", "Guides"]
    assert (await client.get(f"{PUBLIC}/search", params={"q": "g"})).status_code == 422

    stats = (await client.get(f"{PUBLIC}/stats")).json()["data"]
    assert stats["total_categories"] == 3
    assert stats["root_categories"] == 2
    assert stats["featured_categories"] == 1
    assert stats["categories_with_resources"] == 2
    assert stats["total_resources_categorized"] == 8

    analytics = (await client.get(f"{PUBLIC}/analytics")).json()["data"]
    assert analytics["top_categories"][0]["slug"] == "erp-guides"
    assert analytics["featured_stats"] == {"total": 1, "with_resources": 1}
    assert analytics["hierarchy_stats"] == {"root_categories": 2, "subcategories": 1, "max_depth": 2}


@pytest.mark.asyncio
async def test_featured_includes_latest_resources(client, make_resource_category, make_resource):
    featured = await make_resource_category("Guides", is_featured=True)
    await make_resource_category("Plain")
    await make_resource(featured, "Newest guide")

    data = (await client.get(f"{PUBLIC}/featured")).json()["data"]
    assert [c["name"] for c in data] == ["Guides"]
    assert [r["title"] for r in data[0]["resources"]] == ["Newest guide"]


@pytest.mark.asyncio
async def test_category_write_refreshes_cached_tree(client, admin_auth, make_resource_category):
    _, headers = admin_auth
    category = await make_resource_category("Guides")
    assert len((await client.get(f"{PUBLIC}/hierarchy")).json()["data"]) == 1

    await client.put(f"{ADMIN}/{category.id}", json={"is_active": False}, headers=headers)
    assert (await client.get(f"{PUBLIC}/hierarchy")).json()["data"] == []
