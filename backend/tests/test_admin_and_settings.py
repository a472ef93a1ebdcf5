"""
Admin user management, audit trail and settings endpoints.
"""

import pytest

from backend.app.models.enums import UserRole


@pytest.mark.asyncio
async def test_block_and_unblock_user(client, admin_headers, make_user):
    user, headers = await make_user("driver.desk@example.com", UserRole.STAFF)

    res = await client.post(f"/v1/admin/users/{user.id}/block", json={"reason": "Left the company"}, headers=admin_headers)
    assert res.status_code == 200, res.text
    assert res.json()["action"] == "USER_BLOCKED"

    # Existing token stops working immediately
    res = await client.get("/v1/auth/me", headers=headers)
    assert res.status_code == 403

    res = await client.post(f"/v1/admin/users/{user.id}/block", json={}, headers=admin_headers)
    assert res.status_code == 400

    res = await client.post(f"/v1/admin/users/{user.id}/unblock", json={}, headers=admin_headers)
    assert res.status_code == 200
    res = await client.get("/v1/auth/me", headers=headers)
    assert res.status_code == 200


@pytest.mark.asyncio
async def test_admins_cannot_be_blocked(client, admin_headers, make_user):
    manager, _ = await make_user("manager@example.com", UserRole.MANAGER)

    res = await client.post(f"/v1/admin/users/{manager.id}/block", json={}, headers=admin_headers)
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_list_users_requires_admin(client, auth_headers, admin_headers):
    res = await client.get("/v1/admin/users", headers=auth_headers)
    assert res.status_code == 403

    res = await client.get("/v1/admin/users", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["total"] == 2


@pytest.mark.asyncio
async def test_audit_trail_records_settings_changes(client, admin_headers):
    res = await client.put("/v1/settings/numbering", json={"invoice_series": "2026-27"}, headers=admin_headers)
    assert res.status_code == 200, res.text
    assert res.json()["settings"]["invoice_series"] == "2026-27"
    assert res.json()["settings"]["invoice_counter"] == "1"

    res = await client.get("/v1/admin/audit-logs", params={"action": "SETTINGS_UPDATED"}, headers=admin_headers)
    logs = res.json()["logs"]
    assert len(logs) == 1
    assert logs[0]["actor_username"] == "owner@example.com"
    assert logs[0]["meta_data"]["section"] == "numbering"


@pytest.mark.asyncio
async def test_settings_validation(client, admin_headers):
    res = await client.put("/v1/settings/numbering", json={"invoice_prefix": "RR/X"}, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "invoice_prefix cannot contain '/'"

    res = await client.put("/v1/settings/company", json={"gst_number": "BAD"}, headers=admin_headers)
    assert res.status_code == 400

    res = await client.put("/v1/settings/company", json={
        "company_name": "Raghhav Roadways", "gst_number": "08ABCDE1234F1Z5", "state": "Rajasthan",
    }, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["settings"]["gst_number"] == "08ABCDE1234F1Z5"


@pytest.mark.asyncio
async def test_settings_readable_by_any_user(client, readonly_headers):
    res = await client.get("/v1/settings", headers=readonly_headers)
    assert res.status_code == 200
    settings = res.json()["settings"]
    assert settings["lr_prefix"] == "GR"
    assert settings["invoice_prefix"] == "RR"


@pytest.mark.asyncio
async def test_notifications_can_be_marked_read(client, auth_headers, parties):
    await client.post("/v1/bills", json={
        "party_id": parties["consignee"], "bill_date": "2025-06-01", "subtotal": 500, "gst_rate": 5,
    }, headers=auth_headers)
    await client.post("/v1/bills", json={
        "party_id": parties["consignee"], "bill_date": "2025-06-02", "subtotal": 700, "gst_rate": 5,
    }, headers=auth_headers)

    res = await client.get("/v1/notifications", headers=auth_headers)
    notifications = res.json()["notifications"]
    assert res.json()["unread_count"] == 2

    res = await client.patch(f"/v1/notifications/{notifications[0]['id']}/read", headers=auth_headers)
    assert res.status_code == 200
    res = await client.get("/v1/notifications", params={"unread_only": True}, headers=auth_headers)
    assert len(res.json()["notifications"]) == 1

    await client.patch("/v1/notifications/read-all", headers=auth_headers)
    res = await client.get("/v1/notifications", headers=auth_headers)
    assert res.json()["unread_count"] == 0

    res = await client.patch("/v1/notifications/9999/read", headers=auth_headers)
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_correlation_id_is_echoed(client):
    res = await client.get("/health", headers={"X-Correlation-ID": "req-42"})
    assert res.status_code == 200
    assert res.headers["X-Correlation-ID"] == "req-42"

    res = await client.get("/health")
    assert res.headers["X-Correlation-ID"]
