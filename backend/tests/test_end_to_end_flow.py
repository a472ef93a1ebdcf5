"""
End-to-end office flow over HTTP: book, deliver, bill, get paid.
"""

from datetime import date, timedelta

import pytest

API = "/v1"


async def post_status(client, headers, consignment_id, status, note=None):
    res = await client.post(
        f"{API}/consignments/{consignment_id}/status", json={"status": status, "note": note}, headers=headers
    )
    assert res.status_code == 200, res.text
    return res.json()


async def book_and_deliver(client, headers, payload):
    res = await client.post(f"{API}/consignments", json=payload, headers=headers)
    assert res.status_code == 201, res.text
    consignment = res.json()
    await post_status(client, headers, consignment["id"], "IN_TRANSIT")
    await post_status(client, headers, consignment["id"], "DELIVERED", "Received by store keeper")
    return consignment


async def raise_bill(client, headers, party_id, consignment_id, subtotal=25000, **extra):
    res = await client.post(f"{API}/bills", json={
        "party_id": party_id,
        "consignment_id": consignment_id,
        "bill_date": date.today().isoformat(),
        "subtotal": subtotal,
        "gst_rate": 18,
        **extra,
    }, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


@pytest.mark.asyncio
async def test_full_payment_scenario(client, auth_headers, parties, vehicle, booking_payload):
    booking_payload.update(vehicle_id=vehicle, vehicle_freight=20000, advance_paid=5000)
    consignment = await book_and_deliver(client, auth_headers, booking_payload)
    assert consignment["lr_number"] == "GR0001"
    assert consignment["status"] == "BOOKED"

    truck = (await client.get(f"{API}/vehicles/{vehicle}", headers=auth_headers)).json()
    assert truck["status"] == "AVAILABLE"

    bill = await raise_bill(client, auth_headers, parties["consignee"], consignment["id"], is_interstate=False)
    assert bill["bill_number"] == "RR/2025-26/0001"
    assert bill["status"] == "DRAFT"
    assert (bill["cgst"], bill["sgst"], bill["igst"]) == (2250.0, 2250.0, 0.0)
    assert bill["total_amount"] == 29500.0

    res = await client.get(f"{API}/consignments/{consignment['id']}", headers=auth_headers)
    assert res.json()["status"] == "BILLED"

    res = await client.post(
        f"{API}/bills/{bill['id']}/payments",
        json={"amount": 29500, "tds_amount": 500, "mode": "NEFT", "reference": "UTR123"},
        headers=auth_headers,
    )
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["bill"]["status"] == "PAID"
    assert body["bill"]["outstanding_amount"] == 0
    assert body["payment"]["party_id"] == parties["consignee"]

    res = await client.get(f"{API}/consignments/{consignment['id']}/logs", headers=auth_headers)
    assert [(log["status"], log["note"]) for log in res.json()] == [
        ("BOOKED", "Consignment booked"),
        ("IN_TRANSIT", None),
        ("DELIVERED", "Received by store keeper"),
        ("BILLED", "Bill RR/2025-26/0001 generated"),
        ("PAID", "Bill fully paid"),
    ]

    res = await client.get(f"{API}/parties/{parties['consignee']}/ledger", headers=auth_headers)
    ledger = res.json()
    assert ledger["total_credit"] == 29000.0
    assert ledger["closing_balance"] == -29000.0

    res = await client.get(f"{API}/notifications", headers=auth_headers)
    titles = [n["title"] for n in res.json()["notifications"]]
    assert set(titles) == {"Consignment Delivered", "Bill Generated", "Payment Received"}
    assert res.json()["unread_count"] == 3


@pytest.mark.asyncio
async def test_partial_then_remainder_scenario(client, auth_headers, parties, booking_payload):
    consignment = await book_and_deliver(client, auth_headers, booking_payload)
    bill = await raise_bill(client, auth_headers, parties["consignee"], consignment["id"], is_interstate=True)
    assert bill["igst"] == 4500.0

    res = await client.post(
        f"{API}/bills/{bill['id']}/payments", json={"amount": 10000, "mode": "CHEQUE"}, headers=auth_headers
    )
    assert res.json()["bill"]["status"] == "PARTIALLY_PAID"
    assert res.json()["bill"]["outstanding_amount"] == 19500.0
    res = await client.get(f"{API}/consignments/{consignment['id']}", headers=auth_headers)
    assert res.json()["status"] == "PARTIALLY_PAID"

    res = await client.post(
        f"{API}/bills/{bill['id']}/payments", json={"amount": 19500.5, "mode": "UPI"}, headers=auth_headers
    )
    assert res.status_code == 409
    assert res.json()["message"] == "Payment exceeds outstanding amount"

    res = await client.post(
        f"{API}/bills/{bill['id']}/payments", json={"amount": 19500, "mode": "UPI"}, headers=auth_headers
    )
    assert res.json()["bill"]["status"] == "PAID"
    res = await client.get(f"{API}/consignments/{consignment['id']}", headers=auth_headers)
    assert res.json()["status"] == "PAID"

    res = await client.get(f"{API}/bills/{bill['id']}/payments", headers=auth_headers)
    assert [p["amount"] for p in res.json()] == [10000.0, 19500.0]


@pytest.mark.asyncio
async def test_gst_falls_back_to_settings_and_company_state(client, auth_headers, admin_headers, parties):
    res = await client.put(f"{API}/settings/company", json={"state": "Rajasthan"}, headers=admin_headers)
    assert res.status_code == 200, res.text

    # Consignor is in Rajasthan, consignee in Delhi
    local = await raise_bill(client, auth_headers, parties["consignor"], None, subtotal=1000, gst_rate=None)
    remote = await raise_bill(client, auth_headers, parties["consignee"], None, subtotal=1000, gst_rate=None)

    assert local["gst_rate"] == 5.0
    assert (local["is_interstate"], local["cgst"], local["sgst"]) == (False, 25.0, 25.0)
    assert (remote["is_interstate"], remote["igst"]) == (True, 50.0)


@pytest.mark.asyncio
async def test_busy_vehicle_cannot_be_booked_twice(client, auth_headers, vehicle, booking_payload):
    booking_payload["vehicle_id"] = vehicle
    first = await client.post(f"{API}/consignments", json=booking_payload, headers=auth_headers)
    assert first.status_code == 201

    second = await client.post(f"{API}/consignments", json=booking_payload, headers=auth_headers)
    assert second.status_code == 409
    assert second.json()["message"] == "Vehicle RJ14GA1234 is ON TRIP and cannot be assigned"


@pytest.mark.asyncio
async def test_invalid_transition_is_a_structured_conflict(client, auth_headers, booking_payload):
    res = await client.post(f"{API}/consignments", json=booking_payload, headers=auth_headers)
    consignment_id = res.json()["id"]

    res = await client.post(
        f"{API}/consignments/{consignment_id}/status", json={"status": "DELIVERED"}, headers=auth_headers
    )
    assert res.status_code == 409
    assert res.json() == {
        "error_code": "ERR_TRANSITION_001",
        "message": "Cannot change consignment status from BOOKED to DELIVERED",
        "details": {"entity": "consignment", "from": "BOOKED", "to": "DELIVERED"},
    }


@pytest.mark.asyncio
async def test_booking_validation_messages(client, auth_headers, booking_payload):
    booking_payload["freight_amount"] = 0
    res = await client.post(f"{API}/consignments", json=booking_payload, headers=auth_headers)
    assert res.status_code == 400
    assert res.json()["error_code"] == "ERR_VALIDATION_001"
    assert res.json()["message"] == "Freight amount must be greater than zero"

    booking_payload.update(freight_amount=1000, consignor_id=None)
    res = await client.post(f"{API}/consignments", json=booking_payload, headers=auth_headers)
    assert res.json()["message"] == "Consignor is required"


@pytest.mark.asyncio
async def test_bill_lifecycle_over_http(client, auth_headers, admin_headers, parties):
    bill = await raise_bill(client, auth_headers, parties["consignee"], None, subtotal=1000)

    res = await client.post(f"{API}/bills/{bill['id']}/status", json={"status": "SENT"}, headers=auth_headers)
    assert res.status_code == 409

    for status in ("GENERATED", "SENT"):
        res = await client.post(f"{API}/bills/{bill['id']}/status", json={"status": status}, headers=auth_headers)
        assert res.json()["status"] == status

    res = await client.post(f"{API}/bills/{bill['id']}/cancel", headers=auth_headers)
    assert res.status_code == 403

    res = await client.post(f"{API}/bills/{bill['id']}/cancel", headers=admin_headers)
    assert res.json()["status"] == "CANCELLED"

    res = await client.get(f"{API}/bills", params={"status": "CANCELLED"}, headers=auth_headers)
    assert res.json()["total"] == 1


@pytest.mark.asyncio
async def test_due_date_before_bill_date_is_rejected(client, auth_headers, parties):
    res = await client.post(f"{API}/bills", json={
        "party_id": parties["consignee"],
        "bill_date": date.today().isoformat(),
        "due_date": (date.today() - timedelta(days=1)).isoformat(),
        "subtotal": 1000,
    }, headers=auth_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "Due date cannot be before bill date"


@pytest.mark.asyncio
async def test_role_guards(client, auth_headers, readonly_headers, booking_payload):
    res = await client.post(f"{API}/consignments", json=booking_payload, headers=readonly_headers)
    assert res.status_code == 403

    res = await client.get(f"{API}/consignments", headers=readonly_headers)
    assert res.status_code == 200

    res = await client.put(f"{API}/settings/numbering", json={"invoice_series": "2026-27"}, headers=auth_headers)
    assert res.status_code == 403

    res = await client.get(f"{API}/consignments")
    assert res.status_code in (401, 403)


@pytest.mark.asyncio
async def test_consignment_list_search_and_paging(client, auth_headers, booking_payload):
    for city in ("Delhi", "Mumbai", "Delhi"):
        booking_payload["to_city"] = city
        res = await client.post(f"{API}/consignments", json=booking_payload, headers=auth_headers)
        assert res.status_code == 201

    res = await client.get(f"{API}/consignments", params={"search": "mumbai"}, headers=auth_headers)
    assert res.json()["total"] == 1

    res = await client.get(f"{API}/consignments", params={"limit": 2, "page": 2}, headers=auth_headers)
    body = res.json()
    assert body["total"] == 3
    assert [c["lr_number"] for c in body["consignments"]] == ["GR0001"]


@pytest.mark.asyncio
async def test_dashboard(client, auth_headers, parties, vehicle, booking_payload):
    booking_payload["vehicle_id"] = vehicle
    consignment = (await client.post(f"{API}/consignments", json=booking_payload, headers=auth_headers)).json()
    other = dict(booking_payload, vehicle_id=None, freight_amount=5000)
    await client.post(f"{API}/consignments", json=other, headers=auth_headers)

    bill = await raise_bill(client, auth_headers, parties["consignee"], consignment["id"], subtotal=1000, is_interstate=True)
    await client.post(f"{API}/bills/{bill['id']}/status", json={"status": "GENERATED"}, headers=auth_headers)
    await client.post(f"{API}/bills/{bill['id']}/payments", json={"amount": 180, "mode": "CASH"}, headers=auth_headers)

    res = await client.get(f"{API}/reports/dashboard", headers=auth_headers)
    stats = res.json()
    assert stats["active_consignments"] == 2
    assert stats["consignments_by_status"] == {"BOOKED": 2}
    assert stats["outstanding_receivables"] == 1000.0
    assert stats["month_freight"] == 30000.0
    assert stats["month_bookings"] == 2
    assert stats["vehicles_on_trip"] == 1
    assert stats["vehicles_available"] == 0
