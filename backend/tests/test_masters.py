"""
Parties and vehicles.
"""

import pytest


@pytest.mark.asyncio
async def test_create_and_update_party(client, auth_headers):
    res = await client.post("/v1/parties", json={
        "type": "COMPANY",
        "name": "  Marudhar Textiles ",
        "phone": "98290 12345",
        "gstin": "08abcde1234f1z5",
        "pan": "abcde1234f",
        "state": "Rajasthan",
    }, headers=auth_headers)
    assert res.status_code == 201, res.text
    party = res.json()
    assert party["name"] == "Marudhar Textiles"
    assert party["gstin"] == "08ABCDE1234F1Z5"
    assert party["pan"] == "ABCDE1234F"

    res = await client.patch(f"/v1/parties/{party['id']}", json={"credit_days": 30}, headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["credit_days"] == 30
    assert res.json()["gstin"] == "08ABCDE1234F1Z5"


@pytest.mark.asyncio
@pytest.mark.parametrize("field, value, message", [
    ("phone", "12345", "Phone must be a 10-digit number"),
    ("pincode", "30201", "Pincode must be exactly 6 digits"),
    ("gstin", "08ABCDE1234F1X5", "GSTIN must be 15 characters in format 22AAAAA0000A1Z5"),
    ("pan", "ABCD1234F", "PAN must be 10 characters in format AAAAA0000A"),
    ("email", "accounts@", "Invalid email format"),
])
async def test_party_format_validation(client, auth_headers, field, value, message):
    res = await client.post("/v1/parties", json={"type": "COMPANY", "name": "Acme", field: value}, headers=auth_headers)
    assert res.status_code == 400
    assert res.json()["message"] == message


@pytest.mark.asyncio
async def test_list_parties_by_type(client, auth_headers, parties):
    res = await client.get("/v1/parties", params={"type": "VEHICLE_OWNER"}, headers=auth_headers)
    assert [p["id"] for p in res.json()] == [parties["owner"]]

    res = await client.get("/v1/parties", params={"search": "cement"}, headers=auth_headers)
    assert [p["id"] for p in res.json()] == [parties["consignor"]]


@pytest.mark.asyncio
async def test_register_vehicle(client, auth_headers, parties):
    res = await client.post("/v1/vehicles", json={
        "vehicle_number": "rj 14 gb 5678", "vehicle_type": "trailer", "owner_id": parties["owner"],
    }, headers=auth_headers)
    assert res.status_code == 201, res.text
    assert res.json()["vehicle_number"] == "RJ14GB5678"
    assert res.json()["status"] == "AVAILABLE"

    res = await client.post("/v1/vehicles", json={
        "vehicle_number": "RJ14GB5678", "vehicle_type": "TRUCK", "owner_id": parties["owner"],
    }, headers=auth_headers)
    assert res.status_code == 409


@pytest.mark.asyncio
async def test_vehicle_owner_must_be_vehicle_owner_party(client, auth_headers, parties):
    res = await client.post("/v1/vehicles", json={
        "vehicle_number": "MH12AB1234", "vehicle_type": "TRUCK", "owner_id": parties["consignor"],
    }, headers=auth_headers)
    assert res.status_code == 400

    res = await client.post("/v1/vehicles", json={
        "vehicle_number": "12345", "vehicle_type": "TRUCK", "owner_id": parties["owner"],
    }, headers=auth_headers)
    assert res.json()["message"] == "Invalid vehicle number format (e.g. MH12AB1234)"


@pytest.mark.asyncio
async def test_vehicle_status_rules(client, auth_headers, vehicle, booking_payload):
    res = await client.patch(f"/v1/vehicles/{vehicle}/status", json={"status": "ON_TRIP"}, headers=auth_headers)
    assert res.status_code == 400

    res = await client.patch(f"/v1/vehicles/{vehicle}/status", json={"status": "IN_REPAIR"}, headers=auth_headers)
    assert res.json()["status"] == "IN_REPAIR"

    booking_payload["vehicle_id"] = vehicle
    res = await client.post("/v1/consignments", json=booking_payload, headers=auth_headers)
    assert res.status_code == 409

    await client.patch(f"/v1/vehicles/{vehicle}/status", json={"status": "AVAILABLE"}, headers=auth_headers)
    consignment = (await client.post("/v1/consignments", json=booking_payload, headers=auth_headers)).json()

    res = await client.patch(f"/v1/vehicles/{vehicle}/status", json={"status": "IN_REPAIR"}, headers=auth_headers)
    assert res.status_code == 409

    res = await client.post(
        f"/v1/consignments/{consignment['id']}/status", json={"status": "CANCELLED"}, headers=auth_headers
    )
    assert res.json()["status"] == "CANCELLED"

    res = await client.get("/v1/vehicles", params={"status": "AVAILABLE"}, headers=auth_headers)
    assert [v["id"] for v in res.json()["vehicles"]] == [vehicle]


@pytest.mark.asyncio
async def test_edit_consignment_details(client, auth_headers, booking_payload):
    consignment = (await client.post("/v1/consignments", json=booking_payload, headers=auth_headers)).json()

    res = await client.patch(f"/v1/consignments/{consignment['id']}", json={
        "driver_name": "Suresh", "driver_phone": "9812345678", "eway_bill_number": "123456789012",
    }, headers=auth_headers)
    assert res.status_code == 200, res.text
    assert res.json()["driver_name"] == "Suresh"
    assert res.json()["status"] == "BOOKED"

    res = await client.patch(
        f"/v1/consignments/{consignment['id']}", json={"eway_bill_number": "12345"}, headers=auth_headers
    )
    assert res.json()["message"] == "E-way bill number must be exactly 12 digits"


@pytest.mark.asyncio
@pytest.mark.parametrize("field, message", [
    ("freight_type", "Freight type is required"),
    ("payment_type", "Payment type is required"),
    ("freight_amount", "Freight amount must be greater than zero"),
])
async def test_clearing_required_consignment_field_is_rejected(client, auth_headers, booking_payload, field, message):
    consignment = (await client.post("/v1/consignments", json=booking_payload, headers=auth_headers)).json()

    res = await client.patch(f"/v1/consignments/{consignment['id']}", json={field: None}, headers=auth_headers)
    assert res.status_code == 400
    assert res.json()["message"] == message

    res = await client.get(f"/v1/consignments/{consignment['id']}", headers=auth_headers)
    assert res.json()[field] == consignment[field]


@pytest.mark.asyncio
async def test_clearing_consignment_state_blanks_it(client, auth_headers, booking_payload):
    consignment = (await client.post("/v1/consignments", json=booking_payload, headers=auth_headers)).json()

    res = await client.patch(
        f"/v1/consignments/{consignment['id']}", json={"from_state": None, "to_state": "  "}, headers=auth_headers
    )
    assert res.status_code == 200, res.text
    assert res.json()["from_state"] == ""
    assert res.json()["to_state"] == ""


@pytest.mark.asyncio
async def test_deactivate_and_reactivate_party(client, auth_headers, parties):
    party_id = parties["consignee"]

    res = await client.patch(f"/v1/parties/{party_id}/active", json={"is_active": False}, headers=auth_headers)
    assert res.status_code == 200, res.text
    assert res.json()["is_active"] is False

    res = await client.get("/v1/parties", headers=auth_headers)
    assert party_id not in [p["id"] for p in res.json()]
    res = await client.get("/v1/parties", params={"include_inactive": True}, headers=auth_headers)
    assert party_id in [p["id"] for p in res.json()]

    res = await client.patch(f"/v1/parties/{party_id}/active", json={"is_active": True}, headers=auth_headers)
    assert res.json()["is_active"] is True


@pytest.mark.asyncio
async def test_delete_unused_party(client, auth_headers, booking_payload):
    res = await client.post("/v1/parties", json={"type": "AGENT", "name": "Kota Booking Agency"}, headers=auth_headers)
    agent = res.json()["id"]

    res = await client.delete(f"/v1/parties/{agent}", headers=auth_headers)
    assert res.status_code == 204

    res = await client.get(f"/v1/parties/{agent}", headers=auth_headers)
    assert res.status_code == 404
    res = await client.get("/v1/parties", params={"include_inactive": True}, headers=auth_headers)
    assert agent not in [p["id"] for p in res.json()]

    booking_payload["agent_id"] = agent
    res = await client.post("/v1/consignments", json=booking_payload, headers=auth_headers)
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_party_with_history_cannot_be_deleted(client, auth_headers, parties, vehicle, booking_payload):
    await client.post("/v1/consignments", json=booking_payload, headers=auth_headers)

    res = await client.delete(f"/v1/parties/{parties['consignor']}", headers=auth_headers)
    assert res.status_code == 409
    assert res.json()["message"] == "Cannot delete: 1 linked record(s) exist. Deactivate instead."

    res = await client.delete(f"/v1/parties/{parties['owner']}", headers=auth_headers)
    assert res.status_code == 409

    res = await client.get(f"/v1/parties/{parties['consignor']}", headers=auth_headers)
    assert res.status_code == 200


@pytest.mark.asyncio
async def test_edit_vehicle_details(client, auth_headers, parties, vehicle):
    res = await client.post("/v1/parties", json={
        "type": "VEHICLE_OWNER", "name": "Mahesh Roadlines",
    }, headers=auth_headers)
    new_owner = res.json()["id"]

    res = await client.patch(f"/v1/vehicles/{vehicle}", json={
        "vehicle_number": "rj14 ga 9999", "vehicle_type": "container", "capacity_tons": 21, "owner_id": new_owner,
    }, headers=auth_headers)
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["vehicle_number"] == "RJ14GA9999"
    assert body["vehicle_type"] == "CONTAINER"
    assert body["capacity_tons"] == 21
    assert body["owner_id"] == new_owner
    assert body["status"] == "AVAILABLE"


@pytest.mark.asyncio
@pytest.mark.parametrize("changes, status_code, message", [
    ({"vehicle_number": "12345"}, 400, "Invalid vehicle number format (e.g. MH12AB1234)"),
    ({"vehicle_number": None}, 400, "Vehicle number is required"),
    ({"vehicle_type": " "}, 400, "Vehicle type is required"),
    ({"owner_id": None}, 400, "Owner is required"),
    ({"vehicle_number": "MH12AB1234"}, 409, "Vehicle MH12AB1234 is already registered"),
])
async def test_vehicle_edit_rejections(client, auth_headers, parties, vehicle, changes, status_code, message):
    await client.post("/v1/vehicles", json={
        "vehicle_number": "MH12AB1234", "vehicle_type": "TRUCK", "owner_id": parties["owner"],
    }, headers=auth_headers)

    res = await client.patch(f"/v1/vehicles/{vehicle}", json=changes, headers=auth_headers)
    assert res.status_code == status_code
    assert res.json()["message"] == message

    res = await client.get(f"/v1/vehicles/{vehicle}", headers=auth_headers)
    assert res.json()["vehicle_number"] == "RJ14GA1234"


@pytest.mark.asyncio
async def test_vehicle_owner_change_must_be_vehicle_owner(client, auth_headers, parties, vehicle):
    res = await client.patch(f"/v1/vehicles/{vehicle}", json={"owner_id": parties["consignor"]}, headers=auth_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "Vehicle owner must be a VEHICLE_OWNER party"


@pytest.mark.asyncio
async def test_vehicle_documents(client, auth_headers, vehicle):
    res = await client.post(f"/v1/vehicles/{vehicle}/documents", json={
        "type": "insurance", "document_no": "POL-7781", "issue_date": "2026-04-01", "expiry_date": "2027-03-31",
    }, headers=auth_headers)
    assert res.status_code == 201, res.text
    insurance = res.json()
    assert insurance["type"] == "INSURANCE"

    res = await client.post(f"/v1/vehicles/{vehicle}/documents", json={
        "type": "PUC", "expiry_date": "2026-12-31",
    }, headers=auth_headers)
    puc = res.json()
    await client.post(f"/v1/vehicles/{vehicle}/documents", json={"type": "RC"}, headers=auth_headers)

    res = await client.get(f"/v1/vehicles/{vehicle}/documents", headers=auth_headers)
    assert [d["type"] for d in res.json()] == ["PUC", "INSURANCE", "RC"]

    res = await client.delete(f"/v1/vehicles/{vehicle}/documents/{puc['id']}", headers=auth_headers)
    assert res.status_code == 204
    res = await client.get(f"/v1/vehicles/{vehicle}/documents", headers=auth_headers)
    assert [d["id"] for d in res.json()][0] == insurance["id"]
    assert len(res.json()) == 2

    res = await client.delete(f"/v1/vehicles/{vehicle}/documents/{puc['id']}", headers=auth_headers)
    assert res.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("payload, message", [
    ({"type": ""}, "Document type is required"),
    ({"type": "FITNESS", "issue_date": "2026-05-01", "expiry_date": "2026-04-30"}, "Expiry date cannot be before issue date"),
])
async def test_vehicle_document_validation(client, auth_headers, vehicle, payload, message):
    res = await client.post(f"/v1/vehicles/{vehicle}/documents", json=payload, headers=auth_headers)
    assert res.status_code == 400
    assert res.json()["message"] == message


@pytest.mark.asyncio
async def test_vehicle_incident_lifecycle(client, auth_headers, vehicle):
    res = await client.post(f"/v1/vehicles/{vehicle}/incidents", json={
        "date": "2026-09-12", "description": "  Tyre burst near Ajmer ", "cost": 8500,
    }, headers=auth_headers)
    assert res.status_code == 201, res.text
    incident = res.json()
    assert incident["status"] == "OPEN"
    assert incident["description"] == "Tyre burst near Ajmer"

    url = f"/v1/vehicles/{vehicle}/incidents/{incident['id']}/resolve"
    res = await client.post(url, json={"resolution": " "}, headers=auth_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "Resolution details are required"

    res = await client.post(url, json={"resolution": "Tyre replaced at Beawar"}, headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["status"] == "RESOLVED"
    assert res.json()["resolution"] == "Tyre replaced at Beawar"

    res = await client.post(url, json={"resolution": "Again"}, headers=auth_headers)
    assert res.status_code == 409

    res = await client.get(f"/v1/vehicles/{vehicle}/incidents", headers=auth_headers)
    assert [i["status"] for i in res.json()] == ["RESOLVED"]


@pytest.mark.asyncio
@pytest.mark.parametrize("payload, message", [
    ({"date": "2026-09-12", "description": ""}, "Description is required"),
    ({"description": "Challan for overloading"}, "Date is required"),
    ({"date": "2026-09-12", "description": "Fine", "cost": -10}, "Incident cost cannot be negative"),
])
async def test_vehicle_incident_validation(client, auth_headers, vehicle, payload, message):
    res = await client.post(f"/v1/vehicles/{vehicle}/incidents", json=payload, headers=auth_headers)
    assert res.status_code == 400
    assert res.json()["message"] == message
