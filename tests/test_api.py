import uuid

import pytest


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["service"] == "helmet-reservations-svc"


@pytest.mark.asyncio
async def test_book_scan_rescan_then_cancel(client, seeded):
    r = await client.post("/reservations", json={"userId": "u1", "scheduleId": "s1"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["qrCode"].startswith("data:image/png;base64,")
    reservation_id = body["reservationId"]

    r = await client.get("/reservations/user/u1")
    assert r.status_code == 200
    mine = r.json()
    assert mine["reservations"][0]["status"] == "booked"
    token = mine["qrCodeData"]
    assert token.startswith("USER_u1_")

    r = await client.post("/reservations/scan", json={"qrCodeData": token, "scheduleId": "s1"})
    assert r.status_code == 200
    scan = r.json()
    assert scan["valid"] is True
    assert scan["status"] == "success"
    assert scan["userName"] == "Ada Lovelace"
    assert scan["userEmail"] == "ada@example.com"
    assert scan["courseName"] == "Pole Basics"
    assert scan["location"] == "Studio 1"
    assert scan["reservationId"] == reservation_id

    r = await client.post("/reservations/scan", json={"qrCodeData": token, "scheduleId": "s1"})
    assert r.status_code == 200
    again = r.json()
    assert again["valid"] is False
    assert again["status"] == "already_checked_in"
    assert again["checkinTime"] == scan["checkinTime"]

    r = await client.delete(f"/reservations/{reservation_id}")
    assert r.status_code == 400
    assert "already been checked in" in r.json()["error"]


@pytest.mark.asyncio
async def test_scan_unknown_qr_is_a_200_negative(client, seeded):
    await client.post("/reservations", json={"userId": "u1", "scheduleId": "s1"})

    r = await client.post("/reservations/scan", json={"qrCodeData": "not-a-member", "scheduleId": "s1"})
    assert r.status_code == 200
    assert r.json() == {"valid": False, "status": "invalid_qr", "message": "Invalid QR code"}

    r = await client.get("/reservations/user/u1")
    assert r.json()["reservations"][0]["status"] == "booked"


@pytest.mark.asyncio
async def test_missing_fields_are_400(client, seeded):
    r = await client.post("/reservations", json={"userId": "u1"})
    assert r.status_code == 400
    assert r.json()["error"] == "Missing required fields: scheduleId"

    r = await client.post("/reservations/scan", json={})
    assert r.status_code == 400
    assert "qrCodeData" in r.json()["error"]


@pytest.mark.asyncio
async def test_booking_errors(client, seeded):
    r = await client.post("/reservations", json={"userId": "ghost", "scheduleId": "s1"})
    assert r.status_code == 404
    assert r.json() == {"error": "User not found"}

    r = await client.post("/reservations", json={"userId": "u1", "scheduleId": "nope"})
    assert r.status_code == 404

    assert (await client.post("/reservations", json={"userId": "u1", "scheduleId": "s1"})).status_code == 200
    r = await client.post("/reservations", json={"userId": "u1", "scheduleId": "s1"})
    assert r.status_code == 400
    assert r.json() == {"error": "You already have a reservation for this class"}


@pytest.mark.asyncio
async def test_cancel_endpoint(client, seeded):
    r = await client.post("/reservations", json={"userId": "u1", "scheduleId": "s1"})
    reservation_id = r.json()["reservationId"]

    r = await client.delete(f"/reservations/{reservation_id}")
    assert r.status_code == 200
    assert r.json()["success"] is True
    # cancelling twice is fine
    assert (await client.delete(f"/reservations/{reservation_id}")).status_code == 200

    assert (await client.delete(f"/reservations/{uuid.uuid4()}")).status_code == 404
    assert (await client.delete("/reservations/not-a-uuid")).status_code == 400

    r = await client.post("/reservations/scan", json={"qrCodeData": (await client.get("/reservations/user/u1")).json()["qrCodeData"], "scheduleId": "s1"})
    assert r.json()["status"] == "cancelled"


@pytest.mark.asyncio
async def test_schedule_roster(client, seeded):
    await client.post("/reservations", json={"userId": "u1", "scheduleId": "s1"})
    await client.post("/reservations", json={"userId": "u2", "scheduleId": "s1"})

    r = await client.get("/reservations/schedule/s1")
    assert r.status_code == 200
    assert sorted(row["userId"] for row in r.json()) == ["u1", "u2"]

    assert (await client.get("/reservations/schedule/unknown")).status_code == 404


@pytest.mark.asyncio
async def test_bulk_delete_endpoint(client, seeded):
    r = await client.post("/schedules/bulk-delete", json={"courseId": "c1"})
    assert r.status_code == 400
    assert r.json() == {"error": "Coach ID is required"}

    r = await client.post("/schedules/bulk-delete", json={"coachId": "coach-a"})
    assert r.status_code == 400

    r = await client.post("/schedules/bulk-delete", json={"coachId": "coach-a", "courseId": "c2"})
    assert r.status_code == 403

    r = await client.post("/schedules/bulk-delete", json={"coachId": "coach-a", "courseId": "c404"})
    assert r.status_code == 404

    r = await client.post(
        "/schedules/bulk-delete",
        json={"coachId": "coach-a", "startDate": "2030-01-01", "endDate": "2030-01-02"},
    )
    assert r.status_code == 200
    assert r.json() == {
        "success": False,
        "deletedCount": 0,
        "message": "No sessions found matching the selected criteria",
    }

    await client.post("/reservations", json={"userId": "u1", "scheduleId": "s1"})
    r = await client.post("/schedules/bulk-delete", json={"coachId": "coach-a", "courseId": "c1"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["deletedCount"] == 2
    assert body["cancelledReservationsCount"] == 1
    assert "errors" not in body

    r = await client.get("/reservations/user/u1")
    assert r.json()["reservations"][0]["status"] == "cancelled"


@pytest.mark.asyncio
async def test_scan_of_a_long_foreign_qr_is_invalid_qr_not_400(client, seeded):
    await client.post("/reservations", json={"userId": "u1", "scheduleId": "s1"})

    r = await client.post(
        "/reservations/scan",
        json={"qrCodeData": "https://example.com/" + "x" * 300, "scheduleId": "s1"},
    )
    assert r.status_code == 200
    assert r.json() == {"valid": False, "status": "invalid_qr", "message": "Invalid QR code"}

    r = await client.post("/reservations/scan", json={"qrCodeData": "", "scheduleId": "s1"})
    assert r.status_code == 400
