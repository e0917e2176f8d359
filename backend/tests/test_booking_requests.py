"""
预订申请：客户提交、分配房间、生成预订
"""
from app.models import ActivityLog, Booking, Customer

from conftest import BOOKING_DAY, booking_payload


def _submit(client, slug="melati", **overrides):
    payload = {
        "customer_name": "Rina",
        "customer_phone": "081298765432",
        "category": "Standard",
        "booking_date": BOOKING_DAY.isoformat(),
        "start_time": "13:00",
        "end_time": "16:00",
        "room_price": "50000",
        "payment_method": "transfer",
    }
    payload.update(overrides)
    return client.post(f"/api/booking-requests/public/{slug}", json=payload)


def _assign(client, headers, request_id, room_id):
    return client.put(f"/api/booking-requests/{request_id}/room", json={"room_id": room_id}, headers=headers)


def _status(client, headers, request_id, status, **extra):
    return client.post(f"/api/booking-requests/{request_id}/status", json=dict(status=status, **extra),
                       headers=headers)


class TestSubmit:
    def test_public_submit_without_login(self, client, seed):
        response = _submit(client)
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["status"] == "pending"
        assert float(body["duration"]) == 3
        assert float(body["total_price"]) == 150000
        assert body["booking_id"] is None

    def test_unknown_store(self, client, seed):
        response = _submit(client, slug="nowhere")
        assert response.status_code == 404

    def test_past_date_rejected(self, client, seed):
        response = _submit(client, booking_date="2020-01-01")
        assert response.status_code == 400

    def test_listed_for_store(self, client, staff_headers, seed):
        _submit(client)
        rows = client.get("/api/booking-requests", params={"store_id": seed["store"].id, "status": "pending"},
                          headers=staff_headers).json()
        assert len(rows) == 1
        assert rows[0]["customer_name"] == "Rina"


class TestAssignRoom:
    def test_available_rooms_exclude_booked(self, client, staff_headers, seed):
        client.post("/api/bookings", json=booking_payload(seed), headers=staff_headers)
        request = _submit(client).json()

        rooms = client.get(f"/api/booking-requests/{request['id']}/available-rooms", headers=staff_headers).json()
        assert [r["name"] for r in rooms] == ["A2"]

    def test_assigned_request_holds_room(self, client, staff_headers, seed):
        first = _submit(client).json()
        _assign(client, staff_headers, first["id"], seed["room_a"].id)
        second = _submit(client, customer_name="Tono", customer_phone="081200000001").json()

        rooms = client.get(f"/api/booking-requests/{second['id']}/available-rooms", headers=staff_headers).json()
        assert [r["name"] for r in rooms] == ["A2"]

    def test_assign_room(self, client, staff_headers, seed):
        request = _submit(client).json()
        body = _assign(client, staff_headers, request["id"], seed["room_b"].id).json()
        assert body["room_id"] == seed["room_b"].id
        assert body["room_name"] == "A2"


class TestMaterialize:
    def test_confirm_requires_room(self, client, staff_headers, seed):
        request = _submit(client).json()
        response = _status(client, staff_headers, request["id"], "confirmed")
        assert response.status_code == 400

    def test_confirm_creates_reserved_booking(self, client, staff_headers, seed, db):
        request = _submit(client).json()
        _assign(client, staff_headers, request["id"], seed["room_a"].id)

        response = _status(client, staff_headers, request["id"], "confirmed", admin_notes="sudah transfer")
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["status"] == "confirmed"
        assert body["admin_notes"] == "sudah transfer"
        assert body["processed_by"] == seed["staff"].id

        booking = db.query(Booking).filter(Booking.id == body["booking_id"]).one()
        assert booking.status == "BO"
        assert booking.booking_request_id == request["id"]
        assert booking.price == 150000
        assert booking.confirmed_by == seed["staff"].id
        assert db.query(Customer).filter(Customer.phone == "081298765432").count() == 1

    def test_conflict_leaves_request_pending(self, client, staff_headers, seed, db):
        request = _submit(client).json()
        _assign(client, staff_headers, request["id"], seed["room_a"].id)
        client.post("/api/bookings", json=booking_payload(seed, start_time="14:00", end_time="15:00"),
                    headers=staff_headers)

        response = _status(client, staff_headers, request["id"], "confirmed")
        assert response.status_code == 409

        body = client.get(f"/api/booking-requests/{request['id']}", headers=staff_headers).json()
        assert body["status"] == "pending"
        assert body["booking_id"] is None
        assert db.query(Booking).filter(Booking.booking_request_id == request["id"]).count() == 0

    def test_check_in_then_check_out(self, client, staff_headers, seed, db):
        request = _submit(client).json()
        _assign(client, staff_headers, request["id"], seed["room_a"].id)
        _status(client, staff_headers, request["id"], "confirmed")

        body = _status(client, staff_headers, request["id"], "check-in").json()
        booking = client.get(f"/api/bookings/{body['booking_id']}", headers=staff_headers).json()
        assert booking["status"] == "CI"

        _status(client, staff_headers, request["id"], "check-out")
        booking = client.get(f"/api/bookings/{body['booking_id']}", headers=staff_headers).json()
        assert booking["status"] == "CO"

    def test_direct_check_in(self, client, staff_headers, seed):
        request = _submit(client).json()
        _assign(client, staff_headers, request["id"], seed["room_b"].id)
        body = _status(client, staff_headers, request["id"], "check-in").json()
        booking = client.get(f"/api/bookings/{body['booking_id']}", headers=staff_headers).json()
        assert booking["status"] == "CI"
        assert booking["checked_in_by"] == seed["staff"].id

    def test_cancel_confirmed_cancels_booking(self, client, staff_headers, seed):
        request = _submit(client).json()
        _assign(client, staff_headers, request["id"], seed["room_a"].id)
        booking_id = _status(client, staff_headers, request["id"], "confirmed").json()["booking_id"]

        _status(client, staff_headers, request["id"], "cancelled")
        booking = client.get(f"/api/bookings/{booking_id}", headers=staff_headers).json()
        assert booking["status"] == "BATAL"

    def test_pending_cannot_check_out(self, client, staff_headers, seed):
        request = _submit(client).json()
        response = _status(client, staff_headers, request["id"], "check-out")
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_transition"

    def test_activity_recorded(self, client, staff_headers, seed, db):
        request = _submit(client).json()
        _assign(client, staff_headers, request["id"], seed["room_a"].id)
        _status(client, staff_headers, request["id"], "confirmed")
        assert db.query(ActivityLog).filter(ActivityLog.entity_type == "Booking Request").count() == 1

    def test_materialized_booking_keeps_its_price(self, client, staff_headers, seed):
        request = _submit(client).json()
        _assign(client, staff_headers, request["id"], seed["room_a"].id)
        booking_id = _status(client, staff_headers, request["id"], "confirmed").json()["booking_id"]

        booking = client.get(f"/api/bookings/{booking_id}", headers=staff_headers).json()
        assert booking["variant_id"] == seed["hourly"].id
        assert float(booking["pricing"]["grand_total"]) == 150000
        assert booking["pricing"]["payment_status"] == booking["payment_status"] == "lunas"

        fields = ("booking_type", "customer_name", "phone", "room_id", "variant_id", "date",
                  "start_time", "end_time", "status", "price", "payment_method", "version")
        payload = {key: booking[key] for key in fields}
        payload["note"] = "datang lebih awal"
        response = client.put(f"/api/bookings/{booking_id}", json=payload, headers=staff_headers)
        assert response.status_code == 200, response.text
        assert float(response.json()["pricing"]["grand_total"]) == 150000

    def test_variant_follows_assigned_room(self, client, staff_headers, seed):
        request = _submit(client, variant_id=seed["hourly"].id).json()
        _assign(client, staff_headers, request["id"], seed["room_b"].id)
        booking_id = _status(client, staff_headers, request["id"], "confirmed").json()["booking_id"]

        booking = client.get(f"/api/bookings/{booking_id}", headers=staff_headers).json()
        assert booking["variant_id"] == seed["hourly_b"].id
        assert float(booking["pricing"]["grand_total"]) == 180000
        assert booking["payment_status"] == "belum_lunas"

    def test_room_without_hourly_variant(self, client, staff_headers, seed):
        room = client.post("/api/rooms", json={"store_id": seed["store"].id, "name": "A3", "category": "Standard"},
                           headers=staff_headers).json()
        request = _submit(client).json()
        _assign(client, staff_headers, request["id"], room["id"])

        response = _status(client, staff_headers, request["id"], "confirmed")
        assert response.status_code == 400
        assert "价格方案" in response.json()["detail"]
        body = client.get(f"/api/booking-requests/{request['id']}", headers=staff_headers).json()
        assert body["status"] == "pending"


class TestSubmitVariant:
    def test_variant_of_other_room_rejected(self, client, seed):
        response = _submit(client, room_id=seed["room_b"].id, variant_id=seed["hourly"].id)
        assert response.status_code == 400

    def test_variant_without_room(self, client, seed):
        response = _submit(client, variant_id=seed["hourly"].id)
        assert response.status_code == 200, response.text
        assert response.json()["variant_id"] == seed["hourly"].id

    def test_unknown_variant_rejected(self, client, seed):
        assert _submit(client, variant_id=9999).status_code == 400
