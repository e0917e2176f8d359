"""
导出、销售报表、押金
"""
import csv
import io

from conftest import BOOKING_DAY, booking_payload


def _create(client, headers, seed, **overrides):
    response = client.post("/api/bookings", json=booking_payload(seed, **overrides), headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


class TestExportBookings:
    def test_csv_has_bom_and_rows(self, client, staff_headers, seed):
        booking = _create(client, staff_headers, seed, dual_payment=True, price="100000",
                          payment_method_2="qris")
        response = client.get("/api/export/bookings",
                              params={"store_id": seed["store"].id, "date": BOOKING_DAY.isoformat()},
                              headers=staff_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "bookings_" in response.headers["content-disposition"]
        assert response.content.startswith(b"\xef\xbb\xbf")

        rows = list(csv.reader(io.StringIO(response.content.decode("utf-8-sig"))))
        assert rows[0][0] == "预订编号"
        assert len(rows) == 2
        row = rows[1]
        assert row[0] == booking["bid"]
        assert row[3] == "A1"
        assert row[4] == "13:00 - 16:00"
        assert row[5] == "已预订"
        assert row[10] == "150.000"
        assert row[11] == "100.000"
        assert row[13] == "50.000"
        assert row[14] == "qris"

    def test_other_day_is_empty(self, client, staff_headers, seed):
        _create(client, staff_headers, seed)
        response = client.get("/api/export/bookings",
                              params={"store_id": seed["store"].id, "date": "2030-01-16"},
                              headers=staff_headers)
        rows = list(csv.reader(io.StringIO(response.content.decode("utf-8-sig"))))
        assert len(rows) == 1


class TestSalesReport:
    def test_summary_excludes_cancelled_amounts(self, client, staff_headers, seed):
        _create(client, staff_headers, seed, start_time="09:00", end_time="11:00")
        _create(client, staff_headers, seed, start_time="12:00", end_time="13:00", payment_method="qris")
        cancelled = _create(client, staff_headers, seed, start_time="14:00", end_time="18:00")
        client.post(f"/api/bookings/{cancelled['id']}/status", json={"status": "BATAL"}, headers=staff_headers)

        body = client.get("/api/reports/sales", params={
            "store_id": seed["store"].id, "start_date": "2030-01-01", "end_date": "2030-01-31",
        }, headers=staff_headers).json()

        assert body["booking_count"] == 2
        assert body["cancelled_count"] == 1
        assert float(body["revenue"]) == 150000
        assert float(body["total_paid"]) == 150000
        methods = {m["payment_method"]: float(m["amount"]) for m in body["by_payment_method"]}
        assert methods == {"cash": 100000, "qris": 50000}

    def test_inverted_range_rejected(self, client, staff_headers, seed):
        response = client.get("/api/reports/sales", params={
            "store_id": seed["store"].id, "start_date": "2030-01-31", "end_date": "2030-01-01",
        }, headers=staff_headers)
        assert response.status_code == 400


class TestDeposits:
    def test_register_and_return(self, client, staff_headers, seed):
        response = client.post("/api/deposits", json={
            "room_id": seed["room_a"].id, "deposit_type": "identitas", "identity_type": "KTP",
            "identity_owner_name": "Budi",
        }, headers=staff_headers)
        assert response.status_code == 200, response.text
        deposit = response.json()
        assert deposit["status"] == "active"

        response = client.post(f"/api/deposits/{deposit['id']}/return", headers=staff_headers)
        assert response.json()["status"] == "returned"

        response = client.post(f"/api/deposits/{deposit['id']}/return", headers=staff_headers)
        assert response.status_code == 400

    def test_cash_deposit_needs_amount(self, client, staff_headers, seed):
        response = client.post("/api/deposits", json={"room_id": seed["room_a"].id, "deposit_type": "uang"},
                               headers=staff_headers)
        assert response.status_code == 400

    def test_return_all_for_room(self, client, staff_headers, seed):
        for amount in ("50000", "100000"):
            client.post("/api/deposits", json={"room_id": seed["room_a"].id, "deposit_type": "uang",
                                               "amount": amount}, headers=staff_headers)
        returned = client.post(f"/api/deposits/rooms/{seed['room_a'].id}/return-all", headers=staff_headers).json()
        assert len(returned) == 2

        active = client.get("/api/deposits", params={"store_id": seed["store"].id, "status": "active"},
                            headers=staff_headers).json()
        assert active == []
