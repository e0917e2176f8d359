"""
收支记录、收支报表、入住率报表
"""
import csv
import io

from app.models import ActivityLog

from conftest import BOOKING_DAY, booking_payload


def _income(client, headers, seed, **overrides):
    payload = {
        "store_id": seed["store"].id,
        "customer_name": "Sari",
        "payment_method": "cash",
        "amount": "50000",
        "income_date": BOOKING_DAY.isoformat(),
    }
    payload.update(overrides)
    return client.post("/api/incomes", json=payload, headers=headers)


def _expense(client, headers, seed, **overrides):
    payload = {
        "store_id": seed["store"].id,
        "description": "Token listrik",
        "amount": "200000",
        "category": "Listrik",
        "payment_method": "cash",
        "expense_date": BOOKING_DAY.isoformat(),
    }
    payload.update(overrides)
    return client.post("/api/expenses", json=payload, headers=headers)


def _coffee(seed, quantity=2):
    return {"product_id": seed["coffee"].id, "name": "Kopi", "price": "15000", "quantity": quantity}


class TestIncomes:
    def test_manual_amount(self, client, staff_headers, seed):
        response = _income(client, staff_headers, seed)
        assert response.status_code == 200, response.text
        body = response.json()
        assert float(body["amount"]) == 50000
        assert body["bid"].startswith("IN20300115")
        assert body["creator_name"] == "Dewi"

    def test_products_with_discount(self, client, staff_headers, seed):
        body = _income(client, staff_headers, seed, amount=None, products=[_coffee(seed)],
                       discount_type="percentage", discount_value="10").json()
        assert float(body["amount"]) == 27000
        assert body["products"][0]["product_name"] == "Kopi"
        assert float(body["products"][0]["subtotal"]) == 30000

    def test_amount_or_products_required(self, client, staff_headers, seed):
        assert _income(client, staff_headers, seed, amount=None).status_code == 400
        assert _income(client, staff_headers, seed, amount="0").status_code == 400

    def test_update_replaces_products(self, client, staff_headers, seed):
        income = _income(client, staff_headers, seed, amount=None, products=[_coffee(seed)]).json()
        payload = {
            "customer_name": "Sari",
            "payment_method": "qris",
            "income_date": BOOKING_DAY.isoformat(),
            "products": [_coffee(seed, quantity=3)],
        }
        body = client.put(f"/api/incomes/{income['id']}", json=payload, headers=staff_headers).json()
        assert float(body["amount"]) == 45000
        assert len(body["products"]) == 1
        assert body["payment_method"] == "qris"

    def test_list_and_delete(self, client, staff_headers, seed):
        income = _income(client, staff_headers, seed).json()
        _income(client, staff_headers, seed, income_date="2030-01-20")

        rows = client.get("/api/incomes", params={"store_id": seed["store"].id, "end_date": "2030-01-16"},
                          headers=staff_headers).json()
        assert [r["id"] for r in rows] == [income["id"]]

        assert client.delete(f"/api/incomes/{income['id']}", headers=staff_headers).status_code == 200
        assert client.get(f"/api/incomes/{income['id']}", headers=staff_headers).status_code == 404

    def test_activity_recorded(self, client, staff_headers, seed, db):
        _income(client, staff_headers, seed)
        assert db.query(ActivityLog).filter(ActivityLog.entity_type == "Income").count() == 1


class TestExpenses:
    def test_categories(self, client, staff_headers, seed):
        payload = {"store_id": seed["store"].id, "name": "Listrik"}
        category = client.post("/api/expenses/categories", json=payload, headers=staff_headers)
        assert category.status_code == 200, category.text
        assert client.post("/api/expenses/categories", json=payload, headers=staff_headers).status_code == 400

        names = client.get("/api/expenses/categories", params={"store_id": seed["store"].id},
                           headers=staff_headers).json()
        assert [c["name"] for c in names] == ["Listrik"]

        client.delete(f"/api/expenses/categories/{category.json()['id']}", headers=staff_headers)
        assert client.get("/api/expenses/categories", params={"store_id": seed["store"].id},
                          headers=staff_headers).json() == []

    def test_create_and_update(self, client, staff_headers, seed):
        expense = _expense(client, staff_headers, seed).json()
        assert expense["bid"].startswith("EX20300115")

        body = client.put(f"/api/expenses/{expense['id']}", json={"amount": "250000"}, headers=staff_headers).json()
        assert float(body["amount"]) == 250000
        assert body["category"] == "Listrik"

    def test_amount_must_be_positive(self, client, staff_headers, seed):
        assert _expense(client, staff_headers, seed, amount="0").status_code == 422

    def test_other_store_forbidden(self, client, staff_headers, admin_headers, seed):
        other = client.post("/api/stores", json={"name": "Kost Mawar", "slug": "mawar"}, headers=admin_headers).json()
        response = client.get("/api/expenses", params={"store_id": other["id"]}, headers=staff_headers)
        assert response.status_code == 403


class TestIncomeExpenseReport:
    def test_summary(self, client, staff_headers, seed):
        _income(client, staff_headers, seed)
        _income(client, staff_headers, seed, amount=None, payment_method="qris", products=[_coffee(seed)],
                discount_type="percentage", discount_value="10")
        _expense(client, staff_headers, seed)
        _expense(client, staff_headers, seed, description="Sabun", amount="50000", category=None,
                 payment_method="transfer")
        _expense(client, staff_headers, seed, expense_date="2030-02-01")

        body = client.get("/api/reports/income-expense", params={
            "store_id": seed["store"].id, "start_date": "2030-01-01", "end_date": "2030-01-31",
        }, headers=staff_headers).json()

        assert float(body["total_incomes"]) == 77000
        assert float(body["total_expenses"]) == 250000
        assert float(body["net_profit"]) == -173000
        assert [(c["category"], float(c["total"]), c["count"]) for c in body["expense_categories"]] == [
            ("Listrik", 200000, 1), ("Lainnya", 50000, 1),
        ]
        incomes = {m["payment_method"]: float(m["amount"]) for m in body["income_payment_methods"]}
        assert incomes == {"cash": 50000, "qris": 27000}
        expenses = {m["payment_method"]: float(m["amount"]) for m in body["expense_payment_methods"]}
        assert expenses == {"cash": 200000, "transfer": 50000}

    def test_transactions_export(self, client, staff_headers, seed):
        _expense(client, staff_headers, seed)
        _income(client, staff_headers, seed, amount=None, products=[_coffee(seed)])

        response = client.get("/api/export/transactions", params={
            "store_id": seed["store"].id, "start_date": "2030-01-15", "end_date": "2030-01-15",
        }, headers=staff_headers)
        assert response.content.startswith(b"\xef\xbb\xbf")
        rows = list(csv.reader(io.StringIO(response.content.decode("utf-8-sig"))))
        assert [r[2] for r in rows[1:]] == ["收入", "支出"]
        assert rows[1][5] == "Kopi x2"
        assert rows[1][7] == "30.000"
        assert rows[2][4] == "Listrik"


class TestOccupancyReport:
    def _bookings(self, client, headers, seed):
        client.post("/api/bookings", json=booking_payload(seed), headers=headers)
        stay = booking_payload(seed, room_id=seed["room_b"].id, variant_id=seed["hourly_b"].id,
                               check_out_date="2030-01-17")
        response = client.post("/api/bookings", json=stay, headers=headers)
        assert response.status_code == 200, response.text
        cancelled = client.post("/api/bookings", json=booking_payload(seed, date="2030-01-14"), headers=headers).json()
        client.post(f"/api/bookings/{cancelled['id']}/status", json={"status": "BATAL"}, headers=headers)

    def test_daily_rate_and_rooms(self, client, staff_headers, seed):
        self._bookings(client, staff_headers, seed)
        body = client.get("/api/reports/occupancy", params={
            "store_id": seed["store"].id, "start_date": "2030-01-14", "end_date": "2030-01-17",
        }, headers=staff_headers).json()

        assert body["total_rooms"] == 2
        assert [(d["date"], d["occupied"], d["percentage"]) for d in body["days"]] == [
            ("2030-01-14", 0, 0), ("2030-01-15", 2, 100), ("2030-01-16", 1, 50), ("2030-01-17", 0, 0),
        ]
        assert body["average_occupancy"] == 38
        assert [(r["room_name"], r["booking_count"], float(r["revenue"])) for r in body["rooms"]] == [
            ("A1", 1, 150000), ("A2", 1, 120000),
        ]

    def test_room_detail(self, client, staff_headers, seed):
        self._bookings(client, staff_headers, seed)
        rows = client.get(f"/api/reports/occupancy/rooms/{seed['room_a'].id}", params={
            "start_date": "2030-01-01", "end_date": "2030-01-31",
        }, headers=staff_headers).json()
        assert [r["status"] for r in rows] == ["BO"]

    def test_range_limited(self, client, staff_headers, seed):
        response = client.get("/api/reports/occupancy", params={
            "store_id": seed["store"].id, "start_date": "2030-01-01", "end_date": "2031-06-01",
        }, headers=staff_headers)
        assert response.status_code == 400
