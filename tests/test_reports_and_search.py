from datetime import datetime

from app.models import Order
from conftest import auth_headers, make_business, make_user


def place_order(client, headers, payload, order_date, **overrides):
    order = client.post("/orders", json={**payload, **overrides}, headers=headers).json()
    return order["id"], order_date


def backdate(db_session, dated_orders):
    for order_id, order_date in dated_orders:
        db_session.get(Order, order_id).order_date = order_date
    db_session.commit()


def test_monthly_profit(client, db_session, pro_business, owner_headers, order_payload):
    client.put("/settings", json={"rentMonthly": 300, "otherMonthlyOverhead": 50}, headers=owner_headers)
    backdate(
        db_session,
        [
            place_order(client, owner_headers, order_payload, datetime(2026, 9, 10, 12),
                        paymentStatus="Pagado", totalPrice=100, depositAmount=0),
            place_order(client, owner_headers, order_payload, datetime(2026, 9, 15, 9),
                        paymentStatus="Parcial", totalPrice=60, depositAmount=20),
            place_order(client, owner_headers, order_payload, datetime(2026, 9, 20, 18),
                        paymentStatus="Pendiente", totalPrice=80, depositAmount=0),
            place_order(client, owner_headers, order_payload, datetime(2026, 9, 25, 10),
                        paymentStatus="Cancelado", totalPrice=30, depositAmount=10),
            place_order(client, owner_headers, order_payload, datetime(2026, 10, 1, 0),
                        paymentStatus="Pagado", totalPrice=50, depositAmount=0),
        ],
    )

    report = client.get("/reports/monthly-profit", params={"month": "2026-09"}, headers=owner_headers).json()

    assert report["month"] == "2026-09"
    assert report["revenue"] == 120
    assert report["grossProfit"] == 120
    assert report["operationalExpenses"] == {"rent": 300, "other": 50, "total": 350}
    assert report["netProfit"] == -230
    assert report["paidOrders"] == 1
    assert report["depositOrders"] == 1


def test_empty_month_reports_only_expenses(client, pro_business, owner_headers):
    report = client.get("/reports/monthly-profit", params={"month": "2026-12"}, headers=owner_headers).json()
    assert report["revenue"] == 0
    assert report["netProfit"] == -50


def test_month_format_is_validated(client, pro_business, owner_headers):
    response = client.get("/reports/monthly-profit", params={"month": "2026-13"}, headers=owner_headers)
    assert response.status_code == 400


def test_reports_need_advanced_analytics(client, owner_headers):
    response = client.get("/reports/monthly-profit", params={"month": "2026-09"}, headers=owner_headers)
    assert response.status_code == 402


def test_search_across_entities(client, owner_headers, customer, order_payload):
    client.post("/orders", json=order_payload, headers=owner_headers)
    client.post(
        "/ingredient-prices", json={"name": "Chocolate negro", "unit": "kg", "pricePerUnit": 9}, headers=owner_headers
    )

    results = client.get("/search", params={"q": "chocolate"}, headers=owner_headers).json()["results"]
    assert sorted(r["type"] for r in results) == ["ingredient", "order"]

    by_customer = client.get("/search", params={"q": "marta"}, headers=owner_headers).json()["results"]
    assert {r["type"] for r in by_customer} == {"customer", "order"}
    assert all(r["url"] for r in by_customer)


def test_blank_search_returns_nothing(client, owner_headers, customer):
    assert client.get("/search", params={"q": "  "}, headers=owner_headers).json() == {"results": []}


def test_search_does_not_leak_other_businesses(client, db_session, customer):
    stranger = make_user(db_session, "other@example.com")
    make_business(db_session, stranger, "Otra Pastelería")
    response = client.get("/search", params={"q": "marta"}, headers=auth_headers(stranger))
    assert response.json() == {"results": []}
