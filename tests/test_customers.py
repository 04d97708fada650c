from conftest import add_member, auth_headers, make_business, make_user, set_plan


def test_create_customer_normalizes_contact_fields(client, owner_headers):
    response = client.post(
        "/customers",
        json={
            "name": "  Ana Ruiz ",
            "email": "ANA@Example.com",
            "phone": "+34 600-12-34-56",
            "instagramHandle": "ana.bakes",
        },
        headers=owner_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Ana Ruiz"
    assert data["email"] == "ana@example.com"
    assert data["phone"] == "+34600123456"
    assert data["instagramHandle"] == "@ana.bakes"


def test_invalid_email_is_rejected(client, owner_headers):
    response = client.post("/customers", json={"name": "Ana", "email": "not-an-email"}, headers=owner_headers)
    assert response.status_code == 422


def test_missing_token_is_rejected(client, business):
    response = client.get("/customers")
    assert response.status_code in (401, 403)


def test_invalid_token_is_401(client, business):
    response = client.get("/customers", headers={"Authorization": "Bearer not.a.token"})
    assert response.status_code == 401


def test_user_without_business_gets_403(client, db_session):
    loner = make_user(db_session, "loner@example.com")
    response = client.get("/customers", headers=auth_headers(loner))
    assert response.status_code == 403
    assert response.headers.get("X-Business-Required") == "true"


def test_list_paginates_with_new_offset(client, owner_headers):
    for i in range(3):
        client.post("/customers", json={"name": f"Cliente {i}"}, headers=owner_headers)

    first = client.get("/customers", params={"limit": 2}, headers=owner_headers).json()
    assert first["totalCustomers"] == 3
    assert len(first["customers"]) == 2
    assert first["newOffset"] == 2

    last = client.get("/customers", params={"limit": 2, "offset": 2}, headers=owner_headers).json()
    assert len(last["customers"]) == 1
    assert last["newOffset"] is None


def test_search_matches_name_email_and_phone(client, owner_headers, customer):
    client.post("/customers", json={"name": "Pedro"}, headers=owner_headers)

    by_name = client.get("/customers", params={"search": "marta"}, headers=owner_headers).json()
    by_phone = client.get("/customers", params={"search": "600123"}, headers=owner_headers).json()

    assert [c["id"] for c in by_name["customers"]] == [customer["id"]]
    assert [c["id"] for c in by_phone["customers"]] == [customer["id"]]


def test_customers_are_isolated_per_business(client, db_session, customer):
    other_owner = make_user(db_session, "other@example.com")
    make_business(db_session, other_owner, "Otra Pastelería")
    headers = auth_headers(other_owner)

    assert client.get("/customers", headers=headers).json()["totalCustomers"] == 0
    assert client.get(f"/customers/{customer['id']}", headers=headers).status_code == 404


def test_update_customer(client, owner_headers, customer):
    response = client.patch(
        f"/customers/{customer['id']}",
        json={"notes": "Prefiere recoger por la tarde", "phone": None},
        headers=owner_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["notes"] == "Prefiere recoger por la tarde"
    assert data["phone"] is None
    assert data["name"] == "Marta Gil"


def test_get_customer_includes_orders(client, owner_headers, customer, order_payload):
    client.post("/orders", json=order_payload, headers=owner_headers)

    data = client.get(f"/customers/{customer['id']}", headers=owner_headers).json()
    assert len(data["orders"]) == 1
    assert data["orders"][0]["businessOrderNumber"] == 1


def test_delete_customer_without_orders(client, owner_headers, customer):
    response = client.delete(f"/customers/{customer['id']}", headers=owner_headers)
    assert response.status_code == 200
    assert client.get(f"/customers/{customer['id']}", headers=owner_headers).status_code == 404


def test_delete_customer_with_orders_conflicts(client, owner_headers, customer, order_payload):
    client.post("/orders", json=order_payload, headers=owner_headers)
    response = client.delete(f"/customers/{customer['id']}", headers=owner_headers)
    assert response.status_code == 409


def test_editor_cannot_delete_customer(client, db_session, business, customer):
    editor = add_member(db_session, business, "editor@dulcerosa.es", "EDITOR")
    response = client.delete(f"/customers/{customer['id']}", headers=auth_headers(editor))
    assert response.status_code == 403


def test_free_plan_customer_limit(client, db_session, business, owner_headers):
    for i in range(20):
        assert client.post("/customers", json={"name": f"C{i}"}, headers=owner_headers).status_code == 201

    blocked = client.post("/customers", json={"name": "One too many"}, headers=owner_headers)
    assert blocked.status_code == 403

    set_plan(db_session, business)
    assert client.post("/customers", json={"name": "Pro customer"}, headers=owner_headers).status_code == 201
