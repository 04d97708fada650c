from conftest import add_member, auth_headers, set_plan


def seed_recipe(client, headers):
    flour = client.post(
        "/ingredient-prices", json={"name": "Harina", "unit": "kg", "pricePerUnit": 1.2}, headers=headers
    ).json()
    eggs = client.post(
        "/ingredient-prices", json={"name": "Huevos", "unit": "docena", "pricePerUnit": 2.4}, headers=headers
    ).json()
    return client.post(
        "/recipes",
        json={
            "name": "Tarta de la abuela",
            "productType": "Tarta",
            "baseLaborHours": 1,
            "recipeIngredients": [
                {"ingredientId": flour["id"], "quantity": 500, "unit": "g"},
                {"ingredientId": eggs["id"], "quantity": 3, "unit": "unidad"},
            ],
        },
        headers=headers,
    ).json()


def test_quote_calculator_requires_pro_plan(client, owner_headers):
    recipe = seed_recipe(client, owner_headers)
    response = client.post("/quotes/calculate", json={"recipeId": recipe["id"]}, headers=owner_headers)
    assert response.status_code == 402
    assert response.headers.get("X-Plan-Required") == "true"


def test_quote_for_recipe(client, pro_business, owner_headers):
    recipe = seed_recipe(client, owner_headers)

    response = client.post(
        "/quotes/calculate",
        json={"recipeId": recipe["id"], "quantity": 2, "decorationComplexity": "media", "flavor": "Fresa"},
        headers=owner_headers,
    )

    assert response.status_code == 200
    quote = response.json()
    assert quote["recipeName"] == "Tarta de la abuela"
    assert quote["cogsIngredients"] == 2.4
    assert quote["cogsPackaging"] == 2.5
    assert quote["directLaborCost"] == 45.0
    assert quote["totalCost"] == 59.88
    assert quote["finalPrice"] == 94.1
    assert quote["flavor"] == "Fresa"
    assert quote["missingPrices"] == []


def test_quote_uses_current_ingredient_prices(client, pro_business, owner_headers):
    recipe = seed_recipe(client, owner_headers)
    flour = client.get("/ingredient-prices?q=Harina", headers=owner_headers).json()[0]
    client.put(f"/ingredient-prices/{flour['id']}", json={"pricePerUnit": 2.4}, headers=owner_headers)

    response = client.post(
        "/quotes/calculate",
        json={"recipeId": recipe["id"], "quantity": 2, "decorationComplexity": "media"},
        headers=owner_headers,
    )

    quote = response.json()
    assert quote["cogsIngredients"] == 3.6
    assert quote["missingPrices"] == []


def test_quote_by_product_type_and_unknown_recipe(client, pro_business, owner_headers):
    recipe = seed_recipe(client, owner_headers)

    by_type = client.post("/quotes/calculate", json={"productType": "Tarta"}, headers=owner_headers)
    missing = client.post("/quotes/calculate", json={"productType": "Macarons"}, headers=owner_headers)
    neither = client.post("/quotes/calculate", json={"quantity": 1}, headers=owner_headers)

    assert by_type.json()["recipeId"] == recipe["id"]
    assert missing.status_code == 404
    assert neither.status_code == 422


def test_lifetime_business_has_every_feature(client, db_session, business, owner_headers):
    business.is_lifetime = True
    db_session.commit()

    subscription = client.get("/billing/subscription", headers=owner_headers).json()

    assert subscription["plan"] == "vitalicio"
    assert all(subscription["features"].values())
    assert subscription["limits"]["maxCustomers"] is None


def test_subscription_overview_on_free_plan(client, owner_headers, customer):
    subscription = client.get("/billing/subscription", headers=owner_headers).json()

    assert subscription["plan"] == "free"
    assert subscription["features"]["quote_calculator"] is False
    assert subscription["usage"]["customers"] == 1
    assert subscription["limits"]["maxCustomers"] == 20


def test_inactive_subscription_falls_back_to_free(client, db_session, business, owner_headers):
    set_plan(db_session, business, "price_pro_year", status="past_due")
    assert client.get("/billing/subscription", headers=owner_headers).json()["plan"] == "free"

    set_plan(db_session, business, "price_pro_year", status="trialing")
    assert client.get("/billing/subscription", headers=owner_headers).json()["plan"] == "pro"

    set_plan(db_session, business, "price_unknown", status="active")
    assert client.get("/billing/subscription", headers=owner_headers).json()["plan"] == "free"


def test_basico_plan(client, db_session, business, owner_headers):
    set_plan(db_session, business, "price_basico_month")
    subscription = client.get("/billing/subscription", headers=owner_headers).json()
    assert subscription["plan"] == "basico"
    assert subscription["limits"]["maxOrdersPerMonth"] == 50


def test_role_check_runs_before_plan_check(client, db_session, pro_business):
    editor = add_member(db_session, pro_business, "editor@dulcerosa.es", "EDITOR")
    response = client.get("/reports/monthly-profit", params={"month": "2026-10"}, headers=auth_headers(editor))
    assert response.status_code == 403
