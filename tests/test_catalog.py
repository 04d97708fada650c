"""Ingredient prices, recipes and product types"""

import pytest

from conftest import add_member, auth_headers


@pytest.fixture
def flour(client, owner_headers):
    response = client.post(
        "/ingredient-prices",
        json={"name": "Harina", "unit": "kg", "pricePerUnit": 1.2, "supplier": "Molinos del Sur"},
        headers=owner_headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def eggs(client, owner_headers):
    return client.post(
        "/ingredient-prices", json={"name": "Huevos", "unit": "docena", "pricePerUnit": 2.4}, headers=owner_headers
    ).json()


def recipe_body(flour, eggs, name="Bizcocho básico"):
    return {
        "name": name,
        "productType": "Tarta",
        "baseLaborHours": 1.5,
        "recipeIngredients": [
            {"ingredientId": flour["id"], "quantity": 500, "unit": "g"},
            {"ingredientId": eggs["id"], "quantity": 4, "unit": "unidad"},
        ],
    }


# ============================================================================
# Ingredient prices
# ============================================================================


def test_ingredient_crud(client, owner_headers, flour):
    listed = client.get("/ingredient-prices", params={"q": "molinos"}, headers=owner_headers).json()
    assert [i["id"] for i in listed] == [flour["id"]]

    updated = client.put(
        f"/ingredient-prices/{flour['id']}", json={"pricePerUnit": 1.35}, headers=owner_headers
    ).json()
    assert updated["pricePerUnit"] == 1.35
    assert updated["unit"] == "kg"

    assert client.delete(f"/ingredient-prices/{flour['id']}", headers=owner_headers).status_code == 200
    assert client.get(f"/ingredient-prices/{flour['id']}", headers=owner_headers).status_code == 404


def test_duplicate_ingredient_name_conflicts(client, owner_headers, flour):
    response = client.post(
        "/ingredient-prices", json={"name": "Harina", "unit": "g", "pricePerUnit": 0.002}, headers=owner_headers
    )
    assert response.status_code == 409


def test_negative_price_and_unknown_unit_are_422(client, owner_headers):
    negative = client.post(
        "/ingredient-prices", json={"name": "Azúcar", "unit": "kg", "pricePerUnit": -1}, headers=owner_headers
    )
    bad_unit = client.post(
        "/ingredient-prices", json={"name": "Azúcar", "unit": "taza", "pricePerUnit": 1}, headers=owner_headers
    )
    assert negative.status_code == 422
    assert bad_unit.status_code == 422


def test_ingredient_used_in_recipe_cannot_be_deleted(client, owner_headers, flour, eggs):
    client.post("/recipes", json=recipe_body(flour, eggs), headers=owner_headers)
    response = client.delete(f"/ingredient-prices/{flour['id']}", headers=owner_headers)
    assert response.status_code == 409


# ============================================================================
# Recipes
# ============================================================================


def test_create_recipe_with_lines(client, owner_headers, flour, eggs):
    response = client.post("/recipes", json=recipe_body(flour, eggs), headers=owner_headers)

    assert response.status_code == 201
    recipe = response.json()
    assert recipe["productType"] == "Tarta"
    assert [line["ingredientName"] for line in recipe["recipeIngredients"]] == ["Harina", "Huevos"]


def test_recipe_needs_at_least_one_line(client, owner_headers):
    body = {"name": "Vacía", "productType": "Tarta", "recipeIngredients": []}
    assert client.post("/recipes", json=body, headers=owner_headers).status_code == 422


def test_recipe_with_foreign_ingredient_is_400(client, owner_headers, flour, eggs):
    body = recipe_body(flour, eggs)
    body["recipeIngredients"].append({"ingredientId": 9999, "quantity": 1, "unit": "g"})
    assert client.post("/recipes", json=body, headers=owner_headers).status_code == 400


def test_update_replaces_recipe_lines(client, owner_headers, flour, eggs):
    recipe = client.post("/recipes", json=recipe_body(flour, eggs), headers=owner_headers).json()

    response = client.put(
        f"/recipes/{recipe['id']}",
        json={"recipeIngredients": [{"ingredientId": eggs["id"], "quantity": 1, "unit": "docena"}]},
        headers=owner_headers,
    )

    lines = response.json()["recipeIngredients"]
    assert len(lines) == 1
    assert lines[0]["unit"] == "docena"
    assert response.json()["name"] == "Bizcocho básico"


def test_duplicate_recipe_name_conflicts(client, owner_headers, flour, eggs):
    client.post("/recipes", json=recipe_body(flour, eggs), headers=owner_headers)
    assert client.post("/recipes", json=recipe_body(flour, eggs), headers=owner_headers).status_code == 409


def test_free_plan_recipe_limit(client, owner_headers, flour, eggs):
    for i in range(5):
        client.post("/recipes", json=recipe_body(flour, eggs, f"Receta {i}"), headers=owner_headers)
    response = client.post("/recipes", json=recipe_body(flour, eggs, "Receta 6"), headers=owner_headers)
    assert response.status_code == 403


def test_delete_recipe(client, owner_headers, flour, eggs):
    recipe = client.post("/recipes", json=recipe_body(flour, eggs), headers=owner_headers).json()
    assert client.delete(f"/recipes/{recipe['id']}", headers=owner_headers).status_code == 200
    assert client.get("/recipes", headers=owner_headers).json() == []
    # Lines are gone, so the ingredient is free to delete
    assert client.delete(f"/ingredient-prices/{flour['id']}", headers=owner_headers).status_code == 200


# ============================================================================
# Product types
# ============================================================================


def test_product_type_crud(client, owner_headers):
    created = client.post("/product-types", json={"name": " Brownies "}, headers=owner_headers)
    assert created.status_code == 201
    product_type = created.json()
    assert product_type["name"] == "Brownies"

    renamed = client.patch(
        f"/product-types/{product_type['id']}", json={"name": "Brownies veganos"}, headers=owner_headers
    )
    assert renamed.json()["name"] == "Brownies veganos"

    assert client.delete(f"/product-types/{product_type['id']}", headers=owner_headers).status_code == 200
    assert client.get("/product-types", headers=owner_headers).json() == []


def test_duplicate_product_type_conflicts(client, owner_headers):
    client.post("/product-types", json={"name": "Brownies"}, headers=owner_headers)
    assert client.post("/product-types", json={"name": "Brownies"}, headers=owner_headers).status_code == 409


# ============================================================================
# Settings
# ============================================================================


def test_business_starts_with_default_settings(client, owner_headers):
    settings = client.get("/settings", headers=owner_headers).json()
    assert settings["laborRateHourly"] == 15
    assert settings["profitMarginPercent"] == 30
    assert settings["ivaPercent"] == 10


def test_partial_settings_update(client, owner_headers):
    response = client.put("/settings", json={"rentMonthly": 650, "ivaPercent": 21}, headers=owner_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["rentMonthly"] == 650
    assert data["ivaPercent"] == 21
    assert data["laborRateHourly"] == 15


def test_editor_cannot_change_settings(client, db_session, business):
    editor = add_member(db_session, business, "editor@dulcerosa.es", "EDITOR")
    response = client.put("/settings", json={"rentMonthly": 1}, headers=auth_headers(editor))
    assert response.status_code == 403
