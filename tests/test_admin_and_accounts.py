import pytest

from app.models import Business, Customer, Order, TeamMember, User
from app.security_utils import create_jwt_token
from conftest import add_member, auth_headers, make_user


@pytest.fixture
def admin_headers(db_session):
    admin = make_user(db_session, "root@cakely.es", "Root", is_super_admin=True)
    return auth_headers(admin)


# ============================================================================
# Accounts
# ============================================================================


def test_first_sign_in_creates_user(client):
    token = create_jwt_token({"sub": "uid-fresh", "email": "Fresh@Example.com", "name": "Fresh"})
    response = client.get("/user/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["email"] == "fresh@example.com"
    assert response.json()["businessId"] is None


def test_create_business_makes_caller_owner(client, db_session):
    user = make_user(db_session, "new@example.com")
    headers = auth_headers(user)

    response = client.post("/businesses", json={"name": "  Horno Feliz "}, headers=headers)

    assert response.status_code == 201
    business_id = response.json()["id"]
    assert response.json()["name"] == "Horno Feliz"
    assert client.get("/user/profile", headers=headers).json()["businessId"] == business_id
    assert client.get("/settings", headers=headers).status_code == 200
    membership = db_session.query(TeamMember).filter(TeamMember.business_id == business_id).one()
    assert (membership.user_id, membership.role) == (user.id, "OWNER")


def test_update_business_profile(client, owner_headers):
    response = client.patch(
        "/business-profile",
        json={"logoUrl": "https://ik.imagekit.io/cakely/logo.png"},
        headers=owner_headers,
    )
    assert response.json()["logoUrl"] == "https://ik.imagekit.io/cakely/logo.png"
    assert response.json()["name"] == "Dulce Rosa"

    assert client.patch("/business-profile", json={}, headers=owner_headers).status_code == 400
    assert client.patch("/business-profile", json={"logoUrl": "ftp://x"}, headers=owner_headers).status_code == 422


def test_update_user_profile(client, owner_headers):
    response = client.patch("/user/profile", json={"name": "Lucía Pérez"}, headers=owner_headers)
    assert response.json()["name"] == "Lucía Pérez"
    assert client.patch("/user/profile", json={}, headers=owner_headers).status_code == 400


# ============================================================================
# Super admin
# ============================================================================


def test_admin_routes_need_super_admin(client, owner_headers):
    assert client.get("/admin/businesses", headers=owner_headers).status_code == 403


def test_admin_lists_and_creates_businesses(client, db_session, business, admin_headers):
    make_user(db_session, "second@example.com")

    created = client.post(
        "/admin/businesses", json={"name": "Segunda", "ownerEmail": "second@example.com"}, headers=admin_headers
    )
    assert created.status_code == 201
    assert created.json()["ownerEmail"] == "second@example.com"

    names = [b["name"] for b in client.get("/admin/businesses", headers=admin_headers).json()]
    assert sorted(names) == ["Dulce Rosa", "Segunda"]

    missing_owner = client.post(
        "/admin/businesses", json={"name": "Tercera", "ownerEmail": "nobody@example.com"}, headers=admin_headers
    )
    assert missing_owner.status_code == 400


def test_admin_transfers_ownership(client, db_session, business, owner, admin_headers):
    editor = add_member(db_session, business, "editor@dulcerosa.es", "EDITOR")

    response = client.patch(
        f"/admin/businesses/{business.id}", json={"ownerUserId": editor.id, "isLifetime": True}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["ownerUserId"] == editor.id
    assert response.json()["isLifetime"] is True
    roles = {
        m.user_id: m.role
        for m in db_session.query(TeamMember).filter(TeamMember.business_id == business.id).all()
    }
    assert roles == {owner.id: "ADMIN", editor.id: "OWNER"}


def test_admin_delete_business_cascades(client, db_session, business, owner, owner_headers, admin_headers, order_payload):
    client.post("/orders", json=order_payload, headers=owner_headers)
    client.post(
        "/ingredient-prices", json={"name": "Harina", "unit": "kg", "pricePerUnit": 1.2}, headers=owner_headers
    )

    response = client.delete(f"/admin/businesses/{business.id}", headers=admin_headers)

    assert response.status_code == 200
    db_session.expire_all()
    assert db_session.get(Business, business.id) is None
    assert db_session.query(Order).count() == 0
    assert db_session.query(Customer).count() == 0
    assert db_session.query(TeamMember).count() == 0
    assert db_session.get(User, owner.id).business_id is None


def test_admin_user_management(client, db_session, business, owner, admin_headers):
    created = client.post("/admin/users", json={"email": "Staff@Cakely.es", "name": "Staff"}, headers=admin_headers)
    assert created.status_code == 201
    staff = created.json()
    assert staff["email"] == "staff@cakely.es"

    duplicate = client.post("/admin/users", json={"email": "staff@cakely.es"}, headers=admin_headers)
    assert duplicate.status_code == 409

    page = client.get("/admin/users", params={"limit": 2}, headers=admin_headers).json()
    assert page["totalUsers"] == 3
    assert page["newOffset"] == 2

    promoted = client.patch(f"/admin/users/{staff['id']}", json={"isSuperAdmin": True}, headers=admin_headers)
    assert promoted.json()["isSuperAdmin"] is True

    detail = client.get(f"/admin/users/{owner.id}", headers=admin_headers).json()
    assert [m["role"] for m in detail["memberships"]] == ["OWNER"]

    assert client.delete(f"/admin/users/{owner.id}", headers=admin_headers).status_code == 409
    assert client.delete(f"/admin/users/{staff['id']}", headers=admin_headers).status_code == 200


def test_pending_user_is_linked_on_first_sign_in(client, db_session, admin_headers):
    created = client.post("/admin/users", json={"email": "later@example.com"}, headers=admin_headers).json()

    token = create_jwt_token({"sub": "uid-real", "email": "later@example.com", "name": "Later"})
    profile = client.get("/user/profile", headers={"Authorization": f"Bearer {token}"}).json()

    assert profile["id"] == created["id"]
    db_session.expire_all()
    assert db_session.get(User, created["id"]).auth_uid == "uid-real"
