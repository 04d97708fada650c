from datetime import datetime, timedelta

import pytest

from app.models import Invitation, TeamMember, User
from app.security_utils import create_jwt_token
from conftest import add_member, auth_headers


def token_headers(email: str, uid: str = None) -> dict:
    token = create_jwt_token({"sub": uid or f"uid-{email}", "email": email, "name": "Invitada"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def invitation(client, db_session, pro_business, owner_headers):
    response = client.post(
        "/invitations", json={"email": "Nueva@Example.com", "role": "EDITOR"}, headers=owner_headers
    )
    assert response.status_code == 201
    return db_session.query(Invitation).filter(Invitation.id == response.json()["invitation"]["id"]).one()


def test_invitations_need_multiple_users_feature(client, owner_headers):
    response = client.post("/invitations", json={"email": "a@example.com", "role": "EDITOR"}, headers=owner_headers)
    assert response.status_code == 402


def test_owner_role_cannot_be_invited(client, pro_business, owner_headers):
    response = client.post("/invitations", json={"email": "a@example.com", "role": "OWNER"}, headers=owner_headers)
    assert response.status_code == 422


def test_create_invitation(invitation):
    assert invitation.email == "nueva@example.com"
    assert invitation.status == "PENDING"
    assert len(invitation.token) >= 32
    assert invitation.expires_at > datetime.utcnow() + timedelta(days=6)


def test_duplicate_pending_invitation_conflicts(client, invitation, owner_headers):
    response = client.post(
        "/invitations", json={"email": "nueva@example.com", "role": "ADMIN"}, headers=owner_headers
    )
    assert response.status_code == 409


def test_inviting_an_existing_member_conflicts(client, db_session, pro_business, owner_headers):
    add_member(db_session, pro_business, "editor@dulcerosa.es", "EDITOR")
    response = client.post(
        "/invitations", json={"email": "editor@dulcerosa.es", "role": "ADMIN"}, headers=owner_headers
    )
    assert response.status_code == 409


def test_verify_invitation_is_public(client, invitation):
    response = client.get("/invitations/verify", params={"token": invitation.token})
    assert response.status_code == 200
    assert response.json() == {"email": "nueva@example.com", "role": "EDITOR", "businessName": "Dulce Rosa"}

    assert client.get("/invitations/verify", params={"token": "nope"}).status_code == 404


def test_accept_invitation_joins_business(client, db_session, invitation, pro_business):
    response = client.post(
        "/invitations/accept", json={"token": invitation.token}, headers=token_headers("nueva@example.com")
    )

    assert response.status_code == 200
    assert response.json()["businessId"] == pro_business.id

    db_session.expire_all()
    user = db_session.query(User).filter(User.email == "nueva@example.com").one()
    member = db_session.query(TeamMember).filter(TeamMember.user_id == user.id).one()
    assert member.role == "EDITOR"
    assert user.business_id == pro_business.id
    assert db_session.get(Invitation, invitation.id).status == "ACCEPTED"

    # Token is single use
    again = client.post(
        "/invitations/accept", json={"token": invitation.token}, headers=token_headers("nueva@example.com")
    )
    assert again.status_code == 404


def test_accept_with_another_email_is_forbidden(client, invitation):
    response = client.post(
        "/invitations/accept", json={"token": invitation.token}, headers=token_headers("intruso@example.com")
    )
    assert response.status_code == 403


def test_expired_invitation_is_invalid(client, db_session, invitation):
    invitation.expires_at = datetime.utcnow() - timedelta(minutes=1)
    db_session.commit()

    assert client.get("/invitations/verify", params={"token": invitation.token}).status_code == 404


def test_pending_list_and_cancel(client, invitation, owner_headers):
    pending = client.get("/invitations/pending", headers=owner_headers).json()["invitations"]
    assert [i["id"] for i in pending] == [invitation.id]

    cancelled = client.patch(f"/invitations/{invitation.id}", headers=owner_headers)
    assert cancelled.json()["status"] == "CANCELLED"
    assert client.get("/invitations/pending", headers=owner_headers).json()["invitations"] == []
    assert client.patch(f"/invitations/{invitation.id}", headers=owner_headers).status_code == 404


def test_list_members(client, db_session, business, owner_headers):
    add_member(db_session, business, "editor@dulcerosa.es", "EDITOR")

    members = client.get("/team-members", headers=owner_headers).json()["members"]
    assert sorted(m["role"] for m in members) == ["EDITOR", "OWNER"]


def test_remove_member_rules(client, db_session, business, owner, owner_headers):
    admin = add_member(db_session, business, "admin@dulcerosa.es", "ADMIN")
    other_admin = add_member(db_session, business, "admin2@dulcerosa.es", "ADMIN")
    editor = add_member(db_session, business, "editor@dulcerosa.es", "EDITOR")
    admin_headers = auth_headers(admin)

    assert client.delete(f"/team-members/{owner.id}", headers=owner_headers).status_code == 400
    assert client.delete(f"/team-members/{owner.id}", headers=admin_headers).status_code == 403
    assert client.delete(f"/team-members/{other_admin.id}", headers=admin_headers).status_code == 403
    assert client.delete("/team-members/9999", headers=admin_headers).status_code == 404
    assert client.delete(f"/team-members/{editor.id}", headers=admin_headers).status_code == 204

    db_session.expire_all()
    assert db_session.get(User, editor.id).business_id is None
    assert client.delete(f"/team-members/{other_admin.id}", headers=owner_headers).status_code == 204


def test_editor_cannot_manage_team(client, db_session, business):
    editor = add_member(db_session, business, "editor@dulcerosa.es", "EDITOR")
    assert client.get("/invitations/pending", headers=auth_headers(editor)).status_code == 403
