"""
Test configuration for the Cakely API.

Environment variables are set before the app is imported so config.py picks
them up. Every test gets fresh tables on an in-memory SQLite database shared
through a StaticPool, with foreign keys switched on so ON DELETE rules apply.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-session-tokens"
os.environ["STRIPE_PRICE_IDS_BASICO"] = "price_basico_month"
os.environ["STRIPE_PRICE_IDS_PRO"] = "price_pro_month,price_pro_year"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ.pop("STRIPE_SECRET_KEY", None)
os.environ.pop("RESEND_API_KEY", None)
os.environ.pop("IMAGEKIT_PRIVATE_KEY", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.database import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from app.domain.billing.router import webhook_rate_limit  # noqa: E402
from app.domain.team.router import verify_rate_limit  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Business, TeamMember, User  # noqa: E402
from app.routes.business import create_business_for_owner  # noqa: E402
from app.security_utils import create_jwt_token  # noqa: E402

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def _override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    async def _no_rate_limit():
        return None

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[verify_rate_limit] = _no_rate_limit
    app.dependency_overrides[webhook_rate_limit] = _no_rate_limit

    yield TestClient(app)

    app.dependency_overrides.clear()


# ============================================================================
# Builders
# ============================================================================


def make_user(db, email: str, name: str = None, is_super_admin: bool = False) -> User:
    user = User(
        auth_uid=f"uid-{email}",
        email=email,
        name=name or email.split("@")[0].title(),
        is_super_admin=is_super_admin,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    token = create_jwt_token({"sub": user.auth_uid, "email": user.email, "name": user.name})
    return {"Authorization": f"Bearer {token}"}


def make_business(db, owner: User, name: str = "Dulce Rosa") -> Business:
    business = create_business_for_owner(db, name, owner)
    owner.business_id = business.id
    db.commit()
    db.refresh(business)
    return business


def add_member(db, business: Business, email: str, role: str) -> User:
    user = make_user(db, email)
    db.add(TeamMember(user_id=user.id, business_id=business.id, role=role))
    user.business_id = business.id
    db.commit()
    db.refresh(user)
    return user


def set_plan(db, business: Business, price_id: str = "price_pro_month", status: str = "active") -> None:
    business.stripe_price_id = price_id
    business.subscription_status = status
    db.commit()


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def owner(db_session):
    return make_user(db_session, "owner@dulcerosa.es", "Lucía")


@pytest.fixture
def business(db_session, owner):
    return make_business(db_session, owner)


@pytest.fixture
def pro_business(db_session, business):
    set_plan(db_session, business)
    return business


@pytest.fixture
def owner_headers(owner, business):
    return auth_headers(owner)


@pytest.fixture
def customer(client, owner_headers):
    response = client.post(
        "/customers",
        json={"name": "Marta Gil", "email": "Marta@Example.com", "phone": "600 123 456"},
        headers=owner_headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def order_payload(customer):
    return {
        "customerId": customer["id"],
        "description": "Tarta de cumpleaños de chocolate",
        "amount": 45.0,
        "deliveryDate": "2026-11-20",
        "deliveryTime": "17:30",
        "productType": "Tarta",
        "quantity": 1,
        "sizeOrWeight": "20cm",
        "flavor": "Chocolate",
        "totalPrice": 45.0,
        "paymentStatus": "Parcial",
        "paymentMethod": "Bizum",
        "depositAmount": 15.0,
    }
