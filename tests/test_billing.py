import json
from datetime import datetime

import pytest
import stripe

from app.domain.billing.router import get_stripe_service
from app.main import app
from app.models import Business
from conftest import add_member, auth_headers

PERIOD_END = 1798761600  # 2027-01-01T00:00:00Z


class FakeStripe:
    """Stands in for StripeService; signatures are checked against a fixed value"""

    def __init__(self, subscriptions=None):
        self.subscriptions = subscriptions or {}
        self.created_customers = []
        self.checkout_calls = []

    def is_available(self):
        return True

    def construct_event(self, payload, signature):
        if signature != "valid":
            raise stripe.SignatureVerificationError("bad signature", signature)
        return json.loads(payload)

    async def retrieve_subscription(self, subscription_id):
        return self.subscriptions[subscription_id]

    async def create_customer(self, email, name, metadata):
        self.created_customers.append((email, name, metadata))
        return {"id": "cus_new"}

    async def create_checkout_session(self, customer_id, price_id, success_url, cancel_url, metadata):
        self.checkout_calls.append((customer_id, price_id, success_url, cancel_url, metadata))
        return {"id": "cs_test_1", "url": "https://checkout.stripe.com/c/cs_test_1"}

    async def create_portal_session(self, customer_id, return_url):
        return {"url": f"https://billing.stripe.com/p/{customer_id}"}


def subscription(business_id, price="price_pro_month", status="active", sub_id="sub_1"):
    return {
        "id": sub_id,
        "status": status,
        "metadata": {"cakelyBusinessId": str(business_id)},
        "items": {"data": [{"price": {"id": price}, "current_period_end": PERIOD_END}]},
    }


@pytest.fixture
def fake_stripe(business):
    fake = FakeStripe({"sub_1": subscription(business.id)})
    app.dependency_overrides[get_stripe_service] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_stripe_service, None)


def send_event(client, event, signature="valid"):
    return client.post(
        "/stripe/webhook",
        content=json.dumps(event),
        headers={"stripe-signature": signature, "content-type": "application/json"},
    )


def checkout_completed(business_id):
    return {
        "id": "evt_checkout",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": "cs_test_1",
                "mode": "subscription",
                "subscription": "sub_1",
                "customer": "cus_1",
                "metadata": {"cakelyBusinessId": str(business_id)},
            }
        },
    }


def reload(db_session, business) -> Business:
    db_session.expire_all()
    return db_session.get(Business, business.id)


def test_webhook_requires_signature(client, fake_stripe, business):
    assert send_event(client, checkout_completed(business.id), signature="").status_code == 400
    assert send_event(client, checkout_completed(business.id), signature="forged").status_code == 400


def test_webhook_handles_the_verified_event(client, db_session, fake_stripe, business):
    verified = checkout_completed(business.id)
    fake_stripe.construct_event = lambda payload, signature: verified

    response = send_event(client, {"id": "evt_other", "type": "customer.created", "data": {"object": {}}})

    assert response.status_code == 200
    assert reload(db_session, business).stripe_subscription_id == "sub_1"


def test_checkout_completed_activates_pro(client, db_session, fake_stripe, business, owner_headers):
    response = send_event(client, checkout_completed(business.id))

    assert response.status_code == 200
    assert response.json() == {"received": True}
    updated = reload(db_session, business)
    assert updated.stripe_subscription_id == "sub_1"
    assert updated.stripe_customer_id == "cus_1"
    assert updated.stripe_price_id == "price_pro_month"
    assert updated.subscription_status == "active"
    assert updated.stripe_current_period_end == datetime(2027, 1, 1)
    assert client.get("/billing/subscription", headers=owner_headers).json()["plan"] == "pro"


def test_replayed_event_is_idempotent(client, db_session, fake_stripe, business):
    send_event(client, checkout_completed(business.id))
    first = reload(db_session, business)
    snapshot = (first.stripe_subscription_id, first.stripe_price_id, first.stripe_current_period_end)

    assert send_event(client, checkout_completed(business.id)).status_code == 200
    second = reload(db_session, business)
    assert (second.stripe_subscription_id, second.stripe_price_id, second.stripe_current_period_end) == snapshot


def test_unknown_business_is_skipped(client, fake_stripe, business):
    assert send_event(client, checkout_completed(9999)).status_code == 200


def test_subscription_lifecycle(client, db_session, fake_stripe, business):
    send_event(client, checkout_completed(business.id))

    fake_stripe.subscriptions["sub_1"] = subscription(business.id, status="past_due")
    failed = {
        "id": "evt_failed",
        "type": "invoice.payment_failed",
        "data": {"object": {"id": "in_1", "subscription": "sub_1"}},
    }
    send_event(client, failed)
    assert reload(db_session, business).subscription_status == "past_due"

    fake_stripe.subscriptions["sub_1"] = subscription(business.id)
    paid = {
        "id": "evt_paid",
        "type": "invoice.paid",
        "data": {
            "object": {
                "id": "in_2",
                "status": "paid",
                "billing_reason": "subscription_cycle",
                "parent": {"subscription_details": {"subscription": "sub_1"}},
            }
        },
    }
    send_event(client, paid)
    assert reload(db_session, business).subscription_status == "active"

    updated = {
        "id": "evt_updated",
        "type": "customer.subscription.updated",
        "data": {"object": subscription(business.id, price="price_basico_month")},
    }
    send_event(client, updated)
    assert reload(db_session, business).stripe_price_id == "price_basico_month"

    deleted = {
        "id": "evt_deleted",
        "type": "customer.subscription.deleted",
        "data": {"object": subscription(business.id, status="canceled")},
    }
    send_event(client, deleted)
    final = reload(db_session, business)
    assert final.subscription_status == "canceled"
    assert final.stripe_subscription_id is None
    assert final.stripe_price_id is None
    assert final.stripe_customer_id == "cus_1"


def test_unhandled_event_is_acknowledged(client, fake_stripe, business):
    event = {"id": "evt_x", "type": "charge.refunded", "data": {"object": {}}}
    assert send_event(client, event).status_code == 200


def test_checkout_session_creates_customer_once(client, db_session, fake_stripe, business, owner_headers):
    response = client.post(
        "/stripe/create-checkout-session", json={"priceId": "price_pro_month"}, headers=owner_headers
    )

    assert response.status_code == 200
    assert response.json() == {"sessionId": "cs_test_1", "url": "https://checkout.stripe.com/c/cs_test_1"}
    assert reload(db_session, business).stripe_customer_id == "cus_new"

    client.post("/stripe/create-checkout-session", json={"priceId": "price_pro_month"}, headers=owner_headers)
    assert len(fake_stripe.created_customers) == 1
    customer_id, price_id, success_url, _, metadata = fake_stripe.checkout_calls[-1]
    assert customer_id == "cus_new"
    assert "{CHECKOUT_SESSION_ID}" in success_url
    assert metadata["cakelyBusinessId"] == str(business.id)


def test_portal_needs_a_customer(client, db_session, fake_stripe, business, owner_headers):
    assert client.post("/stripe/create-portal-session", headers=owner_headers).status_code == 404

    business.stripe_customer_id = "cus_1"
    db_session.commit()
    response = client.post("/stripe/create-portal-session", headers=owner_headers)
    assert response.json()["url"].endswith("cus_1")


def test_editor_cannot_start_checkout(client, db_session, fake_stripe, business):
    editor = add_member(db_session, business, "editor@dulcerosa.es", "EDITOR")
    response = client.post(
        "/stripe/create-checkout-session", json={"priceId": "price_pro_month"}, headers=auth_headers(editor)
    )
    assert response.status_code == 403


def test_billing_unavailable_without_stripe_key(client, business, owner_headers):
    response = client.post(
        "/stripe/create-checkout-session", json={"priceId": "price_pro_month"}, headers=owner_headers
    )
    assert response.status_code == 503
