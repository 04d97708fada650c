"""
Google Calendar Service
Handles delivery event creation, updates, and deletion
"""
import base64
import hashlib
import logging
from datetime import datetime, timedelta
from typing import Optional

import httpx
from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy.orm import Session

from ..config import (
    CALENDAR_TIMEZONE,
    FRONTEND_URL,
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
    GOOGLE_TOKEN_ENCRYPTION_KEY,
    SECRET_KEY,
)
from ..models import Customer, Order, TeamMember, User
from ..models_google_calendar import GoogleCalendarIntegration

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"  # noqa: S105 - OAuth endpoint URL
GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"

# Refresh tokens this close to expiry
TOKEN_REFRESH_MARGIN = timedelta(minutes=5)
DEFAULT_EVENT_MINUTES = 15


def get_cipher() -> Fernet:
    """Fernet cipher for stored OAuth tokens"""
    if GOOGLE_TOKEN_ENCRYPTION_KEY:
        return Fernet(GOOGLE_TOKEN_ENCRYPTION_KEY.encode())
    # Derive a valid 32-byte key from SECRET_KEY for development setups
    digest = hashlib.sha256(SECRET_KEY.encode()).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def encrypt_token(token: str) -> str:
    return get_cipher().encrypt(token.encode()).decode()


def decrypt_token(token: str) -> str:
    return get_cipher().decrypt(token.encode()).decode()


def get_integration(db: Session, user_id: int) -> Optional[GoogleCalendarIntegration]:
    return (
        db.query(GoogleCalendarIntegration)
        .filter(GoogleCalendarIntegration.user_id == user_id)
        .first()
    )


async def get_valid_access_token(integration: GoogleCalendarIntegration, db: Session) -> Optional[str]:
    """
    Get a valid access token, refreshing if necessary.
    Returns None if refresh fails; a revoked grant disconnects the integration.
    """
    try:
        if integration.token_expires_at > datetime.utcnow() + TOKEN_REFRESH_MARGIN:
            return decrypt_token(integration.access_token)

        logger.info("🔄 Google Calendar token expired, refreshing...")
        refresh_token = decrypt_token(integration.refresh_token)

        async with httpx.AsyncClient(timeout=15.0) as client:
            response = await client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "client_id": GOOGLE_CLIENT_ID,
                    "client_secret": GOOGLE_CLIENT_SECRET,
                    "refresh_token": refresh_token,
                    "grant_type": "refresh_token",
                },
            )

        if response.status_code in (400, 401):
            # invalid_grant: the user revoked access, stored tokens are useless
            logger.warning(f"⚠️ Google refresh token rejected, disconnecting user {integration.user_id}")
            db.delete(integration)
            db.commit()
            return None

        if response.status_code != 200:
            logger.error(f"❌ Token refresh failed: {response.text}")
            return None

        tokens = response.json()
        new_access_token = tokens.get("access_token")
        if not new_access_token:
            logger.error("❌ No access token in refresh response")
            return None

        integration.access_token = encrypt_token(new_access_token)
        integration.token_expires_at = datetime.utcnow() + timedelta(
            seconds=tokens.get("expires_in", 3600)
        )
        # Google only sometimes rotates the refresh token
        if tokens.get("refresh_token"):
            integration.refresh_token = encrypt_token(tokens["refresh_token"])
        db.commit()

        logger.info("✅ Google Calendar token refreshed successfully")
        return new_access_token

    except (InvalidToken, httpx.HTTPError) as e:
        logger.error(f"❌ Error getting valid access token: {str(e)}")
        return None


def get_attendee_emails(db: Session, business_id: int, user_email: str) -> list[str]:
    """The acting user plus every team member of the business, without duplicates"""
    emails = [user_email]
    rows = (
        db.query(User.email)
        .join(TeamMember, TeamMember.user_id == User.id)
        .filter(TeamMember.business_id == business_id)
        .all()
    )
    for (email,) in rows:
        if email and email not in emails:
            emails.append(email)
    return emails


def build_delivery_event(order: Order, customer_name: str, attendees: list[str], minutes: int) -> dict:
    start = order.delivery_date
    end = start + timedelta(minutes=minutes)
    return {
        "summary": f"Entrega Pedido #{order.business_order_number} - {customer_name}",
        "description": (
            f"Producto: {order.description or ''}\n"
            f"Pedido ID Interno: {order.id}\n"
            f"Ver: {FRONTEND_URL}/pedidos/{order.id}"
        ),
        "start": {"dateTime": start.isoformat(), "timeZone": CALENDAR_TIMEZONE},
        "end": {"dateTime": end.isoformat(), "timeZone": CALENDAR_TIMEZONE},
        "attendees": [{"email": email} for email in attendees],
        "reminders": {"useDefault": True},
    }


async def _prepare(user: User, order: Order, db: Session):
    integration = get_integration(db, user.id)
    if not integration or not integration.auto_sync_enabled:
        logger.info("ℹ️ Google Calendar not connected or auto-sync disabled")
        return None, None, None

    access_token = await get_valid_access_token(integration, db)
    if not access_token:
        logger.error("❌ Failed to get valid access token")
        return None, None, None

    customer = db.query(Customer).filter(Customer.id == order.customer_id).first()
    customer_name = customer.name if customer else "Cliente Desconocido"
    event = build_delivery_event(
        order,
        customer_name,
        get_attendee_emails(db, order.business_id, user.email),
        integration.delivery_event_minutes or DEFAULT_EVENT_MINUTES,
    )
    return integration, access_token, event


async def create_delivery_event(user: User, order: Order, db: Session) -> Optional[str]:
    """
    Create a Google Calendar event for an order delivery
    Returns the Google Calendar event ID if successful, None otherwise
    """
    try:
        integration, access_token, event = await _prepare(user, order, db)
        if not integration:
            return None

        calendar_id = integration.google_calendar_id or "primary"
        async with httpx.AsyncClient(timeout=15.0) as client:
            response = await client.post(
                f"{GOOGLE_CALENDAR_API}/calendars/{calendar_id}/events",
                headers={"Authorization": f"Bearer {access_token}"},
                params={"sendUpdates": "all"},
                json=event,
            )

        if response.status_code not in (200, 201):
            logger.error(f"❌ Failed to create calendar event: {response.text}")
            return None

        event_id = response.json().get("id")
        logger.info(f"✅ Google Calendar event created: {event_id}")
        return event_id

    except httpx.HTTPError as e:
        logger.error(f"❌ Error creating calendar event: {str(e)}")
        return None


async def update_delivery_event(user: User, order: Order, db: Session) -> bool:
    """Move an existing delivery event to the order's current delivery date"""
    if not order.google_calendar_event_id:
        return False
    try:
        integration, access_token, event = await _prepare(user, order, db)
        if not integration:
            return False

        calendar_id = integration.google_calendar_id or "primary"
        async with httpx.AsyncClient(timeout=15.0) as client:
            response = await client.patch(
                f"{GOOGLE_CALENDAR_API}/calendars/{calendar_id}/events/{order.google_calendar_event_id}",
                headers={"Authorization": f"Bearer {access_token}"},
                params={"sendUpdates": "all"},
                json=event,
            )

        if response.status_code != 200:
            logger.error(f"❌ Failed to update calendar event: {response.text}")
            return False

        logger.info(f"✅ Google Calendar event updated: {order.google_calendar_event_id}")
        return True

    except httpx.HTTPError as e:
        logger.error(f"❌ Error updating calendar event: {str(e)}")
        return False


async def delete_delivery_event(user: User, google_event_id: str, db: Session) -> bool:
    """Delete a delivery event; a missing event counts as deleted"""
    try:
        integration = get_integration(db, user.id)
        if not integration:
            logger.info("ℹ️ Google Calendar not connected")
            return False

        access_token = await get_valid_access_token(integration, db)
        if not access_token:
            logger.error("❌ Failed to get valid access token")
            return False

        calendar_id = integration.google_calendar_id or "primary"
        async with httpx.AsyncClient(timeout=15.0) as client:
            response = await client.delete(
                f"{GOOGLE_CALENDAR_API}/calendars/{calendar_id}/events/{google_event_id}",
                headers={"Authorization": f"Bearer {access_token}"},
            )

        if response.status_code not in (200, 204, 404, 410):
            logger.error(f"❌ Failed to delete calendar event: {response.text}")
            return False

        logger.info(f"✅ Google Calendar event deleted: {google_event_id}")
        return True

    except httpx.HTTPError as e:
        logger.error(f"❌ Error deleting calendar event: {str(e)}")
        return False
