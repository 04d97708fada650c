"""
Google Calendar Integration Routes
Handles the OAuth connection used to mirror order deliveries as calendar events
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlencode

import httpx
from cryptography.fernet import InvalidToken
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..config import GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REDIRECT_URI
from ..database import get_db
from ..models import User
from ..models_google_calendar import GoogleCalendarIntegration
from ..services.google_calendar_service import (
    GOOGLE_CALENDAR_API,
    GOOGLE_TOKEN_URL,
    decrypt_token,
    encrypt_token,
    get_integration,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/google-calendar", tags=["google-calendar"])

# Google OAuth URLs
GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_REVOKE_URL = "https://oauth2.googleapis.com/revoke"
GOOGLE_CALENDAR_SCOPES = [
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/userinfo.email",
]


class CallbackRequest(BaseModel):
    code: str = Field(..., min_length=1)


class CalendarSettingsUpdate(BaseModel):
    autoSyncEnabled: Optional[bool] = None
    deliveryEventMinutes: Optional[int] = Field(None, ge=5, le=480)


def _status(integration: Optional[GoogleCalendarIntegration]) -> dict:
    if not integration:
        return {
            "connected": False,
            "user_email": None,
            "calendar_id": None,
            "auto_sync_enabled": None,
            "delivery_event_minutes": None,
        }
    return {
        "connected": True,
        "user_email": integration.google_user_email,
        "calendar_id": integration.google_calendar_id,
        "auto_sync_enabled": integration.auto_sync_enabled,
        "delivery_event_minutes": integration.delivery_event_minutes,
    }


@router.get("/status")
async def get_google_calendar_status(
    current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """Get Google Calendar connection status"""
    return _status(get_integration(db, current_user.id))


@router.get("/connect")
async def initiate_google_calendar_oauth(current_user: User = Depends(get_current_user)):
    """Build the Google consent URL; the frontend posts the returned code to /callback"""
    if not GOOGLE_CLIENT_ID or not GOOGLE_CLIENT_SECRET:
        raise HTTPException(status_code=503, detail="Google Calendar not configured")

    params = {
        "client_id": GOOGLE_CLIENT_ID,
        "redirect_uri": GOOGLE_REDIRECT_URI,
        "response_type": "code",
        "scope": " ".join(GOOGLE_CALENDAR_SCOPES),
        "access_type": "offline",
        "prompt": "consent",
        "state": str(current_user.id),
    }
    logger.info(f"Google Calendar OAuth initiated for user: {current_user.email}")
    return {"authorization_url": f"{GOOGLE_AUTH_URL}?{urlencode(params)}"}


@router.post("/callback")
async def handle_google_calendar_callback(
    data: CallbackRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Exchange the authorization code and store the tokens encrypted"""
    if not GOOGLE_CLIENT_ID or not GOOGLE_CLIENT_SECRET:
        raise HTTPException(status_code=503, detail="Google Calendar not configured")

    try:
        async with httpx.AsyncClient(timeout=15) as client:
            token_response = await client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "code": data.code,
                    "client_id": GOOGLE_CLIENT_ID,
                    "client_secret": GOOGLE_CLIENT_SECRET,
                    "redirect_uri": GOOGLE_REDIRECT_URI,
                    "grant_type": "authorization_code",
                },
            )
            if token_response.status_code != 200:
                logger.error(f"Token exchange failed: {token_response.text}")
                raise HTTPException(status_code=400, detail="Failed to exchange authorization code")

            tokens = token_response.json()
            access_token = tokens.get("access_token")
            refresh_token = tokens.get("refresh_token")
            expires_in = tokens.get("expires_in", 3600)
            if not access_token or not refresh_token:
                raise HTTPException(status_code=400, detail="Invalid token response")

            headers = {"Authorization": f"Bearer {access_token}"}
            user_info_response = await client.get(GOOGLE_USERINFO_URL, headers=headers)
            google_email = (
                user_info_response.json().get("email")
                if user_info_response.status_code == 200
                else None
            )

            calendar_id = "primary"
            calendar_response = await client.get(
                f"{GOOGLE_CALENDAR_API}/users/me/calendarList/primary", headers=headers
            )
            if calendar_response.status_code == 200:
                calendar_id = calendar_response.json().get("id", "primary")
    except httpx.HTTPError as e:
        logger.error(f"❌ Google Calendar callback error: {e}")
        raise HTTPException(status_code=502, detail="Could not reach Google") from e

    integration = get_integration(db, current_user.id)
    if not integration:
        integration = GoogleCalendarIntegration(user_id=current_user.id, auto_sync_enabled=True)
        db.add(integration)

    integration.access_token = encrypt_token(access_token)
    integration.refresh_token = encrypt_token(refresh_token)
    integration.token_expires_at = datetime.utcnow() + timedelta(seconds=int(expires_in))
    integration.google_user_email = google_email
    integration.google_calendar_id = calendar_id
    db.commit()

    logger.info(f"✅ Google Calendar connected for user: {current_user.email}")
    return {
        "success": True,
        "message": "Google Calendar connected successfully",
        "user_email": google_email,
    }


@router.patch("/settings")
async def update_google_calendar_settings(
    data: CalendarSettingsUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    integration = get_integration(db, current_user.id)
    if not integration:
        raise HTTPException(status_code=404, detail="Google Calendar not connected")

    if data.autoSyncEnabled is not None:
        integration.auto_sync_enabled = data.autoSyncEnabled
    if data.deliveryEventMinutes is not None:
        integration.delivery_event_minutes = data.deliveryEventMinutes
    db.commit()
    db.refresh(integration)
    return _status(integration)


@router.delete("/disconnect")
async def disconnect_google_calendar(
    current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """Revoke the Google grant (best effort) and delete the stored tokens"""
    integration = get_integration(db, current_user.id)
    if not integration:
        raise HTTPException(status_code=404, detail="Google Calendar not connected")

    try:
        token = decrypt_token(integration.refresh_token)
        async with httpx.AsyncClient(timeout=10) as client:
            await client.post(GOOGLE_REVOKE_URL, params={"token": token})
    except (InvalidToken, httpx.HTTPError) as e:
        logger.warning(f"Failed to revoke Google tokens: {str(e)}")

    db.delete(integration)
    db.commit()

    logger.info(f"✅ Google Calendar disconnected for user: {current_user.email}")
    return {"success": True, "message": "Google Calendar disconnected"}
