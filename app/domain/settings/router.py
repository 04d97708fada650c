"""Settings router"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import BusinessContext, get_business_context, require_roles
from ...database import get_db
from ...models import BusinessSettings
from .schemas import SETTINGS_FIELDS, SettingsResponse, SettingsUpdate
from .service import SettingsService

router = APIRouter(prefix="/settings", tags=["Settings"])


def get_settings_service(db: Session = Depends(get_db)) -> SettingsService:
    return SettingsService(db)


def to_settings_response(s: BusinessSettings) -> SettingsResponse:
    values = {field: getattr(s, column) for field, column in SETTINGS_FIELDS.items()}
    return SettingsResponse(id=s.id, businessId=s.business_id, **values)


@router.get("", response_model=SettingsResponse)
async def get_settings(
    ctx: BusinessContext = Depends(get_business_context),
    service: SettingsService = Depends(get_settings_service),
):
    return to_settings_response(service.get_settings(ctx.business))


@router.put("", response_model=SettingsResponse)
async def save_settings(
    data: SettingsUpdate,
    ctx: BusinessContext = Depends(require_roles("OWNER", "ADMIN")),
    service: SettingsService = Depends(get_settings_service),
):
    """Save pricing settings (partial update or first-time insert)"""
    return to_settings_response(service.upsert_settings(data, ctx.business))


__all__ = ["router", "get_settings", "save_settings"]
