"""Settings service - per-business pricing and overhead settings"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Business, BusinessSettings
from .schemas import DEFAULT_SETTINGS, SETTINGS_FIELDS, SettingsUpdate

logger = logging.getLogger(__name__)


def create_default_settings(db: Session, business_id: int) -> BusinessSettings:
    """Add (without committing) a settings row filled with the defaults"""
    settings = BusinessSettings(business_id=business_id, **DEFAULT_SETTINGS)
    db.add(settings)
    return settings


class SettingsService:
    def __init__(self, db: Session):
        self.db = db

    def _find(self, business: Business) -> Optional[BusinessSettings]:
        return (
            self.db.query(BusinessSettings)
            .filter(BusinessSettings.business_id == business.id)
            .first()
        )

    def get_settings(self, business: Business) -> BusinessSettings:
        settings = self._find(business)
        if not settings:
            raise HTTPException(status_code=404, detail="Settings not found for this business")
        return settings

    def upsert_settings(self, data: SettingsUpdate, business: Business) -> BusinessSettings:
        """Update the sent fields, creating the row with defaults when it is missing"""
        settings = self._find(business)
        if not settings:
            logger.info(f"🆕 Creating settings for business {business.id}")
            settings = create_default_settings(self.db, business.id)

        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(settings, SETTINGS_FIELDS[field], value)

        self.db.commit()
        self.db.refresh(settings)
        logger.info(f"✅ Settings saved for business {business.id}")
        return settings
