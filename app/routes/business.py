import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import BusinessContext, get_business_context, get_current_user, require_roles
from ..database import get_db
from ..domain.settings.service import create_default_settings
from ..models import Business, TeamMember, User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Business"])


class BusinessCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Business name must have at least 2 characters")
        return v


class BusinessProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    logoUrl: Optional[str] = Field(None, max_length=500)

    @field_validator("logoUrl")
    @classmethod
    def validate_logo_url(cls, v: Optional[str]) -> Optional[str]:
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("logoUrl must be an http(s) URL")
        return v or None


class BusinessProfileResponse(BaseModel):
    id: int
    name: str
    logoUrl: Optional[str] = None


def create_business_for_owner(db: Session, name: str, owner: User) -> Business:
    """
    Create a business with its OWNER membership and default settings.
    Does not commit and does not change the owner's active business.
    """
    business = Business(name=name, owner_user_id=owner.id)
    db.add(business)
    db.flush()
    db.add(TeamMember(user_id=owner.id, business_id=business.id, role="OWNER"))
    create_default_settings(db, business.id)
    return business


@router.post("/businesses", response_model=BusinessProfileResponse, status_code=201)
async def create_business(
    data: BusinessCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a business owned by the caller and make it their active business"""
    try:
        business = create_business_for_owner(db, data.name, user)
        user.business_id = business.id
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.error(f"❌ Failed to create business for user {user.id}: {e}")
        raise HTTPException(status_code=409, detail="Could not create the business") from e

    db.refresh(business)
    logger.info(f"✅ Business {business.id} created by user {user.id}")
    return BusinessProfileResponse(id=business.id, name=business.name, logoUrl=business.logo_url)


@router.get("/business-profile", response_model=BusinessProfileResponse)
async def get_business_profile(ctx: BusinessContext = Depends(get_business_context)):
    b = ctx.business
    return BusinessProfileResponse(id=b.id, name=b.name, logoUrl=b.logo_url)


@router.patch("/business-profile", response_model=BusinessProfileResponse)
async def update_business_profile(
    data: BusinessProfileUpdate,
    ctx: BusinessContext = Depends(require_roles("OWNER", "ADMIN")),
    db: Session = Depends(get_db),
):
    fields = data.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    business = ctx.business
    if data.name:
        business.name = data.name.strip()
    if "logoUrl" in fields:
        business.logo_url = data.logoUrl
    db.commit()
    db.refresh(business)
    return BusinessProfileResponse(id=business.id, name=business.name, logoUrl=business.logo_url)


__all__ = [
    "router",
    "create_business_for_owner",
    "create_business",
    "get_business_profile",
    "update_business_profile",
]
