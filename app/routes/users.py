import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["Users"])


class UserProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    image: Optional[str] = Field(None, max_length=500)

    @field_validator("image")
    @classmethod
    def validate_image(cls, v: Optional[str]) -> Optional[str]:
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("image must be an http(s) URL")
        return v or None


class UserProfileResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    businessId: Optional[int] = None
    isSuperAdmin: bool = False
    createdAt: Optional[datetime] = None


def to_profile_response(user: User) -> UserProfileResponse:
    return UserProfileResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        image=user.image,
        businessId=user.business_id,
        isSuperAdmin=bool(user.is_super_admin),
        createdAt=user.created_at,
    )


@router.get("/profile", response_model=UserProfileResponse)
async def get_profile(user: User = Depends(get_current_user)):
    return to_profile_response(user)


@router.patch("/profile", response_model=UserProfileResponse)
async def update_profile(
    data: UserProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    fields = data.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    if "name" in fields:
        user.name = data.name.strip() if data.name else None
    if "image" in fields:
        user.image = data.image
    db.commit()
    db.refresh(user)
    logger.info(f"✅ Profile updated for user {user.id}")
    return to_profile_response(user)


__all__ = ["router", "to_profile_response", "get_profile", "update_profile"]
