"""
Super admin console - cross-tenant management of businesses and users.

Every route here requires `users.is_super_admin`.
"""

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import get_membership, require_super_admin
from ..database import get_db
from ..models import Business, TeamMember, User
from ..shared.validators import validate_email
from .business import create_business_for_owner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

# Placeholder identity for users created before their first sign-in;
# get_current_user re-links them by e-mail.
PENDING_AUTH_PREFIX = "pending:"


# ============================================================================
# Schemas
# ============================================================================


class AdminBusinessCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    ownerEmail: str

    @field_validator("ownerEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class AdminBusinessUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    logoUrl: Optional[str] = None
    ownerUserId: Optional[int] = None
    isLifetime: Optional[bool] = None

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class AdminUserCreate(BaseModel):
    email: str
    name: Optional[str] = None
    isSuperAdmin: bool = False

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        if not v:
            raise ValueError("Email is required")
        return validate_email(v)


class AdminUserUpdate(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    isSuperAdmin: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class AdminMember(BaseModel):
    userId: int
    businessId: int
    role: str
    name: Optional[str] = None
    email: Optional[str] = None
    businessName: Optional[str] = None


class AdminBusinessResponse(BaseModel):
    id: int
    name: str
    logoUrl: Optional[str] = None
    ownerUserId: Optional[int] = None
    ownerEmail: Optional[str] = None
    ownerName: Optional[str] = None
    subscriptionStatus: Optional[str] = None
    stripePriceId: Optional[str] = None
    isLifetime: bool = False
    createdAt: Optional[datetime] = None
    members: Optional[List[AdminMember]] = None


class AdminUserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    isSuperAdmin: bool = False
    businessId: Optional[int] = None
    memberships: Optional[List[AdminMember]] = None


class AdminUserListResponse(BaseModel):
    users: List[AdminUserResponse]
    totalUsers: int
    newOffset: Optional[int] = None


# ============================================================================
# Helpers
# ============================================================================


def _member(m: TeamMember) -> AdminMember:
    return AdminMember(
        userId=m.user_id,
        businessId=m.business_id,
        role=m.role,
        name=m.user.name if m.user else None,
        email=m.user.email if m.user else None,
        businessName=m.business.name if m.business else None,
    )


def to_admin_business(b: Business, owner: Optional[User], include_members: bool = False) -> AdminBusinessResponse:
    return AdminBusinessResponse(
        id=b.id,
        name=b.name,
        logoUrl=b.logo_url,
        ownerUserId=b.owner_user_id,
        ownerEmail=owner.email if owner else None,
        ownerName=owner.name if owner else None,
        subscriptionStatus=b.subscription_status,
        stripePriceId=b.stripe_price_id,
        isLifetime=bool(b.is_lifetime),
        createdAt=b.created_at,
        members=[_member(m) for m in b.members] if include_members else None,
    )


def to_admin_user(u: User, include_memberships: bool = False) -> AdminUserResponse:
    return AdminUserResponse(
        id=u.id,
        email=u.email,
        name=u.name,
        image=u.image,
        isSuperAdmin=bool(u.is_super_admin),
        businessId=u.business_id,
        memberships=[_member(m) for m in u.memberships] if include_memberships else None,
    )


def _get_business(db: Session, business_id: int) -> Business:
    business = db.query(Business).filter(Business.id == business_id).first()
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")
    return business


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _transfer_ownership(db: Session, business: Business, new_owner_id: int) -> None:
    """Move the OWNER membership; the previous owner stays on the team as ADMIN"""
    if business.owner_user_id:
        previous = get_membership(db, business.owner_user_id, business.id)
        if previous:
            previous.role = "ADMIN"

    membership = get_membership(db, new_owner_id, business.id)
    if membership:
        membership.role = "OWNER"
    else:
        db.add(TeamMember(user_id=new_owner_id, business_id=business.id, role="OWNER"))
    business.owner_user_id = new_owner_id


def _owner_of(db: Session, business: Business) -> Optional[User]:
    if not business.owner_user_id:
        return None
    return db.query(User).filter(User.id == business.owner_user_id).first()


# ============================================================================
# Businesses
# ============================================================================


@router.get("/businesses", response_model=List[AdminBusinessResponse])
async def list_businesses(
    q: Optional[str] = Query(None),
    _: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    query = db.query(Business, User).outerjoin(User, Business.owner_user_id == User.id)
    if q:
        pattern = f"%{q.strip()}%"
        query = query.filter(
            or_(Business.name.ilike(pattern), User.name.ilike(pattern), User.email.ilike(pattern))
        )
    rows = query.order_by(Business.created_at.desc(), Business.id.desc()).all()
    return [to_admin_business(b, owner) for b, owner in rows]


@router.post("/businesses", response_model=AdminBusinessResponse, status_code=201)
async def create_business(
    data: AdminBusinessCreate,
    admin: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    owner = db.query(User).filter(User.email == data.ownerEmail).first()
    if not owner:
        raise HTTPException(
            status_code=400, detail=f"No user with email {data.ownerEmail}. Create the user first."
        )

    business = create_business_for_owner(db, data.name.strip(), owner)
    if not owner.business_id:
        owner.business_id = business.id
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail="Could not create the business") from e

    db.refresh(business)
    logger.info(f"🛠️ Super admin {admin.id} created business {business.id} for {owner.email}")
    return to_admin_business(business, owner)


@router.get("/businesses/{business_id}", response_model=AdminBusinessResponse)
async def get_business(
    business_id: int,
    _: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    business = _get_business(db, business_id)
    return to_admin_business(business, _owner_of(db, business), include_members=True)


@router.patch("/businesses/{business_id}", response_model=AdminBusinessResponse)
async def update_business(
    business_id: int,
    data: AdminBusinessUpdate,
    _: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    business = _get_business(db, business_id)
    fields = data.model_dump(exclude_unset=True)

    if data.ownerUserId is not None and data.ownerUserId != business.owner_user_id:
        if not db.query(User.id).filter(User.id == data.ownerUserId).first():
            raise HTTPException(status_code=400, detail="New owner user not found")
        _transfer_ownership(db, business, data.ownerUserId)
    if data.name:
        business.name = data.name.strip()
    if "logoUrl" in fields:
        business.logo_url = data.logoUrl or None
    if data.isLifetime is not None:
        business.is_lifetime = data.isLifetime

    db.commit()
    db.refresh(business)
    return to_admin_business(business, _owner_of(db, business))


@router.delete("/businesses/{business_id}")
async def delete_business(
    business_id: int,
    admin: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    """Delete a business; its tenant data goes with it through ON DELETE CASCADE"""
    business = _get_business(db, business_id)
    db.delete(business)
    db.commit()
    logger.warning(f"🗑️ Super admin {admin.id} deleted business {business_id}")
    return {"message": f"Business {business_id} deleted"}


# ============================================================================
# Users
# ============================================================================


@router.get("/users", response_model=AdminUserListResponse)
async def list_users(
    q: Optional[str] = Query(None),
    offset: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
    _: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    query = db.query(User)
    if q:
        pattern = f"%{q.strip()}%"
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

    total = query.count()
    users = query.order_by(User.id.asc()).offset(offset).limit(limit).all()
    new_offset = offset + len(users) if offset + len(users) < total else None
    return AdminUserListResponse(
        users=[to_admin_user(u) for u in users], totalUsers=total, newOffset=new_offset
    )


@router.post("/users", response_model=AdminUserResponse, status_code=201)
async def create_user(
    data: AdminUserCreate,
    _: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    if db.query(User).filter(User.email == data.email).first():
        raise HTTPException(status_code=409, detail=f"Email '{data.email}' is already registered")

    user = User(
        auth_uid=f"{PENDING_AUTH_PREFIX}{uuid.uuid4()}",
        email=data.email,
        name=data.name or None,
        is_super_admin=data.isSuperAdmin,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail="Email is already in use") from e
    db.refresh(user)
    return to_admin_user(user)


@router.get("/users/{user_id}", response_model=AdminUserResponse)
async def get_user(
    user_id: int,
    _: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    return to_admin_user(_get_user(db, user_id), include_memberships=True)


@router.patch("/users/{user_id}", response_model=AdminUserResponse)
async def update_user(
    user_id: int,
    data: AdminUserUpdate,
    _: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    user = _get_user(db, user_id)
    fields = data.model_dump(exclude_unset=True)

    if data.email and data.email != user.email:
        taken = db.query(User.id).filter(User.email == data.email, User.id != user.id).first()
        if taken:
            raise HTTPException(status_code=409, detail="Email is already used by another user")
        user.email = data.email
    if "name" in fields:
        user.name = data.name or None
    if "image" in fields:
        user.image = data.image or None
    if data.isSuperAdmin is not None:
        user.is_super_admin = data.isSuperAdmin

    db.commit()
    db.refresh(user)
    return to_admin_user(user)


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: int,
    admin: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")

    user = _get_user(db, user_id)
    owned = db.query(Business.id).filter(Business.owner_user_id == user.id).first()
    if owned:
        raise HTTPException(
            status_code=409, detail="User owns a business. Transfer or delete it first."
        )

    db.delete(user)
    db.commit()
    logger.warning(f"🗑️ Super admin {admin.id} deleted user {user_id}")
    return {"message": f"User {user_id} deleted"}


__all__ = [
    "router",
    "list_businesses",
    "create_business",
    "get_business",
    "update_business",
    "delete_business",
    "list_users",
    "create_user",
    "get_user",
    "update_user",
    "delete_user",
]
