import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .database import get_db
from .models import Business, TeamMember, User
from .security_utils import verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the session token issued by the identity layer"""

    if not credentials:
        logger.error("❌ No credentials provided")
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    token = credentials.credentials

    # Basic token format validation before processing
    token_parts = token.split(".")
    if len(token_parts) != 3:
        logger.warning(f"⚠️ Malformed token received: {len(token_parts)} parts, token length: {len(token)}")
        raise HTTPException(
            status_code=401, detail="Invalid token format. Expected a valid JWT token."
        )

    decoded_token = verify_jwt_token(token)
    if not decoded_token:
        raise HTTPException(
            status_code=401,
            detail="Token has expired or is invalid. Please sign in again.",
            headers={"X-Token-Expired": "true"},
        )

    auth_uid = decoded_token.get("sub")
    email = (decoded_token.get("email") or "").lower() or None
    name = decoded_token.get("name")

    if not auth_uid or not email:
        logger.error(f"❌ Token missing identity claims. Available claims: {list(decoded_token.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    # Find or create user in our database
    user = db.query(User).filter(User.auth_uid == auth_uid).first()
    if user:
        return user

    # Same e-mail signed in through another provider
    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user:
        logger.info(f"🔄 Linking user {email} to new auth uid")
        existing_user.auth_uid = auth_uid
        if name and not existing_user.name:
            existing_user.name = name
        try:
            db.commit()
            db.refresh(existing_user)
            return existing_user
        except Exception as e:
            db.rollback()
            logger.error(f"❌ Failed to link user: {str(e)}")
            raise HTTPException(
                status_code=500, detail="Failed to update user authentication method"
            ) from e

    logger.info(f"🆕 Creating new user: {email}")
    user = User(auth_uid=auth_uid, email=email, name=name, image=decoded_token.get("picture"))
    db.add(user)
    try:
        db.commit()
        db.refresh(user)
        logger.info(f"✅ New user created: {user.email}")
    except IntegrityError as e:
        db.rollback()
        logger.error(f"❌ Email {email} was taken by another account (race condition)")
        raise HTTPException(
            status_code=409,
            detail="This email is already registered. Please sign in with your existing account.",
        ) from e

    return user


class BusinessContext:
    """The caller, their active business and their role inside it"""

    def __init__(self, user: User, business: Business, role: str):
        self.user = user
        self.business = business
        self.role = role

    @property
    def business_id(self) -> int:
        return self.business.id

    @property
    def user_id(self) -> int:
        return self.user.id


def get_membership(db: Session, user_id: int, business_id: int) -> Optional[TeamMember]:
    return (
        db.query(TeamMember)
        .filter(TeamMember.user_id == user_id, TeamMember.business_id == business_id)
        .first()
    )


async def get_business_context(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BusinessContext:
    """
    Resolve the active business of the current user.
    Super admins can act on any business without a membership.
    """
    if not user.business_id:
        logger.warning(f"⚠️ User {user.email} has no active business")
        raise HTTPException(
            status_code=403,
            detail="Business required. Please create or join a business first.",
            headers={"X-Business-Required": "true"},
        )

    business = db.query(Business).filter(Business.id == user.business_id).first()
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")

    membership = get_membership(db, user.id, business.id)
    if membership:
        return BusinessContext(user, business, membership.role)

    if user.is_super_admin:
        return BusinessContext(user, business, "OWNER")

    logger.warning(f"⚠️ User {user.email} is not a member of business {business.id}")
    raise HTTPException(status_code=403, detail="You are not a member of this business")


def require_roles(*roles: str):
    """
    Build a dependency that only lets the given team roles through

    Example usage:
        @router.delete("/{item_id}")
        async def delete_item(ctx: BusinessContext = Depends(require_roles("OWNER", "ADMIN"))):
            ...
    """

    async def role_checker(ctx: BusinessContext = Depends(get_business_context)) -> BusinessContext:
        if ctx.user.is_super_admin or ctx.role in roles:
            return ctx
        logger.warning(f"⚠️ Role {ctx.role} denied for user {ctx.user.email} (needs {roles})")
        raise HTTPException(status_code=403, detail="You do not have permission to perform this action")

    return role_checker


async def require_super_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_super_admin:
        raise HTTPException(status_code=403, detail="Super admin access required")
    return user
