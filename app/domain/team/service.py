"""
Team service - memberships and e-mail invitations.

Invitations carry a random URL-safe token valid for seven days. Accepting one
creates the membership and makes the invited business the user's active one.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import BusinessContext, get_membership
from ...models import Business, Invitation, TeamMember, User
from ...security_utils import generate_secure_token

logger = logging.getLogger(__name__)

INVITATION_TTL_DAYS = 7


class TeamService:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def list_members(self, business: Business) -> list[tuple[TeamMember, User]]:
        return (
            self.db.query(TeamMember, User)
            .join(User, TeamMember.user_id == User.id)
            .filter(TeamMember.business_id == business.id)
            .order_by(User.name.asc())
            .all()
        )

    def remove_member(self, member_user_id: int, ctx: BusinessContext) -> None:
        if member_user_id == ctx.user.id:
            raise HTTPException(status_code=400, detail="You cannot remove yourself")

        member = get_membership(self.db, member_user_id, ctx.business.id)
        if not member:
            raise HTTPException(status_code=404, detail="Member not found in this business")
        if member.role == "OWNER":
            raise HTTPException(status_code=403, detail="The owner cannot be removed")
        if ctx.role == "ADMIN" and member.role == "ADMIN":
            raise HTTPException(status_code=403, detail="An admin cannot remove another admin")

        self.db.delete(member)

        # The removed user loses this business as active business
        user = self.db.query(User).filter(User.id == member_user_id).first()
        if user and user.business_id == ctx.business.id:
            user.business_id = None

        self.db.commit()
        logger.info(
            f"🗑️ User {ctx.user.id} removed user {member_user_id} from business {ctx.business.id}"
        )

    # ------------------------------------------------------------------
    # Invitations
    # ------------------------------------------------------------------

    def create_invitation(self, email: str, role: str, ctx: BusinessContext) -> Invitation:
        invited_user = self.db.query(User).filter(User.email == email).first()
        if invited_user and get_membership(self.db, invited_user.id, ctx.business.id):
            raise HTTPException(status_code=409, detail="This user is already a team member")

        pending = (
            self.db.query(Invitation)
            .filter(
                Invitation.email == email,
                Invitation.business_id == ctx.business.id,
                Invitation.status == "PENDING",
            )
            .first()
        )
        if pending:
            raise HTTPException(
                status_code=409, detail="There is already a pending invitation for this email"
            )

        invitation = Invitation(
            email=email,
            business_id=ctx.business.id,
            role=role,
            invited_by_user_id=ctx.user.id,
            status="PENDING",
            token=generate_secure_token(32),
            expires_at=datetime.utcnow() + timedelta(days=INVITATION_TTL_DAYS),
        )
        self.db.add(invitation)
        self.db.commit()
        self.db.refresh(invitation)
        logger.info(f"✉️ Invitation {invitation.id} created for {email} in business {ctx.business.id}")
        return invitation

    def list_pending(self, business: Business) -> list[Invitation]:
        return (
            self.db.query(Invitation)
            .filter(
                Invitation.business_id == business.id,
                Invitation.status == "PENDING",
                Invitation.expires_at > datetime.utcnow(),
            )
            .order_by(Invitation.created_at.desc(), Invitation.id.desc())
            .all()
        )

    def cancel_invitation(self, invitation_id: int, business: Business) -> Invitation:
        invitation = (
            self.db.query(Invitation)
            .filter(
                Invitation.id == invitation_id,
                Invitation.business_id == business.id,
                Invitation.status == "PENDING",
            )
            .first()
        )
        if not invitation:
            raise HTTPException(status_code=404, detail="Pending invitation not found")

        invitation.status = "CANCELLED"
        self.db.commit()
        self.db.refresh(invitation)
        return invitation

    def _find_valid(self, token: str) -> Optional[Invitation]:
        return (
            self.db.query(Invitation)
            .filter(
                Invitation.token == token,
                Invitation.status == "PENDING",
                Invitation.expires_at > datetime.utcnow(),
            )
            .first()
        )

    def verify_invitation(self, token: str) -> tuple[Invitation, Business]:
        invitation = self._find_valid(token)
        if not invitation:
            raise HTTPException(status_code=404, detail="Invitation is invalid or has expired")
        return invitation, invitation.business

    def accept_invitation(self, token: str, user: User) -> Invitation:
        invitation = self._find_valid(token)
        if not invitation:
            raise HTTPException(status_code=404, detail="Invitation is invalid or has expired")
        if invitation.email.lower() != (user.email or "").lower():
            raise HTTPException(status_code=403, detail="This invitation is for another email address")

        if get_membership(self.db, user.id, invitation.business_id):
            invitation.status = "ACCEPTED"
            self.db.commit()
            raise HTTPException(status_code=409, detail="You are already a member of this team")

        self.db.add(
            TeamMember(user_id=user.id, business_id=invitation.business_id, role=invitation.role)
        )
        invitation.status = "ACCEPTED"
        user.business_id = invitation.business_id
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="You are already a member of this team") from e

        self.db.refresh(invitation)
        logger.info(f"✅ User {user.id} joined business {invitation.business_id} as {invitation.role}")
        return invitation
