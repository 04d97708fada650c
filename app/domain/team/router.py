"""Team router - /team-members and /invitations"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response
from sqlalchemy.orm import Session

from ...auth import BusinessContext, get_business_context, get_current_user, require_roles
from ...database import get_db
from ...email_service import send_invitation_email
from ...models import Invitation, User
from ...plan_limits import require_feature
from ...rate_limiter import create_rate_limiter
from .schemas import (
    InvitationAccept,
    InvitationCreate,
    InvitationResponse,
    InvitationVerifyResponse,
    PendingInvitationListResponse,
    TeamMemberListResponse,
    TeamMemberResponse,
)
from .service import TeamService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Team"])

MANAGER_ROLES = ("OWNER", "ADMIN")

verify_rate_limit = create_rate_limiter(limit=20, window_seconds=60, key_prefix="invitation_verify")


def get_team_service(db: Session = Depends(get_db)) -> TeamService:
    return TeamService(db)


def to_invitation_response(i: Invitation) -> InvitationResponse:
    return InvitationResponse(
        id=i.id,
        email=i.email,
        role=i.role,
        status=i.status,
        expiresAt=i.expires_at,
        createdAt=i.created_at,
    )


# ============================================================================
# Team members
# ============================================================================


@router.get("/team-members", response_model=TeamMemberListResponse)
async def list_team_members(
    ctx: BusinessContext = Depends(get_business_context),
    service: TeamService = Depends(get_team_service),
):
    return TeamMemberListResponse(
        members=[
            TeamMemberResponse(
                userId=user.id,
                role=member.role,
                joinedAt=member.joined_at,
                name=user.name,
                email=user.email,
                image=user.image,
            )
            for member, user in service.list_members(ctx.business)
        ]
    )


@router.delete("/team-members/{user_id}", status_code=204)
async def remove_team_member(
    user_id: int,
    ctx: BusinessContext = Depends(require_roles(*MANAGER_ROLES)),
    service: TeamService = Depends(get_team_service),
):
    service.remove_member(user_id, ctx)
    return Response(status_code=204)


# ============================================================================
# Invitations
# ============================================================================


@router.post("/invitations", status_code=201)
async def create_invitation(
    data: InvitationCreate,
    background_tasks: BackgroundTasks,
    ctx: BusinessContext = Depends(
        require_feature("multiple_users", base_dependency=require_roles(*MANAGER_ROLES))
    ),
    service: TeamService = Depends(get_team_service),
):
    invitation = service.create_invitation(data.email, data.role, ctx)
    background_tasks.add_task(
        send_invitation_email,
        to=invitation.email,
        token=invitation.token,
        business_name=ctx.business.name,
        role=invitation.role,
        inviter_name=ctx.user.name,
    )
    return {"success": True, "message": "Invitation sent", "invitation": to_invitation_response(invitation)}


@router.get("/invitations/pending", response_model=PendingInvitationListResponse)
async def list_pending_invitations(
    ctx: BusinessContext = Depends(require_roles(*MANAGER_ROLES)),
    service: TeamService = Depends(get_team_service),
):
    return PendingInvitationListResponse(
        invitations=[to_invitation_response(i) for i in service.list_pending(ctx.business)]
    )


@router.get("/invitations/verify", response_model=InvitationVerifyResponse)
async def verify_invitation(
    token: str = Query(..., min_length=1),
    _: None = Depends(verify_rate_limit),
    service: TeamService = Depends(get_team_service),
):
    """Public lookup used by the accept-invitation page before sign-in"""
    invitation, business = service.verify_invitation(token)
    return InvitationVerifyResponse(email=invitation.email, role=invitation.role, businessName=business.name)


@router.post("/invitations/accept")
async def accept_invitation(
    data: InvitationAccept,
    user: User = Depends(get_current_user),
    service: TeamService = Depends(get_team_service),
):
    invitation = service.accept_invitation(data.token, user)
    return {"success": True, "message": "Invitation accepted", "businessId": invitation.business_id}


@router.patch("/invitations/{invitation_id}", response_model=InvitationResponse)
async def cancel_invitation(
    invitation_id: int,
    ctx: BusinessContext = Depends(require_roles(*MANAGER_ROLES)),
    service: TeamService = Depends(get_team_service),
):
    return to_invitation_response(service.cancel_invitation(invitation_id, ctx.business))


__all__ = [
    "router",
    "verify_rate_limit",
    "list_team_members",
    "remove_team_member",
    "create_invitation",
    "list_pending_invitations",
    "verify_invitation",
    "accept_invitation",
    "cancel_invitation",
]
