"""Team schemas - members and invitations"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email

InvitableRole = Literal["ADMIN", "EDITOR"]


class TeamMemberResponse(BaseModel):
    userId: int
    role: str
    joinedAt: Optional[datetime] = None
    name: Optional[str] = None
    email: str
    image: Optional[str] = None


class TeamMemberListResponse(BaseModel):
    members: List[TeamMemberResponse]


class InvitationCreate(BaseModel):
    email: str
    role: InvitableRole

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        v = validate_email(v)
        if not v:
            raise ValueError("Email is required")
        return v.lower()


class InvitationResponse(BaseModel):
    id: int
    email: str
    role: str
    status: str
    expiresAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None


class PendingInvitationListResponse(BaseModel):
    invitations: List[InvitationResponse]


class InvitationVerifyResponse(BaseModel):
    email: str
    role: str
    businessName: str


class InvitationAccept(BaseModel):
    token: str = Field(..., min_length=1)
