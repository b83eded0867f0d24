from typing import List, Optional

from pydantic import BaseModel

from taskboard.models import InvitationStatus, Role


class InvitationCreate(BaseModel):
    email: str
    role: Optional[Role] = None


class InvitationResponse(BaseModel):
    id: str
    email: str
    invited_by: str
    role: Role
    status: InvitationStatus
    created_at: str
    accepted_user_id: Optional[str] = None


class InvitationListResponse(BaseModel):
    invitations: List[InvitationResponse]
    total: int
