from fastapi import APIRouter, Depends

from api.deps import get_context
from schemas.invitations import InvitationCreate, InvitationListResponse, InvitationResponse
from taskboard import admin_workflow
from taskboard.context import WorkflowContext

router = APIRouter(prefix="/api/invitations", tags=["Invitations"])


@router.get("", response_model=InvitationListResponse)
def list_pending(ctx: WorkflowContext = Depends(get_context)):
    """Pending invitations, newest first (admin)."""
    invitations = admin_workflow.list_pending_invitations(ctx)
    return InvitationListResponse(
        invitations=[InvitationResponse(**i.to_dict()) for i in invitations],
        total=len(invitations),
    )


@router.post("", response_model=InvitationResponse, status_code=201)
def invite(body: InvitationCreate, ctx: WorkflowContext = Depends(get_context)):
    """
    Invite an email address (admin).
    Re-inviting a pending address refreshes the existing invitation.
    """
    invitation = admin_workflow.invite_user(ctx, body.email, body.role)
    return InvitationResponse(**invitation.to_dict())


@router.delete("/{invitation_id}")
def revoke(invitation_id: str, ctx: WorkflowContext = Depends(get_context)):
    admin_workflow.revoke_invitation(ctx, invitation_id)
    return {"message": "Invitation revoked"}
