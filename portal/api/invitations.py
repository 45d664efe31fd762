"""Invitation management (admin) and public redemption."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal.api.deps import require_action
from portal.core.config import settings
from portal.core.database import get_db
from portal.core.errors import NotFoundError
from portal.schemas.auth import CurrentUser
from portal.schemas.invitations import (
    AcceptInvitationRequest,
    AcceptInvitationResponse,
    InvitationCreate,
    InvitationItem,
    InvitationList,
    InvitationPreview,
)
from portal.schemas.notifications import SuccessResponse
from portal.services import invitations

router = APIRouter()


@router.get("", response_model=InvitationList)
def list_invitations(
    _admin: Annotated[CurrentUser, Depends(require_action("invitation.list"))],
    db: Annotated[Session, Depends(get_db)],
) -> InvitationList:
    return InvitationList(
        invitations=[InvitationItem.model_validate(i) for i in invitations.list_invitations(db)]
    )


@router.post("", response_model=InvitationItem, status_code=201)
def create_invitation(
    body: InvitationCreate,
    admin: Annotated[CurrentUser, Depends(require_action("invitation.create"))],
    db: Annotated[Session, Depends(get_db)],
) -> InvitationItem:
    invitation = invitations.create_invitation(
        db, admin, body.email, body.role, ttl_days=settings.INVITATION_TTL_DAYS
    )
    return InvitationItem.model_validate(invitation)


@router.post("/accept", response_model=AcceptInvitationResponse)
def accept_invitation(
    body: AcceptInvitationRequest,
    db: Annotated[Session, Depends(get_db)],
) -> AcceptInvitationResponse:
    """Public: redeem a token, creating or activating the invited account."""
    user = invitations.accept_invitation(db, body.token, body.name, body.password)
    return AcceptInvitationResponse(user_id=user.id)


@router.get("/{token}", response_model=InvitationPreview)
def preview_invitation(token: str, db: Annotated[Session, Depends(get_db)]) -> InvitationPreview:
    """Public: what the accept page shows for a token. Unknown tokens are 404."""
    invitation = invitations.get_by_token(db, token)
    if invitation is None:
        raise NotFoundError(invitations.INVALID_INVITATION)
    return InvitationPreview(
        email=invitation.email,
        role=invitation.role,
        valid=invitations.is_redeemable(invitation),
    )


@router.delete("/{invitation_id}", response_model=SuccessResponse)
def cancel_invitation(
    invitation_id: int,
    admin: Annotated[CurrentUser, Depends(require_action("invitation.cancel"))],
    db: Annotated[Session, Depends(get_db)],
) -> SuccessResponse:
    invitations.cancel_invitation(db, admin, invitation_id)
    return SuccessResponse()
