from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_identity
from app.schemas.account import Identity
from app.schemas.invitation import InvitationOutcome, InvitationResponse
from app.schemas.result import Result
from app.services.invitation_service import InvitationService
from app.core.exception import ResourceNotFoundException

router = APIRouter()


@router.get("/{invitation_id}", response_model=Result[InvitationResponse])
async def get_invitation(invitation_id: str, db: Session = Depends(get_db)):
    """Resolve an invitation link. No login required."""
    service = InvitationService(db)
    invitation = service.get_invitation(invitation_id)
    if invitation is None:
        raise ResourceNotFoundException("Invitation", invitation_id)
    return Result.successful(data=invitation)


@router.post("/{invitation_id}/accept", response_model=Result[InvitationOutcome])
async def accept_invitation(
    invitation_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Accept an invitation as the signed-in account.

    Routine refusals (expired, wrong account) are returned in the outcome
    with success=false rather than as HTTP errors.
    """
    service = InvitationService(db)
    outcome = service.accept_invitation(invitation_id, identity.id, session_email=identity.email)
    return Result.successful(data=outcome)
