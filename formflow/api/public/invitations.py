from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from formflow.core.deps import get_current_user_id
from formflow.db.session import get_db
from formflow.schemas.public import InvitationPublicRead
from formflow.services.invitations import (
    get_invitation_by_token_or_404,
    invitation_status,
    is_redeemable,
    redeem_invitation,
    serialize_invitation,
    status_label,
)

router = APIRouter()


@router.get("/{token}", response_model=InvitationPublicRead)
def get_invitation(token: str, db: Session = Depends(get_db)):
    invitation = get_invitation_by_token_or_404(db, token)
    status = invitation_status(invitation)
    return InvitationPublicRead(
        status=status,
        status_label=status_label(status),
        redeemable=is_redeemable(invitation),
        email=invitation.email,
        description=invitation.description,
        expires_at=invitation.expires_at.isoformat() if invitation.expires_at else None,
    )


@router.post("/{token}/redeem")
def redeem(token: str, db: Session = Depends(get_db), user_id=Depends(get_current_user_id)):
    invitation = get_invitation_by_token_or_404(db, token)
    invitation = redeem_invitation(db, invitation, user_id)
    return serialize_invitation(invitation)
