from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from formflow.core.deps import get_current_user_id
from formflow.db.session import get_db
from formflow.schemas.builder import InvitationCreate
from formflow.services.invitations import (
    create_invitation,
    deactivate_invitation,
    get_owned_invitation_or_404,
    list_invitations,
    serialize_invitation,
)

router = APIRouter()


@router.get("")
def list_owner_invitations(db: Session = Depends(get_db), user_id=Depends(get_current_user_id)):
    rows = list_invitations(db, user_id)
    return {"rows": [serialize_invitation(row) for row in rows], "total": len(rows)}


@router.post("", status_code=201)
def create_owner_invitation(
    payload: InvitationCreate,
    db: Session = Depends(get_db),
    user_id=Depends(get_current_user_id),
):
    invitation = create_invitation(db, user_id, **payload.model_dump())
    return serialize_invitation(invitation)


@router.post("/{invitation_id}/deactivate")
def deactivate_owner_invitation(
    invitation_id: str,
    db: Session = Depends(get_db),
    user_id=Depends(get_current_user_id),
):
    invitation = get_owned_invitation_or_404(db, invitation_id, user_id)
    return serialize_invitation(deactivate_invitation(db, invitation))
