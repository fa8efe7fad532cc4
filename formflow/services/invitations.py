from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import HTTPException
from sqlalchemy.orm import Session

from formflow.core.config import settings
from formflow.models.common import utcnow
from formflow.models.invitation import Invitation
from formflow.services.ids import as_uuid_or_none
from formflow.services.urls import get_app_url

STATUS_ACTIVE = "ACTIVE"
STATUS_INACTIVE = "INACTIVE"
STATUS_EXPIRED = "EXPIRED"
STATUS_EXHAUSTED = "EXHAUSTED"
STATUS_USED = "USED"

_STATUS_LABELS = {
    STATUS_ACTIVE: "Ativo",
    STATUS_INACTIVE: "Desativado",
    STATUS_EXPIRED: "Expirado",
    STATUS_EXHAUSTED: "Esgotado",
    STATUS_USED: "Usado",
}

INVITATION_NOT_FOUND = "Convite não encontrado"


def _as_aware(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def status_label(status: str) -> str:
    return _STATUS_LABELS[status]


def invite_url(token: str) -> str:
    return get_app_url(f"/auth?invite={token}")


def invitation_status(invitation: Invitation, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    if not invitation.is_active:
        return STATUS_INACTIVE
    expires_at = _as_aware(invitation.expires_at)
    if expires_at is not None and expires_at < now:
        return STATUS_EXPIRED
    if int(invitation.current_uses or 0) >= int(invitation.max_uses or 0):
        return STATUS_EXHAUSTED
    if invitation.used_at is not None:
        return STATUS_USED
    return STATUS_ACTIVE


def serialize_invitation(invitation: Invitation) -> dict:
    status = invitation_status(invitation)
    unlimited = int(invitation.max_uses or 0) >= settings.INVITATION_UNLIMITED_USES
    return {
        "id": str(invitation.id),
        "email": invitation.email,
        "description": invitation.description,
        "token": invitation.token,
        "invite_url": invite_url(invitation.token),
        "expires_at": _to_iso(invitation.expires_at),
        "used_at": _to_iso(invitation.used_at),
        "used_by": str(invitation.used_by) if invitation.used_by else None,
        "max_uses": int(invitation.max_uses or 0),
        "unlimited": unlimited,
        "current_uses": int(invitation.current_uses or 0),
        "is_active": bool(invitation.is_active),
        "status": status,
        "status_label": _STATUS_LABELS[status],
        "redeemable": is_redeemable(invitation),
        "created_at": _to_iso(invitation.created_at),
    }


def list_invitations(db: Session, user_id: uuid.UUID) -> list[Invitation]:
    return (
        db.query(Invitation)
        .filter(Invitation.created_by == user_id)
        .order_by(Invitation.created_at.desc())
        .all()
    )


def create_invitation(
    db: Session,
    user_id: uuid.UUID,
    *,
    email: str | None = None,
    description: str | None = None,
    expires_in_days: int | None = None,
    max_uses: int = 1,
) -> Invitation:
    days = int(expires_in_days or settings.INVITATION_DEFAULT_TTL_DAYS)
    invitation = Invitation(
        created_by=user_id,
        email=str(email or "").strip() or None,
        description=str(description or "").strip() or None,
        token=secrets.token_urlsafe(24),
        expires_at=utcnow() + timedelta(days=max(days, 1)),
        max_uses=max(int(max_uses or 1), 1),
        current_uses=0,
        is_active=True,
    )
    db.add(invitation)
    db.commit()
    db.refresh(invitation)
    return invitation


def get_owned_invitation_or_404(db: Session, invitation_id: Any, user_id: uuid.UUID) -> Invitation:
    invitation_uuid = as_uuid_or_none(invitation_id)
    invitation = db.get(Invitation, invitation_uuid) if invitation_uuid is not None else None
    if invitation is None or invitation.created_by != user_id:
        raise HTTPException(status_code=404, detail=INVITATION_NOT_FOUND)
    return invitation


def deactivate_invitation(db: Session, invitation: Invitation) -> Invitation:
    invitation.is_active = False
    invitation.updated_at = utcnow()
    db.add(invitation)
    db.commit()
    db.refresh(invitation)
    return invitation


def get_invitation_by_token_or_404(db: Session, token: str) -> Invitation:
    normalized = str(token or "").strip()
    invitation = db.query(Invitation).filter(Invitation.token == normalized).first() if normalized else None
    if invitation is None:
        raise HTTPException(status_code=404, detail=INVITATION_NOT_FOUND)
    return invitation


def is_redeemable(invitation: Invitation) -> bool:
    # A partially used multi-use invitation still has uses left.
    return invitation_status(invitation) in (STATUS_ACTIVE, STATUS_USED)


def redeem_invitation(db: Session, invitation: Invitation, user_id: uuid.UUID) -> Invitation:
    if not is_redeemable(invitation):
        status = invitation_status(invitation)
        raise HTTPException(status_code=409, detail=f"Convite indisponível: {_STATUS_LABELS[status]}")
    invitation.current_uses = int(invitation.current_uses or 0) + 1
    invitation.used_at = utcnow()
    invitation.used_by = user_id
    invitation.updated_at = utcnow()
    db.add(invitation)
    db.commit()
    db.refresh(invitation)
    return invitation
