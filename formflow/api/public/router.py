from fastapi import APIRouter
from formflow.api.public import forms, invitations

router = APIRouter()
router.include_router(forms.router, prefix="/forms", tags=["Public"])
router.include_router(invitations.router, prefix="/invitations", tags=["PublicInvitations"])
