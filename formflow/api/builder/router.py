from fastapi import APIRouter
from formflow.api.builder import forms, folders, invitations

router = APIRouter()
router.include_router(forms.router, prefix="/forms", tags=["BuilderForms"])
router.include_router(folders.router, prefix="/folders", tags=["BuilderFolders"])
router.include_router(invitations.router, prefix="/invitations", tags=["BuilderInvitations"])
