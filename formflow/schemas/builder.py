from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from uuid import UUID

from formflow.models.form_field import FIELD_TYPES


class FieldUpsert(BaseModel):
    id: Optional[UUID] = None
    type: str = "text"
    label: str = Field(min_length=1, max_length=500)
    placeholder: Optional[str] = None
    description: Optional[str] = None
    is_required: bool = False
    options: Optional[List[str]] = None
    validation_rules: Optional[Dict[str, Any]] = None

    @field_validator("type")
    @classmethod
    def _known_type(cls, value: str) -> str:
        normalized = str(value or "").strip().lower()
        if normalized not in FIELD_TYPES:
            raise ValueError(f"tipo de campo desconhecido: {value}")
        return normalized


class FormUpsert(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    slug: Optional[str] = None
    folder_id: Optional[UUID] = None
    is_published: Optional[bool] = None
    allow_multiple_submissions: Optional[bool] = None
    require_login: Optional[bool] = None
    show_progress_bar: Optional[bool] = None
    success_message: Optional[str] = None
    submit_button_text: Optional[str] = None
    theme_color: Optional[str] = None
    background_image_url: Optional[str] = None
    show_welcome_screen: Optional[bool] = None
    welcome_title: Optional[str] = None
    welcome_message: Optional[str] = None
    welcome_button_text: Optional[str] = None
    webhook_url: Optional[str] = None


class FormCreate(FormUpsert):
    title: str = Field(min_length=1, max_length=200)
    fields: Optional[List[FieldUpsert]] = None


class FieldsReplace(BaseModel):
    fields: List[FieldUpsert] = Field(default_factory=list)


class FormMove(BaseModel):
    folder_id: Optional[UUID] = None


class SheetsProvision(BaseModel):
    recreate: bool = False


class FolderCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    parent_id: Optional[UUID] = None


class FolderRename(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class InvitationCreate(BaseModel):
    email: Optional[str] = None
    description: Optional[str] = None
    expires_in_days: int = Field(default=7, ge=1, le=365)
    max_uses: int = Field(default=1, ge=1, le=999)
