from __future__ import annotations

import uuid
from typing import Any

from fastapi import HTTPException
from sqlalchemy.orm import Session

from formflow.models.common import utcnow
from formflow.models.folder import Folder
from formflow.models.form import Form
from formflow.models.form_field import FormField
from formflow.models.form_field_response import FormFieldResponse
from formflow.models.form_submission import FormSubmission
from formflow.services.ids import as_uuid_or_none
from formflow.services.slugs import slugify, unique_slug
from formflow.services.urls import get_form_url

DEFAULT_SUCCESS_MESSAGE = "Obrigado! Sua resposta foi enviada."
DEFAULT_SUBMIT_BUTTON_TEXT = "Enviar"
DEFAULT_THEME_COLOR = "#6366f1"
DEFAULT_WELCOME_BUTTON_TEXT = "Começar"

FORM_NOT_FOUND = "Formulário não encontrado"

# Columns a builder may set directly; slug, owner and integration state are handled separately.
EDITABLE_FORM_ATTRS = (
    "title",
    "description",
    "is_published",
    "allow_multiple_submissions",
    "require_login",
    "show_progress_bar",
    "success_message",
    "submit_button_text",
    "theme_color",
    "background_image_url",
    "show_welcome_screen",
    "welcome_title",
    "welcome_message",
    "welcome_button_text",
    "webhook_url",
)


def _to_iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def normalize_options(raw: Any) -> list[str] | None:
    if not isinstance(raw, (list, tuple)):
        return None
    return [str(item) for item in raw]


def list_form_fields(db: Session, form_id: uuid.UUID) -> list[FormField]:
    return (
        db.query(FormField)
        .filter(FormField.form_id == form_id)
        .order_by(FormField.order_index.asc(), FormField.created_at.asc())
        .all()
    )


def get_published_form_by_slug(db: Session, slug: str) -> Form | None:
    normalized = str(slug or "").strip()
    if not normalized:
        return None
    return (
        db.query(Form)
        .filter(Form.slug == normalized, Form.is_published.is_(True))
        .first()
    )


def get_owned_form_or_404(db: Session, form_id: Any, user_id: uuid.UUID) -> Form:
    form_uuid = as_uuid_or_none(form_id)
    form = db.get(Form, form_uuid) if form_uuid is not None else None
    if form is None or form.user_id != user_id:
        raise HTTPException(status_code=404, detail=FORM_NOT_FOUND)
    return form


def _owned_folder_id_or_400(db: Session, folder_id: Any, user_id: uuid.UUID) -> uuid.UUID | None:
    if folder_id in (None, ""):
        return None
    folder_uuid = as_uuid_or_none(folder_id)
    folder = db.get(Folder, folder_uuid) if folder_uuid is not None else None
    if folder is None or folder.user_id != user_id:
        raise HTTPException(status_code=400, detail="Pasta não encontrada")
    return folder.id


def serialize_field(field: FormField) -> dict:
    return {
        "id": str(field.id),
        "form_id": str(field.form_id),
        "type": field.type,
        "label": field.label,
        "placeholder": field.placeholder,
        "description": field.description,
        "is_required": bool(field.is_required),
        "options": normalize_options(field.options),
        "validation_rules": field.validation_rules,
        "order_index": int(field.order_index or 0),
    }


def serialize_form(form: Form, fields: list[FormField] | None = None) -> dict:
    payload = {
        "id": str(form.id),
        "user_id": str(form.user_id),
        "folder_id": str(form.folder_id) if form.folder_id else None,
        "title": form.title,
        "description": form.description,
        "slug": form.slug,
        "public_url": get_form_url(form.slug),
        "is_published": bool(form.is_published),
        "allow_multiple_submissions": bool(form.allow_multiple_submissions),
        "require_login": bool(form.require_login),
        "show_progress_bar": bool(form.show_progress_bar),
        "success_message": form.success_message,
        "submit_button_text": form.submit_button_text,
        "theme_color": form.theme_color,
        "background_image_url": form.background_image_url,
        "show_welcome_screen": bool(form.show_welcome_screen),
        "welcome_title": form.welcome_title,
        "welcome_message": form.welcome_message,
        "welcome_button_text": form.welcome_button_text,
        "webhook_url": form.webhook_url,
        "integration_settings": form.integration_settings or {},
        "created_at": _to_iso(form.created_at),
        "updated_at": _to_iso(form.updated_at),
    }
    if fields is not None:
        payload["fields"] = [serialize_field(field) for field in fields]
    return payload


def serialize_public_form(form: Form, fields: list[FormField]) -> dict:
    return {
        "id": str(form.id),
        "title": form.title,
        "description": form.description,
        "slug": form.slug,
        "success_message": form.success_message or DEFAULT_SUCCESS_MESSAGE,
        "submit_button_text": form.submit_button_text or DEFAULT_SUBMIT_BUTTON_TEXT,
        "theme_color": form.theme_color or DEFAULT_THEME_COLOR,
        "background_image_url": form.background_image_url,
        "show_progress_bar": bool(form.show_progress_bar),
        "require_login": bool(form.require_login),
        "allow_multiple_submissions": bool(form.allow_multiple_submissions),
        "show_welcome_screen": bool(form.show_welcome_screen),
        "welcome_title": form.welcome_title,
        "welcome_message": form.welcome_message or "",
        "welcome_button_text": form.welcome_button_text or DEFAULT_WELCOME_BUTTON_TEXT,
        "fields": [
            {
                "id": str(field.id),
                "type": field.type,
                "label": field.label,
                "placeholder": field.placeholder,
                "description": field.description,
                "is_required": bool(field.is_required),
                "options": normalize_options(field.options),
                "order_index": int(field.order_index or 0),
            }
            for field in fields
        ],
    }


def create_form(db: Session, user_id: uuid.UUID, data: dict) -> Form:
    title = str(data.get("title") or "").strip()
    if not title:
        raise HTTPException(status_code=400, detail='Campo "title" é obrigatório')
    form = Form(
        user_id=user_id,
        folder_id=_owned_folder_id_or_400(db, data.get("folder_id"), user_id),
        title=title,
        slug=unique_slug(db, data.get("slug") or title),
        success_message=DEFAULT_SUCCESS_MESSAGE,
        submit_button_text=DEFAULT_SUBMIT_BUTTON_TEXT,
        theme_color=DEFAULT_THEME_COLOR,
        welcome_button_text=DEFAULT_WELCOME_BUTTON_TEXT,
        integration_settings={},
    )
    for attr in EDITABLE_FORM_ATTRS:
        if attr != "title" and data.get(attr) is not None:
            setattr(form, attr, data[attr])
    db.add(form)
    db.flush()
    if data.get("fields") is not None:
        _write_fields(db, form, data["fields"])
    db.commit()
    db.refresh(form)
    return form


def update_form(db: Session, form: Form, data: dict) -> Form:
    for attr in EDITABLE_FORM_ATTRS:
        if attr in data:
            value = data[attr]
            if attr == "title":
                value = str(value or "").strip()
                if not value:
                    raise HTTPException(status_code=400, detail='Campo "title" é obrigatório')
            setattr(form, attr, value)
    if data.get("slug"):
        requested = slugify(data["slug"])
        if requested != form.slug:
            form.slug = unique_slug(db, requested, exclude_form_id=form.id)
    if "folder_id" in data:
        form.folder_id = _owned_folder_id_or_400(db, data["folder_id"], form.user_id)
    form.updated_at = utcnow()
    db.add(form)
    db.commit()
    db.refresh(form)
    return form


def _delete_responses_for_fields(db: Session, field_ids: list[uuid.UUID]) -> None:
    if field_ids:
        db.query(FormFieldResponse).filter(FormFieldResponse.field_id.in_(field_ids)).delete(
            synchronize_session=False
        )


def _write_fields(db: Session, form: Form, items: list[dict]) -> list[FormField]:
    existing = {row.id: row for row in db.query(FormField).filter(FormField.form_id == form.id).all()}
    kept: set[uuid.UUID] = set()
    written: list[FormField] = []
    now = utcnow()

    # order_index follows list position so it stays unique per form.
    for index, item in enumerate(items):
        field_uuid = as_uuid_or_none(item.get("id"))
        row = existing.get(field_uuid) if field_uuid is not None else None
        if row is None:
            row = FormField(form_id=form.id)
        row.type = str(item.get("type") or "text").strip().lower()
        row.label = str(item.get("label") or "").strip()
        row.placeholder = item.get("placeholder")
        row.description = item.get("description")
        row.is_required = bool(item.get("is_required", False))
        row.options = normalize_options(item.get("options"))
        row.validation_rules = item.get("validation_rules")
        row.order_index = index
        row.updated_at = now
        db.add(row)
        if row.id is not None:
            kept.add(row.id)
        written.append(row)

    removed = [field_id for field_id in existing if field_id not in kept]
    if removed:
        _delete_responses_for_fields(db, removed)
        db.query(FormField).filter(FormField.id.in_(removed)).delete(synchronize_session=False)
    db.flush()
    return written


def replace_form_fields(db: Session, form: Form, items: list[dict]) -> list[FormField]:
    _write_fields(db, form, items)
    form.updated_at = utcnow()
    db.add(form)
    db.commit()
    return list_form_fields(db, form.id)


def delete_form(db: Session, form: Form) -> None:
    submission_ids = [
        submission_id
        for (submission_id,) in db.query(FormSubmission.id).filter(FormSubmission.form_id == form.id).all()
    ]
    if submission_ids:
        db.query(FormFieldResponse).filter(FormFieldResponse.submission_id.in_(submission_ids)).delete(
            synchronize_session=False
        )
        db.query(FormSubmission).filter(FormSubmission.id.in_(submission_ids)).delete(synchronize_session=False)
    db.query(FormField).filter(FormField.form_id == form.id).delete(synchronize_session=False)
    db.delete(form)
    db.commit()


def move_form(db: Session, form: Form, folder_id: Any) -> Form:
    form.folder_id = _owned_folder_id_or_400(db, folder_id, form.user_id)
    form.updated_at = utcnow()
    db.add(form)
    db.commit()
    db.refresh(form)
    return form


def list_forms(
    db: Session,
    user_id: uuid.UUID,
    *,
    folder_id: Any = None,
    root_only: bool = False,
) -> list[Form]:
    query = db.query(Form).filter(Form.user_id == user_id)
    if root_only:
        query = query.filter(Form.folder_id.is_(None))
    elif folder_id:
        folder_uuid = as_uuid_or_none(folder_id)
        if folder_uuid is None:
            return []
        query = query.filter(Form.folder_id == folder_uuid)
    return query.order_by(Form.updated_at.desc(), Form.created_at.desc()).all()
