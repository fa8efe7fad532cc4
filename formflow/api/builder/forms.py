from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from formflow.core.deps import get_current_user_id
from formflow.db.session import get_db
from formflow.schemas.builder import FieldsReplace, FormCreate, FormMove, FormUpsert, SheetsProvision
from formflow.services.forms import (
    create_form,
    delete_form,
    get_owned_form_or_404,
    list_form_fields,
    list_forms,
    move_form,
    replace_form_fields,
    serialize_field,
    serialize_form,
    update_form,
)
from formflow.services.sheets_integration import SheetsProvisioningError, get_sheets_status, provision_spreadsheet
from formflow.services.submissions import export_filename, export_submissions_csv, list_submissions_with_responses
from formflow.workers.tasks.webhooks import enqueue_form_event

router = APIRouter()

_LOG = logging.getLogger("formflow.builder")


def _field_items(fields) -> list[dict]:
    return [item.model_dump(mode="json") for item in fields]


@router.get("")
def list_owner_forms(
    folder_id: str | None = Query(default=None),
    root: bool = Query(default=False),
    db: Session = Depends(get_db),
    user_id=Depends(get_current_user_id),
):
    rows = list_forms(db, user_id, folder_id=folder_id, root_only=root)
    return {"rows": [serialize_form(row) for row in rows], "total": len(rows)}


@router.post("", status_code=201)
def create_owner_form(payload: FormCreate, db: Session = Depends(get_db), user_id=Depends(get_current_user_id)):
    data = payload.model_dump(exclude_none=True, exclude={"fields"})
    if payload.fields is not None:
        data["fields"] = _field_items(payload.fields)
    form = create_form(db, user_id, data)
    _LOG.info("form created form_id=%s slug=%s", form.id, form.slug)
    enqueue_form_event(form.id, "create")
    return serialize_form(form, list_form_fields(db, form.id))


@router.get("/{form_id}")
def get_owner_form(form_id: str, db: Session = Depends(get_db), user_id=Depends(get_current_user_id)):
    form = get_owned_form_or_404(db, form_id, user_id)
    return serialize_form(form, list_form_fields(db, form.id))


@router.patch("/{form_id}")
def update_owner_form(
    form_id: str,
    payload: FormUpsert,
    db: Session = Depends(get_db),
    user_id=Depends(get_current_user_id),
):
    form = get_owned_form_or_404(db, form_id, user_id)
    form = update_form(db, form, payload.model_dump(exclude_unset=True))
    enqueue_form_event(form.id, "update")
    return serialize_form(form, list_form_fields(db, form.id))


@router.delete("/{form_id}")
def delete_owner_form(form_id: str, db: Session = Depends(get_db), user_id=Depends(get_current_user_id)):
    form = get_owned_form_or_404(db, form_id, user_id)
    deleted_id = str(form.id)
    delete_form(db, form)
    _LOG.info("form deleted form_id=%s", deleted_id)
    return {"status": "removido", "id": deleted_id}


@router.put("/{form_id}/fields")
def replace_owner_form_fields(
    form_id: str,
    payload: FieldsReplace,
    db: Session = Depends(get_db),
    user_id=Depends(get_current_user_id),
):
    form = get_owned_form_or_404(db, form_id, user_id)
    fields = replace_form_fields(db, form, _field_items(payload.fields))
    enqueue_form_event(form.id, "update")
    return {"fields": [serialize_field(field) for field in fields]}


@router.post("/{form_id}/move")
def move_owner_form(
    form_id: str,
    payload: FormMove,
    db: Session = Depends(get_db),
    user_id=Depends(get_current_user_id),
):
    form = get_owned_form_or_404(db, form_id, user_id)
    return serialize_form(move_form(db, form, payload.folder_id))


@router.get("/{form_id}/submissions")
def list_owner_form_submissions(form_id: str, db: Session = Depends(get_db), user_id=Depends(get_current_user_id)):
    form = get_owned_form_or_404(db, form_id, user_id)
    rows = list_submissions_with_responses(db, form)
    return {"rows": rows, "total": len(rows)}


@router.get("/{form_id}/submissions/export")
def export_owner_form_submissions(form_id: str, db: Session = Depends(get_db), user_id=Depends(get_current_user_id)):
    form = get_owned_form_or_404(db, form_id, user_id)
    content = export_submissions_csv(db, form)
    filename = export_filename(form)
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


@router.get("/{form_id}/sheets")
def get_owner_form_sheets(form_id: str, db: Session = Depends(get_db), user_id=Depends(get_current_user_id)):
    form = get_owned_form_or_404(db, form_id, user_id)
    return get_sheets_status(form)


@router.post("/{form_id}/sheets")
def provision_owner_form_sheets(
    form_id: str,
    payload: SheetsProvision | None = None,
    db: Session = Depends(get_db),
    user_id=Depends(get_current_user_id),
):
    form = get_owned_form_or_404(db, form_id, user_id)
    recreate = bool(payload.recreate) if payload is not None else False
    try:
        return provision_spreadsheet(db, form, list_form_fields(db, form.id), recreate=recreate)
    except SheetsProvisioningError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
