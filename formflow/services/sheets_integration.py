from __future__ import annotations

import logging
from typing import Any

import httpx
from sqlalchemy.orm import Session

from formflow.core.config import settings
from formflow.models.common import utcnow
from formflow.models.form import Form
from formflow.models.form_field import FormField

_LOG = logging.getLogger("formflow.sheets")

SYNC_PENDING = "pending"
SYNC_SUCCESS = "success"
SYNC_ERROR = "error"


class SheetsProvisioningError(Exception):
    pass


def _sheets_block(form: Form) -> dict[str, Any]:
    settings_blob = form.integration_settings if isinstance(form.integration_settings, dict) else {}
    block = settings_blob.get("sheets")
    return dict(block) if isinstance(block, dict) else {}


def spreadsheet_id_for(form: Form) -> str | None:
    value = str(_sheets_block(form).get("spreadsheet_id") or "").strip()
    return value or None


def get_sheets_status(form: Form) -> dict[str, Any]:
    block = _sheets_block(form)
    return {
        "spreadsheet_id": block.get("spreadsheet_id") or None,
        "spreadsheet_url": block.get("spreadsheet_url") or None,
        "sync_status": block.get("sync_status") or None,
        "sync_error": block.get("sync_error") or None,
    }


def _store_sheets_block(db: Session, form: Form, block: dict[str, Any]) -> None:
    # Reassign a new dict so the JSON column is flagged dirty.
    current = dict(form.integration_settings) if isinstance(form.integration_settings, dict) else {}
    current["sheets"] = {key: value for key, value in block.items() if value is not None}
    form.integration_settings = current
    form.updated_at = utcnow()
    db.add(form)
    db.commit()
    db.refresh(form)


def provision_spreadsheet(
    db: Session,
    form: Form,
    fields: list[FormField],
    *,
    recreate: bool = False,
) -> dict[str, Any]:
    """Ask the automation service for a spreadsheet and record the outcome on the form."""
    previous = {} if recreate else _sheets_block(form)
    _store_sheets_block(db, form, {**previous, "sync_status": SYNC_PENDING, "sync_error": None})

    target = str(settings.SHEETS_CREATE_URL or "").strip()
    payload = {
        "formId": str(form.id),
        "formTitle": form.title,
        "questions": [{"id": str(field.id), "title": field.label, "type": field.type} for field in fields],
    }
    try:
        if not target:
            raise SheetsProvisioningError("Integração com planilhas não configurada")
        try:
            with httpx.Client(timeout=settings.WEBHOOK_TIMEOUT_SECONDS) as client:
                response = client.post(target, json=payload)
        except httpx.HTTPError as exc:
            raise SheetsProvisioningError(f"Falha na criação da planilha: {exc}") from exc
        if response.status_code < 200 or response.status_code >= 300:
            raise SheetsProvisioningError(f"Falha na criação da planilha: HTTP {response.status_code}")
        try:
            body = response.json() if response.content else {}
        except ValueError as exc:
            raise SheetsProvisioningError("Resposta inválida do serviço de planilhas") from exc
        spreadsheet_id = str((body or {}).get("spreadsheetId") or "").strip()
        if not spreadsheet_id:
            raise SheetsProvisioningError("Resposta sem identificador de planilha")
    except SheetsProvisioningError as exc:
        _LOG.warning("spreadsheet provisioning failed form_id=%s error=%s", form.id, exc)
        _store_sheets_block(db, form, {**previous, "sync_status": SYNC_ERROR, "sync_error": str(exc)})
        raise

    _store_sheets_block(
        db,
        form,
        {
            "spreadsheet_id": spreadsheet_id,
            "spreadsheet_url": str(body.get("spreadsheetUrl") or "").strip() or None,
            "sync_status": SYNC_SUCCESS,
            "sync_error": None,
        },
    )
    _LOG.info("spreadsheet provisioned form_id=%s spreadsheet_id=%s", form.id, spreadsheet_id)
    return get_sheets_status(form)
