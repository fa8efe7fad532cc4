"""Delivery of form and submission events to the external automation service.

Both entry points share one contract: they never raise to the caller and never
touch the rows that triggered them. Every outcome is a :class:`DispatchResult`
that is logged here and either returned by the HTTP handler or only logged by
the background worker.
"""
from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx
from sqlalchemy.orm import Session

from formflow.core.config import settings
from formflow.models.form import Form
from formflow.models.form_field import FormField
from formflow.models.form_field_response import FormFieldResponse
from formflow.models.form_submission import FormSubmission
from formflow.services.forms import list_form_fields, normalize_options
from formflow.services.ids import as_uuid_or_none
from formflow.services.retry import RetryPolicy, poll_until_found
from formflow.services.sheets_integration import spreadsheet_id_for

_LOG = logging.getLogger("formflow.webhooks")

FORM_ACTIONS = {"create", "update"}

REASON_DELIVERED = "delivered"
REASON_NOT_CONFIGURED = "not_configured"
REASON_BAD_REQUEST = "bad_request"
REASON_NOT_FOUND = "not_found"
REASON_UPSTREAM_ERROR = "upstream_error"
REASON_NETWORK_ERROR = "network_error"
REASON_TIMEOUT = "timeout"

_HTTP_STATUS_BY_REASON = {
    REASON_DELIVERED: 200,
    REASON_NOT_CONFIGURED: 200,
    REASON_BAD_REQUEST: 400,
    REASON_NOT_FOUND: 404,
    REASON_UPSTREAM_ERROR: 502,
    REASON_NETWORK_ERROR: 502,
    REASON_TIMEOUT: 504,
}


@dataclass
class DispatchResult:
    success: bool
    reason: str
    message: str | None = None
    status: int | None = None
    error: str | None = None
    attempts: int = 0

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS_BY_REASON.get(self.reason, 500)

    def as_response(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": self.success}
        if self.message is not None:
            body["message"] = self.message
        if self.status is not None:
            body["status"] = self.status
        if self.error is not None:
            body["error"] = self.error
        return body


def form_lookup_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.FORM_LOOKUP_MAX_ATTEMPTS,
        delay_seconds=settings.FORM_LOOKUP_DELAY_SECONDS,
        backoff_factor=settings.FORM_LOOKUP_BACKOFF,
    )


def submission_lookup_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.SUBMISSION_LOOKUP_MAX_ATTEMPTS,
        delay_seconds=settings.SUBMISSION_LOOKUP_DELAY_SECONDS,
    )


def _utc_iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def post_json(url: str, payload: dict[str, Any], *, subject: str) -> DispatchResult:
    try:
        with httpx.Client(timeout=settings.WEBHOOK_TIMEOUT_SECONDS) as client:
            response = client.post(url, json=payload)
    except httpx.TimeoutException as exc:
        _LOG.warning("webhook timeout subject=%s url=%s error=%s", subject, url, exc)
        return DispatchResult(success=False, reason=REASON_TIMEOUT, error=f"Webhook timed out: {exc}")
    except httpx.HTTPError as exc:
        _LOG.warning("webhook network error subject=%s url=%s error=%s", subject, url, exc)
        return DispatchResult(success=False, reason=REASON_NETWORK_ERROR, error=f"Webhook request failed: {exc}")

    if response.status_code < 200 or response.status_code >= 300:
        _LOG.warning(
            "webhook rejected subject=%s url=%s status=%s",
            subject,
            url,
            response.status_code,
        )
        return DispatchResult(
            success=False,
            reason=REASON_UPSTREAM_ERROR,
            status=response.status_code,
            error=f"Webhook failed: {response.status_code}",
        )

    _LOG.info("webhook delivered subject=%s status=%s", subject, response.status_code)
    return DispatchResult(
        success=True,
        reason=REASON_DELIVERED,
        message="Webhook sent successfully",
        status=response.status_code,
    )


def build_form_payload(form: Form, fields: list[FormField], action: str) -> dict[str, Any]:
    ordered = sorted(fields, key=lambda field: int(field.order_index or 0))
    return {
        "action": action,
        "timestamp": _utc_iso_now(),
        "form": {
            "id": str(form.id),
            "title": form.title,
            "description": form.description,
            "slug": form.slug,
            "theme_color": form.theme_color,
            "is_published": bool(form.is_published),
            "allow_multiple_submissions": bool(form.allow_multiple_submissions),
            "success_message": form.success_message,
            "submit_button_text": form.submit_button_text,
            "welcome_message": form.welcome_message,
            "welcome_button_text": form.welcome_button_text,
            "show_welcome_screen": bool(form.show_welcome_screen),
            "created_at": _to_iso(form.created_at),
            "updated_at": _to_iso(form.updated_at),
        },
        "fields": [
            {
                "id": str(field.id),
                "label": field.label,
                "title": field.label,
                "type": field.type,
                "placeholder": field.placeholder,
                "is_required": bool(field.is_required),
                "options": normalize_options(field.options),
                "order_index": int(field.order_index or 0),
            }
            for field in ordered
        ],
    }


def _form_target_url(form: Form) -> str:
    configured = str(settings.FORM_WEBHOOK_URL or "").strip()
    if configured:
        return configured
    return str(form.webhook_url or "").strip()


def dispatch_form_event(
    db: Session,
    form_id: Any,
    action: str,
    *,
    policy: RetryPolicy | None = None,
    sleep=None,
) -> DispatchResult:
    normalized_action = str(action or "").strip().lower()
    if normalized_action not in FORM_ACTIONS:
        _LOG.warning("form webhook rejected form_id=%s action=%r", form_id, action)
        return DispatchResult(success=False, reason=REASON_BAD_REQUEST, error=f"Unsupported action: {action}")

    form_uuid = as_uuid_or_none(form_id)
    policy = policy or form_lookup_policy()
    _LOG.info("processing form webhook form_id=%s action=%s", form_id, normalized_action)

    def _fetch() -> Form | None:
        if form_uuid is None:
            return None
        # The triggering write may have landed after our last read.
        db.expire_all()
        return db.query(Form).filter(Form.id == form_uuid).first()

    def _on_miss(attempt: int) -> None:
        _LOG.info("form not visible yet form_id=%s attempt=%s/%s", form_id, attempt, policy.max_attempts)

    outcome = poll_until_found(_fetch, policy, sleep=sleep or time.sleep, on_miss=_on_miss)
    if not outcome.found:
        _LOG.error("form not found after retries form_id=%s attempts=%s", form_id, outcome.attempts)
        return DispatchResult(
            success=False,
            reason=REASON_NOT_FOUND,
            message="Form not found after retries",
            error="Form not found after retries",
            attempts=outcome.attempts,
        )

    form: Form = outcome.value
    target = _form_target_url(form)
    if not target:
        _LOG.info("no webhook configured form_id=%s", form.id)
        return DispatchResult(
            success=True,
            reason=REASON_NOT_CONFIGURED,
            message="No webhook configured",
            attempts=outcome.attempts,
        )

    payload = build_form_payload(form, list_form_fields(db, form.id), normalized_action)
    result = post_json(target, payload, subject=f"form:{form.id}")
    result.attempts = outcome.attempts
    return result


def _load_submission_bundle(db: Session, submission_uuid: uuid.UUID | None):
    if submission_uuid is None:
        return None
    db.expire_all()
    submission = db.get(FormSubmission, submission_uuid)
    if submission is None:
        return None
    form = db.get(Form, submission.form_id)
    if form is None:
        return None
    rows = (
        db.query(FormFieldResponse, FormField)
        .join(FormField, FormField.id == FormFieldResponse.field_id)
        .filter(FormFieldResponse.submission_id == submission.id)
        .order_by(FormField.order_index.asc(), FormField.created_at.asc())
        .all()
    )
    return submission, form, rows


def build_submission_payload(
    submission: FormSubmission,
    form: Form,
    rows: list[tuple[FormFieldResponse, FormField]],
) -> dict[str, Any]:
    return {
        "spreadsheetId": spreadsheet_id_for(form),
        "formId": str(form.id),
        "formTitle": form.title,
        "submissionId": str(submission.id),
        "submittedAt": _to_iso(submission.submitted_at),
        "submittedByEmail": submission.submitted_by_email,
        "responses": [
            {
                "questionId": str(field.id),
                "question": field.label,
                "answer": response.value or "",
                "fieldType": field.type,
                "fieldOptions": normalize_options(field.options),
            }
            for response, field in rows
        ],
        "timestamp": _utc_iso_now(),
    }


def dispatch_submission_event(
    db: Session,
    submission_id: Any,
    *,
    policy: RetryPolicy | None = None,
    sleep=None,
) -> DispatchResult:
    submission_uuid = as_uuid_or_none(submission_id)
    policy = policy or submission_lookup_policy()
    _LOG.info("processing submission webhook submission_id=%s", submission_id)

    outcome = poll_until_found(
        lambda: _load_submission_bundle(db, submission_uuid),
        policy,
        sleep=sleep or time.sleep,
    )
    if not outcome.found:
        _LOG.error("submission not found submission_id=%s attempts=%s", submission_id, outcome.attempts)
        return DispatchResult(
            success=False,
            reason=REASON_NOT_FOUND,
            message="Submission not found",
            error="Submission not found",
            attempts=outcome.attempts,
        )

    submission, form, rows = outcome.value
    target = str(settings.SUBMISSION_WEBHOOK_URL or "").strip()
    if not target:
        _LOG.info("no submission webhook configured submission_id=%s", submission.id)
        return DispatchResult(
            success=True,
            reason=REASON_NOT_CONFIGURED,
            message="No webhook configured",
            attempts=outcome.attempts,
        )

    payload = build_submission_payload(submission, form, rows)
    result = post_json(target, payload, subject=f"submission:{submission.id}")
    result.attempts = outcome.attempts
    return result
