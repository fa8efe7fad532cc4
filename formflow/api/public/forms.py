from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from formflow.db.session import get_db
from formflow.schemas.public import PublicSubmissionCreate, PublicSubmissionCreated
from formflow.services.form_runtime import PublicFormRuntime, RuntimeState
from formflow.services.forms import (
    DEFAULT_SUCCESS_MESSAGE,
    FORM_NOT_FOUND,
    get_published_form_by_slug,
    list_form_fields,
    serialize_public_form,
)
from formflow.services.rate_limit import check_submission_quota
from formflow.workers.tasks.webhooks import enqueue_submission_event

router = APIRouter()

_LOG = logging.getLogger("formflow.public")

VALIDATION_FAILED = "Verifique os campos destacados"


def _client_ip(request: Request) -> str:
    xff = str(request.headers.get("x-forwarded-for") or "").strip()
    if xff:
        first = xff.split(",")[0].strip()
        if first:
            return first
    client = request.client
    return str(client.host if client else "unknown")


def _rate_limit_or_429(client_ip: str, slug: str) -> None:
    quota = check_submission_quota(client_ip, slug)
    if not quota.allowed:
        raise HTTPException(
            status_code=429,
            detail=f"Muitas respostas enviadas. Tente novamente em {max(quota.retry_after_seconds, 1)} s.",
        )


def _dispatch_submission(submission_id: str) -> None:
    enqueue_submission_event(submission_id)


@router.get("/{slug}")
def get_public_form(slug: str, db: Session = Depends(get_db)):
    form = get_published_form_by_slug(db, slug)
    if form is None:
        raise HTTPException(status_code=404, detail=FORM_NOT_FOUND)
    return serialize_public_form(form, list_form_fields(db, form.id))


@router.post("/{slug}/submissions", response_model=PublicSubmissionCreated, status_code=201)
def submit_public_form(
    slug: str,
    payload: PublicSubmissionCreate,
    request: Request,
    db: Session = Depends(get_db),
):
    client_ip = _client_ip(request)
    _rate_limit_or_429(client_ip, slug)

    runtime = PublicFormRuntime(
        db,
        dispatch=_dispatch_submission,
        user_agent=request.headers.get("user-agent"),
        ip_address=client_ip,
        submitted_by_email=(payload.submitted_by_email or "").strip() or None,
    )
    state = runtime.load(slug)
    if state == RuntimeState.NOT_FOUND:
        raise HTTPException(status_code=404, detail=FORM_NOT_FOUND)
    if state == RuntimeState.WELCOME:
        runtime.start()

    known = {str(field.id) for field in runtime.fields}
    for field_id, value in payload.answers.items():
        if field_id in known and value is not None:
            runtime.set_answer(field_id, value)

    state = runtime.submit()
    if runtime.submit_error:
        raise HTTPException(status_code=500, detail=runtime.submit_error)
    if state != RuntimeState.SUBMITTED:
        _LOG.info("public submission rejected slug=%s invalid_fields=%s", slug, len(runtime.errors))
        raise HTTPException(status_code=400, detail={"message": VALIDATION_FAILED, "errors": runtime.errors})

    form = runtime.form
    return PublicSubmissionCreated(
        submission_id=runtime.submission_id,
        success_message=form.success_message or DEFAULT_SUCCESS_MESSAGE,
        allow_multiple_submissions=bool(form.allow_multiple_submissions),
    )
