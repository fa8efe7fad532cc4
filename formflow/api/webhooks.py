"""Synchronous webhook handlers, kept for callers that want the delivery outcome."""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from formflow.db.session import get_db
from formflow.schemas.public import WebhookFormEvent, WebhookSubmissionEvent
from formflow.services.webhook_dispatch import (
    REASON_BAD_REQUEST,
    DispatchResult,
    dispatch_form_event,
    dispatch_submission_event,
)

router = APIRouter()


def _result_response(result: DispatchResult) -> JSONResponse:
    return JSONResponse(status_code=result.http_status, content=result.as_response())


@router.post("/form")
def form_webhook(payload: WebhookFormEvent, db: Session = Depends(get_db)):
    if not str(payload.formId or "").strip() or not str(payload.action or "").strip():
        return _result_response(
            DispatchResult(success=False, reason=REASON_BAD_REQUEST, error="formId and action are required")
        )
    return _result_response(dispatch_form_event(db, payload.formId, payload.action))


@router.post("/submission")
def submission_webhook(payload: WebhookSubmissionEvent, db: Session = Depends(get_db)):
    if not str(payload.submissionId or "").strip():
        return _result_response(
            DispatchResult(success=False, reason=REASON_BAD_REQUEST, error="submissionId is required")
        )
    return _result_response(dispatch_submission_event(db, payload.submissionId))
