from __future__ import annotations

import logging

from formflow.db.session import SessionLocal
from formflow.services.webhook_dispatch import dispatch_form_event, dispatch_submission_event
from formflow.workers.celery_app import celery_app

_LOG = logging.getLogger("formflow.webhooks")


@celery_app.task(name="formflow.workers.tasks.webhooks.dispatch_form_event")
def dispatch_form_event_task(form_id: str, action: str) -> dict:
    db = SessionLocal()
    try:
        result = dispatch_form_event(db, form_id, action)
    finally:
        db.close()
    _LOG.info(
        "form webhook finished form_id=%s action=%s success=%s reason=%s attempts=%s",
        form_id,
        action,
        result.success,
        result.reason,
        result.attempts,
    )
    return result.as_response()


@celery_app.task(name="formflow.workers.tasks.webhooks.dispatch_submission_event")
def dispatch_submission_event_task(submission_id: str) -> dict:
    db = SessionLocal()
    try:
        result = dispatch_submission_event(db, submission_id)
    finally:
        db.close()
    _LOG.info(
        "submission webhook finished submission_id=%s success=%s reason=%s",
        submission_id,
        result.success,
        result.reason,
    )
    return result.as_response()


def enqueue_form_event(form_id, action: str) -> bool:
    try:
        dispatch_form_event_task.delay(str(form_id), str(action))
    except Exception:
        _LOG.warning("could not enqueue form webhook form_id=%s action=%s", form_id, action, exc_info=True)
        return False
    return True


def enqueue_submission_event(submission_id) -> bool:
    try:
        dispatch_submission_event_task.delay(str(submission_id))
    except Exception:
        _LOG.warning("could not enqueue submission webhook submission_id=%s", submission_id, exc_info=True)
        return False
    return True
