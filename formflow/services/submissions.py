from __future__ import annotations

import csv
import io
import uuid
from datetime import datetime
from typing import Any, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from formflow.models.form import Form
from formflow.models.form_field import FormField
from formflow.models.form_field_response import FormFieldResponse
from formflow.models.form_submission import FormSubmission
from formflow.services.field_validation import normalize_field_type

EXPORT_DATE_HEADER = "Data de Envio"
EXPORT_DATE_FORMAT = "%d/%m/%Y %H:%M:%S"
MULTI_VALUE_SEPARATOR = ", "


class SubmissionPersistenceError(Exception):
    pass


def response_value(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        joined = MULTI_VALUE_SEPARATOR.join(str(item) for item in value if str(item or "").strip())
        return joined or None
    text = str(value)
    return text if text.strip() else None


def _answers_for_fields(fields: Iterable[FormField], answers: dict[str, Any]) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for field in fields:
        key = str(field.id)
        if key in answers:
            value = answers[key]
            data[key] = list(value) if isinstance(value, (list, tuple)) else value
    return data


def persist_submission(
    db: Session,
    form: Form,
    fields: list[FormField],
    answers: dict[str, Any],
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
    submitted_by_email: str | None = None,
    submitted_by_user_id: uuid.UUID | None = None,
) -> FormSubmission:
    """Write the submission and one response row per field in a single transaction."""
    try:
        submission = FormSubmission(
            form_id=form.id,
            submission_data=_answers_for_fields(fields, answers),
            submitted_by_email=submitted_by_email,
            submitted_by_user_id=submitted_by_user_id,
            ip_address=ip_address,
            user_agent=str(user_agent)[:500] if user_agent else None,
        )
        db.add(submission)
        db.flush()
        for field in fields:
            value = response_value(answers.get(str(field.id)))
            db.add(
                FormFieldResponse(
                    submission_id=submission.id,
                    field_id=field.id,
                    value=value,
                    file_url=value if normalize_field_type(field.type) == "file" else None,
                )
            )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise SubmissionPersistenceError(str(exc)) from exc
    db.refresh(submission)
    return submission


def _to_iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def list_submissions_with_responses(db: Session, form: Form) -> list[dict]:
    fields = {
        row.id: row
        for row in db.query(FormField).filter(FormField.form_id == form.id).all()
    }
    submissions = (
        db.query(FormSubmission)
        .filter(FormSubmission.form_id == form.id)
        .order_by(FormSubmission.submitted_at.desc(), FormSubmission.id.desc())
        .all()
    )
    responses_by_submission: dict[uuid.UUID, list[FormFieldResponse]] = {}
    if submissions:
        rows = (
            db.query(FormFieldResponse)
            .filter(FormFieldResponse.submission_id.in_([item.id for item in submissions]))
            .all()
        )
        for row in rows:
            responses_by_submission.setdefault(row.submission_id, []).append(row)

    result = []
    for submission in submissions:
        responses = []
        for row in responses_by_submission.get(submission.id, []):
            field = fields.get(row.field_id)
            responses.append(
                {
                    "field_id": str(row.field_id),
                    "value": row.value,
                    "file_url": row.file_url,
                    "field": {
                        "id": str(field.id),
                        "type": field.type,
                        "label": field.label,
                        "order_index": field.order_index,
                    }
                    if field is not None
                    else None,
                }
            )
        responses.sort(key=lambda item: item["field"]["order_index"] if item["field"] else 1 << 30)
        result.append(
            {
                "id": str(submission.id),
                "submitted_at": _to_iso(submission.submitted_at),
                "submitted_by_email": submission.submitted_by_email,
                "submission_data": submission.submission_data or {},
                "responses": responses,
            }
        )
    return result


def _format_submitted_at(value: datetime | None) -> str:
    return value.strftime(EXPORT_DATE_FORMAT) if value is not None else ""


def export_submissions_csv(db: Session, form: Form) -> str:
    fields = (
        db.query(FormField)
        .filter(FormField.form_id == form.id)
        .order_by(FormField.order_index.asc(), FormField.created_at.asc())
        .all()
    )
    submissions = (
        db.query(FormSubmission)
        .filter(FormSubmission.form_id == form.id)
        .order_by(FormSubmission.submitted_at.desc(), FormSubmission.id.desc())
        .all()
    )
    values: dict[tuple[uuid.UUID, uuid.UUID], str] = {}
    if submissions:
        rows = (
            db.query(FormFieldResponse)
            .filter(FormFieldResponse.submission_id.in_([item.id for item in submissions]))
            .all()
        )
        values = {(row.submission_id, row.field_id): row.value or "" for row in rows}

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([EXPORT_DATE_HEADER, *[field.label for field in fields]])
    for submission in submissions:
        writer.writerow(
            [
                _format_submitted_at(submission.submitted_at),
                *[values.get((submission.id, field.id), "") for field in fields],
            ]
        )
    return buffer.getvalue()


def export_filename(form: Form) -> str:
    title = str(form.title or "").strip() or "formulario"
    return f"{title}_respostas.csv"
