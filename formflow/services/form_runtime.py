"""Guided, one-question-at-a-time walk through a published form.

The engine keeps the in-progress answers for a single respondent and moves
between these states::

    LOADING -> NOT_FOUND
    LOADING -> WELCOME -> STEPPING(0..n-1) -> SUBMITTING -> SUBMITTED
    LOADING -> STEPPING(0..n-1) -> SUBMITTING -> SUBMITTED

``next`` validates only the current field; the whole answer set is validated
again before persisting. Answers survive ``previous``. After a successful
write the submission webhook is handed to ``dispatch`` and its outcome never
changes the final state.
"""
from __future__ import annotations

import enum
import logging
from typing import Any, Callable

from sqlalchemy.orm import Session

from formflow.models.form import Form
from formflow.models.form_field import FormField
from formflow.services.field_validation import (
    format_phone_number,
    is_empty_answer,
    normalize_field_type,
    validate_answers,
    validate_field,
)
from formflow.services.forms import get_published_form_by_slug, list_form_fields
from formflow.services.submissions import SubmissionPersistenceError, persist_submission
from formflow.workers.tasks.webhooks import enqueue_submission_event

_LOG = logging.getLogger("formflow.runtime")

SUBMIT_ERROR_MESSAGE = "Não foi possível enviar o formulário. Tente novamente."


class RuntimeState(str, enum.Enum):
    LOADING = "LOADING"
    NOT_FOUND = "NOT_FOUND"
    WELCOME = "WELCOME"
    STEPPING = "STEPPING"
    SUBMITTING = "SUBMITTING"
    SUBMITTED = "SUBMITTED"


class RuntimeStateError(Exception):
    pass


class PublicFormRuntime:
    def __init__(
        self,
        db: Session,
        *,
        dispatch: Callable[[str], Any] | None = None,
        user_agent: str | None = None,
        ip_address: str | None = None,
        submitted_by_email: str | None = None,
    ):
        self.db = db
        self._dispatch = dispatch or enqueue_submission_event
        self.user_agent = user_agent
        self.ip_address = ip_address
        self.submitted_by_email = submitted_by_email

        self.state = RuntimeState.LOADING
        self.form: Form | None = None
        self.fields: list[FormField] = []
        self.index = 0
        self.answers: dict[str, str | list[str]] = {}
        self.errors: dict[str, str] = {}
        self.submit_error: str | None = None
        self.submission_id: str | None = None

    # -- loading -----------------------------------------------------------

    def load(self, slug: str) -> RuntimeState:
        self.state = RuntimeState.LOADING
        form = get_published_form_by_slug(self.db, slug)
        if form is None:
            _LOG.info("published form not found slug=%s", slug)
            self.form = None
            self.fields = []
            self.state = RuntimeState.NOT_FOUND
            return self.state

        self.form = form
        self.fields = list_form_fields(self.db, form.id)
        self.index = 0
        self.answers = {}
        self.errors = {}
        self.submit_error = None
        self.submission_id = None
        self.state = RuntimeState.WELCOME if self.has_welcome_screen else RuntimeState.STEPPING
        return self.state

    @property
    def has_welcome_screen(self) -> bool:
        form = self.form
        if form is None or not form.show_welcome_screen:
            return False
        return bool(str(form.welcome_title or "").strip() or str(form.welcome_message or "").strip())

    def start(self) -> RuntimeState:
        self._require(RuntimeState.WELCOME)
        self.index = 0
        self.state = RuntimeState.STEPPING
        return self.state

    # -- stepping ----------------------------------------------------------

    @property
    def current_field(self) -> FormField | None:
        if self.state != RuntimeState.STEPPING or not (0 <= self.index < len(self.fields)):
            return None
        return self.fields[self.index]

    def _field_by_id(self, field_id: str) -> FormField:
        for field in self.fields:
            if str(field.id) == str(field_id):
                return field
        raise KeyError(field_id)

    def set_answer(self, field_id: str, value: str | list[str]) -> str | list[str]:
        field = self._field_by_id(field_id)
        if normalize_field_type(field.type) == "tel" and not isinstance(value, (list, tuple)):
            value = format_phone_number(value)
        elif isinstance(value, tuple):
            value = list(value)
        key = str(field.id)
        self.answers[key] = value
        self.errors.pop(key, None)
        return value

    def next(self) -> RuntimeState:
        self._require(RuntimeState.STEPPING)
        field = self.current_field
        if field is not None:
            error = validate_field(field, self.answers.get(str(field.id)))
            if error:
                self.errors = {str(field.id): error}
                return self.state
            self.errors = {}
        if self.index < len(self.fields) - 1:
            self.index += 1
            return self.state
        return self.submit()

    def previous(self) -> RuntimeState:
        self._require(RuntimeState.STEPPING)
        if self.index > 0:
            self.index -= 1
            self.errors = {}
        return self.state

    def progress(self) -> float:
        if not self.fields:
            return 0.0
        filled = [
            field
            for field in self.fields
            if not is_empty_answer(normalize_field_type(field.type), self.answers.get(str(field.id)))
        ]
        return len(filled) / len(self.fields) * 100.0

    # -- submission --------------------------------------------------------

    def submit(self) -> RuntimeState:
        self._require(RuntimeState.STEPPING)
        errors = validate_answers(self.fields, self.answers)
        if errors:
            self.errors = errors
            first_invalid = next(
                position for position, field in enumerate(self.fields) if str(field.id) in errors
            )
            self.index = first_invalid
            return self.state

        self.state = RuntimeState.SUBMITTING
        self.submit_error = None
        try:
            submission = persist_submission(
                self.db,
                self.form,
                self.fields,
                self.answers,
                user_agent=self.user_agent,
                ip_address=self.ip_address,
                submitted_by_email=self.submitted_by_email,
            )
        except SubmissionPersistenceError:
            _LOG.exception("submission persistence failed form_id=%s", self.form.id)
            self.submit_error = SUBMIT_ERROR_MESSAGE
            self.state = RuntimeState.STEPPING
            return self.state

        self.submission_id = str(submission.id)
        try:
            self._dispatch(self.submission_id)
        except Exception:
            _LOG.exception("submission webhook hand-off failed submission_id=%s", self.submission_id)
        self.state = RuntimeState.SUBMITTED
        return self.state

    @property
    def can_reset(self) -> bool:
        return (
            self.state == RuntimeState.SUBMITTED
            and self.form is not None
            and bool(self.form.allow_multiple_submissions)
        )

    def reset(self) -> RuntimeState:
        if not self.can_reset:
            raise RuntimeStateError("Este formulário não aceita múltiplas respostas")
        self.answers = {}
        self.errors = {}
        self.submit_error = None
        self.submission_id = None
        self.index = 0
        self.state = RuntimeState.STEPPING
        return self.state

    def _require(self, expected: RuntimeState) -> None:
        if self.state != expected:
            raise RuntimeStateError(f"Operação inválida no estado {self.state.value}")
