from __future__ import annotations

import re
from typing import Any, Iterable
from urllib.parse import urlsplit

from formflow.models.form_field import FormField

TERMS_ACCEPTED = "accepted"

MSG_REQUIRED = "Este campo é obrigatório"
MSG_EMAIL = "E-mail inválido"
MSG_URL = "URL inválida"
MSG_PHONE = "Telefone deve estar no formato (11) 99999-9999"
MSG_NAME = "Por favor, digite seu nome completo"
MSG_NUMBER = "Digite apenas números"

_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_PHONE_RE = re.compile(r"\(\d{2}\)\s\d{4,5}-\d{4}")
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_URL_SCHEME_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.-]*")
_HIERARCHICAL_SCHEMES = {"http", "https", "ftp", "ws", "wss"}


def format_phone_number(raw: Any) -> str:
    """Reformat whatever was typed into the (##) ####-#### / (##) #####-#### mask."""
    digits = re.sub(r"\D", "", str(raw or ""))
    if len(digits) <= 2:
        return digits
    if len(digits) <= 6:
        return f"({digits[:2]}) {digits[2:]}"
    if len(digits) <= 10:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    return f"({digits[:2]}) {digits[2:7]}-{digits[7:11]}"


def normalize_field_type(field_type: Any) -> str:
    return str(field_type or "").strip().lower()


def is_empty_answer(field_type: str, value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple)):
        return len([item for item in value if str(item or "").strip()]) == 0
    text = str(value)
    if field_type == "terms":
        return text != TERMS_ACCEPTED
    return not text.strip()


def _is_absolute_url(value: str) -> bool:
    parts = urlsplit(value.strip())
    if not parts.scheme or not _URL_SCHEME_RE.fullmatch(parts.scheme):
        return False
    if parts.scheme.lower() in _HIERARCHICAL_SCHEMES:
        return bool(parts.netloc)
    return bool(parts.netloc or parts.path)


def _is_number(value: str) -> bool:
    return _NUMBER_RE.fullmatch(value.strip()) is not None


def validate_field(field: FormField, value: Any) -> str | None:
    field_type = normalize_field_type(field.type)
    if is_empty_answer(field_type, value):
        return MSG_REQUIRED if field.is_required else None
    if isinstance(value, (list, tuple)):
        return None

    text = str(value)
    if field_type == "email" and not _EMAIL_RE.fullmatch(text):
        return MSG_EMAIL
    if field_type == "url" and not _is_absolute_url(text):
        return MSG_URL
    if field_type == "tel" and not _PHONE_RE.fullmatch(text):
        return MSG_PHONE
    if field_type == "name" and len(text.split()) < 2:
        return MSG_NAME
    if field_type == "number" and not _is_number(text):
        return MSG_NUMBER
    return None


def validate_answers(fields: Iterable[FormField], answers: dict[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}
    for field in fields:
        error = validate_field(field, answers.get(str(field.id)))
        if error:
            errors[str(field.id)] = error
    return errors
