from __future__ import annotations

import re
import unicodedata
import uuid

from sqlalchemy.orm import Session

from formflow.models.form import Form

DEFAULT_SLUG = "formulario"
MAX_SLUG_LENGTH = 100


def slugify(value: str | None) -> str:
    normalized = unicodedata.normalize("NFKD", str(value or ""))
    ascii_only = normalized.encode("ascii", "ignore").decode("ascii").lower()
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_only).strip("-")
    return slug[:MAX_SLUG_LENGTH].strip("-") or DEFAULT_SLUG


def _slug_taken(db: Session, slug: str, exclude_form_id: uuid.UUID | None) -> bool:
    query = db.query(Form.id).filter(Form.slug == slug)
    if exclude_form_id is not None:
        query = query.filter(Form.id != exclude_form_id)
    return query.first() is not None


def unique_slug(db: Session, source: str | None, *, exclude_form_id: uuid.UUID | None = None) -> str:
    """Probe base, base-1, base-2, ... until a slug no other form uses."""
    base = slugify(source)
    candidate = base
    suffix = 0
    while _slug_taken(db, candidate, exclude_form_id):
        suffix += 1
        candidate = f"{base}-{suffix}"
    return candidate
