import uuid

from sqlalchemy import String, Boolean, Integer, JSON, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from formflow.db.session import Base
from formflow.models.common import UUIDMixin, TimestampMixin

FIELD_TYPES = {
    "text",
    "email",
    "number",
    "textarea",
    "select",
    "radio",
    "checkbox",
    "tel",
    "url",
    "date",
    "file",
    "name",
    "terms",
}
CHOICE_FIELD_TYPES = {"select", "radio", "checkbox"}
MULTI_VALUE_FIELD_TYPES = {"checkbox"}

class FormField(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "form_fields"
    form_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    label: Mapped[str] = mapped_column(String(500), nullable=False)
    placeholder: Mapped[str | None] = mapped_column(String(300), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    options: Mapped[list | None] = mapped_column(JSON, nullable=True)
    validation_rules: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
