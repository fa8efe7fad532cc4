import uuid

from sqlalchemy import Boolean, JSON, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from formflow.db.session import Base
from formflow.models.common import UUIDMixin, TimestampMixin

class Form(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "forms"
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    folder_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False, index=True)
    is_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    allow_multiple_submissions: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    require_login: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    show_progress_bar: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    success_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    submit_button_text: Mapped[str | None] = mapped_column(String(100), nullable=True)
    theme_color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    background_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    show_welcome_screen: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    welcome_title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    welcome_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    welcome_button_text: Mapped[str | None] = mapped_column(String(100), nullable=True)
    # Plain callback URL only; integration state lives in integration_settings.
    webhook_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    integration_settings: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
