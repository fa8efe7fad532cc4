from __future__ import annotations

from formflow.core.config import settings


def get_base_url() -> str:
    return str(settings.APP_BASE_URL or "").rstrip("/")


def get_app_url(path: str = "") -> str:
    clean_path = path if path.startswith("/") else f"/{path}"
    return f"{get_base_url()}{clean_path}"


def get_form_url(slug: str) -> str:
    return get_app_url(f"/form/{slug}")
