from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "local"
    APP_NAME: str = "formflow"
    APP_BASE_URL: str = "http://localhost:8080"
    LOG_LEVEL: str = "INFO"

    AUTH_JWT_SECRET: str = "change_me_auth"

    CORS_ORIGINS: str = "*"

    DATABASE_URL: str
    REDIS_URL: str

    # External automation endpoints; empty means "not configured".
    FORM_WEBHOOK_URL: str = ""
    SUBMISSION_WEBHOOK_URL: str = ""
    SHEETS_CREATE_URL: str = ""
    WEBHOOK_TIMEOUT_SECONDS: float = 30.0

    FORM_LOOKUP_MAX_ATTEMPTS: int = 5
    FORM_LOOKUP_DELAY_SECONDS: float = 1.0
    FORM_LOOKUP_BACKOFF: float = 1.0
    SUBMISSION_LOOKUP_MAX_ATTEMPTS: int = 1
    SUBMISSION_LOOKUP_DELAY_SECONDS: float = 0.0

    PUBLIC_SUBMIT_RATE_LIMIT: int = 20
    PUBLIC_SUBMIT_RATE_WINDOW_SECONDS: int = 300

    INVITATION_DEFAULT_TTL_DAYS: int = 7
    INVITATION_UNLIMITED_USES: int = 999

    # Compose/infra vars that may exist in shared .env
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "formflow"

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
