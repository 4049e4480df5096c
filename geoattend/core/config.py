from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # App
    APP_NAME: str = "GeoAttend"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Backend-as-a-service (auth + data API)
    SUPABASE_URL: str = "http://localhost:54321"
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    BACKEND_TIMEOUT: int = 30

    # Resend for password-reset emails
    RESEND_API_KEY: Optional[str] = None
    RESEND_API_URL: str = "https://api.resend.com/emails"
    RESEND_FROM_EMAIL: str = "onboarding@resend.dev"
    RESEND_FROM_NAME: str = "GeoAttend"

    # App URL (frontend), used as the default reset redirect
    APP_URL: str = "http://localhost:8080"

    # Username-only accounts get <username>@<domain> as login email
    INTERNAL_EMAIL_DOMAIN: str = "internal.local"

    # Attendance
    ATTENDANCE_TIMEZONE: str = "Asia/Jakarta"
    MAX_ACCURACY_METERS: float = 100.0
    MOCK_ACCURACY_METERS: float = 5.0  # suspiciously precise fix
    MOCK_EDGE_METERS: float = 10.0  # distance from fence edge that looks staged
    HISTORY_DEFAULT_DAYS: int = 7

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
