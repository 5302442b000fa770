from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for notification fan-out and reminder e-mails
    gpx_bucket: str = "gpx-files"

    # Groups
    invite_code_max_attempts: int = 5

    # Weather (Open-Meteo)
    weather_api_url: str = "https://api.open-meteo.com/v1/forecast"
    forecast_horizon_days: int = 16

    # Geocoding (Nominatim)
    geocoding_api_url: str = "https://nominatim.openstreetmap.org/search"
    geocoding_user_agent: str = "motobuddies-backend"
    geocoding_rate_limit: str = "30/minute"

    # Outbound HTTP
    http_timeout_seconds: float = 10.0

    # Ride reminders
    reminder_scheduler_enabled: bool = False
    reminder_interval_seconds: int = 900
    reminder_window_hours: int = 24

    # Reminder e-mails (Resend)
    resend_api_key: Optional[str] = None
    resend_api_url: str = "https://api.resend.com/emails"
    email_from: str = "MotoBuddies <noreply@motobuddies.app>"
    site_url: str = "http://localhost:3000"

    # App
    app_name: str = "motobuddies-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
