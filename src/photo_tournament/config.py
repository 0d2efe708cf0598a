"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    redis_url: str
    supabase_url: str
    supabase_service_key: str
    photos_table: str = "photos"
    environment: str = _ENVIRONMENT
    log_level: str = "INFO"
    session_cookie_name: str = "photo_user_id"
    session_cookie_max_age_days: int = 30
    session_ttl_hours: int = 25
    presence_window_seconds: int = 300
    votes_per_matchup: int = 3
    tournament_duration_minutes: int = 30
    tournament_interval_minutes: int = 15
    scheduler_enabled: bool = True
    scheduler_tick_seconds: float = 60
    vote_history_capacity: int = 100
    history_capacity: int = 10

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def secure_cookies(self) -> bool:
        return self.environment == "production"

    @property
    def session_cookie_max_age_seconds(self) -> int:
        return self.session_cookie_max_age_days * 24 * 60 * 60
