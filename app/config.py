"""Application configuration using Pydantic Settings."""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # MongoDB
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "habit_tracker"
    kv_collection_name: str = "kv_store"

    # Goals
    max_active_goals: int = 3
    goal_reminder_minutes: int = 60

    # Schedule tasks
    default_task_reminder_minutes: int = 60
    task_retention_days: int = 365

    # Reminders
    reminder_interval_seconds: int = 60
    reminder_tolerance_seconds: int = 60
    reminder_loop_enabled: bool = True
    marker_retention_days: int = 2

    # API
    log_level: str = "INFO"
    debug: bool = False

    # CORS
    cors_origins: str = "http://localhost:3000,http://localhost:8000"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]


settings = Settings()
