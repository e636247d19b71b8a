from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, computed_field

load_dotenv()


class Settings(BaseSettings):
    """Base settings for the application."""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    APP_NAME: str = "BlueMoon Backend"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = "BlueMoon apartment management API"
    APP_AUTHOR: str = "BlueMoon Development Team"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    CORS_ORIGINS: List[str] = ["*"]

    # Supabase settings
    SUPABASE_URL: str = Field(default="", description="Supabase project URL (https://xxx.supabase.co)")
    SUPABASE_ANON_KEY: str = Field(default="", description="Supabase anonymous/public key")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(default="", description="Supabase service role key (for admin operations)")

    # Local auth fallback (dev only, used when Supabase is not configured)
    LOCAL_AUTH_SECRET: str = "JWT_SECRET_KEY"
    LOCAL_AUTH_TOKEN_EXP_SECONDS: int = 3600

    # Activity log settings
    ACTIVITY_LOG_TABLE: str = "activity_logs"
    ACTIVITY_LOG_ACTIONS: List[str] = ["POST", "PUT", "PATCH", "DELETE"]
    ACTIVITY_LOG_GET_REQUESTS: bool = False
    ACTIVITY_LOG_EXCLUDE_PATHS: List[str] = ["/api/health", "/api/activity-logs"]
    ACTIVITY_LOG_MAX_CONCURRENT_WRITES: int = Field(default=10, ge=1)

    @computed_field
    @property
    def supabase_auth_enabled(self) -> bool:
        """Whether bearer tokens are verified against Supabase Auth.

        Falls back to locally signed HS256 tokens when the project URL or
        the anon key is missing.
        """
        return bool(self.SUPABASE_URL.strip() and self.SUPABASE_ANON_KEY.strip())


settings = Settings()
