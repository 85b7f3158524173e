import secrets

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field("sqlite:///projecthub.db", description="SQLAlchemy database URL")
    db_timeout_seconds: float = Field(5.0, description="Seconds to wait on a locked database")
    api_title: str = Field("ProjectHub API")
    jwt_secret: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    jwt_algorithm: str = Field("HS256")
    access_token_expire_minutes: int = Field(60)
    bcrypt_rounds: int = Field(12, ge=4, le=31)
    rate_limit_enabled: bool = Field(True)
    auth_rate_limit: str = Field("5/minute")
    seed_templates: bool = Field(True)
    log_level: str = Field("INFO")

    def jwt_secret_is_generated(self) -> bool:
        return "jwt_secret" not in self.model_fields_set


settings = Settings()
