# backend/skillsphere/core/config.py
import os
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    environment: str = Field(
        default="development",
        description="Deployment environment (development|staging|production)",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./skillsphere.db",
        description="SQLAlchemy database URL",
    )

    # Identity tokens
    secret_key: SecretStr = Field(
        default=SecretStr("dev-secret-key-change-me"),
        description="Secret key for JWT access tokens",
    )
    algorithm: str = Field(default="HS256", alias="ACCESS_TOKEN_ALGORITHM")
    access_token_expire_minutes: int = 720

    # Stream Chat
    stream_enabled: bool = False
    stream_api_key: str = ""
    stream_api_secret: Optional[SecretStr] = None
    stream_base_url: str = "https://chat.stream-io-api.com"

    # 100ms video
    hundredms_enabled: bool = False
    hundredms_access_key: str = ""
    hundredms_app_secret: Optional[SecretStr] = None
    hundredms_template_id: str = ""
    hundredms_base_url: str = "https://api.100ms.live/v2"
    video_token_ttl_seconds: int = Field(default=3600, ge=60)

    # AssemblyAI speech-to-text
    assemblyai_enabled: bool = False
    assemblyai_api_key: Optional[SecretStr] = None
    assemblyai_base_url: str = "https://api.assemblyai.com/v2"
    transcript_webhook_secret: SecretStr = Field(
        default=SecretStr("dev-webhook-secret"),
        description="Shared secret the speech-to-text provider echoes on webhook calls",
    )
    public_api_url: str = Field(
        default="http://localhost:8000",
        description="Externally reachable base URL used to build webhook callbacks",
    )
    max_audio_upload_bytes: int = 100 * 1024 * 1024

    # Gemini generative text
    gemini_api_key: Optional[SecretStr] = None
    gemini_model: str = "gemini-2.0-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    # Outbound HTTP
    external_timeout_seconds: float = Field(default=10.0, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, value: str) -> str:
        return (value or "development").strip().lower()

    @property
    def is_development(self) -> bool:
        return self.environment in {"development", "dev", "local"}

    @property
    def transcript_webhook_url(self) -> str:
        return f"{self.public_api_url.rstrip('/')}/api/v1/transcripts/webhook"


settings = Settings()
