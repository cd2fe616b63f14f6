# app/config/settings.py
"""
Application configuration using pydantic-settings (pydantic v2 style).

This centralizes environment-driven configuration. Prefer reading values
from environment variables; do not rely on os.getenv inline defaults which
can silently hide missing configuration.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application configuration loaded from environment.

    Relevant environment variables:
      - DATABASE_URL
      - OPENAI_API_KEY
      - OPENAI_MODEL
      - AUTH_TOKEN_SECRET
      - CORS_ORIGINS
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    database_url: str = Field(default="sqlite:///./nutriplan.db")
    database_echo: bool = False

    # OpenAI
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-3.5-turbo"
    openai_timeout_seconds: float = 30.0
    plan_temperature: float = 0.7
    menu_temperature: float = 0.8

    # Generation
    generation_timeout_seconds: float = 45.0
    recommended_menu_count: int = 6
    macro_divergence_tolerance: float = 0.25

    # Auth
    auth_token_secret: str = "dev-secret-change-me"
    auth_token_ttl_days: int = 7

    # HTTP
    cors_origins: str = "*"

    @field_validator("openai_api_key")
    @classmethod
    def maybe_strip_key(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def cors_origin_list(self) -> List[str]:
        if self.cors_origins.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def model_post_init(self, __context) -> None:  # pydantic v2 hooks
        """
        Light-weight notice that runs after model is constructed.
        Uses logging (not print) so messages show up in server logs.
        """
        if not self.openai_api_key:
            logger.info(
                "OPENAI_API_KEY not set. Meal plan generation will serve fallback content."
            )
        if self.auth_token_secret == "dev-secret-change-me":
            logger.warning(
                "AUTH_TOKEN_SECRET not set; using the development secret. "
                "Do not deploy this configuration publicly."
            )


# single exporter
settings = Settings()
