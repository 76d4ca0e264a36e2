from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RULES_URL = "https://rules2.clearurls.xyz/data.minify.json"

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class Settings(BaseSettings):
    # Empty means the ruleset bundled with the package.
    rules_path: str = Field(default="", validation_alias="CLEARURLS_RULES_PATH")
    allow_referral_marketing: bool = Field(
        default=False, validation_alias="CLEARURLS_ALLOW_REFERRAL_MARKETING"
    )
    rules_url: str = Field(default=DEFAULT_RULES_URL, validation_alias="CLEARURLS_RULES_URL")
    rules_fetch_timeout: int = Field(
        default=30, validation_alias="CLEARURLS_RULES_FETCH_TIMEOUT"
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    cors_origins: str = Field(
        default="http://localhost:3000", validation_alias="CORS_ORIGINS"
    )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = (value or "").strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level {value!r}")
        return level

    def parsed_cors_origins(self) -> list[str]:
        parts = [p.strip() for p in self.cors_origins.split(",")]
        return [p for p in parts if p]


def get_settings() -> Settings:
    return Settings()
