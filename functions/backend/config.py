"""
Configuration and settings for the beverage review bridge.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Firebase web app config (same values the browser SDK is initialised with)
    firebase_api_key: Optional[str] = Field(default=None)
    firebase_auth_domain: Optional[str] = Field(default=None)
    firebase_database_url: Optional[str] = Field(default=None)
    firebase_project_id: Optional[str] = Field(default=None)
    firebase_storage_bucket: Optional[str] = Field(default=None)
    firebase_messaging_sender_id: Optional[str] = Field(default=None)
    firebase_app_id: Optional[str] = Field(default=None)
    firebase_measurement_id: Optional[str] = Field(default=None)

    # Service account JSON; application default credentials when unset.
    google_application_credentials: Optional[str] = Field(default=None)

    # Identity Toolkit needs a requestUri the OAuth credential is valid for.
    sign_in_request_uri: str = Field(default="http://localhost")

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias="BEVERAGE_REVIEWS_USE_IN_MEMORY_BACKENDS",
    )

    def web_config(self) -> dict:
        """The public Firebase config, keyed the way the JS SDK expects."""
        return {
            "apiKey": self.firebase_api_key,
            "authDomain": self.firebase_auth_domain,
            "databaseURL": self.firebase_database_url,
            "projectId": self.firebase_project_id,
            "storageBucket": self.firebase_storage_bucket,
            "messagingSenderId": self.firebase_messaging_sender_id,
            "appId": self.firebase_app_id,
            "measurementId": self.firebase_measurement_id,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
