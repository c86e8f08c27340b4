"""Mi Store configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "secret_key": "insecure-dev-key-change-me",
    "admin_password": "admin123",
}


class StoreSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MISTORE_")

    environment: str = "development"
    secret_key: str = "insecure-dev-key-change-me"
    log_level: str = "INFO"

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/mistore.db"

    # API
    api_title: str = "Mi Store"
    api_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 3000
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:3000"]
    public_base_url: str = "http://localhost:3000"

    # Object storage (S3 or any S3-compatible endpoint)
    s3_bucket: str = "mistore"
    s3_region: str = "us-east-1"
    s3_endpoint_url: str | None = None
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    artifact_prefix: str = "apks"
    image_prefix: str = "images"
    download_url_ttl: int = 300  # seconds
    image_url_ttl: int = 3600
    delete_objects_on_remove: bool = True

    # Uploads
    max_upload_bytes: int = 25 * 1024 * 1024
    artifact_content_types: list[str] = [
        "application/vnd.android.package-archive",
        "application/octet-stream",
        "application/zip",
        "application/x-zip-compressed",
    ]

    # Outbound calls to S3 / Stripe
    gateway_timeout: float = 10.0

    # Stripe
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_webhook_tolerance: int = 300
    currency: str = "usd"
    # Acknowledge a verified webhook even when recording it failed.
    webhook_ack_on_error: bool = True

    # Admin sessions
    session_max_age: int = 8 * 3600
    admin_username: str = "admin"
    admin_password: str = "admin123"

    @property
    def download_ttl(self) -> int:
        """Signed download lifetime, clamped to the 1s..1h range."""
        return max(1, min(self.download_url_ttl, 3600))

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"MISTORE_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if self.environment != "development" and not self.stripe_webhook_secret:
            raise RuntimeError(
                "MISTORE_STRIPE_WEBHOOK_SECRET must be set outside development"
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure defaults — set MISTORE_SECRET_KEY and "
                "MISTORE_ADMIN_PASSWORD for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> StoreSettings:
    settings = StoreSettings()
    settings.validate_for_production()
    return settings
