import os
from pydantic import BaseModel
from typing import Optional, List


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Read an env var with incidental whitespace trimmed; blank counts as unset."""
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or default


class Settings(BaseModel):
    """for reading environment-driven configuration.

    Hosting credentials default to LocalStack-style test values. The store
    table has no default: without it the store stays disconnected.
    """
    media_public_key: str = _env("MEDIA_PUBLIC_KEY", "test")
    media_private_key: str = _env("MEDIA_PRIVATE_KEY", "test")
    media_url_endpoint: Optional[str] = _env("MEDIA_URL_ENDPOINT")
    media_bucket: str = _env("MEDIA_BUCKET", "images")
    aws_region: str = _env("AWS_REGION", "us-east-1")
    aws_endpoint_url: Optional[str] = _env("AWS_ENDPOINT_URL")
    table_name: Optional[str] = _env("TABLE_NAME")

    port: int = int(_env("PORT", "5000"))
    max_body_mb: float = float(_env("MAX_BODY_MB", "12"))
    min_src_length: int = int(_env("MIN_SRC_LENGTH", "100"))
    rollback_orphaned_uploads: bool = _env("ROLLBACK_ORPHANED_UPLOADS", "true").lower() in {"1", "true", "yes"}
    cors_origins: List[str] = [o.strip() for o in _env("CORS_ORIGINS", "*").split(",") if o.strip()]
    log_level: str = _env("LOG_LEVEL", "INFO").upper()

    @property
    def max_body_bytes(self) -> int:
        return int(self.max_body_mb * 1024 * 1024)

settings = Settings()
