"""
Runtime configuration for the property listings service.

Values come from environment variables and are collected into one Settings
object that the app hands to its collaborators.
"""

import os
from typing import List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    database_url: Optional[str] = None
    database_name: Optional[str] = None

    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None
    asset_folder: str = "propertypulse"
    upload_concurrency: int = Field(1, ge=1)
    upload_timeout: float = 60.0

    strict_numeric_fields: bool = False
    trust_user_header: bool = False
    session_user_header: str = "X-User-Id"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        cloud_name = os.getenv("CLOUDINARY_CLOUD_NAME")
        api_key = os.getenv("CLOUDINARY_API_KEY")
        api_secret = os.getenv("CLOUDINARY_API_SECRET")

        # cloudinary://<api_key>:<api_secret>@<cloud_name>
        cloudinary_url = os.getenv("CLOUDINARY_URL")
        if cloudinary_url:
            parsed = urlparse(cloudinary_url)
            cloud_name = cloud_name or parsed.hostname
            api_key = api_key or parsed.username
            api_secret = api_secret or parsed.password

        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            database_url=os.getenv("DATABASE_URL"),
            database_name=os.getenv("DATABASE_NAME"),
            cloudinary_cloud_name=cloud_name,
            cloudinary_api_key=api_key,
            cloudinary_api_secret=api_secret,
            asset_folder=os.getenv("ASSET_FOLDER", "propertypulse"),
            upload_concurrency=int(os.getenv("UPLOAD_CONCURRENCY", 1)),
            upload_timeout=float(os.getenv("UPLOAD_TIMEOUT", 60)),
            strict_numeric_fields=_env_bool("STRICT_NUMERIC_FIELDS"),
            trust_user_header=_env_bool("TRUST_USER_HEADER"),
            session_user_header=os.getenv("SESSION_USER_HEADER", "X-User-Id"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            port=int(os.getenv("PORT", 8000)),
        )

    @property
    def database_configured(self) -> bool:
        return bool(self.database_url and self.database_name)

    @property
    def uploads_configured(self) -> bool:
        return bool(
            self.cloudinary_cloud_name and self.cloudinary_api_key and self.cloudinary_api_secret
        )
