# vitb_energy/core/config.py

from __future__ import annotations

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SENSOR_API_URL = "https://hackarena-backend.onrender.com/api/sensordata"


class Settings(BaseSettings):
    """
    Pydantic Settings v2

    - Loads env vars from the OS first, then a local .env file.
    - extra="ignore" so stray keys in .env don't crash startup.
    - case_sensitive=False makes env var matching forgiving.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # -------------------------
    # General
    # -------------------------
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")
    TIMEZONE: str = Field(default="Asia/Kolkata")
    PORT: int = Field(default=4000)

    # Comma-separated list of allowed origins, "*" allows everything
    CORS_ORIGINS: str = Field(default="*")

    # -------------------------
    # Mongo (support historic names)
    # -------------------------
    MONGO_URL: Optional[str] = Field(default=None)
    MONGODB_URL: Optional[str] = Field(default=None)
    MONGODB_URI: Optional[str] = Field(default=None)
    MONGO_DB_NAME: str = Field(default="vitb_energy")

    # -------------------------
    # Remote sensor API
    # -------------------------
    SENSOR_API_URL: str = Field(default=DEFAULT_SENSOR_API_URL)
    SENSOR_API_TIMEOUT_SECONDS: float = Field(default=30.0)

    # -------------------------
    # Polling
    # -------------------------
    # 3 * 60000 ms in the deployed service
    POLL_INTERVAL_SECONDS: int = Field(default=180)
    BASELINE_REFRESH_INTERVAL_SECONDS: int = Field(default=180)
    SCHEDULER_ENABLED: bool = Field(default=True)

    # -------------------------
    # Daily flat files
    # -------------------------
    DATA_DIR: str = Field(default="./VIT-Data")

    # -------------------------
    # Helpers
    # -------------------------
    def get_cors_origins(self) -> List[str]:
        return [o.strip().rstrip("/") for o in (self.CORS_ORIGINS or "").split(",") if o.strip()]

    def get_mongo_uri(self) -> str:
        uri = (self.MONGO_URL or self.MONGODB_URL or self.MONGODB_URI or "").strip()
        if not uri:
            raise RuntimeError("Mongo URI is not set (set MONGO_URL or MONGODB_URL or MONGODB_URI)")
        return uri


settings = Settings()
