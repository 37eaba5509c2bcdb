from __future__ import annotations
from pydantic_settings import BaseSettings
from pydantic import Field

class Settings(BaseSettings):
    database_url: str = Field(..., alias="DATABASE_URL")

    # collaborators
    mail_base_url: str = Field("http://localhost:8010", alias="MAIL_BASE_URL")
    outbound_timeout_seconds: float = Field(default=5.0, alias="OUTBOUND_TIMEOUT_SECONDS")

    # "local" day bounds for bulk deletion and display formatting
    studio_timezone: str = Field("UTC", alias="STUDIO_TIMEZONE")

    # QR rendering
    qr_image_width: int = Field(default=300, alias="QR_IMAGE_WIDTH")
    qr_image_margin: int = Field(default=2, alias="QR_IMAGE_MARGIN")

    # Redis
    redis_url: str = Field("redis://127.0.0.1:6379/0", alias="REDIS_URL")
    rl_enabled: bool = Field(default=True, alias="RL_ENABLED")
    rl_window_seconds: int = Field(default=60, alias="RL_WINDOW_SECONDS")
    rl_max_reqs: int = Field(default=120, alias="RL_MAX_REQS")

    # NATS
    enable_nats: bool = Field(default=True, alias="ENABLE_NATS")
    nats_urls: str = Field("nats://127.0.0.1:4222", alias="NATS_URLS")
    nats_subject_notification: str = Field("notifications.created", alias="NATS_SUBJECT_NOTIFICATION")
    nats_subject_checkin: str = Field("helmets.checkins.recorded", alias="NATS_SUBJECT_CHECKIN")
    nats_subject_reservation_cancelled: str = Field(
        "helmets.reservations.cancelled", alias="NATS_SUBJECT_RESERVATION_CANCELLED"
    )

    # logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, alias="LOG_FILE")

    class Config:
        env_file = ".env"
        env_prefix = ""
        case_sensitive = False
        extra = "ignore"

class ScannerSettings(BaseSettings):
    api_url: str = Field("http://localhost:8000", alias="SCANNER_API_URL")
    camera_index: int = Field(default=0, alias="SCANNER_CAMERA_INDEX")
    fps: float = Field(default=30.0, alias="SCANNER_FPS")
    request_timeout_seconds: float = Field(default=10.0, alias="SCANNER_REQUEST_TIMEOUT_SECONDS")
    max_empty_reads: int = Field(default=90, alias="SCANNER_MAX_EMPTY_READS")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_prefix = ""
        case_sensitive = False
        extra = "ignore"

_settings: Settings | None = None
def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
