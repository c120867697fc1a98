from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


# project root (folder holding app/)
BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    # app
    app_name: str = "TravelTide"
    app_env: str = "dev"
    log_level: str = "INFO"

    # security / session / DB
    secret_key: str
    session_cookie: str = "traveltide_session"
    session_max_age_seconds: int = 7 * 24 * 60 * 60
    database_url: str

    # local image storage
    media_root: Path = BASE_DIR / "media"
    media_url: str = "/media"

    # "local" or "cloudinary"
    blob_backend: str = "local"
    cloudinary_cloud_name: str | None = None
    cloudinary_api_key: str | None = None
    cloudinary_api_secret: str | None = None
    cloudinary_folder: str = "traveltide"

    blob_upload_timeout_seconds: float = 30.0
    blob_delete_timeout_seconds: float = 15.0

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
