#config.py
import os
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict
from typing import List
from functools import lru_cache

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")
    # Application Settings
    APP_NAME: str = "Picture Gallery"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 3000))

    # Database Settings (SQLite file, created on startup)
    DATABASE_PATH: str = "data/pictures.db"

    # CORS Settings (accept comma-separated strings to avoid JSON parsing in env)
    ALLOWED_ORIGINS: str = "*"

    # File Upload Settings
    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10MB
    MAX_FILES_PER_UPLOAD: int = 10
    ALLOWED_IMAGE_TYPES: List[str] = [
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
        "image/gif",
    ]
    UPLOAD_DIR: str = "uploads"
    THUMBNAIL_DIRNAME: str = "thumbnails"
    THUMBNAIL_SIZE: tuple = (200, 200)
    THUMBNAIL_QUALITY: int = 85
    # Ten full-size files plus multipart overhead
    MAX_REQUEST_SIZE: int = 10 * 10 * 1024 * 1024 + 1024 * 1024

    # Gallery page
    GALLERY_PAGE_SIZE: int = 50

    # URL prefixes
    STATIC_URL_PREFIX: str = "/static"
    UPLOADS_URL_PREFIX: str = "/uploads"

    # Middleware settings
    GZIP_MIN_SIZE: int = 500  # bytes

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Accept comma-separated strings for list envs in addition to JSON arrays
    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def thumbnail_dir(self) -> str:
        return os.path.join(self.UPLOAD_DIR, self.THUMBNAIL_DIRNAME)

    @property
    def max_file_size_mb(self) -> int:
        return self.MAX_FILE_SIZE // (1024 * 1024)


@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings: Settings = get_settings()
