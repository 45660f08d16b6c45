from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./workshop.db"  # Default to SQLite
    LOG_LEVEL: str = "INFO"
    RUN_MIGRATIONS: bool = True

    # Attachment storage: "s3" or "local"
    STORAGE_BACKEND: str = "local"
    AWS_BUCKET_NAME: str = ""
    AWS_BUCKET_REGION: str = "ap-south-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    LOCAL_STORAGE_DIR: str = "./uploads"
    LOCAL_STORAGE_BASE_URL: str = "/uploads"

    # Uploaded images are shrunk and re-encoded before storage
    IMAGE_MAX_WIDTH: int = 500
    IMAGE_JPEG_QUALITY: int = 90
    MAX_UPLOAD_FILES: int = 5
    UPLOAD_WORKERS: int = 5

    DEFAULT_PAGE_SIZE: int = 10

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }


settings = Settings()
