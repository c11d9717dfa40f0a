from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from typing import List

env_path = Path(__file__).parent / ".env"

class Settings(BaseSettings):
    FSS_HOST: str = "0.0.0.0"
    FSS_PORT: int = 3000
    STORAGE_BASE_PATH: Path = Path("uploads")
    METADATA_FILE: Path = Path("files-metadata.json")
    STATIC_DIR: Path = Path("public")
    MAX_UPLOAD_SIZE_BYTES: int = 100 * 1024 * 1024
    DEFAULT_UPLOADER: str = "Anonymous"
    DATE_FORMAT: str = "%d.%m.%Y"
    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=env_path, extra='ignore')

settings = Settings()

def get_settings() -> Settings:
    return settings
