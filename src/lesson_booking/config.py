import json
from pathlib import Path
from typing import Annotated, List, Literal, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[2]
_ENV_PATH = _PROJECT_ROOT / ".env"
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / ".env.example")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Lesson Booking"
    VERSION: str = "0.1.0"
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Storage
    STORE_BACKEND: Literal["memory", "mongo"] = "memory"
    MONGODB_URI: Optional[str] = None
    MONGODB_DB: str = "edunovaDB"
    MONGODB_TIMEOUT_MS: int = 5000
    SEED_CATALOG: bool = True

    CURRENCY: str = "GBP"

    # HTTP
    IMAGES_DIR: str = "images"
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and v.startswith("["):
            return json.loads(v)
        elif isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, list):
            return v
        return []

    @model_validator(mode="after")
    def require_mongo_uri(self) -> "Settings":
        if self.STORE_BACKEND == "mongo" and not self.MONGODB_URI:
            raise ValueError("MONGODB_URI is required when STORE_BACKEND=mongo")
        return self
