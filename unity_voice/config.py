import os
from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: Optional[str] = Field(None, alias="UNITY_VOICE_DATABASE_URL")
    database_pool_size: int = Field(10, alias="UNITY_VOICE_DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(10, alias="UNITY_VOICE_DATABASE_MAX_OVERFLOW")
    database_echo: bool = Field(False, alias="UNITY_VOICE_DATABASE_ECHO")
    jwt_secret: str = Field("default_secret", alias="UNITY_VOICE_JWT_SECRET")
    jwt_algorithm: str = Field("HS256", alias="UNITY_VOICE_JWT_ALGORITHM")
    max_level: int = Field(3, ge=1, alias="UNITY_VOICE_MAX_LEVEL")
    debug_endpoints: bool = Field(False, alias="UNITY_VOICE_DEBUG_ENDPOINTS")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[arg-type]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid backend configuration: {exc}") from exc
