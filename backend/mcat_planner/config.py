import os
from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: Optional[str] = Field(None, alias="MCAT_PLANNER_DATABASE_URL")
    database_pool_size: int = Field(10, alias="MCAT_PLANNER_DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(10, alias="MCAT_PLANNER_DATABASE_MAX_OVERFLOW")
    database_echo: bool = Field(False, alias="MCAT_PLANNER_DATABASE_ECHO")
    create_schema: bool = Field(False, alias="MCAT_PLANNER_CREATE_SCHEMA")
    catalog_path: Optional[str] = Field(None, alias="MCAT_PLANNER_CATALOG_PATH")
    full_length_count: int = Field(6, ge=1, alias="MCAT_PLANNER_FULL_LENGTH_COUNT")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[arg-type]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid planner configuration: {exc}") from exc
