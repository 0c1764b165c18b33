"""
Configuration settings for DXD Magnate Views.

Uses Pydantic Settings to load environment variables for the data store
backend, database connection, logging, and view defaults (page size, sort
direction, notifications).
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Data store
    datastore_backend: Literal["memory", "postgres"] = Field("memory", alias="DATASTORE_BACKEND")
    seed_file: Optional[str] = Field(None, alias="SEED_FILE")

    # Database (postgres backend)
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("magnate", alias="DB_NAME")
    db_pool_min: int = Field(1, alias="DB_POOL_MIN")
    db_pool_max: int = Field(10, alias="DB_POOL_MAX")
    db_connect_retries: int = Field(3, alias="DB_CONNECT_RETRIES")

    # View defaults
    default_page_size: int = Field(10, alias="DEFAULT_PAGE_SIZE", ge=1)
    default_sort: Literal["newest_first", "oldest_first"] = Field(
        "newest_first", alias="DEFAULT_SORT"
    )
    notifications_enabled: bool = Field(True, alias="NOTIFICATIONS_ENABLED")

    # Uploads
    upload_dir: str = Field("uploads", alias="UPLOAD_DIR")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
