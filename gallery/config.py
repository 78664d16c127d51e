from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DELETE_POLICIES = ("edit_mode", "always")


class Settings(BaseSettings):
    backend_url: str = Field("http://127.0.0.1:8787/api", description="Base URL of the gallery data service")
    request_timeout: float = 30.0
    upload_timeout: float = Field(60.0, description="Bounded wait for one batch upload")

    # Compression
    compress_threshold: int = Field(500 * 1024, description="Files larger than this are recompressed")
    compress_quality: float = Field(0.7, gt=0, le=1)
    compress_max_width: int = Field(1200, ge=1)

    # Grid
    page_sizes: str = Field("50,25,100", description="Allowed page sizes, first one is the default")

    # Feedback windows (seconds)
    message_display_seconds: float = 5.0
    error_display_seconds: float = 3.0

    # Downloads
    download_dir: Path = Path("downloads")
    download_stagger_seconds: float = 0.2
    archive_downloads: bool = True

    delete_policy: str = Field("edit_mode", description="'edit_mode' gates row delete behind edit mode")
    log_level: str = "INFO"

    class Config:
        env_prefix = "GALLERY_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @field_validator('delete_policy')
    @classmethod
    def check_delete_policy(cls, v):
        v = v.strip().lower()
        if v not in DELETE_POLICIES:
            raise ValueError(f"delete_policy must be one of {', '.join(DELETE_POLICIES)}")
        return v

    @field_validator('page_sizes')
    @classmethod
    def check_page_sizes(cls, v):
        """Reject lists that are empty or contain non-positive sizes"""
        sizes = [x.strip() for x in v.split(",") if x.strip()]
        if not sizes or any(not x.isdigit() or int(x) < 1 for x in sizes):
            raise ValueError("page_sizes must be a comma-separated list of positive integers")
        return ",".join(sizes)

    @property
    def allowed_page_sizes(self) -> List[int]:
        return [int(x) for x in self.page_sizes.split(",")]


@lru_cache
def get_settings() -> Settings:
    return Settings()
