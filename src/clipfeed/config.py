"""Configuration management for clipfeed."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable overrides.

    All settings can be overridden via environment variables
    prefixed with CLIPFEED_ (e.g. CLIPFEED_DATA_DIR, CLIPFEED_PORT).
    List values are read as JSON (e.g. CLIPFEED_ALLOWED_MIME_TYPES='["video/mp4"]').
    """

    model_config = {"env_prefix": "CLIPFEED_"}

    # Storage
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".clipfeed",
        description="Root directory for the database and uploaded media",
    )

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"
    static_dir: Path | None = None  # optional front-end bundle served at /

    # Uploads
    max_upload_bytes: int = 50 * 1024 * 1024
    allowed_mime_types: list[str] = Field(default_factory=lambda: ["video/mp4", "video/webm"])
    upload_chunk_size: int = 1024 * 1024

    # Feed
    default_page_size: int = 5
    max_page_size: int = 20
    media_url_prefix: str = "/uploads"

    @property
    def db_path(self) -> Path:
        """SQLite database path."""
        return self.data_dir / "clipfeed.db"

    @property
    def uploads_dir(self) -> Path:
        """Directory holding one file per stored video."""
        return self.data_dir / "uploads"

    def ensure_dirs(self) -> None:
        """Create all required directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.uploads_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton — import this throughout the app
settings = Settings()
