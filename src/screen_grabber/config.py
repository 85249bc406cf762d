"""Configuration settings for screen grabber."""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SCREEN_GRABBER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Binaries
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"

    # Paths
    output_dir: Path = Path("data/images")

    # Extraction
    jpeg_quality: int = 2  # ffmpeg -q:v (2 is high quality)
    extraction_timeout: float = 120.0  # seconds before ffmpeg is killed
    probe_timeout: float = 30.0  # seconds before ffprobe is killed

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @property
    def output_directory(self) -> Path:
        """Get absolute output directory path."""
        return self.output_dir.resolve()


settings = Settings()
