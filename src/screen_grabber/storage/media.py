"""Local output file management for extracted images."""

import logging
import uuid
from pathlib import Path
from typing import Any

from ..config import settings

logger = logging.getLogger(__name__)


def get_output_dir() -> Path:
    """Get directory path for extracted images."""
    return settings.output_directory


def ensure_output_dir() -> Path:
    """Create and return the output directory."""
    output_dir = get_output_dir()
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def new_image_path(suffix: str = ".jpg") -> Path:
    """Get a fresh, unused path for an extracted image."""
    return ensure_output_dir() / f"{uuid.uuid4().hex}{suffix}"


def remove_partial(path: Path) -> None:
    """Delete a partially written output file if one exists."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove partial output %s: %s", path, e)


def get_storage_stats() -> dict[str, Any]:
    """Get count and size of extracted images."""
    output_dir = get_output_dir()
    if not output_dir.exists():
        return {"image_count": 0, "total_size_mb": 0.0, "output_dir": str(output_dir)}

    files = [f for f in output_dir.iterdir() if f.is_file()]
    total_size = sum(f.stat().st_size for f in files)

    return {
        "image_count": len(files),
        "total_size_mb": round(total_size / (1024 * 1024), 2),
        "output_dir": str(output_dir),
    }
