"""Storage module for extracted image files."""

from .media import ensure_output_dir, get_storage_stats, new_image_path, remove_partial

__all__ = [
    "ensure_output_dir",
    "get_storage_stats",
    "new_image_path",
    "remove_partial",
]
