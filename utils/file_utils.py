"""File utilities."""
from __future__ import annotations

from core.config import settings
from core.logger import logger


def ensure_directories() -> None:
    """Create required directories."""
    for path in (
        settings.data_dir,
        settings.history_file.parent,
    ):
        path.mkdir(parents=True, exist_ok=True)
        logger.debug("Ensured directory: %s", path)
