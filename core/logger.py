"""Shared ``airmath`` logger."""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from core.config import settings

logger = logging.getLogger("airmath")

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def init_logging(log_file: Optional[Path] = None) -> logging.Logger:
    """Attach console and rotating file handlers once; later calls only reset the level."""
    logger.setLevel(settings.log_level)
    if logger.handlers:
        return logger

    path = log_file or settings.data_dir / "airmath.log"
    path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(_FORMAT)
    # Recognizer replies carry math glyphs
    file_handler = RotatingFileHandler(path, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    for handler in (logging.StreamHandler(), file_handler):
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
