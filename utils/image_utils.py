"""Image helper utilities."""
from __future__ import annotations

import base64
import io

from PIL import Image, UnidentifiedImageError

from core.config import settings
from core.logger import logger


def strip_data_url(payload: str) -> str:
    """Drop a ``data:<mime>;base64,`` prefix, keeping only the base64 data."""
    if payload.startswith("data:") and "," in payload:
        return payload.split(",", 1)[1]
    return payload


def prepare_image_payload(content: bytes, max_side: int | None = None) -> tuple[str, str]:
    """Re-encode uploaded image bytes as a bounded-size JPEG in base64."""
    limit = max_side or settings.max_image_side
    try:
        with Image.open(io.BytesIO(content)) as img:
            image = img.convert("RGB")
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError(f"Cannot open image: {exc}") from exc

    width, height = image.size
    if max(width, height) > limit:
        image.thumbnail((limit, limit))
        logger.info("Downscaled image from %dx%d to %dx%d", width, height, *image.size)

    buf = io.BytesIO()
    image.save(buf, format="JPEG", quality=90)
    return base64.b64encode(buf.getvalue()).decode("ascii"), "image/jpeg"
