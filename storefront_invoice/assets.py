"""Lookup of the optional brand image drawn in the invoice header."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from aiofiles import os as aio_os

from . import config
from .errors import AssetError

logger = logging.getLogger(__name__)


def brand_image_candidates() -> List[str]:
    candidates = list(config.BRAND_IMAGE_CANDIDATES)
    if config.BRAND_IMAGE_OVERRIDE:
        candidates.insert(0, config.BRAND_IMAGE_OVERRIDE)
    return candidates


async def find_brand_image(candidates: Optional[Iterable[str]] = None) -> str:
    """Return the first existing candidate path, or raise :class:`AssetError`."""
    paths = list(brand_image_candidates() if candidates is None else candidates)
    for path in paths:
        if await aio_os.path.isfile(path):
            return path
    raise AssetError(f"Brand image not found in any of: {', '.join(paths) or '(no candidates)'}")


async def optional_brand_image(candidates: Optional[Iterable[str]] = None) -> Optional[str]:
    try:
        return await find_brand_image(candidates)
    except AssetError as exc:
        logger.warning("%s; rendering invoice without it", exc)
        return None
