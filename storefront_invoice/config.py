"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import os
from typing import List, Optional


def env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def env_path(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw and raw.strip():
        return raw.strip()
    return None


# Source tree root, used only to find bundled fonts.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def default_output_dir() -> str:
    return os.path.join(os.getcwd(), "uploads", "invoices")


def default_brand_image_candidates() -> List[str]:
    base = os.getcwd()
    return [
        os.path.join(base, "public", "Logo.png"),
        os.path.join(base, "Logo.png"),
        os.path.join(base, "Logo.PNG"),
    ]


OUTPUT_DIR = env_str("INVOICE_OUTPUT_DIR", default_output_dir())
URL_PREFIX = env_str("INVOICE_URL_PREFIX", "/invoices")

BRAND_IMAGE_OVERRIDE = env_path("INVOICE_BRAND_IMAGE")
BRAND_IMAGE_CANDIDATES = default_brand_image_candidates()
BRAND_NAME = env_str("INVOICE_BRAND_NAME", "Arudhra Fashions")
CURRENCY_PREFIX = env_str("INVOICE_CURRENCY_PREFIX", "Rs.")

MAX_INFLIGHT_RENDERS = env_int("INVOICE_MAX_INFLIGHT_RENDERS", 32, minimum=1)
RENDER_QUEUE_TIMEOUT_MS = env_int("INVOICE_RENDER_QUEUE_TIMEOUT_MS", 30000, minimum=0)

MAX_BODY_BYTES = env_int("INVOICE_MAX_BODY_BYTES", 4 * 1024 * 1024, minimum=1024)
MAX_PAGES = env_int("INVOICE_MAX_PAGES", 200, minimum=1)
LISTEN_BACKLOG = env_int("INVOICE_LISTEN_BACKLOG", 512, minimum=1)

LOG_LEVEL = env_str("INVOICE_LOG_LEVEL", "INFO").upper()
