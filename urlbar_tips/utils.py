from __future__ import annotations

import time
from typing import Optional
from urllib.parse import urlsplit


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    if value in ("1", "true", "yes", "y", "on"):
        return True
    if value in ("0", "false", "no", "n", "off"):
        return False
    return default


def utc_now_ts() -> float:
    return time.time()


def split_url(value: str):
    """Parse an absolute URL, returning None when it has no scheme or host."""
    if not value:
        return None
    try:
        parts = urlsplit(value.strip())
        hostname = parts.hostname
    except ValueError:
        return None
    if not parts.scheme or not hostname:
        return None
    return parts
