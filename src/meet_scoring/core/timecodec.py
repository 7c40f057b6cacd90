"""Time-or-score text ⇄ seconds.

Swim times are "m:ss.cc" (or plain "ss.cc"); diving scores are plain decimals.
Unparseable text degrades to 0 seconds instead of raising, which ranks the
entry first in a swim event and first in a diving event. That distortion is
known and kept for compatibility with stored results.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

logger = logging.getLogger(__name__)


def _leading_float(text: str) -> Optional[float]:
    """Parse the longest leading decimal prefix, like a lenient parseFloat."""
    text = text.strip()
    end = len(text)
    while end > 0:
        try:
            value = float(text[:end])
        except ValueError:
            end -= 1
            continue
        if math.isnan(value) or math.isinf(value):
            return None
        return value
    return None


def to_seconds(text: Optional[str]) -> float:
    """Convert time or score text to seconds. '4:15.32' -> 255.32, '312.45' -> 312.45."""
    if not text:
        return 0.0
    raw = str(text).strip()

    if ":" not in raw:
        value = _leading_float(raw)
        if value is None:
            logger.debug("Unparseable time %r treated as 0", text)
            return 0.0
        return value

    parts = raw.split(":")
    if len(parts) == 2:
        minutes = _leading_float(parts[0]) or 0.0
        seconds = _leading_float(parts[1]) or 0.0
        return minutes * 60 + seconds

    # More than one colon: read the leading number, like the plain-decimal path.
    return _leading_float(raw) or 0.0


def format_seconds(seconds: float, is_diving: bool = False) -> str:
    """Render seconds as 'm:ss.cc' (no leading zero on minutes); diving and sub-minute as 'ss.cc'."""
    if is_diving or seconds < 60:
        return f"{seconds:.2f}"
    minutes = int(seconds // 60)
    remainder = f"{seconds % 60:.2f}".zfill(5)
    if remainder == "60.00":
        minutes += 1
        remainder = "00.00"
    return f"{minutes}:{remainder}"


def normalize(text: Optional[str]) -> Optional[str]:
    """Re-render a swim time as 'm:ss.cc'. Diving scores and unparseable text pass through."""
    if not text:
        return text
    raw = str(text).strip()
    if ":" not in raw:
        return raw

    parts = raw.split(":")
    if len(parts) != 2:
        return raw
    try:
        minutes = int(parts[0])
        seconds = float(parts[1])
    except ValueError:
        return raw
    if math.isnan(seconds) or math.isinf(seconds):
        return raw
    padded = f"{seconds:.2f}".zfill(5)
    if padded == "60.00":
        minutes += 1
        padded = "00.00"
    return f"{minutes}:{padded}"
