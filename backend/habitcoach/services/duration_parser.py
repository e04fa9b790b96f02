"""Convert human duration strings ("3개월", "2주", "10일") into day counts."""
from __future__ import annotations

import logging
import re
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

# Checked in order; the first unit found in the text wins. Months are a fixed
# 30-day approximation.
DURATION_UNITS: Tuple[Tuple[Tuple[str, ...], int], ...] = (
    (("개월", "달", "month"), 30),
    (("주", "week"), 7),
    (("일", "day"), 1),
)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _match_duration(text: str) -> Optional[Tuple[int, Optional[int]]]:
    """Return ``(multiplier, count)`` for the first matching unit, or None."""
    lowered = text.lower()
    for units, multiplier in DURATION_UNITS:
        if any(unit in lowered for unit in units):
            match = _LEADING_INT.match(lowered)
            return multiplier, int(match.group(1)) if match else None
    return None


def parse_duration_days(text: str | None) -> int:
    """Return the number of days described by ``text``; 0 when unknown."""
    if not text:
        return 0
    matched = _match_duration(text)
    if matched is None:
        return 0
    multiplier, count = matched
    if count is None:
        logger.warning("Duration %r has no leading number; treating as 0 days", text)
        return 0
    days = count * multiplier
    if days < 0:
        logger.warning("Duration %r is negative; treating as 0 days", text)
        return 0
    return days


def is_recognized_duration(text: str | None) -> bool:
    """True when ``text`` carries both a known unit and a leading number."""
    if not text:
        return False
    matched = _match_duration(text)
    return matched is not None and matched[1] is not None
