"""Calendar helpers bound to the configured user timezone."""
from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from habitcoach.core.config import settings


def today() -> date:
    """Return the current calendar date in ``settings.timezone``."""
    return datetime.now(ZoneInfo(settings.timezone)).date()
