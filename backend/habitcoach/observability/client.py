"""Lazily created Opik client shared by tracing and metrics."""
from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

from habitcoach.core.config import settings

try:
    from opik import Opik
except ImportError:  # pragma: no cover
    Opik = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

_lock = Lock()
_client: Optional["Opik"] = None
_init_attempted = False


def _build_client() -> Optional["Opik"]:
    if Opik is None or not settings.opik_enabled:
        return None
    if not settings.opik_api_key:
        logger.warning("OPIK_ENABLED is set without OPIK_API_KEY; plan and report traces are off.")
        return None
    try:
        client = Opik(project_name=settings.opik_project, api_key=settings.opik_api_key)
    except Exception as exc:  # pragma: no cover - network/SDK failure
        logger.warning("Opik client could not be created; tracing disabled: %s", exc)
        return None
    logger.info("Tracing to Opik project %s", settings.opik_project)
    return client


def init_opik() -> Optional["Opik"]:
    """Create the client on the first call; later calls return the cached result."""
    global _client, _init_attempted
    with _lock:
        if not _init_attempted:
            _init_attempted = True
            _client = _build_client()
    return _client


def get_opik_client() -> Optional["Opik"]:
    return _client if _init_attempted else init_opik()


def reset_opik() -> None:
    """Drop the cached client so the next call re-reads settings."""
    global _client, _init_attempted
    with _lock:
        _client = None
        _init_attempted = False
