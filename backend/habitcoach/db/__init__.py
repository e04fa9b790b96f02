"""Persistence layer: declarative base, ORM models and session helpers."""
from habitcoach.db.base import Base
from habitcoach.db import models  # noqa: F401  registers tables on Base.metadata

__all__ = ["Base"]
