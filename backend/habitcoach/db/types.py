"""Column types shared by the ORM models."""
from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import JSON

# Milestones, task snapshots and score vectors; JSONB on Postgres, plain JSON
# elsewhere (SQLite in tests).
JSONDocument = JSON().with_variant(JSONB(), "postgresql")
