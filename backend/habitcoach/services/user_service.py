"""User rows are created implicitly the first time a user id shows up."""
from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from habitcoach.db.models.user import User

logger = logging.getLogger(__name__)


def get_or_create_user(db: Session, user_id: UUID) -> User:
    """
    Return the row for ``user_id``, inserting it when missing.

    The insert runs in a savepoint, so losing a race to a concurrent insert
    discards only the savepoint and keeps the caller's pending changes.
    """
    user = db.get(User, user_id)
    if user is not None:
        return user

    try:
        with db.begin_nested():
            user = User(id=user_id)
            db.add(user)
    except IntegrityError:
        user = db.get(User, user_id)
        if user is None:
            raise
        return user

    logger.debug("Created user %s", user_id)
    return user
