"""Database session helpers."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.services.errors import InternalError

logger = logging.getLogger(__name__)


def commit_and_refresh(db: Session, *instances) -> None:
    """
    Commit the transaction and reload each given instance (None entries are skipped).
    Services call this once per operation, after all mutations are staged.

    Raises:
        InternalError: If the database rejects the commit; the session is rolled back first
    """
    try:
        db.commit()
        for obj in instances:
            if obj is not None:
                db.refresh(obj)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database commit failed: {e}")
        raise InternalError("Failed to save changes") from e
