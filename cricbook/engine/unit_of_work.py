import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from cricbook.engine.errors import CricbookError, ConflictError, PersistenceError

logger = logging.getLogger(__name__)


@contextmanager
def unit_of_work(session: Session, action: str):
    """
    Commit the session when the block succeeds, roll back otherwise.

    Domain errors pass through unchanged. A unique-constraint violation
    (a concurrent duplicate) becomes ConflictError; any other database error
    is logged and re-raised as PersistenceError("Failed to <action>").
    """
    try:
        yield
        session.commit()
    except CricbookError:
        session.rollback()
        raise
    except IntegrityError as e:
        session.rollback()
        logger.warning("Integrity error while trying to %s: %s", action, e.orig)
        raise ConflictError(f"Failed to {action}: conflicting record") from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Failed to %s", action)
        raise PersistenceError(f"Failed to {action}") from e
