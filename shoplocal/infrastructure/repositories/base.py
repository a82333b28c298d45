import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from shoplocal.core.errors import InternalError, ShopLocalError
from shoplocal.infrastructure.database import SessionLocal

logger = logging.getLogger(__name__)


class SqlAlchemyRepository:
    """Opens one session per operation, commits on success, rolls back on any error."""

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or SessionLocal

    @contextmanager
    def _session(self):
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except ShopLocalError:
            session.rollback()
            raise
        except SQLAlchemyError as e:
            logger.error(f"DB Error in {type(self).__name__}: {e}")
            session.rollback()
            raise InternalError() from e
        finally:
            session.close()
