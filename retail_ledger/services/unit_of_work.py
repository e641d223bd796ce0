"""
Unit of work over a SQLAlchemy session.

Everything inside `unit_of_work(db)` is applied together or not
at all. If the session already has a transaction open (the
request has read something, or the caller is batching several
operations) the unit becomes a SAVEPOINT inside it, so a failure
rolls back only this unit and the caller still decides when to
commit. Otherwise the unit is the session transaction itself.

The same code path serves PostgreSQL and SQLite; see
models.base.configure_sqlite_transactions for how SQLite is made
to honour it.
"""

import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from retail_ledger.services.errors import ConcurrentUpdate, StorageFailure

logger = logging.getLogger(__name__)


@contextmanager
def unit_of_work(db: Session, label: str = "unit of work"):
    scope = db.begin_nested() if db.in_transaction() else db.begin()
    try:
        with scope:
            yield db
            db.flush()
    except StaleDataError as e:
        logger.warning("%s aborted: concurrent modification (%s)", label, e)
        raise ConcurrentUpdate(
            f"{label} aborted: record was modified concurrently"
        ) from e
    except SQLAlchemyError as e:
        logger.exception("%s failed at the storage layer", label)
        raise StorageFailure(f"{label} failed: {e.__class__.__name__}") from e
