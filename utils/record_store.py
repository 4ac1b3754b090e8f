"""
Record store for OTP records, backed by the shared Flask-SQLAlchemy session.

All reads used for a read-check-write sequence take a row lock
(SELECT ... FOR UPDATE) that is held until commit() or rollback().
SQLAlchemy failures are re-raised as PersistenceError with a typed `kind`.
"""
import logging
from contextlib import contextmanager

from sqlalchemy import delete, select
from sqlalchemy import exc as sa_exc

from models import db
from models.otp_record import OTPRecord
from utils.errors import PersistenceError

logger = logging.getLogger(__name__)

# SQLSTATE codes reported by the PostgreSQL driver
PG_QUERY_CANCELED = '57014'
PG_LOCK_NOT_AVAILABLE = '55P03'


def classify_error(error):
    """Map a SQLAlchemy exception to a PersistenceError kind."""
    if isinstance(error, sa_exc.TimeoutError):
        return PersistenceError.TIMEOUT
    if isinstance(error, sa_exc.IntegrityError):
        return PersistenceError.CONSTRAINT
    if isinstance(error, sa_exc.ProgrammingError):
        return PersistenceError.SCHEMA
    if isinstance(error, sa_exc.DBAPIError):
        pgcode = getattr(error.orig, 'pgcode', None)
        if pgcode in (PG_QUERY_CANCELED, PG_LOCK_NOT_AVAILABLE):
            return PersistenceError.TIMEOUT
        if error.connection_invalidated or isinstance(error, sa_exc.OperationalError):
            return PersistenceError.CONNECTION
    return PersistenceError.UNKNOWN


class OTPRecordStore:
    """Lookup/create/update/delete of the single OTP record per email."""

    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    @contextmanager
    def _guard(self, action):
        try:
            yield
        except sa_exc.SQLAlchemyError as e:
            kind = classify_error(e)
            logger.error("Record store %s failed (%s): %s", action, kind, e.__class__.__name__, exc_info=True)
            try:
                self.session.rollback()
            except sa_exc.SQLAlchemyError:
                logger.warning("Session rollback after store failure also failed", exc_info=True)
            raise PersistenceError(f"Record store {action} failed.", kind=kind) from e

    def find_latest_by_email(self, email, lock=False):
        """Return the record for `email` or None. `lock` holds a row lock until commit/rollback."""
        stmt = select(OTPRecord).where(OTPRecord.email == email)
        if lock:
            stmt = stmt.with_for_update()
        with self._guard('lookup'):
            return self.session.execute(stmt).scalar_one_or_none()

    def upsert(self, email, **fields):
        """Create the record for `email` or overwrite the given fields in place."""
        with self._guard('upsert'):
            record = self.session.get(OTPRecord, email)
            if record is None:
                record = OTPRecord(email=email, **fields)
                self.session.add(record)
            else:
                for name, value in fields.items():
                    setattr(record, name, value)
            self.session.flush()
        return record

    def delete(self, email):
        with self._guard('delete'):
            self.session.execute(delete(OTPRecord).where(OTPRecord.email == email))
            self.session.flush()

    def commit(self):
        with self._guard('commit'):
            self.session.commit()

    def rollback(self):
        """Discard pending changes and release any row lock."""
        with self._guard('rollback'):
            self.session.rollback()
