from __future__ import annotations

import functools
import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from reward_points import config
from reward_points.services.errors import ConflictError, InvalidInputError
from reward_points.services.locks import ResourceKey, resource_locks


logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected, lock_not_available
_RETRYABLE_PGCODES = {"40001", "40P01", "55P03"}
_UNIQUE_VIOLATION_PGCODE = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    pgcode = getattr(exc.orig, "pgcode", None)
    if pgcode is not None:
        return pgcode == _UNIQUE_VIOLATION_PGCODE
    message = str(exc.orig)
    return "UNIQUE constraint failed" in message or "duplicate key" in message


def _is_lock_contention(exc: OperationalError) -> bool:
    pgcode = getattr(exc.orig, "pgcode", None)
    if pgcode in _RETRYABLE_PGCODES:
        return True
    return "database is locked" in str(exc.orig)


@contextmanager
def atomic(db: Session, *keys: ResourceKey):
    """Run the block as one transaction while holding ``keys``.

    The commit happens before the locks are released, so no other writer can
    observe or overwrite an intermediate state. Any exception rolls back every
    sub-mutation of the block.
    """
    with resource_locks.hold(*keys):
        try:
            yield
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if _is_unique_violation(exc):
                logger.warning("integrity conflict, rolled back", extra={"error": str(exc.orig)})
                raise ConflictError("Concurrent write detected, retry the operation") from exc
            # CHECK, NOT NULL and foreign key failures are not fixed by retrying.
            logger.warning("constraint violation, rolled back", extra={"error": str(exc.orig)})
            raise InvalidInputError("Data constraint violated", error=str(exc.orig)) from exc
        except OperationalError as exc:
            db.rollback()
            if _is_lock_contention(exc):
                raise ConflictError("Resource is locked by another transaction, retry the operation") from exc
            raise
        except Exception:
            db.rollback()
            raise


def retry_on_conflict(fn):
    """Re-run a top-level operation when it fails with ``ConflictError``.

    Only wraps functions whose first argument is the session and whose body
    is a complete ``atomic`` unit, so a retry starts from committed state.
    """

    @functools.wraps(fn)
    def wrapper(db: Session, *args, **kwargs):
        attempts = max(1, config.CONFLICT_RETRIES)
        for attempt in range(1, attempts + 1):
            try:
                return fn(db, *args, **kwargs)
            except ConflictError:
                db.rollback()
                if attempt >= attempts:
                    raise
                logger.info(
                    "retrying after conflict",
                    extra={"operation": fn.__name__, "attempt": attempt, "max_attempts": attempts},
                )

    return wrapper
