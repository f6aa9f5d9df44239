# Overview: Transaction, locking and retry helpers shared by the ledger services.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ShopError, ConflictError, StorageError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    Stock changes additionally use conditional UPDATE statements, so the
    stock check stays race-free on SQLite too.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def run_in_transaction(func, *, name: str, attempts: int | None = None, backoff_base: float = 0.1):
    """
    Run `func` as one all-or-nothing unit of work and commit it.

    `func` must only flush, never commit. Any failure rolls back every write
    made by the attempt:
    - ShopError subclasses propagate unchanged
    - IntegrityError becomes ConflictError
    - lock/version conflicts are retried, then surface as StorageError
    - any other SQLAlchemyError becomes StorageError (detail logged only)
    """
    if attempts is None:
        attempts = current_app.config.get("LEDGER_RETRY_ATTEMPTS", 3)

    def _op():
        try:
            result = func()
            db.session.commit()
            return result
        except (OperationalError, StaleDataError):
            # rolled back by run_with_retry
            raise
        except IntegrityError as exc:
            db.session.rollback()
            current_app.logger.warning("%s rejected by integrity constraint: %s", name, exc.orig)
            raise ConflictError("Conflicts with an existing record") from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.exception("%s failed with a storage error", name)
            raise StorageError() from exc
        except Exception:
            db.session.rollback()
            raise

    try:
        return run_with_retry(_op, attempts=attempts, backoff_base=backoff_base)
    except ShopError:
        raise
    except (OperationalError, StaleDataError) as exc:
        current_app.logger.exception("%s failed after %d attempts", name, attempts)
        raise StorageError() from exc
