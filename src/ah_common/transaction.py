"""Unit-of-work runner: commit on success, rollback on any failure.

Storage failures are classified by SQLSTATE and retried a bounded number of
times with a linear backoff:

    57014, 08xxx, 53xxx, 57P0x, pool timeout  -> UnavailableError
    40P01, 40001, 23xxx                       -> ConflictError

The asyncpg dialect wraps every driver error as a plain DBAPIError, so the
code is read from the translated error (``orig.sqlstate``) or, failing that,
from the asyncpg exception it was raised from. Business errors (AppError)
and unclassified driver errors are never retried.

The work callable must be safe to re-run from scratch: it reloads the
aggregate on every attempt, so a retry re-evaluates all rules against the
state that is committed at that moment.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ah_common.errors import AppError, ConflictError, UnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CONFLICT_STATES = frozenset({"40P01", "40001"})
_UNAVAILABLE_STATES = frozenset({"57014", "57P01", "57P02", "57P03"})


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    for source in (orig, getattr(orig, "__cause__", None)):
        code = getattr(source, "sqlstate", None) or getattr(source, "pgcode", None)
        if isinstance(code, str):
            return code
    return None


def classify_storage_error(exc: BaseException) -> type[AppError] | None:
    """Map a storage exception to the error it surfaces as, or None to re-raise."""
    if isinstance(exc, (PoolTimeoutError, TimeoutError, asyncio.TimeoutError)):
        return UnavailableError
    if not isinstance(exc, DBAPIError):
        return None
    state = _sqlstate(exc)
    if state is not None:
        if state in _CONFLICT_STATES or state.startswith("23"):
            return ConflictError
        if state in _UNAVAILABLE_STATES or state.startswith(("08", "53")):
            return UnavailableError
    if isinstance(exc, IntegrityError):
        return ConflictError
    if exc.connection_invalidated or isinstance(exc, (OperationalError, InterfaceError)):
        return UnavailableError
    return None


async def run_in_transaction(
    db: AsyncSession,
    work: Callable[[], Awaitable[T]],
    attempts: int | None = None,
    backoff_seconds: float | None = None,
) -> T:
    max_attempts = attempts or settings.DB_RETRY_ATTEMPTS
    backoff = settings.DB_RETRY_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
    attempt = 0
    while True:
        attempt += 1
        try:
            result = await work()
            await db.commit()
            return result
        except AppError:
            await db.rollback()
            raise
        except Exception as exc:
            await db.rollback()
            surfaced = classify_storage_error(exc)
            if surfaced is None:
                raise
            if attempt >= max_attempts:
                raise surfaced() from exc
            logger.warning(
                "%s, retrying (attempt %d/%d): %s",
                "Write conflict" if surfaced is ConflictError else "Transient storage failure",
                attempt, max_attempts, exc,
            )
        except BaseException:
            # CancelledError: a disconnected caller must not leave a
            # half-applied unit behind.
            await db.rollback()
            raise
        await asyncio.sleep(backoff * attempt)
