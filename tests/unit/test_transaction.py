from unittest.mock import AsyncMock, MagicMock

import pytest
from asyncpg import exceptions as asyncpg_exc
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from src.ah_common.errors import BidTooLowError, ConflictError, UnavailableError
from src.ah_common.transaction import classify_storage_error, run_in_transaction


def _db() -> MagicMock:
    db = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


class TestRunInTransaction:
    async def test_commits_on_success(self) -> None:
        db = _db()
        work = AsyncMock(return_value="ok")
        assert await run_in_transaction(db, work) == "ok"
        db.commit.assert_awaited_once()
        db.rollback.assert_not_awaited()

    async def test_business_error_not_retried(self) -> None:
        db = _db()
        work = AsyncMock(side_effect=BidTooLowError(10, 20))
        with pytest.raises(BidTooLowError):
            await run_in_transaction(db, work, attempts=3, backoff_seconds=0)
        assert work.await_count == 1
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    async def test_transient_failure_retried_then_succeeds(self) -> None:
        db = _db()
        work = AsyncMock(side_effect=[OperationalError("SELECT", {}, Exception("timeout")), "ok"])
        assert await run_in_transaction(db, work, attempts=3, backoff_seconds=0) == "ok"
        assert work.await_count == 2

    async def test_transient_failure_exhausted(self) -> None:
        db = _db()
        work = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("timeout")))
        with pytest.raises(UnavailableError):
            await run_in_transaction(db, work, attempts=2, backoff_seconds=0)
        assert work.await_count == 2
        assert db.rollback.await_count == 2

    async def test_integrity_error_becomes_conflict(self) -> None:
        db = _db()
        work = AsyncMock(side_effect=IntegrityError("INSERT", {}, Exception("dup")))
        with pytest.raises(ConflictError):
            await run_in_transaction(db, work, attempts=2, backoff_seconds=0)


class _TranslatedDriverError(Exception):
    """Stands in for the asyncpg dialect's adapted DBAPI error class."""


def _wrapped(cause: Exception) -> DBAPIError:
    """Wrap an asyncpg exception the way SQLAlchemy's asyncpg dialect does."""
    orig = _TranslatedDriverError("driver error")
    orig.sqlstate = orig.pgcode = cause.sqlstate  # type: ignore[attr-defined]
    orig.__cause__ = cause
    return DBAPIError("SELECT 1", {}, orig)


class TestStorageErrorClassification:
    async def test_statement_timeout_becomes_unavailable(self) -> None:
        db = _db()
        timeout = asyncpg_exc.QueryCanceledError("canceling statement due to statement timeout")
        work = AsyncMock(side_effect=_wrapped(timeout))
        with pytest.raises(UnavailableError):
            await run_in_transaction(db, work, attempts=2, backoff_seconds=0)
        assert work.await_count == 2

    @pytest.mark.parametrize(
        "cause",
        [
            asyncpg_exc.DeadlockDetectedError("deadlock detected"),
            asyncpg_exc.SerializationError("could not serialize access"),
            asyncpg_exc.UniqueViolationError("duplicate key value"),
        ],
    )
    async def test_lost_race_becomes_conflict(self, cause) -> None:
        db = _db()
        work = AsyncMock(side_effect=_wrapped(cause))
        with pytest.raises(ConflictError):
            await run_in_transaction(db, work, attempts=2, backoff_seconds=0)
        assert work.await_count == 2
        assert db.rollback.await_count == 2

    async def test_deadlock_retried_then_succeeds(self) -> None:
        db = _db()
        deadlock = _wrapped(asyncpg_exc.DeadlockDetectedError("deadlock detected"))
        work = AsyncMock(side_effect=[deadlock, "ok"])
        assert await run_in_transaction(db, work, attempts=3, backoff_seconds=0) == "ok"
        db.commit.assert_awaited_once()

    async def test_sqlstate_read_from_cause_when_translation_lacks_it(self) -> None:
        orig = _TranslatedDriverError("driver error")
        orig.__cause__ = asyncpg_exc.QueryCanceledError("canceling statement")
        assert classify_storage_error(DBAPIError("SELECT 1", {}, orig)) is UnavailableError

    async def test_pool_timeout_becomes_unavailable(self) -> None:
        db = _db()
        work = AsyncMock(side_effect=PoolTimeoutError("QueuePool limit reached"))
        with pytest.raises(UnavailableError):
            await run_in_transaction(db, work, attempts=1, backoff_seconds=0)

    async def test_builtin_timeout_becomes_unavailable(self) -> None:
        assert classify_storage_error(TimeoutError()) is UnavailableError

    async def test_unclassified_driver_error_propagates(self) -> None:
        db = _db()
        error = _wrapped(asyncpg_exc.UndefinedTableError("relation does not exist"))
        work = AsyncMock(side_effect=error)
        with pytest.raises(DBAPIError):
            await run_in_transaction(db, work, attempts=3, backoff_seconds=0)
        assert work.await_count == 1
        db.rollback.assert_awaited_once()
