"""AccountRepository: concrete implementation of AccountRepositoryProtocol.

All balance-mutating operations use atomic PostgreSQL UPDATE ... RETURNING.
A result of 0 rows on debit means the balance did not cover the amount.

Transaction ownership: The CALLER (application service or settlement) is
responsible for committing or rolling back.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_account.domain.models import Account, LedgerEntry
from src.ah_common.errors import AccountNotFoundError, InsufficientBalanceError, InternalError

# ---------------------------------------------------------------------------
# SQL: accounts mutations
# ---------------------------------------------------------------------------

_CREDIT_SQL = text("""
    UPDATE accounts
    SET available_balance = available_balance + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING id, user_id, available_balance, version, created_at, updated_at
""")

_DEBIT_SQL = text("""
    UPDATE accounts
    SET available_balance = available_balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND available_balance >= :amount
    RETURNING id, user_id, available_balance, version, created_at, updated_at
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, amount, balance_after,
         reference_type, reference_id, description)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description)
    RETURNING id, user_id, entry_type, amount, balance_after,
              reference_type, reference_id, description, created_at
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, user_id, entry_type, amount, balance_after,
           reference_type, reference_id, description, created_at
    FROM ledger_entries
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
      AND (CAST(:entry_type AS TEXT) IS NULL OR entry_type = CAST(:entry_type AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_GET_ACCOUNT_SQL = text("""
    SELECT id, user_id, available_balance, version, created_at, updated_at
    FROM accounts
    WHERE user_id = :user_id
""")

# Rows are locked in user_id order so two settlements with crossed
# winner/seller roles queue instead of deadlocking.
_LOCK_ACCOUNTS_SQL = text("""
    SELECT user_id
    FROM accounts
    WHERE user_id = ANY(:user_ids)
    ORDER BY user_id
    FOR UPDATE
""")


def _row_to_account(row: object) -> Account:
    return Account(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        available_balance=row.available_balance,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_ledger(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class AccountRepository:
    """Concrete repository: all operations atomic at the SQL level."""

    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def lock_accounts(self, db: AsyncSession, user_ids: list[str]) -> list[str]:
        result = await db.execute(_LOCK_ACCOUNTS_SQL, {"user_ids": sorted(set(user_ids))})
        return [row.user_id for row in result.fetchall()]

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        reference_type: str | None,
        reference_id: str | None,
        description: str,
    ) -> tuple[Account, LedgerEntry]:
        result = await db.execute(_CREDIT_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(user_id)
        account = _row_to_account(row)
        entry = await self._write_entry(
            db, account, entry_type, amount, reference_type, reference_id, description
        )
        return account, entry

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        reference_type: str | None,
        reference_id: str | None,
        description: str,
    ) -> tuple[Account, LedgerEntry]:
        result = await db.execute(_DEBIT_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            acc_result = await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})
            acc_row = acc_result.fetchone()
            if acc_row is None:
                raise AccountNotFoundError(user_id)
            raise InsufficientBalanceError(amount, acc_row.available_balance)
        account = _row_to_account(row)
        entry = await self._write_entry(
            db, account, entry_type, -amount, reference_type, reference_id, description
        )
        return account, entry

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        rows = result.fetchall()
        return [_row_to_ledger(row) for row in rows]

    async def _write_entry(
        self,
        db: AsyncSession,
        account: Account,
        entry_type: str,
        signed_amount: int,
        reference_type: str | None,
        reference_id: str | None,
        description: str,
    ) -> LedgerEntry:
        ledger_result = await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "user_id": account.user_id,
                "entry_type": entry_type,
                "amount": signed_amount,
                "balance_after": account.available_balance,
                "reference_type": reference_type,
                "reference_id": reference_id,
                "description": description,
            },
        )
        ledger_row = ledger_result.fetchone()
        if ledger_row is None:
            raise InternalError("Ledger insert returned no rows")
        return _row_to_ledger(ledger_row)
