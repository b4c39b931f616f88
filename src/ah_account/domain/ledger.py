"""Ledger: the only component allowed to move money.

credit/debit are atomic per user: the repository applies each one as a
single conditional UPDATE, so two concurrent debits can never both pass a
balance that only covers one. A debit that does not fit fails closed with
InsufficientBalanceError and leaves the balance untouched.

Neither method commits. The caller owns the transaction, which lets
settlement put debit + credit + finalize into one unit.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_account.domain.models import Account, LedgerEntry
from src.ah_account.domain.repository import AccountRepositoryProtocol
from src.ah_common.errors import AccountNotFoundError, InvalidAmountError

logger = logging.getLogger(__name__)


class Ledger:
    def __init__(self, repo: AccountRepositoryProtocol) -> None:
        self._repo = repo

    async def balance_of(self, db: AsyncSession, user_id: str) -> int:
        account = await self._repo.get_account_by_user_id(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return account.available_balance

    async def lock_accounts(self, db: AsyncSession, *user_ids: str) -> None:
        """Row-lock several accounts in a fixed order before moving money between them."""
        await self._repo.lock_accounts(db, list(user_ids))

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        reference_type: str | None = None,
        reference_id: str | None = None,
        description: str = "",
    ) -> tuple[Account, LedgerEntry]:
        _require_positive(amount)
        account, entry = await self._repo.credit(
            db, user_id, amount, entry_type, reference_type, reference_id, description
        )
        logger.debug(
            "credit user=%s amount=%d balance=%d", user_id, amount, account.available_balance
        )
        return account, entry

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        reference_type: str | None = None,
        reference_id: str | None = None,
        description: str = "",
    ) -> tuple[Account, LedgerEntry]:
        _require_positive(amount)
        account, entry = await self._repo.debit(
            db, user_id, amount, entry_type, reference_type, reference_id, description
        )
        logger.debug(
            "debit user=%s amount=%d balance=%d", user_id, amount, account.available_balance
        )
        return account, entry


def _require_positive(amount: int) -> None:
    if amount <= 0:
        raise InvalidAmountError(amount)
