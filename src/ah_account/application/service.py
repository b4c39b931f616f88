"""AccountApplicationService: thin composition layer over the Ledger.

Deposit and withdraw run as one unit of work each (commit or rollback).
Profile and ledger history are read-only and run without explicit transaction.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_account.application.schemas import (
    BalanceChangeResponse,
    LedgerEntryItem,
    LedgerResponse,
    ProfileResponse,
    cursor_decode,
    cursor_encode,
)
from src.ah_account.domain.ledger import Ledger
from src.ah_account.domain.repository import AccountRepositoryProtocol
from src.ah_account.infrastructure.persistence import AccountRepository
from src.ah_common.cents import cents_to_display
from src.ah_common.enums import LedgerEntryType
from src.ah_common.transaction import run_in_transaction


class AccountApplicationService:
    def __init__(self, repo: AccountRepositoryProtocol | None = None) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()
        self._ledger = Ledger(self._repo)

    async def get_profile(
        self, db: AsyncSession, user_id: str, username: str
    ) -> ProfileResponse:
        balance = await self._ledger.balance_of(db, user_id)
        return ProfileResponse.from_cents(user_id=user_id, username=username, balance=balance)

    async def deposit(
        self, db: AsyncSession, user_id: str, amount_cents: int
    ) -> BalanceChangeResponse:
        account, entry = await run_in_transaction(
            db,
            lambda: self._ledger.credit(
                db, user_id, amount_cents, LedgerEntryType.DEPOSIT,
                reference_type="DEPOSIT", description="Deposit",
            ),
        )
        return BalanceChangeResponse.from_result(
            balance=account.available_balance, amount=amount_cents, entry_id=entry.id
        )

    async def withdraw(
        self, db: AsyncSession, user_id: str, amount_cents: int
    ) -> BalanceChangeResponse:
        account, entry = await run_in_transaction(
            db,
            lambda: self._ledger.debit(
                db, user_id, amount_cents, LedgerEntryType.WITHDRAW,
                reference_type="WITHDRAW", description="Withdrawal",
            ),
        )
        return BalanceChangeResponse.from_result(
            balance=account.available_balance, amount=amount_cents, entry_id=entry.id
        )

    async def list_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_ledger_entries(
            db, user_id, cursor_id, limit + 1, entry_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]

        items = [
            LedgerEntryItem(
                id=e.id,
                entry_type=e.entry_type,
                amount_cents=e.amount,
                amount_display=cents_to_display(e.amount),
                balance_after_cents=e.balance_after,
                balance_after_display=cents_to_display(e.balance_after),
                reference_type=e.reference_type,
                reference_id=e.reference_id,
                description=e.description,
                created_at=e.created_at.isoformat() if e.created_at else "",
            )
            for e in page
        ]

        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(items=items, next_cursor=next_cursor, has_more=has_more)
