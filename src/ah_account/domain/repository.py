"""Repository Protocol: dependency inversion for testability.

Unit tests inject a mock or in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_account.domain.models import Account, LedgerEntry


class AccountRepositoryProtocol(Protocol):
    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None: ...

    async def lock_accounts(self, db: AsyncSession, user_ids: list[str]) -> list[str]: ...

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        reference_type: str | None,
        reference_id: str | None,
        description: str,
    ) -> tuple[Account, LedgerEntry]: ...

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        reference_type: str | None,
        reference_id: str | None,
        description: str,
    ) -> tuple[Account, LedgerEntry]: ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]: ...
