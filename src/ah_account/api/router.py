"""ah_account REST API: 4 endpoints, all require JWT authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_account.application.schemas import DepositRequest, WithdrawRequest
from src.ah_account.application.service import AccountApplicationService
from src.ah_common.database import get_db_session
from src.ah_common.response import ApiResponse, success_response
from src.ah_gateway.auth.dependencies import get_current_user
from src.ah_gateway.user.db_models import UserModel

router = APIRouter(prefix="/account", tags=["account"])

_service = AccountApplicationService()


@router.get("/profile")
async def get_profile(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_profile(db, current_user.user_id, current_user.username)
    return success_response(data.model_dump(), request)


@router.post("/deposit")
async def deposit(
    body: DepositRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.deposit(db, current_user.user_id, body.amount_cents)
    return success_response(data.model_dump(), request, message="Deposit successful")


@router.post("/withdraw")
async def withdraw(
    body: WithdrawRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.withdraw(db, current_user.user_id, body.amount_cents)
    return success_response(data.model_dump(), request, message="Withdrawal successful")


@router.get("/ledger")
async def list_ledger(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    entry_type: str | None = Query(None, description="Filter by LedgerEntryType"),
) -> ApiResponse:
    data = await _service.list_ledger(
        db, current_user.user_id, cursor, limit, entry_type
    )
    return success_response(data.model_dump(), request)
