"""Auth routes: register (opens the account), login, refresh.

Responses use the ApiResponse envelope; the request id comes from
RequestLogMiddleware via request.state.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_common.database import get_db_session
from src.ah_common.response import ApiResponse, success_response
from src.ah_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
)
from src.ah_gateway.user.service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])
_service = UserService()


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
async def register(
    request: Request,
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    # user row + zero-balance account commit together
    async with db.begin():
        user = await _service.register(body.username, body.password, db)
    return success_response(
        RegisterResponse.from_user(user).model_dump(), request,
        message="User registered successfully",
    )


@router.post("/login", response_model=ApiResponse)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    user, access_token, refresh_token = await _service.login(body.username, body.password, db)
    data = LoginResponse.issue(user, access_token, refresh_token)
    return success_response(data.model_dump(), request, message="Login successful")


@router.post("/refresh", response_model=ApiResponse)
async def refresh_token(request: Request, body: RefreshRequest) -> ApiResponse:
    data = RefreshResponse(access_token=await _service.refresh(body.refresh_token))
    return success_response(data.model_dump(), request, message="Token refreshed")
