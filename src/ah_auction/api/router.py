"""ah_auction REST API.

Listings (upcoming, live) are public to any signed-in user; every mutation is
checked against the caller's identity inside the service.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_auction.application.schemas import (
    CreateAuctionRequest,
    EditDescriptionRequest,
    PlaceBidRequest,
)
from src.ah_auction.application.service import get_auction_service
from src.ah_common.database import get_db_session
from src.ah_common.response import ApiResponse, success_response
from src.ah_gateway.auth.dependencies import get_current_user
from src.ah_gateway.user.db_models import UserModel

router = APIRouter(prefix="/auctions", tags=["auctions"])

_service = get_auction_service()

CurrentUser = Annotated[UserModel, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@router.post("", status_code=201)
async def create_auction(
    body: CreateAuctionRequest, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.create_auction(db, current_user.user_id, body)
    return success_response(data.model_dump(mode="json"), request, message="Auction created")


# Static paths first so they are not captured by /{auction_id}.
@router.get("/upcoming")
async def list_upcoming(current_user: CurrentUser, db: DbSession, request: Request) -> ApiResponse:
    data = await _service.list_upcoming(db)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/live")
async def list_live(current_user: CurrentUser, db: DbSession, request: Request) -> ApiResponse:
    data = await _service.list_live(db)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/mine")
async def list_mine(current_user: CurrentUser, db: DbSession, request: Request) -> ApiResponse:
    data = await _service.list_mine(db, current_user.user_id)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/{auction_id}")
async def get_auction(
    auction_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.get_auction(db, auction_id)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/{auction_id}/result")
async def auction_result(
    auction_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.auction_result(db, auction_id)
    return success_response(data.model_dump(mode="json"), request)


@router.put("/{auction_id}/description")
async def edit_description(
    auction_id: str,
    body: EditDescriptionRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.edit_description(db, current_user.user_id, auction_id, body.description)
    return success_response(data.model_dump(mode="json"), request, message="Description updated")


@router.post("/{auction_id}/activate")
async def activate(
    auction_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.activate(db, current_user.user_id, auction_id)
    return success_response(data.model_dump(mode="json"), request, message="Auction is live")


@router.post("/{auction_id}/bids", status_code=201)
async def place_bid(
    auction_id: str,
    body: PlaceBidRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.place_bid(db, current_user.user_id, auction_id, body.amount_cents)
    return success_response(data.model_dump(mode="json"), request, message="Bid accepted")


@router.post("/{auction_id}/end")
async def end_auction(
    auction_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.end_auction(db, current_user.user_id, auction_id)
    return success_response(data.model_dump(mode="json"), request, message="Auction finalized")


@router.delete("/{auction_id}")
async def delete_listing(
    auction_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.delete_listing(db, current_user.user_id, auction_id)
    return success_response(data.model_dump(), request, message="Auction deleted")
