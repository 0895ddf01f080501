"""am_bidding REST endpoints.

POST /bids       — place an incremental or buy-now bid (BIDDER)
GET  /bids/mine  — caller's bids with auction status, winner and refund state
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.am_auction.application.service import AuctionApplicationService
from src.am_bidding.application.schemas import PlaceBidRequest, PlaceBidResponse
from src.am_bidding.application.service import BiddingService, BidRejected
from src.am_common.database import get_db_session
from src.am_common.enums import Role
from src.am_common.errors import error_for_rejection
from src.am_common.response import ApiResponse, success_response
from src.am_gateway.auth.dependencies import require_role
from src.am_gateway.auth.identity import Identity

router = APIRouter(prefix="/bids", tags=["bids"])

_service = BiddingService()
_auction_service = AuctionApplicationService()


@router.post("", status_code=201)
async def place_bid(
    body: PlaceBidRequest,
    request: Request,
    identity: Annotated[Identity, Depends(require_role(Role.BIDDER))],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.place_bid(
        db, identity.account_id, body.auction_id, body.amount_cents, body.deposit_cents
    )
    if isinstance(result, BidRejected):
        raise error_for_rejection(result.reason, result.message, result.boundary)
    return success_response(PlaceBidResponse.from_result(result).model_dump(), request)


@router.get("/mine")
async def list_my_bids(
    request: Request,
    identity: Annotated[Identity, Depends(require_role(Role.BIDDER))],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    result = await _auction_service.list_my_bids(db, identity.account_id, limit)
    return success_response(result.model_dump(), request)
