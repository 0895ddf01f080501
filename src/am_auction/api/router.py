"""am_auction REST endpoints.

GET  /auctions               — live auctions, soonest ending first (public)
GET  /auctions/my-auctions   — the caller's own listings, any status (SELLER)
POST /auctions               — list an item (SELLER), starts PENDING
GET  /auctions/{auction_id}  — detail with bid history (newest first)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.am_auction.application.schemas import CreateAuctionRequest
from src.am_auction.application.service import AuctionApplicationService
from src.am_common.database import get_db_session
from src.am_common.enums import Role
from src.am_common.response import ApiResponse, success_response
from src.am_gateway.auth.dependencies import get_identity, require_role
from src.am_gateway.auth.identity import Identity

router = APIRouter(prefix="/auctions", tags=["auctions"])

_service = AuctionApplicationService()


@router.post("", status_code=201)
async def create_auction(
    body: CreateAuctionRequest,
    request: Request,
    identity: Annotated[Identity, Depends(require_role(Role.SELLER))],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_auction(db, identity.account_id, body)
    return success_response(result.model_dump(), request)


@router.get("")
async def list_active_auctions(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    result = await _service.list_active_auctions(db, limit)
    return success_response(result.model_dump(), request)


@router.get("/my-auctions")
async def list_my_auctions(
    request: Request,
    identity: Annotated[Identity, Depends(require_role(Role.SELLER))],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    result = await _service.list_seller_auctions(db, identity.account_id, limit)
    return success_response(result.model_dump(), request)


@router.get("/{auction_id}")
async def get_auction(
    auction_id: int,
    request: Request,
    identity: Annotated[Identity, Depends(get_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_auction(db, auction_id)
    return success_response(result.model_dump(), request)
