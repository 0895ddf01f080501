# src/am_admin/api/router.py
"""Admin REST API (ADMIN role required on every route)."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.am_admin.application.service import AdminService
from src.am_auction.application.schemas import RejectAuctionRequest
from src.am_common.database import get_db_session
from src.am_common.enums import Role
from src.am_common.response import ApiResponse, success_response
from src.am_gateway.auth.dependencies import require_role
from src.am_gateway.auth.identity import Identity

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()

AdminIdentity = Annotated[Identity, Depends(require_role(Role.ADMIN))]
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@router.get("/pending-auctions")
async def list_pending_auctions(
    request: Request, identity: AdminIdentity, db: DbSession
) -> ApiResponse:
    result = await _service.list_pending_auctions(db)
    return success_response(result, request)


@router.post("/auctions/{auction_id}/approve")
async def approve_auction(
    auction_id: int, request: Request, identity: AdminIdentity, db: DbSession
) -> ApiResponse:
    result = await _service.approve_auction(db, identity.account_id, auction_id)
    return success_response(result, request)


@router.post("/auctions/{auction_id}/reject")
async def reject_auction(
    auction_id: int,
    request: Request,
    identity: AdminIdentity,
    db: DbSession,
    body: RejectAuctionRequest | None = None,
) -> ApiResponse:
    reason = body.reason if body else None
    result = await _service.reject_auction(db, identity.account_id, auction_id, reason)
    return success_response(result, request)


@router.post("/auctions/{auction_id}/close")
async def close_auction(
    auction_id: int, request: Request, identity: AdminIdentity, db: DbSession
) -> ApiResponse:
    result = await _service.close_auction(db, auction_id)
    return success_response(result, request)


@router.get("/topups")
async def list_pending_topups(
    request: Request, identity: AdminIdentity, db: DbSession
) -> ApiResponse:
    result = await _service.list_pending_topups(db)
    return success_response({"items": result}, request)


@router.post("/topups/{topup_id}/approve")
async def approve_topup(
    topup_id: int, request: Request, identity: AdminIdentity, db: DbSession
) -> ApiResponse:
    result = await _service.approve_topup(db, identity.account_id, topup_id)
    return success_response(result, request)


@router.post("/topups/{topup_id}/reject")
async def reject_topup(
    topup_id: int, request: Request, identity: AdminIdentity, db: DbSession
) -> ApiResponse:
    result = await _service.reject_topup(db, identity.account_id, topup_id)
    return success_response(result, request)


@router.post("/sweep")
async def sweep_expired(
    request: Request,
    identity: AdminIdentity,
    db: DbSession,
    limit: int | None = Query(None, ge=1, le=1000),
) -> ApiResponse:
    result = await _service.sweep(db, limit)
    return success_response(result, request)


@router.get("/invariants")
async def verify_invariants(
    request: Request, identity: AdminIdentity, db: DbSession
) -> ApiResponse:
    result = await _service.verify_all_invariants(db)
    return success_response(result, request)
