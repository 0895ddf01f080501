"""am_wallet REST API — all endpoints require a valid identity.

GET  /wallet          — balance, recent ledger entries, top-up requests
GET  /wallet/ledger   — cursor-paginated ledger
POST /wallet/topups   — request a top-up (admin approval credits the wallet)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.am_common.database import get_db_session
from src.am_common.response import ApiResponse, success_response
from src.am_gateway.auth.dependencies import get_identity
from src.am_gateway.auth.identity import Identity
from src.am_wallet.application.schemas import TopUpCreateRequest
from src.am_wallet.application.service import WalletApplicationService

router = APIRouter(prefix="/wallet", tags=["wallet"])

_service = WalletApplicationService()


@router.get("")
async def get_wallet(
    request: Request,
    identity: Annotated[Identity, Depends(get_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.get_wallet(db, identity.account_id)
    return success_response(data.model_dump(), request)


@router.get("/ledger")
async def list_ledger(
    request: Request,
    identity: Annotated[Identity, Depends(get_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    kind: str | None = Query(None, description="Filter by LedgerEntryKind"),
) -> ApiResponse:
    data = await _service.list_ledger(db, identity.account_id, cursor, limit, kind)
    return success_response(data.model_dump(), request)


@router.post("/topups", status_code=201)
async def request_topup(
    body: TopUpCreateRequest,
    request: Request,
    identity: Annotated[Identity, Depends(get_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.request_topup(db, identity.account_id, body.amount_cents, body.note)
    return success_response(data.model_dump(), request)
