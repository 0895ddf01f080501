"""am_settlement REST endpoints.

POST /payments — winner confirms payment for a closed, unpaid auction (BIDDER)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.am_common.database import get_db_session
from src.am_common.enums import Role
from src.am_common.errors import PaymentDueError, error_for_rejection
from src.am_common.response import ApiResponse, success_response
from src.am_gateway.auth.dependencies import require_role
from src.am_gateway.auth.identity import Identity
from src.am_settlement.application.schemas import ConfirmPaymentRequest, PaymentResult
from src.am_settlement.application.service import SettlementService
from src.am_settlement.domain.models import PaymentInsufficient, PaymentRejected

router = APIRouter(prefix="/payments", tags=["payments"])

_service = SettlementService()


@router.post("")
async def confirm_payment(
    body: ConfirmPaymentRequest,
    request: Request,
    identity: Annotated[Identity, Depends(require_role(Role.BIDDER))],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    outcome = await _service.confirm_payment(db, body.auction_id, identity.account_id)
    if isinstance(outcome, PaymentRejected):
        raise error_for_rejection(outcome.reason, outcome.message)
    if isinstance(outcome, PaymentInsufficient):
        raise PaymentDueError(outcome.amount_due, outcome.available)
    return success_response(PaymentResult.from_outcome(outcome).model_dump(), request)
