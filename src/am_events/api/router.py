"""Notifications inbox endpoints.

GET  /notifications                     — latest messages for the caller
POST /notifications/{notification_id}/read
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.am_common.database import get_db_session
from src.am_common.response import ApiResponse, success_response
from src.am_events.application.service import NotificationService
from src.am_gateway.auth.dependencies import get_identity
from src.am_gateway.auth.identity import Identity

router = APIRouter(prefix="/notifications", tags=["notifications"])

_service = NotificationService()


@router.get("")
async def list_notifications(
    request: Request,
    identity: Annotated[Identity, Depends(get_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    data = await _service.list_notifications(db, identity.account_id, limit)
    return success_response(data.model_dump(), request)


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    request: Request,
    identity: Annotated[Identity, Depends(get_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await _service.mark_read(db, identity.account_id, notification_id)
    return success_response(data.model_dump(), request)
