"""
Admin API Routes - Operator Endpoints

Authentication is via Admin API Key, not end-user credentials.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from src.api.error import ClientError, ServerError
from src.api.utils.admin_auth import verify_admin_api_key
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.audit import AuditEventsPage, GetAuditEventsUseCase
from src.depends import get_unit_of_work

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get(
    "/audit/password-reset-events",
    status_code=status.HTTP_200_OK,
    response_model=AuditEventsPage,
    dependencies=[Depends(verify_admin_api_key)],
)
async def get_password_reset_events(
    uow: UnitOfWork = Depends(get_unit_of_work),
    limit: int = Query(50, ge=1, le=100, description="Maximum number of events to return"),
    cursor: Optional[str] = Query(None, description="Pagination cursor"),
    event: Optional[str] = Query(None, description="Filter by event type, e.g. PasswordResetFailed"),
):
    """
    Get Password Reset Audit Events

    Returns security events newest first, with the internal failure
    reasons that end users never see.

    Requires: X-Admin-API-Key header

    Raises:
        - 400 Bad Request: INVALID_EVENT_TYPE or INVALID_CURSOR
        - 401 Unauthorized: Missing or invalid admin API key
        - 500 Internal Server Error: Server error
    """
    use_case = GetAuditEventsUseCase(uow)
    result = await use_case.execute(limit=limit, cursor=cursor, event=event)

    if result.is_err():
        error = result.error
        if error.code in ("INVALID_EVENT_TYPE", "INVALID_CURSOR"):
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        raise ServerError(error)

    return result.value
