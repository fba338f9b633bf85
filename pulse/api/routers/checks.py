"""
Checks Router

Listing and administration of checks. Mutating routes require the admin
bearer token.
"""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Query, Response

from pulse.api.deps import get_service, require_admin
from pulse.api.schemas import (
    CheckCreate,
    CheckListResponse,
    CheckResponse,
    FailureReport,
    PageMeta,
)
from pulse.monitor import CheckService

router = APIRouter(prefix="/checks")


@router.get("", response_model=CheckListResponse)
async def list_checks(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    service: CheckService = Depends(get_service),
) -> CheckListResponse:
    """List checks ordered by name."""
    result = await service.list_checks(page=page, limit=limit)
    return CheckListResponse(
        checks=[CheckResponse.from_check(c) for c in result["checks"]],
        meta=PageMeta(**result["meta"]),
    )


@router.get("/{token}", response_model=CheckResponse)
async def get_check(
    token: str,
    service: CheckService = Depends(get_service),
) -> CheckResponse:
    """Get a single check."""
    return CheckResponse.from_check(await service.get(token))


@router.post(
    "",
    response_model=CheckResponse,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
async def create_check(
    request: CheckCreate,
    service: CheckService = Depends(get_service),
) -> CheckResponse:
    """Create a check. It starts in status 'new'."""
    check = await service.create(request.name, request.schedule, request.grace)
    return CheckResponse.from_check(check)


@router.delete("/{token}", status_code=204, dependencies=[Depends(require_admin)])
async def delete_check(
    token: str,
    service: CheckService = Depends(get_service),
) -> Response:
    """Delete a check."""
    await service.delete(token)
    return Response(status_code=204)


@router.post(
    "/{token}/maintenance",
    response_model=CheckResponse,
    dependencies=[Depends(require_admin)],
)
async def toggle_maintenance(
    token: str,
    service: CheckService = Depends(get_service),
) -> CheckResponse:
    """Enter or leave maintenance mode."""
    return CheckResponse.from_check(await service.toggle_maintenance(token))


@router.post(
    "/{token}/fail",
    response_model=CheckResponse,
    dependencies=[Depends(require_admin)],
)
async def record_failure(
    token: str,
    report: FailureReport | None = Body(default=None),
    service: CheckService = Depends(get_service),
) -> CheckResponse:
    """Mark a check failed, even while in maintenance."""
    reason = report.reason if report else None
    return CheckResponse.from_check(await service.record_failure(token, reason))
