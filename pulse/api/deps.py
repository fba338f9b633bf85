"""Request dependencies shared by the routers."""

from __future__ import annotations

import hmac

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pulse.monitor import CheckMetrics, CheckService
from pulse.runtime import Monitor

_bearer = HTTPBearer(auto_error=False)


def get_monitor(request: Request) -> Monitor:
    return request.app.state.monitor


def get_service(request: Request) -> CheckService:
    return get_monitor(request).service


def get_metrics(request: Request) -> CheckMetrics:
    return get_monitor(request).metrics


def require_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> None:
    """Reject the request unless it carries the admin secret as a bearer token."""
    secret = get_monitor(request).settings.admin_secret
    if not secret:
        raise HTTPException(status_code=401, detail="Unauthorized: admin API is disabled")

    if credentials is None or not hmac.compare_digest(
        credentials.credentials.encode("utf-8"),
        secret.encode("utf-8"),
    ):
        raise HTTPException(status_code=401, detail="Unauthorized: admin secret required")
