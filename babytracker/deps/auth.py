from __future__ import annotations

import hmac

from fastapi import Header, HTTPException, Request, status

from ..core.config import settings
from ..middlewares import principal_ctx_var
from .ui_auth import get_device_id, is_logged_in


class AuthContext:
    def __init__(self, *, subject: str, scheme: str) -> None:
        self.subject = subject
        self.scheme = scheme


def _set_principal(request: Request, principal: str) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


async def require_ui_or_api_key(
    request: Request,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> AuthContext:
    """Accept either a logged-in browser session or the configured API key."""

    if is_logged_in(request):
        subject = f"device:{get_device_id(request)}"
        _set_principal(request, subject)
        return AuthContext(subject=subject, scheme="session")

    api_key = (settings.API_KEY or "").strip()
    provided_key = (x_api_key or "").strip()
    if api_key and provided_key and hmac.compare_digest(api_key, provided_key):
        _set_principal(request, "api-key")
        return AuthContext(subject="api-key", scheme="api_key")

    if provided_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authorization required")
