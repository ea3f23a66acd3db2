"""Bearer token check for the strategy and backtest routes.

An empty ``api.auth_token`` disables the check; ``create_app`` refuses to
start that way unless BROKERAI_INSECURE_OK is set.
"""

from __future__ import annotations

import hmac

from fastapi import Depends, Header

from api.deps import get_config
from api.errors import ApiError
from brokerai.core.config import Config


def _unauthorized(code: str, message: str) -> ApiError:
    return ApiError(code=code, message=message, status=401)


def bearer_token(header: str | None) -> str:
    """Token from an ``Authorization: Bearer <token>`` header value."""

    if not header:
        raise _unauthorized("auth.missing_token", "Missing bearer token")
    scheme, _, token = header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise _unauthorized("auth.invalid_header", "Invalid authorization header")
    return token


def require_bearer_token(
    authorization: str | None = Header(default=None, alias="Authorization"),
    config: Config = Depends(get_config),
) -> None:
    expected = config.api.auth_token or ""
    if not expected:
        return
    if not hmac.compare_digest(bearer_token(authorization).encode(), expected.encode()):
        raise _unauthorized("auth.invalid_token", "Invalid bearer token")


AuthDep = Depends(require_bearer_token)
