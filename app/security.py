# app/security.py
"""Security dependencies: API key validation, scopes and actor identity."""
from __future__ import annotations

import logging
from typing import Callable, Set

from fastapi import Depends, Header, status
from sqlalchemy.orm import Session

from app.config import DEV_API_KEY_ALLOWED, get_settings
from app.db import get_db
from app.models.api_key import ApiKey, ApiScope
from app.utils.apikey import find_valid_key, is_dev_key
from app.utils.errors import http_error
from app.utils.time import utcnow

logger = logging.getLogger(__name__)

LEGACY_KEY_ID = "legacy"


def _extract_key(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> str | None:
    """Read the key from ``X-API-Key`` or ``Authorization: Bearer ...``."""
    if x_api_key:
        return x_api_key.strip()
    if authorization and authorization.startswith("Bearer "):
        return authorization.split(" ", 1)[1].strip()
    return None


def _legacy_key() -> ApiKey:
    return ApiKey(
        id=LEGACY_KEY_ID,
        name="__legacy__",
        prefix="legacy",
        key_hash="legacy",
        scope=ApiScope.admin,
        is_active=True,
        user_id=get_settings().DEV_API_USER_ID,
    )


def require_api_key(
    db: Session = Depends(get_db),
    token: str | None = Depends(_extract_key),
) -> ApiKey:
    """Validate API key tokens and return the corresponding row."""
    if not token:
        raise http_error(status.HTTP_401_UNAUTHORIZED, "NO_API_KEY", "API key required.")

    if is_dev_key(token):
        if not DEV_API_KEY_ALLOWED:
            raise http_error(status.HTTP_401_UNAUTHORIZED, "LEGACY_KEY_FORBIDDEN", "Legacy dev key disabled.")
        logger.warning("Legacy dev API key used")
        return _legacy_key()

    key = find_valid_key(db, token)
    if key is None:
        raise http_error(status.HTTP_401_UNAUTHORIZED, "UNAUTHORIZED", "Invalid or expired API key")

    key.last_used_at = utcnow()
    db.commit()
    return key


def require_scope(allowed: Set[ApiScope]) -> Callable:
    """Ensure the key carries one of the allowed scopes (admin always passes)."""

    if not allowed:
        raise RuntimeError("require_scope needs a non-empty set of ApiScope")

    def _dep(key: ApiKey = Depends(require_api_key)) -> ApiKey:
        if key.scope == ApiScope.admin or key.scope in allowed:
            return key
        raise http_error(
            status.HTTP_403_FORBIDDEN,
            "INSUFFICIENT_SCOPE",
            f"Requires one of: {sorted(scope.value for scope in allowed)}",
        )

    return _dep


def get_actor_user_id(key: ApiKey = Depends(require_api_key)) -> str | None:
    """Return the user acting through ``key``, or ``None`` when it has no user."""

    return key.user_id


def require_actor_user_id(actor_user_id: str | None = Depends(get_actor_user_id)) -> str:
    """Like :func:`get_actor_user_id` but rejects keys without a user."""

    if not actor_user_id:
        raise http_error(status.HTTP_403_FORBIDDEN, "ACTOR_REQUIRED", "This action requires a user-bound API key.")
    return actor_user_id


__all__ = ["require_api_key", "require_scope", "get_actor_user_id", "require_actor_user_id"]
