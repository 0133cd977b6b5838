"""API key generation and lookup helpers."""
from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.api_key import ApiKey

KEY_PREFIX = "care_"


def hash_key(raw: str) -> str:
    """Return an HMAC-SHA256 hash for the provided API key."""

    return hmac.new(get_settings().SECRET_KEY.encode(), raw.encode(), hashlib.sha256).hexdigest()


def gen_key(prefix_len: int = 6) -> tuple[str, str, str]:
    """Generate a user-facing API key, its prefix, and the stored hash."""

    prefix = KEY_PREFIX + secrets.token_hex(prefix_len)[:prefix_len]
    raw = f"{prefix}.{secrets.token_urlsafe(32)}"
    return raw, prefix, hash_key(raw)


def is_dev_key(raw: str) -> bool:
    dev_key = get_settings().DEV_API_KEY
    return bool(dev_key) and secrets.compare_digest(raw, dev_key)


def find_valid_key(db: Session, raw: str) -> ApiKey | None:
    """Return the active, unexpired key matching ``raw``."""

    key = db.scalar(select(ApiKey).where(ApiKey.key_hash == hash_key(raw), ApiKey.is_active.is_(True)))
    if key is None:
        return None
    expires_at = key.expires_at
    if expires_at is not None and expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=UTC)
    if expires_at is not None and expires_at <= datetime.now(UTC):
        return None
    return key


__all__ = ["hash_key", "gen_key", "is_dev_key", "find_valid_key"]
