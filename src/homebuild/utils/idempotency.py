"""Idempotency keys for build creation."""

from __future__ import annotations

from datetime import datetime
from hashlib import sha256
from uuid import uuid4

from homebuild.domain.types import IdempotencyKey

MIGRATION_KEY_PREFIX = "migrate-"


def new_session_key() -> IdempotencyKey:
    """Key generated once per build session and reused by every create retry."""

    return IdempotencyKey(f"session-{uuid4().hex}")


def build_migration_key(user_id: str, model_id: str, saved_at: datetime) -> IdempotencyKey:
    """Deterministic key so that re-running a migration cannot create a second build."""

    payload = "::".join(("migrate", user_id, model_id.lower(), saved_at.isoformat()))
    digest = sha256(payload.encode("utf-8", errors="ignore")).hexdigest()
    return IdempotencyKey(f"{MIGRATION_KEY_PREFIX}{digest}")


def is_migration_key(key: str | None) -> bool:
    return key is not None and key.startswith(MIGRATION_KEY_PREFIX)


__all__ = [
    "MIGRATION_KEY_PREFIX",
    "build_migration_key",
    "is_migration_key",
    "new_session_key",
]
