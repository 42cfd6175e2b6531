"""Build event log entries."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import Field

from .base import DomainModel
from .enums import BuildEventType, FunnelStep
from .types import BuildId, UserId


class BuildEvent(DomainModel):
    """Audit entry; `step_advanced` entries double as the funnel-advance signal."""

    build_id: BuildId
    owner_id: UserId
    event_type: BuildEventType
    previous_step: FunnelStep | None = None
    next_step: FunnelStep | None = None
    attributes: dict[str, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


__all__ = ["BuildEvent"]
