"""Enumerations used across the homebuild domain layer."""

from __future__ import annotations

from enum import IntEnum, StrEnum


class FunnelStep(IntEnum):
    """Ordered checkout stages; a build only moves forward through them."""

    CUSTOMIZE = 1
    BUYER_INFO = 2
    DELIVERY = 3
    CONTRACT = 4
    CONFIRMATION = 5


class BuildStatus(StrEnum):
    """Lifecycle status for a persisted build."""

    DRAFT = "draft"
    CLOSED = "closed"


class DeliveryStatus(StrEnum):
    """Resolution state of the delivery fee shown next to the price."""

    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    CALCULATING = "calculating"
    NOT_APPLICABLE = "not_applicable"


class SaveState(StrEnum):
    """Autosave state machine for a single build session."""

    IDLE = "idle"
    PENDING = "pending"
    SAVING = "saving"
    FAILED = "failed"


class BuildEventType(StrEnum):
    """Kinds of entries written to the build event log."""

    CREATED = "created"
    UPDATED = "updated"
    STEP_ADVANCED = "step_advanced"
    MIGRATED = "migrated"
    DUPLICATED = "duplicated"
    DELETED = "deleted"


class MigrationStatus(StrEnum):
    """Outcome of moving an anonymous customization into an account."""

    MIGRATED = "migrated"
    NOTHING_TO_MIGRATE = "nothing_to_migrate"
    FAILED = "failed"
