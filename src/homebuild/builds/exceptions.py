"""Exceptions raised by the build service and its gateways."""

from __future__ import annotations


class BuildError(RuntimeError):
    """Base class for build workflow errors."""


class BuildClosedError(BuildError):
    """Raised when configuration changes target a build past configuration."""


class InvalidStepError(BuildError):
    """Raised when a funnel step change is not allowed."""


class BuildGatewayError(BuildError):
    """Raised when the build persistence endpoint cannot be reached or fails."""


__all__ = ["BuildClosedError", "BuildError", "BuildGatewayError", "InvalidStepError"]
