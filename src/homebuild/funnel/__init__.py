"""Configurator funnel session."""

from .session import ConfiguratorSession, SessionIssue

__all__ = ["ConfiguratorSession", "SessionIssue"]
