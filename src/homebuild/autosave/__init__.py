"""Autosave scheduling."""

from .scheduler import AutosaveScheduler, SnapshotFn

__all__ = ["AutosaveScheduler", "SnapshotFn"]
