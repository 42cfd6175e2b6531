"""Debounced, single-writer autosave for one build session."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from homebuild.anonymous import AnonymousCustomizationCache, CacheStorageError
from homebuild.builds import BuildError, BuildGateway
from homebuild.catalog import CatalogError
from homebuild.domain import (
    Build,
    BuildId,
    BuildPatch,
    BuildPayload,
    Identity,
    IdempotencyKey,
    SaveState,
)
from homebuild.persistence import OwnershipError, RepositoryError
from homebuild.utils.idempotency import new_session_key

logger = logging.getLogger(__name__)

SnapshotFn = Callable[[], BuildPayload]

_SAVE_ERRORS = (BuildError, RepositoryError, CatalogError, CacheStorageError, TimeoutError)


class AutosaveScheduler:
    """Persists the latest local state after a quiet period.

    States move ``idle -> pending -> saving -> idle`` on success and
    ``saving -> failed`` on error; the next edit or an explicit ``flush``
    moves a failed session back to ``pending``. At most one write is in
    flight; edits made while saving mark the session dirty and start a new
    debounce window once the write returns. The snapshot is taken when the
    write fires, never when the edit was made.

    Methods that schedule work must be called from a running event loop.
    """

    def __init__(
        self,
        *,
        model_id: str,
        snapshot: SnapshotFn,
        cache: AnonymousCustomizationCache,
        gateway: BuildGateway | None = None,
        identity: Identity | None = None,
        build_id: BuildId | None = None,
        debounce_seconds: float = 1.0,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._model_id = model_id
        self._snapshot = snapshot
        self._cache = cache
        self._gateway = gateway
        self._identity = identity or Identity.anonymous()
        self._build_id = build_id
        self._debounce_seconds = debounce_seconds
        self._timeout_seconds = timeout_seconds
        self._idempotency_key: IdempotencyKey = new_session_key()

        self._state = SaveState.IDLE
        self._revision = 0
        self._saved_revision = 0
        self._dirty = False
        self._closed = False
        self._timer: asyncio.Task[None] | None = None
        self._inflight: asyncio.Task[None] | None = None
        self._write_lock = asyncio.Lock()

        self.last_error: str | None = None
        self.last_saved: Build | None = None
        self.redirect_required = False
        self.save_count = 0

    @property
    def state(self) -> SaveState:
        return self._state

    @property
    def build_id(self) -> BuildId | None:
        return self._build_id

    @property
    def identity(self) -> Identity:
        return self._identity

    @property
    def idempotency_key(self) -> IdempotencyKey:
        return self._idempotency_key

    @property
    def has_unsaved_changes(self) -> bool:
        return self._revision != self._saved_revision

    def adopt(self, build_id: BuildId) -> None:
        """Attach to a build that already exists (restored or migrated)."""

        self._build_id = build_id

    def switch_identity(self, identity: Identity, gateway: BuildGateway | None) -> None:
        """Route later writes through ``gateway`` once the visitor signs in.

        A different user starts a fresh build session: the held build id and
        idempotency key belong to the previous account.
        """

        if identity.user_id != self._identity.user_id:
            self._build_id = None
            self._idempotency_key = new_session_key()
            self.last_saved = None
        self._identity = identity
        self._gateway = gateway
        self.redirect_required = False

    def notify_change(self) -> None:
        """Record an edit and (re)open the debounce window."""

        self._revision += 1
        if self._closed:
            return
        if self._state is SaveState.SAVING:
            self._dirty = True
            return
        self._state = SaveState.PENDING
        self._schedule()

    async def flush(self) -> SaveState:
        """Save now, skipping the debounce window. Also used as explicit retry."""

        self._cancel_timer()
        if self.has_unsaved_changes:
            await self._run_save()
        return self._state

    async def wait_idle(self) -> SaveState:
        """Wait until no debounce window or timer-driven write remains."""

        while True:
            pending = {
                task
                for task in (self._timer, self._inflight)
                if task is not None and not task.done()
            }
            if not pending:
                return self._state
            await asyncio.wait(pending)

    async def close(self, *, flush: bool = True) -> SaveState:
        if flush and not self._closed and self.has_unsaved_changes:
            await self.flush()
        self._closed = True
        self._cancel_timer()
        return self._state

    def _schedule(self) -> None:
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(self._debounced())

    def _cancel_timer(self) -> None:
        timer = self._timer
        if timer is not None and not timer.done():
            timer.cancel()
        self._timer = None

    async def _debounced(self) -> None:
        await asyncio.sleep(self._debounce_seconds)
        # Once fired the write is no longer cancellable by later edits.
        self._inflight = asyncio.current_task()
        self._timer = None
        await self._run_save()

    async def _run_save(self) -> None:
        async with self._write_lock:
            if not self.has_unsaved_changes:
                self._state = SaveState.IDLE
                return
            self._state = SaveState.SAVING
            self._dirty = False
            revision = self._revision
            try:
                payload = self._snapshot()
                await asyncio.wait_for(self._write(payload, revision), self._timeout_seconds)
            except OwnershipError as exc:
                self._fail(exc)
                self.redirect_required = True
            except _SAVE_ERRORS as exc:
                self._fail(exc)
            except Exception as exc:
                logger.exception("Unexpected autosave failure for model %s", self._model_id)
                self._fail(exc)
            else:
                self._saved_revision = max(self._saved_revision, revision)
                self.last_error = None
                self.save_count += 1
                self._state = SaveState.IDLE

        if self._closed:
            return
        if self._dirty or (self._state is SaveState.IDLE and self.has_unsaved_changes):
            self._dirty = False
            self._state = SaveState.PENDING
            self._schedule()

    def _fail(self, exc: BaseException) -> None:
        self.last_error = str(exc) or exc.__class__.__name__
        self._state = SaveState.FAILED
        logger.warning(
            "Autosave for model %s (build %s) failed: %s",
            self._model_id,
            self._build_id,
            self.last_error,
        )

    async def _write(self, payload: BuildPayload, revision: int) -> None:
        if not self._identity.authenticated or self._gateway is None:
            self._cache.save(self._model_id, payload.selections)
            return

        if self._build_id is None:
            build_id = await self._gateway.create(payload, self._idempotency_key)
            self._build_id = build_id
            logger.info("Autosave created build %s for model %s", build_id, self._model_id)
            return

        build = await self._gateway.update(
            self._build_id,
            BuildPatch(
                selections=payload.selections,
                address=payload.address,
                delivery=payload.delivery,
            ),
        )
        if revision == self._revision:
            self.last_saved = build


__all__ = ["AutosaveScheduler", "SnapshotFn"]
