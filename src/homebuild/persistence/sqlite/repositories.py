"""SQLite repository implementations."""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from homebuild.domain import Build, BuildEvent, BuildId, IdempotencyKey, UserId
from homebuild.persistence.errors import DuplicateKeyError, NotFoundError
from homebuild.persistence.interfaces import BuildEventRepository, BuildRepository

from .models import BuildEventRecord, BuildRecord


def _to_build(record: BuildRecord) -> Build:
    return Build.model_validate(record.payload)


class SQLiteBuildRepository(BuildRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, build_id: BuildId) -> Build | None:
        record = await self._session.get(BuildRecord, str(build_id))
        if record is None:
            return None
        return _to_build(record)

    async def find_by_idempotency_key(
        self,
        owner_id: UserId,
        key: IdempotencyKey,
    ) -> Build | None:
        stmt: Select[tuple[BuildRecord]] = select(BuildRecord).where(
            BuildRecord.owner_id == owner_id,
            BuildRecord.idempotency_key == key,
        )
        result = await self._session.execute(stmt)
        record = result.scalars().first()
        return _to_build(record) if record else None

    async def list_for_owner(
        self,
        owner_id: UserId,
        *,
        model_id: str | None = None,
    ) -> Sequence[Build]:
        stmt = select(BuildRecord).where(BuildRecord.owner_id == owner_id)
        if model_id is not None:
            stmt = stmt.where(BuildRecord.model_id == model_id)
        stmt = stmt.order_by(BuildRecord.updated_at.desc())
        result = await self._session.execute(stmt)
        return [_to_build(r) for r in result.scalars().all()]

    async def add(self, build: Build) -> None:
        record = BuildRecord(
            id=str(build.id),
            owner_id=build.owner_id,
            model_id=build.model_id,
            step=int(build.step),
            status=build.status.value,
            idempotency_key=build.idempotency_key,
            created_at=build.created_at,
            updated_at=build.updated_at,
            payload=build.model_dump(mode="json"),
        )
        self._session.add(record)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            msg = f"Idempotency key {build.idempotency_key} already used"
            raise DuplicateKeyError(msg) from exc

    async def update(self, build: Build) -> None:
        record = await self._session.get(BuildRecord, str(build.id))
        if record is None:
            msg = f"Build {build.id} not found"
            raise NotFoundError(msg)
        record.model_id = build.model_id
        record.step = int(build.step)
        record.status = build.status.value
        record.updated_at = build.updated_at
        record.payload = build.model_dump(mode="json")

    async def delete(self, build_id: BuildId) -> None:
        record = await self._session.get(BuildRecord, str(build_id))
        if record is not None:
            await self._session.delete(record)


class SQLiteBuildEventRepository(BuildEventRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, event: BuildEvent) -> None:
        record = BuildEventRecord(
            build_id=str(event.build_id),
            owner_id=event.owner_id,
            event_type=event.event_type.value,
            previous_step=int(event.previous_step) if event.previous_step is not None else None,
            next_step=int(event.next_step) if event.next_step is not None else None,
            created_at=event.created_at,
            attributes=dict(event.attributes),
        )
        self._session.add(record)

    async def list_for_build(self, build_id: BuildId) -> Sequence[BuildEvent]:
        stmt = (
            select(BuildEventRecord)
            .where(BuildEventRecord.build_id == str(build_id))
            .order_by(BuildEventRecord.id)
        )
        result = await self._session.execute(stmt)
        return [
            BuildEvent(
                build_id=BuildId(UUID(r.build_id)),
                owner_id=UserId(r.owner_id),
                event_type=r.event_type,
                previous_step=r.previous_step,
                next_step=r.next_step,
                attributes=dict(r.attributes or {}),
                created_at=r.created_at,
            )
            for r in result.scalars().all()
        ]


__all__ = ["SQLiteBuildEventRepository", "SQLiteBuildRepository"]
