"""PostgreSQL user sanction ledger (SQLAlchemy async + asyncpg).

Per-record mutations are single conditional UPDATE statements so an
administrator and the expiration sweep racing on the same row cannot
overwrite each other:

    UPDATE user_sanction_records SET ...
    WHERE id = :id AND version = :expected_version [AND is_active = true]

The sweep is one UPDATE ... RETURNING over every active, non-permanent
row whose end date has passed, which makes it idempotent.

Usage:
    repository = PostgresSanctionLedgerRepository(get_session_factory())
    await repository.ensure_schema()
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from penalty_engine.application.ports.sanction_ledger_repository import (
    SanctionLedgerRepositoryProtocol,
)
from penalty_engine.domain.errors.lifecycle import DuplicateSanctionError
from penalty_engine.domain.models.sanction_record import UserSanctionRecord
from penalty_engine.domain.models.sanction_rule import RestrictionLevel, SanctionKind

logger = get_logger()

TABLE_NAME = "user_sanction_records"

SANCTION_LEDGER_DDL: tuple[str, ...] = (
    f"""
    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
        id UUID PRIMARY KEY,
        user_id TEXT NOT NULL,
        program_id TEXT NOT NULL,
        rule_id UUID NOT NULL,
        infraction_event_id UUID NULL,
        total_points INTEGER NOT NULL CHECK (total_points >= 0),
        points_from_event INTEGER NOT NULL CHECK (points_from_event >= 0),
        sanction_kind TEXT NOT NULL,
        restriction_level TEXT NOT NULL,
        start_date TIMESTAMPTZ NOT NULL,
        end_date TIMESTAMPTZ NULL CHECK (end_date IS NULL OR end_date > start_date),
        is_active BOOLEAN NOT NULL,
        reason TEXT NOT NULL,
        applied_by TEXT NOT NULL,
        notes TEXT[] NOT NULL DEFAULT '{{}}',
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL,
        version INTEGER NOT NULL DEFAULT 1 CHECK (version >= 1),
        CONSTRAINT uq_sanction_event_rule UNIQUE (infraction_event_id, rule_id)
    )
    """,
    f"CREATE INDEX IF NOT EXISTS ix_{TABLE_NAME}_user ON {TABLE_NAME} (user_id, program_id)",
    f"CREATE INDEX IF NOT EXISTS ix_{TABLE_NAME}_active_end "
    f"ON {TABLE_NAME} (end_date) WHERE is_active",
)

_COLUMNS = (
    "id, user_id, program_id, rule_id, infraction_event_id, total_points, "
    "points_from_event, sanction_kind, restriction_level, start_date, end_date, "
    "is_active, reason, applied_by, notes, created_at, updated_at, version"
)

_SELECT = f"SELECT {_COLUMNS} FROM {TABLE_NAME}"


def _to_params(record: UserSanctionRecord) -> dict[str, Any]:
    return {
        "id": record.record_id,
        "user_id": record.user_id,
        "program_id": record.program_id,
        "rule_id": record.rule_id,
        "infraction_event_id": record.infraction_event_id,
        "total_points": record.total_points,
        "points_from_event": record.points_from_event,
        "sanction_kind": record.sanction_kind.value,
        "restriction_level": record.restriction_level.value,
        "start_date": record.start_date,
        "end_date": record.end_date,
        "is_active": record.is_active,
        "reason": record.reason,
        "applied_by": record.applied_by,
        "notes": list(record.notes),
        "created_at": record.created_at,
        "updated_at": record.updated_at,
        "version": record.version,
    }


def _from_row(row: Any) -> UserSanctionRecord:
    data = row._mapping
    return UserSanctionRecord(
        record_id=data["id"],
        user_id=data["user_id"],
        program_id=data["program_id"],
        rule_id=data["rule_id"],
        infraction_event_id=data["infraction_event_id"],
        total_points=data["total_points"],
        points_from_event=data["points_from_event"],
        sanction_kind=SanctionKind(data["sanction_kind"]),
        restriction_level=RestrictionLevel(data["restriction_level"]),
        start_date=data["start_date"],
        end_date=data["end_date"],
        is_active=data["is_active"],
        reason=data["reason"],
        applied_by=data["applied_by"],
        notes=tuple(data["notes"] or ()),
        created_at=data["created_at"],
        updated_at=data["updated_at"],
        version=data["version"],
    )


class PostgresSanctionLedgerRepository(SanctionLedgerRepositoryProtocol):
    """Sanction ledger stored in PostgreSQL.

    Attributes:
        _session_factory: SQLAlchemy async session factory.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def ensure_schema(self) -> None:
        """Create the ledger table and indexes if missing."""
        async with self._session_factory() as session:
            for statement in SANCTION_LEDGER_DDL:
                await session.execute(text(statement))
            await session.commit()
        logger.info("sanction_ledger_schema_ensured", table=TABLE_NAME)

    async def _fetch(self, where: str, params: dict[str, Any]) -> list[UserSanctionRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"{_SELECT} WHERE {where} ORDER BY start_date"), params
            )
            return [_from_row(row) for row in result.fetchall()]

    async def create(self, record: UserSanctionRecord) -> UserSanctionRecord:
        async with self._session_factory() as session:
            try:
                await session.execute(
                    text(f"""
                        INSERT INTO {TABLE_NAME} ({_COLUMNS})
                        VALUES (:id, :user_id, :program_id, :rule_id, :infraction_event_id,
                                :total_points, :points_from_event, :sanction_kind,
                                :restriction_level, :start_date, :end_date, :is_active,
                                :reason, :applied_by, :notes, :created_at, :updated_at, :version)
                    """),
                    _to_params(record),
                )
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                if record.infraction_event_id is not None and "uq_sanction_event_rule" in str(
                    exc.orig
                ):
                    raise DuplicateSanctionError(
                        record.infraction_event_id, record.rule_id
                    ) from exc
                raise
        return record

    async def get_by_id(self, record_id: UUID) -> Optional[UserSanctionRecord]:
        records = await self._fetch("id = :id", {"id": record_id})
        return records[0] if records else None

    async def find_by_user(
        self, user_id: str, *, program_id: Optional[str] = None
    ) -> list[UserSanctionRecord]:
        if program_id is None:
            return await self._fetch("user_id = :user_id", {"user_id": user_id})
        return await self._fetch(
            "user_id = :user_id AND program_id = :program_id",
            {"user_id": user_id, "program_id": program_id},
        )

    async def find_by_program(self, program_id: str) -> list[UserSanctionRecord]:
        return await self._fetch("program_id = :program_id", {"program_id": program_id})

    async def find_by_rule(self, rule_id: UUID) -> list[UserSanctionRecord]:
        return await self._fetch("rule_id = :rule_id", {"rule_id": rule_id})

    async def find_by_infraction_event(
        self, infraction_event_id: UUID
    ) -> list[UserSanctionRecord]:
        return await self._fetch(
            "infraction_event_id = :event_id", {"event_id": infraction_event_id}
        )

    async def find_by_applier(self, applied_by: str) -> list[UserSanctionRecord]:
        return await self._fetch("applied_by = :applied_by", {"applied_by": applied_by})

    async def find_active_flagged(
        self, *, user_id: Optional[str] = None, program_id: Optional[str] = None
    ) -> list[UserSanctionRecord]:
        clauses = ["is_active"]
        params: dict[str, Any] = {}
        if user_id is not None:
            clauses.append("user_id = :user_id")
            params["user_id"] = user_id
        if program_id is not None:
            clauses.append("program_id = :program_id")
            params["program_id"] = program_id
        return await self._fetch(" AND ".join(clauses), params)

    async def find_started_between(
        self, start: datetime, end: datetime, *, user_id: Optional[str] = None
    ) -> list[UserSanctionRecord]:
        where = "start_date BETWEEN :start AND :end"
        params: dict[str, Any] = {"start": start, "end": end}
        if user_id is not None:
            where += " AND user_id = :user_id"
            params["user_id"] = user_id
        return await self._fetch(where, params)

    async def update_conditionally(
        self,
        record: UserSanctionRecord,
        *,
        expected_version: int,
        require_active: bool = True,
    ) -> bool:
        active_clause = " AND is_active = true" if require_active else ""
        params = _to_params(record)
        params["expected_version"] = expected_version
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"""
                    UPDATE {TABLE_NAME}
                    SET end_date = :end_date,
                        is_active = :is_active,
                        restriction_level = :restriction_level,
                        notes = :notes,
                        updated_at = :updated_at,
                        version = :version
                    WHERE id = :id AND version = :expected_version{active_clause}
                """),
                params,
            )
            await session.commit()
        applied = result.rowcount == 1
        if not applied:
            logger.warning(
                "sanction_conditional_update_missed",
                record_id=str(record.record_id),
                require_active=require_active,
            )
        return applied

    async def bulk_deactivate_expired(self, now: datetime) -> list[UserSanctionRecord]:
        note = f"Expired automatically at {now.isoformat()}"
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"""
                    UPDATE {TABLE_NAME}
                    SET is_active = false,
                        notes = array_append(notes, :note),
                        updated_at = :now,
                        version = version + 1
                    WHERE is_active
                      AND sanction_kind <> :permanent
                      AND end_date IS NOT NULL
                      AND end_date < :now
                    RETURNING {_COLUMNS}
                """),
                {
                    "note": note,
                    "now": now,
                    "permanent": SanctionKind.PERMANENT_SUSPENSION.value,
                },
            )
            rows = result.fetchall()
            await session.commit()
        expired = [_from_row(row) for row in rows]
        logger.info("sanction_ledger_sweep_executed", expired_count=len(expired))
        return expired
