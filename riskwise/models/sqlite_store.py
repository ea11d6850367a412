# riskwise/models/sqlite_store.py
"""
SQLite-backed record persistence.

Provides async CRUD operations with WAL mode and IMMEDIATE transactions.
Identifier uniqueness is enforced by unique indexes, so two writers racing
for the same goal code or sequence number can't both commit.
"""

import dataclasses
import json
import logging
from datetime import date, datetime
from enum import Enum
from typing import Any

import aiosqlite

from riskwise.errors import (
    DuplicateIdentifierError,
    RecordNotFoundError,
    UnknownLevel,
)
from riskwise.models.enums import (
    ControlMeasureType,
    EntityKind,
    MonitoringStatus,
    RiskCategory,
    RiskSource,
)
from riskwise.models.records import (
    RECORD_TYPES,
    MonitoredControl,
    Record,
    TenantContext,
    check_patch,
    utcnow,
)
from riskwise.models.schema import init_db
from riskwise.models.store import RecordStore
from riskwise.scoring.scale import IMPACT_SCALE, LIKELIHOOD_SCALE

logger = logging.getLogger(__name__)

_DATETIME_FIELDS = {"created_at", "identified_at", "recorded_at", "updated_at"}
_DATE_FIELDS = {"deadline", "start_date", "end_date"}
_ORDER_BY = {
    EntityKind.GOAL: "created_at ASC",
    EntityKind.POTENTIAL_RISK: "sequence_number ASC",
    EntityKind.RISK_CAUSE: "sequence_number ASC",
    EntityKind.CONTROL_MEASURE: (
        "CASE control_type WHEN 'Prv' THEN 0 WHEN 'RM' THEN 1 ELSE 2 END, sequence_number ASC"
    ),
    EntityKind.MONITORING_SESSION: "end_date DESC, created_at ASC",
    EntityKind.RISK_EXPOSURE: "risk_cause_id ASC",
}


def _parse_enum(enum_cls: type[Enum], column: str, value: str | None) -> Enum | None:
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        logger.error(f"Data integrity: stored {column} {value!r} is outside its enumeration")
        raise UnknownLevel(column, value) from None


def _to_column(value: Any) -> Any:
    """Serialize a record field for SQLite."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, list):
        return json.dumps([dataclasses.asdict(item) for item in value])
    return value


def _from_column(name: str, value: Any) -> Any:
    """Deserialize a SQLite column into its record field type."""
    if name == "likelihood":
        return LIKELIHOOD_SCALE.parse(value) if value is not None else None
    if name == "impact":
        return IMPACT_SCALE.parse(value) if value is not None else None
    if name == "category":
        return _parse_enum(RiskCategory, name, value)
    if name == "source":
        return _parse_enum(RiskSource, name, value)
    if name == "control_type":
        return _parse_enum(ControlMeasureType, name, value)
    if name == "status":
        return _parse_enum(MonitoringStatus, name, value)
    if name == "monitored_controls":
        return [MonitoredControl(**item) for item in json.loads(value or "[]")]
    if name in _DATETIME_FIELDS:
        return datetime.fromisoformat(value) if value else None
    if name in _DATE_FIELDS:
        return date.fromisoformat(value) if value else None
    return value


def _columns(kind: EntityKind) -> list[str]:
    return [f.name for f in dataclasses.fields(RECORD_TYPES[kind])]


class SQLiteRecordStore(RecordStore):
    """
    Async SQLite-backed record storage.

    Features:
        - WAL mode for concurrent reads/writes
        - IMMEDIATE transactions for write safety
        - Unique indexes on every identifier scope
        - Atomic batch deletes for cascades
        - No persistent connections (avoids resource leaks)
    """

    supports_batch_delete = True

    def __init__(self, db_path: str) -> None:
        """
        Initialize SQLite record store.

        Args:
            db_path: Path to SQLite database file
        """
        self._db_path = db_path
        logger.info(f"Created SQLiteRecordStore with path: {db_path}")

    async def initialize(self) -> None:
        """Initialize database schema."""
        await init_db(self._db_path)

    async def create(self, kind: EntityKind, record: Record) -> Record:
        columns = _columns(kind)
        values = [_to_column(getattr(record, name)) for name in columns]
        placeholders = ", ".join("?" for _ in columns)

        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("BEGIN IMMEDIATE")

            try:
                cursor = await db.execute(
                    f"SELECT id FROM {kind.value} WHERE id = ?", (record.id,)
                )
                if await cursor.fetchone():
                    raise ValueError(f"{kind.value} {record.id} already exists")

                try:
                    await db.execute(
                        f"INSERT INTO {kind.value} ({', '.join(columns)}) VALUES ({placeholders})",
                        values,
                    )
                except aiosqlite.IntegrityError as e:
                    raise DuplicateIdentifierError(
                        f"{kind.value} identifier {record.identifier_scope()} already taken"
                    ) from e

                await db.commit()
                logger.info(f"Added {kind.value} {record.id} to SQLite store")

            except Exception:
                await db.rollback()
                raise

        return record

    async def get(self, kind: EntityKind, record_id: str) -> Record | None:
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(f"SELECT * FROM {kind.value} WHERE id = ?", (record_id,))
            row = await cursor.fetchone()

            if not row:
                return None

            return self._row_to_record(kind, row)

    async def list_records(
        self, kind: EntityKind, ctx: TenantContext, **filters: Any
    ) -> list[Record]:
        columns = set(_columns(kind))
        invalid = set(filters) - columns
        if invalid:
            raise ValueError(f"Invalid filter fields for {kind.value}: {invalid}")

        where = ["upr_id = ?", "period = ?"]
        values: list[Any] = [ctx.upr_id, ctx.period]
        for name, value in filters.items():
            where.append(f"{name} = ?")
            values.append(_to_column(value))

        sql = f"SELECT * FROM {kind.value} WHERE {' AND '.join(where)} ORDER BY {_ORDER_BY[kind]}"
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(sql, values)
            rows = await cursor.fetchall()

            return [self._row_to_record(kind, row) for row in rows]

    async def update(self, kind: EntityKind, record_id: str, **patch: Any) -> Record:
        check_patch(kind, patch)

        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("BEGIN IMMEDIATE")

            try:
                cursor = await db.execute(
                    f"SELECT id FROM {kind.value} WHERE id = ?", (record_id,)
                )
                if not await cursor.fetchone():
                    raise RecordNotFoundError(kind.value, record_id)

                set_parts = []
                values = []
                for key, value in patch.items():
                    if key == "updated_at":
                        continue
                    set_parts.append(f"{key} = ?")
                    values.append(_to_column(value))

                # Always bump updated_at
                set_parts.append("updated_at = ?")
                values.append(utcnow().isoformat())
                values.append(record_id)

                await db.execute(
                    f"UPDATE {kind.value} SET {', '.join(set_parts)} WHERE id = ?", values
                )
                await db.commit()
                logger.info(f"Updated {kind.value} {record_id}: {list(patch.keys())}")

            except Exception:
                await db.rollback()
                raise

        updated = await self.get(kind, record_id)
        if updated is None:
            raise RecordNotFoundError(kind.value, record_id)
        return updated

    async def delete(self, kind: EntityKind, record_id: str) -> None:
        await self.delete_batch([(kind, record_id)])

    async def delete_batch(self, items: list[tuple[EntityKind, str]]) -> None:
        """
        Delete records in order inside one IMMEDIATE transaction.

        Rolls back entirely if any record is missing.
        """
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("BEGIN IMMEDIATE")

            try:
                for kind, record_id in items:
                    cursor = await db.execute(
                        f"DELETE FROM {kind.value} WHERE id = ?", (record_id,)
                    )
                    if cursor.rowcount == 0:
                        raise RecordNotFoundError(kind.value, record_id)

                await db.commit()
                logger.info(f"Deleted {len(items)} record(s) from SQLite store")

            except Exception:
                await db.rollback()
                raise

    async def close(self) -> None:
        """
        Checkpoint WAL and close database.

        Truncates WAL file to avoid unbounded growth.
        """
        try:
            async with aiosqlite.connect(self._db_path) as db:
                await db.execute("PRAGMA wal_checkpoint(TRUNCATE)")
                logger.info("WAL checkpoint completed")
        except aiosqlite.Error as e:
            logger.warning(f"WAL checkpoint failed: {e}")

    def _row_to_record(self, kind: EntityKind, row: aiosqlite.Row) -> Record:
        """
        Convert SQLite row to a record dataclass.

        Raises:
            UnknownLevel: If a stored enum column holds a value outside its set
        """
        record_type = RECORD_TYPES[kind]
        values = {name: _from_column(name, row[name]) for name in _columns(kind)}
        return record_type(**values)
