# riskwise/models/schema.py
"""
Database schema definition for SQLite record persistence.

Provides DDL for tables, identifier-uniqueness indexes, and schema
initialization.
"""

import logging

import aiosqlite

logger = logging.getLogger(__name__)

# Schema version for future migrations
SCHEMA_VERSION = 2

GOALS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS goals (
    id TEXT PRIMARY KEY,
    upr_id TEXT NOT NULL,
    period TEXT NOT NULL,
    code TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT
)
"""

POTENTIAL_RISKS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS potential_risks (
    id TEXT PRIMARY KEY,
    goal_id TEXT NOT NULL,
    upr_id TEXT NOT NULL,
    period TEXT NOT NULL,
    sequence_number INTEGER NOT NULL CHECK(sequence_number >= 1),
    description TEXT NOT NULL,
    category TEXT CHECK(category IS NULL OR category IN (
        'Kebijakan', 'Hukum', 'Reputasi', 'Kepatuhan', 'Keuangan', 'Fraud', 'Operasional'
    )),
    owner TEXT,
    likelihood TEXT,
    impact TEXT,
    identified_at TEXT NOT NULL,
    updated_at TEXT
)
"""

RISK_CAUSES_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS risk_causes (
    id TEXT PRIMARY KEY,
    potential_risk_id TEXT NOT NULL,
    goal_id TEXT NOT NULL,
    upr_id TEXT NOT NULL,
    period TEXT NOT NULL,
    sequence_number INTEGER NOT NULL CHECK(sequence_number >= 1),
    description TEXT NOT NULL,
    source TEXT NOT NULL CHECK(source IN ('Internal', 'Eksternal')),
    key_risk_indicator TEXT,
    risk_tolerance TEXT,
    likelihood TEXT,
    impact TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT
)
"""

CONTROL_MEASURES_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS control_measures (
    id TEXT PRIMARY KEY,
    risk_cause_id TEXT NOT NULL,
    potential_risk_id TEXT NOT NULL,
    goal_id TEXT NOT NULL,
    upr_id TEXT NOT NULL,
    period TEXT NOT NULL,
    control_type TEXT NOT NULL CHECK(control_type IN ('Prv', 'RM', 'Crr')),
    sequence_number INTEGER NOT NULL CHECK(sequence_number >= 1),
    description TEXT NOT NULL,
    key_control_indicator TEXT,
    target TEXT,
    responsible_person TEXT,
    deadline TEXT,
    budget REAL,
    created_at TEXT NOT NULL,
    updated_at TEXT
)
"""

MONITORING_SESSIONS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS monitoring_sessions (
    id TEXT PRIMARY KEY,
    upr_id TEXT NOT NULL,
    period TEXT NOT NULL,
    name TEXT NOT NULL,
    start_date TEXT NOT NULL,
    end_date TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'Aktif' CHECK(status IN ('Aktif', 'Selesai', 'Dibatalkan')),
    created_at TEXT NOT NULL,
    updated_at TEXT
)
"""

# monitored_controls holds a JSON array of per-control KCI realizations
RISK_EXPOSURES_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS risk_exposures (
    id TEXT PRIMARY KEY,
    monitoring_session_id TEXT NOT NULL,
    risk_cause_id TEXT NOT NULL,
    potential_risk_id TEXT NOT NULL,
    goal_id TEXT NOT NULL,
    upr_id TEXT NOT NULL,
    period TEXT NOT NULL,
    exposure_value REAL,
    exposure_unit TEXT,
    notes TEXT,
    monitored_controls TEXT NOT NULL DEFAULT '[]',
    recorded_at TEXT NOT NULL,
    updated_at TEXT
)
"""

# Identifier uniqueness: a second writer racing on the same scope fails here
INDEX_SQL = [
    "CREATE UNIQUE INDEX IF NOT EXISTS uq_goals_code ON goals(upr_id, period, code)",
    "CREATE UNIQUE INDEX IF NOT EXISTS uq_potential_risks_seq "
    "ON potential_risks(goal_id, sequence_number)",
    "CREATE UNIQUE INDEX IF NOT EXISTS uq_risk_causes_seq "
    "ON risk_causes(potential_risk_id, sequence_number)",
    "CREATE UNIQUE INDEX IF NOT EXISTS uq_control_measures_seq "
    "ON control_measures(risk_cause_id, control_type, sequence_number)",
    "CREATE UNIQUE INDEX IF NOT EXISTS uq_risk_exposures_cause "
    "ON risk_exposures(monitoring_session_id, risk_cause_id)",
    "CREATE INDEX IF NOT EXISTS idx_goals_tenant ON goals(upr_id, period)",
    "CREATE INDEX IF NOT EXISTS idx_potential_risks_goal ON potential_risks(goal_id)",
    "CREATE INDEX IF NOT EXISTS idx_risk_causes_parent ON risk_causes(potential_risk_id)",
    "CREATE INDEX IF NOT EXISTS idx_control_measures_parent ON control_measures(risk_cause_id)",
    "CREATE INDEX IF NOT EXISTS idx_monitoring_sessions_tenant "
    "ON monitoring_sessions(upr_id, period)",
    "CREATE INDEX IF NOT EXISTS idx_risk_exposures_cause ON risk_exposures(risk_cause_id)",
]


async def _get_schema_version(db: aiosqlite.Connection) -> int:
    """
    Get current schema version from database.

    Returns:
        Schema version (0 if no version table exists)
    """
    try:
        cursor = await db.execute("SELECT version FROM schema_version LIMIT 1")
        row = await cursor.fetchone()
        return row[0] if row else 0
    except aiosqlite.OperationalError:
        return 0


async def _set_schema_version(db: aiosqlite.Connection, version: int) -> None:
    await db.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER)")
    await db.execute("DELETE FROM schema_version")
    await db.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))


async def init_db(db_path: str) -> None:
    """
    Create tables and indexes if missing, with WAL journaling.

    Args:
        db_path: Path to SQLite database file
    """
    async with aiosqlite.connect(db_path) as db:
        await db.execute("PRAGMA journal_mode=WAL")

        current = await _get_schema_version(db)
        for ddl in (
            GOALS_TABLE_SQL,
            POTENTIAL_RISKS_TABLE_SQL,
            RISK_CAUSES_TABLE_SQL,
            CONTROL_MEASURES_TABLE_SQL,
            MONITORING_SESSIONS_TABLE_SQL,
            RISK_EXPOSURES_TABLE_SQL,
        ):
            await db.execute(ddl)
        for ddl in INDEX_SQL:
            await db.execute(ddl)

        if current < SCHEMA_VERSION:
            await _set_schema_version(db, SCHEMA_VERSION)
            logger.info(f"Initialized schema version {SCHEMA_VERSION} at {db_path}")

        await db.commit()
