# riskwise/models/factory.py
"""Factory for opening the configured record store."""

import logging

from riskwise.config.loader import get_db_path
from riskwise.config.schema import RiskwiseConfig

from .records import InMemoryRecordStore
from .sqlite_store import SQLiteRecordStore
from .store import RecordStore

logger = logging.getLogger(__name__)


async def open_store(config: RiskwiseConfig) -> RecordStore:
    """
    Create and initialize the store selected by config.storage.backend.

    Returns:
        SQLiteRecordStore for backend="sqlite", InMemoryRecordStore for backend="memory"
    """
    if config.storage.backend == "memory":
        store: RecordStore = InMemoryRecordStore()
    else:
        store = SQLiteRecordStore(str(get_db_path(config)))
    await store.initialize()
    logger.info(f"Opened {config.storage.backend} record store")
    return store
