# riskwise/models/store.py
"""
Record store protocol definition.

Defines the abstract interface that both InMemoryRecordStore and
SQLiteRecordStore implement. Every read is scoped by an explicit
TenantContext; there is no ambient tenant.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from riskwise.models.enums import EntityKind
    from riskwise.models.records import Record, TenantContext


class RecordStore(ABC):
    """
    Abstract base class for record storage implementations.

    Implementations must reject a create whose identifier (goal code or
    sequence number) is already taken in its scope by raising
    DuplicateIdentifierError, and must reflect committed writes on the next
    read (no caching).
    """

    supports_batch_delete: bool = False

    async def initialize(self) -> None:
        """Prepare the backend (schema, connections). No-op by default."""

    async def close(self) -> None:
        """Release backend resources. No-op by default."""

    @abstractmethod
    async def create(self, kind: "EntityKind", record: "Record") -> "Record":
        """
        Persist a new record.

        Args:
            kind: Entity kind of the record
            record: Fully populated record (id, identifier, timestamps set)

        Returns:
            The stored record

        Raises:
            ValueError: If the record id already exists
            DuplicateIdentifierError: If the code/sequence number is taken
        """

    @abstractmethod
    async def get(self, kind: "EntityKind", record_id: str) -> "Record | None":
        """
        Get a record by id.

        Returns:
            Record if found, None otherwise
        """

    @abstractmethod
    async def list_records(
        self, kind: "EntityKind", ctx: "TenantContext", **filters: Any
    ) -> "list[Record]":
        """
        List records of a kind within a tenant, filtered by field equality.

        Args:
            kind: Entity kind to list
            ctx: Tenant the records must belong to
            **filters: Field name -> required value (e.g. goal_id="...")

        Returns:
            Matching records in display order (goals by creation, children by
            sequence number, control measures by type then sequence number)
        """

    @abstractmethod
    async def update(self, kind: "EntityKind", record_id: str, **patch: Any) -> "Record":
        """
        Update mutable fields on an existing record and bump updated_at.

        Raises:
            RecordNotFoundError: If record_id doesn't exist
            InvalidRecordError: If patch names an unknown or immutable field
        """

    @abstractmethod
    async def delete(self, kind: "EntityKind", record_id: str) -> None:
        """
        Delete a single record (no cascade).

        Raises:
            RecordNotFoundError: If record_id doesn't exist
        """

    async def delete_batch(self, items: "list[tuple[EntityKind, str]]") -> None:
        """
        Delete several records atomically, in the given order.

        Only available when supports_batch_delete is True.
        """
        raise NotImplementedError(f"{type(self).__name__} does not support batch deletes")
