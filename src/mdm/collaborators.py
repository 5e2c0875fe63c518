"""Interfaces of the stores and services candidate finders depend on."""

from typing import Protocol

from src.mdm.models import BaseRecord, GoldenRecordHandle, InternalId


class GoldenRecordLookup(Protocol):
    """Finds the golden record tagged with an external identifier."""

    async def lookup_by_external_id(
        self, value: str, entity_type: str
    ) -> GoldenRecordHandle | None:
        """Return the golden record for the identifier value, or None if absent."""
        ...


class InternalIdResolver(Protocol):
    """Translates a loaded golden record into its persisted internal id."""

    async def resolve_internal_id(
        self, handle: GoldenRecordHandle
    ) -> InternalId | None:
        """Return the internal id, or None for a transient record."""
        ...


class SimilarityIndex(Protocol):
    """Searchable index of golden records for scored matching."""

    async def search(
        self, record: BaseRecord
    ) -> list[tuple[GoldenRecordHandle, float]]:
        """Return (golden record, confidence) pairs ranked best-first."""
        ...
