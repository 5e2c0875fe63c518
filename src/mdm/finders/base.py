"""
Candidate finder interface and helpers shared by its implementations.

Each finder consumes a base record and returns an ordered list of
MatchedCandidate values. Finders never return NO_MATCH entries; an empty
list means the strategy found nothing.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Protocol

from src.exceptions import LookupFailure
from src.mdm.collaborators import InternalIdResolver
from src.mdm.models import (
    BaseRecord,
    CandidateStrategy,
    GoldenRecordHandle,
    InternalId,
    MatchedCandidate,
    MatchTraceEvent,
)

logger = logging.getLogger(__name__)

# Receives one event per successful deterministic match
TraceSink = Callable[[MatchTraceEvent], None]


class CandidateFinder(Protocol):
    """A strategy that proposes golden-record candidates for a base record."""

    @property
    def strategy(self) -> CandidateStrategy:
        ...

    async def find_candidates(self, record: BaseRecord) -> list[MatchedCandidate]:
        ...


async def resolve_internal_id(
    resolver: InternalIdResolver,
    handle: GoldenRecordHandle,
    strategy: CandidateStrategy,
) -> InternalId | None:
    """
    Resolve a golden record's internal id.

    Returns None for unpersisted records, which cannot be linked to yet.

    Raises:
        LookupFailure: If the resolver itself fails
    """
    try:
        internal_id = await resolver.resolve_internal_id(handle)
    except LookupFailure as e:
        e.strategy = e.strategy or strategy
        raise
    except Exception as e:
        raise LookupFailure(
            f"Failed to resolve internal id for {_describe(handle)}: {e}",
            strategy=strategy,
        ) from e

    if internal_id is None:
        logger.debug("Skipping unpersisted golden record %s", _describe(handle))
    return internal_id


def _describe(handle: GoldenRecordHandle) -> str:
    if not isinstance(handle, Mapping):
        return repr(handle)
    resource_type = handle.get("resourceType", "Unknown")
    resource_id = handle.get("id", "no-id")
    return f"{resource_type}/{resource_id}"
