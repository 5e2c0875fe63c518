"""
Candidate finding by external identifier (EID).

Matching strategy:
1. Extract the base record's external identifiers in record order
2. For each identifier, look up the golden record tagged with it
3. Resolve the golden record's internal id, skipping unpersisted records
4. Emit one EXTERNAL_ID_MATCH candidate per golden record (first match wins)
"""

import logging

from src.exceptions import LookupFailure
from src.mdm.collaborators import GoldenRecordLookup, InternalIdResolver
from src.mdm.eid import ExternalIdentifierExtractor
from src.mdm.finders.base import TraceSink, resolve_internal_id
from src.mdm.models import (
    BaseRecord,
    CandidateStrategy,
    ExternalIdentifier,
    GoldenRecordHandle,
    InternalId,
    MatchedCandidate,
    MatchOutcome,
    MatchTraceEvent,
)

logger = logging.getLogger(__name__)
troubleshooting_logger = logging.getLogger("src.mdm.troubleshooting")


class ExternalIdCandidateFinder:
    """
    Finds golden records sharing an external identifier with a base record.

    Identifier equality is deterministic, so every candidate carries the
    EXTERNAL_ID_MATCH outcome at maximum confidence.
    """

    def __init__(
        self,
        extractor: ExternalIdentifierExtractor,
        lookup: GoldenRecordLookup,
        resolver: InternalIdResolver,
        trace_sink: TraceSink | None = None,
    ):
        self.extractor = extractor
        self.lookup = lookup
        self.resolver = resolver
        self.trace_sink = trace_sink

    @property
    def strategy(self) -> CandidateStrategy:
        return CandidateStrategy.EXTERNAL_ID

    async def find_candidates(self, record: BaseRecord) -> list[MatchedCandidate]:
        """
        Find golden-record candidates by external identifier.

        Args:
            record: Base record to match

        Returns:
            Candidates in identifier-encounter order, one per golden record

        Raises:
            LookupFailure: If the lookup or id resolution fails for any
                identifier; no partial result is returned
        """
        identifiers = self.extractor.extract(record)
        if not identifiers:
            return []

        candidates: list[MatchedCandidate] = []
        seen: set[InternalId] = set()

        for eid in identifiers:
            golden_record = await self._lookup(eid, record.entity_type)
            if golden_record is None:
                continue

            internal_id = await resolve_internal_id(
                self.resolver, golden_record, self.strategy
            )
            if internal_id is None:
                continue

            if internal_id in seen:
                logger.debug(
                    "Golden record %s already matched, ignoring EID %s",
                    internal_id,
                    eid,
                )
                continue
            seen.add(internal_id)

            candidates.append(
                MatchedCandidate(
                    golden_record_id=internal_id,
                    outcome=MatchOutcome.EXTERNAL_ID,
                    strategy=self.strategy,
                )
            )
            self._trace(
                MatchTraceEvent(
                    golden_record_id=internal_id,
                    identifier=eid,
                    entity_type=record.entity_type,
                )
            )

        return candidates

    async def _lookup(
        self, eid: ExternalIdentifier, entity_type: str
    ) -> GoldenRecordHandle | None:
        """Look up the golden record for one identifier."""
        try:
            return await self.lookup.lookup_by_external_id(eid.value, entity_type)
        except LookupFailure as e:
            e.strategy = e.strategy or self.strategy
            raise
        except Exception as e:
            raise LookupFailure(
                f"Golden record lookup failed for {entity_type} EID {eid}: {e}",
                strategy=self.strategy,
            ) from e

    def _trace(self, event: MatchTraceEvent) -> None:
        troubleshooting_logger.debug(
            "Matched golden record %s by EID %s (%s)",
            event.golden_record_id,
            event.identifier,
            event.entity_type,
        )
        if self.trace_sink is None:
            return
        try:
            self.trace_sink(event)
        except Exception:
            # Tracing never fails a matching pass
            logger.exception(
                "Trace sink failed for golden record %s", event.golden_record_id
            )
