"""
Candidate finding by weighted field similarity.

The similarity computation itself lives behind the SimilarityIndex
collaborator. This finder turns its ranked (golden record, confidence)
hits into graded candidates using a pair of confidence thresholds.
"""

import logging

from src.exceptions import LookupFailure
from src.mdm.collaborators import InternalIdResolver, SimilarityIndex
from src.mdm.finders.base import resolve_internal_id
from src.mdm.models import (
    BaseRecord,
    CandidateStrategy,
    GoldenRecordHandle,
    InternalId,
    MatchedCandidate,
    MatchOutcome,
    MatchTier,
)

logger = logging.getLogger(__name__)


class ScoredCandidateFinder:
    """
    Finds golden records whose fields are similar to the base record's.

    Confidence at or above the certain threshold yields SCORED_MATCH,
    confidence in [possible, certain) yields POSSIBLE_MATCH, and anything
    lower is not a candidate.
    """

    def __init__(
        self,
        index: SimilarityIndex,
        resolver: InternalIdResolver,
        certain_threshold: float = 0.9,
        possible_threshold: float = 0.7,
        search_limit: int | None = None,
    ):
        if not 0.0 <= possible_threshold <= certain_threshold <= 1.0:
            raise ValueError(
                "Thresholds must satisfy 0 <= possible <= certain <= 1, "
                f"got possible={possible_threshold}, certain={certain_threshold}"
            )
        if search_limit is not None and search_limit < 1:
            raise ValueError(f"search_limit must be positive, got {search_limit}")

        self.index = index
        self.resolver = resolver
        self.certain_threshold = certain_threshold
        self.possible_threshold = possible_threshold
        self.search_limit = search_limit

    @property
    def strategy(self) -> CandidateStrategy:
        return CandidateStrategy.SCORED

    def classify(self, confidence: float) -> MatchOutcome:
        """Grade a confidence score against the configured thresholds."""
        if confidence >= self.certain_threshold:
            tier = MatchTier.SCORED_MATCH
        elif confidence >= self.possible_threshold:
            tier = MatchTier.POSSIBLE_MATCH
        else:
            tier = MatchTier.NO_MATCH
        return MatchOutcome(tier=tier, score=confidence)

    async def find_candidates(self, record: BaseRecord) -> list[MatchedCandidate]:
        """
        Find golden-record candidates by similarity score.

        Args:
            record: Base record to match

        Returns:
            Graded candidates in index rank order, one per golden record

        Raises:
            LookupFailure: If the index search or id resolution fails
        """
        hits = await self._search(record)

        if self.search_limit is not None and len(hits) > self.search_limit:
            logger.warning(
                "Similarity search for %s/%s returned %d hits, "
                "only the first %d are considered",
                record.entity_type,
                record.resource_id,
                len(hits),
                self.search_limit,
            )
            hits = hits[: self.search_limit]

        candidates: list[MatchedCandidate] = []
        seen: set[InternalId] = set()

        for golden_record, confidence in hits:
            outcome = self.classify(confidence)
            if not outcome.is_match:
                continue

            internal_id = await resolve_internal_id(
                self.resolver, golden_record, self.strategy
            )
            if internal_id is None or internal_id in seen:
                continue
            seen.add(internal_id)

            candidates.append(
                MatchedCandidate(
                    golden_record_id=internal_id,
                    outcome=outcome,
                    strategy=self.strategy,
                )
            )

        logger.debug(
            "Scored search for %s/%s: %d hits, %d candidates",
            record.entity_type,
            record.resource_id,
            len(hits),
            len(candidates),
        )
        return candidates

    async def _search(
        self, record: BaseRecord
    ) -> list[tuple[GoldenRecordHandle, float]]:
        try:
            return await self.index.search(record)
        except LookupFailure as e:
            e.strategy = e.strategy or self.strategy
            raise
        except Exception as e:
            raise LookupFailure(
                f"Similarity search failed for {record.entity_type}: {e}",
                strategy=self.strategy,
            ) from e
