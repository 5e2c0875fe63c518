"""
Candidate aggregation across matching strategies.

Runs the configured candidate finders against one base record and merges
their outputs into a single list with at most one candidate per golden
record:
- A strictly higher tier replaces an earlier entry for the same record
- On equal tiers the finder configured earlier wins
- Output is ordered by tier, then by first discovery

An empty result means no golden record matched; deciding to create a new
golden record is left to the caller.
"""

import asyncio
import logging
from collections.abc import Sequence
from enum import Enum

from src.mdm.finders.base import CandidateFinder
from src.mdm.models import BaseRecord, InternalId, MatchedCandidate

logger = logging.getLogger(__name__)


class AggregationMode(str, Enum):
    """How finder outputs are combined."""

    MERGE_ALL = "merge_all"
    FIRST_NON_EMPTY = "first_non_empty"  # Stop at the first strategy with results


class CandidateAggregator:
    """Single entry point for golden-record candidate search."""

    def __init__(
        self,
        finders: Sequence[CandidateFinder],
        mode: AggregationMode = AggregationMode.MERGE_ALL,
        concurrent: bool = True,
    ):
        """
        Initialize the aggregator.

        Args:
            finders: Finders in priority order; earlier finders win tier ties
            mode: How finder outputs are combined
            concurrent: Run finders concurrently in MERGE_ALL mode
        """
        if not finders:
            raise ValueError("At least one candidate finder is required")

        strategies = [finder.strategy for finder in finders]
        duplicates = {s for s in strategies if strategies.count(s) > 1}
        if duplicates:
            raise ValueError(
                f"Duplicate candidate strategies configured: "
                f"{sorted(s.value for s in duplicates)}"
            )

        self.finders = list(finders)
        self.mode = mode
        self.concurrent = concurrent

    async def find_candidates(self, record: BaseRecord) -> list[MatchedCandidate]:
        """
        Find golden-record candidates for a base record.

        Args:
            record: Base record to match

        Returns:
            Deduplicated candidates, strongest tier first

        Raises:
            InvalidRecordError: If the record cannot be matched at all
            LookupFailure: If any finder fails; the whole pass fails
        """
        record.validate()

        if self.mode is AggregationMode.FIRST_NON_EMPTY:
            results = await self._run_until_non_empty(record)
        elif self.concurrent and len(self.finders) > 1:
            results = await self._run_concurrently(record)
        else:
            results = [await finder.find_candidates(record) for finder in self.finders]

        candidates = merge_candidates(results)
        logger.info(
            "Candidate search for %s/%s: %d candidates from %s",
            record.entity_type,
            record.resource_id,
            len(candidates),
            ", ".join(finder.strategy.value for finder in self.finders),
        )
        return candidates

    async def _run_until_non_empty(
        self, record: BaseRecord
    ) -> list[list[MatchedCandidate]]:
        for finder in self.finders:
            found = await finder.find_candidates(record)
            if any(candidate.outcome.is_match for candidate in found):
                logger.debug(
                    "Strategy %s produced %d candidates, skipping the rest",
                    finder.strategy.value,
                    len(found),
                )
                return [found]
        return []

    async def _run_concurrently(
        self, record: BaseRecord
    ) -> list[list[MatchedCandidate]]:
        outcomes = await asyncio.gather(
            *(finder.find_candidates(record) for finder in self.finders),
            return_exceptions=True,
        )

        # Report the earliest configured failure so errors are deterministic
        results: list[list[MatchedCandidate]] = []
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
            results.append(outcome)
        return results


def merge_candidates(
    results: Sequence[Sequence[MatchedCandidate]],
) -> list[MatchedCandidate]:
    """
    Merge finder outputs given in priority order.

    Keeps one candidate per golden record: the strongest tier, or on a tie
    the one seen first. Equal tiers keep first-discovery order.
    """
    merged: dict[InternalId, MatchedCandidate] = {}

    for candidates in results:
        for candidate in candidates:
            if not candidate.outcome.is_match:
                continue

            existing = merged.get(candidate.golden_record_id)
            if existing is None or candidate.tier > existing.tier:
                if existing is not None:
                    logger.debug(
                        "Golden record %s upgraded from %s (%s) to %s (%s)",
                        candidate.golden_record_id,
                        existing.tier.value,
                        existing.strategy.value,
                        candidate.tier.value,
                        candidate.strategy.value,
                    )
                merged[candidate.golden_record_id] = candidate

    # dict keeps first-insertion position on replacement and sorted() is stable
    return sorted(merged.values(), key=lambda c: c.tier.rank, reverse=True)
