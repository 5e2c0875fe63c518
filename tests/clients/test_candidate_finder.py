"""Tests for candidate search wiring."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.clients.candidate_finder import (
    create_candidate_aggregator,
    get_candidate_aggregator,
    get_fhir_store_service,
    get_golden_record_cache,
)
from src.exceptions import ConfigurationError
from src.mdm.aggregator import AggregationMode
from src.mdm.cache import GoldenRecordLookupCache
from src.mdm.finders import ExternalIdCandidateFinder, ScoredCandidateFinder
from src.mdm.models import CandidateStrategy
from src.settings import Settings


@pytest.fixture
def collaborators() -> dict[str, AsyncMock]:
    return {"lookup": AsyncMock(), "resolver": AsyncMock(), "index": AsyncMock()}


class TestCreateCandidateAggregator:
    """Tests for create_candidate_aggregator."""

    def test_builds_finders_in_configured_order(
        self, collaborators: dict[str, AsyncMock]
    ) -> None:
        config = Settings(
            candidate_strategies=[
                CandidateStrategy.SCORED,
                CandidateStrategy.EXTERNAL_ID,
            ],
            certain_match_threshold=0.95,
            possible_match_threshold=0.6,
            candidate_search_limit=25,
            eid_systems={"Patient": ["sys:mrn"]},
            aggregation_mode=AggregationMode.FIRST_NON_EMPTY,
            concurrent_finders=False,
        )
        sink = MagicMock()

        aggregator = create_candidate_aggregator(
            config, trace_sink=sink, **collaborators
        )

        scored, by_eid = aggregator.finders
        assert isinstance(scored, ScoredCandidateFinder)
        assert (scored.certain_threshold, scored.possible_threshold) == (0.95, 0.6)
        assert scored.search_limit == 25
        assert scored.index is collaborators["index"]
        assert isinstance(by_eid, ExternalIdCandidateFinder)
        assert by_eid.lookup is collaborators["lookup"]
        assert by_eid.trace_sink is sink
        assert by_eid.extractor.systems_for("Patient") == frozenset({"sys:mrn"})
        assert aggregator.mode is AggregationMode.FIRST_NON_EMPTY
        assert aggregator.concurrent is False

    def test_single_strategy(self, collaborators: dict[str, AsyncMock]) -> None:
        config = Settings(candidate_strategies=[CandidateStrategy.EXTERNAL_ID])

        aggregator = create_candidate_aggregator(config, **collaborators)

        strategies = [f.strategy for f in aggregator.finders]
        assert strategies == [CandidateStrategy.EXTERNAL_ID]

    def test_no_strategies_rejected(self, collaborators: dict[str, AsyncMock]) -> None:
        config = Settings(candidate_strategies=[])

        with pytest.raises(ConfigurationError):
            create_candidate_aggregator(config, **collaborators)

    def test_duplicate_strategies_rejected(
        self, collaborators: dict[str, AsyncMock]
    ) -> None:
        config = Settings(
            candidate_strategies=[CandidateStrategy.SCORED, CandidateStrategy.SCORED]
        )

        with pytest.raises(ConfigurationError, match="Duplicate"):
            create_candidate_aggregator(config, **collaborators)


class TestProviders:
    """Tests for the singleton providers."""

    def test_default_aggregator_uses_cached_lookup(self) -> None:
        get_candidate_aggregator.cache_clear()
        get_golden_record_cache.cache_clear()

        aggregator = get_candidate_aggregator()

        assert aggregator is get_candidate_aggregator()
        by_eid = aggregator.finders[0]
        assert isinstance(by_eid, ExternalIdCandidateFinder)
        assert isinstance(by_eid.lookup, GoldenRecordLookupCache)
        assert by_eid.lookup is get_golden_record_cache()
        assert by_eid.resolver is get_fhir_store_service()
        assert aggregator.finders[1].index is get_fhir_store_service()
