"""Dependency providers for golden-record candidate search."""

from functools import lru_cache

from src.exceptions import ConfigurationError
from src.mdm.aggregator import CandidateAggregator
from src.mdm.cache import GoldenRecordLookupCache
from src.mdm.collaborators import (
    GoldenRecordLookup,
    InternalIdResolver,
    SimilarityIndex,
)
from src.mdm.eid import ExternalIdentifierExtractor
from src.mdm.finders import (
    CandidateFinder,
    ExternalIdCandidateFinder,
    ScoredCandidateFinder,
    TraceSink,
)
from src.mdm.models import CandidateStrategy
from src.services.fhir_store_service import FHIRStoreService, create_fhir_store_service
from src.settings import Settings, settings


def create_candidate_aggregator(
    config: Settings,
    lookup: GoldenRecordLookup,
    resolver: InternalIdResolver,
    index: SimilarityIndex,
    trace_sink: TraceSink | None = None,
) -> CandidateAggregator:
    """
    Build the candidate aggregator described by the settings.

    Args:
        config: Matching settings
        lookup: Golden-record lookup used by the EID finder
        resolver: Internal id resolver shared by all finders
        index: Similarity index used by the scored finder
        trace_sink: Optional receiver of EID match trace events

    Raises:
        ConfigurationError: If no strategy or an unknown strategy is configured
    """
    if not config.candidate_strategies:
        raise ConfigurationError("No candidate strategies configured")

    finders: list[CandidateFinder] = []
    for strategy in config.candidate_strategies:
        if strategy is CandidateStrategy.EXTERNAL_ID:
            finders.append(
                ExternalIdCandidateFinder(
                    extractor=ExternalIdentifierExtractor(config.eid_systems),
                    lookup=lookup,
                    resolver=resolver,
                    trace_sink=trace_sink,
                )
            )
        elif strategy is CandidateStrategy.SCORED:
            finders.append(
                ScoredCandidateFinder(
                    index=index,
                    resolver=resolver,
                    certain_threshold=config.certain_match_threshold,
                    possible_threshold=config.possible_match_threshold,
                    search_limit=config.candidate_search_limit,
                )
            )
        else:
            raise ConfigurationError(f"Unsupported candidate strategy: {strategy}")

    try:
        return CandidateAggregator(
            finders,
            mode=config.aggregation_mode,
            concurrent=config.concurrent_finders,
        )
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


@lru_cache(maxsize=1)
def get_fhir_store_service() -> FHIRStoreService:
    """Get the singleton FHIR store backing lookup, resolution and $match."""
    return create_fhir_store_service()


@lru_cache(maxsize=1)
def get_golden_record_cache() -> GoldenRecordLookupCache:
    """Get the singleton lookup cache; invalidate it on golden-record changes."""
    return GoldenRecordLookupCache(
        get_fhir_store_service(), max_size=settings.lookup_cache_max_size
    )


@lru_cache(maxsize=1)
def get_candidate_aggregator() -> CandidateAggregator:
    """Get singleton CandidateAggregator backed by the FHIR store."""
    fhir_store = get_fhir_store_service()
    lookup: GoldenRecordLookup = (
        get_golden_record_cache() if settings.lookup_cache_enabled else fhir_store
    )
    return create_candidate_aggregator(
        settings,
        lookup=lookup,
        resolver=fhir_store,
        index=fhir_store,
    )
