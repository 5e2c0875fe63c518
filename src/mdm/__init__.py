"""
Golden-record candidate matching for master data management.

This module handles:
- Extracting external identifiers from incoming base records
- Finding golden-record candidates by identifier and by similarity score
- Merging strategy outputs into one ranked candidate list
"""

from src.mdm.aggregator import AggregationMode, CandidateAggregator
from src.mdm.cache import GoldenRecordLookupCache
from src.mdm.eid import ExternalIdentifierExtractor
from src.mdm.finders import (
    CandidateFinder,
    ExternalIdCandidateFinder,
    ScoredCandidateFinder,
)
from src.mdm.models import (
    BaseRecord,
    CandidateStrategy,
    ExternalIdentifier,
    MatchedCandidate,
    MatchOutcome,
    MatchTier,
    MatchTraceEvent,
)

__all__ = [
    "AggregationMode",
    "BaseRecord",
    "CandidateAggregator",
    "CandidateFinder",
    "CandidateStrategy",
    "ExternalIdCandidateFinder",
    "ExternalIdentifier",
    "ExternalIdentifierExtractor",
    "GoldenRecordLookupCache",
    "MatchedCandidate",
    "MatchOutcome",
    "MatchTier",
    "MatchTraceEvent",
    "ScoredCandidateFinder",
]
