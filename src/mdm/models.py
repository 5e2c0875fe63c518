"""
Match outcome model for golden-record candidate matching.

A matching pass takes a BaseRecord and produces MatchedCandidate values,
each pairing a golden record's internal id with a MatchOutcome and the
strategy that found it. Everything here is built per pass and discarded
once the caller has consumed the result.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

from src.exceptions import InvalidRecordError

# Stable identifier assigned to a persisted golden record by the store
InternalId = Union[int, str]

# A loaded golden record as returned by the lookup (a FHIR resource)
GoldenRecordHandle = dict[str, Any]

# Score carried by deterministic matches
MAX_CONFIDENCE = 1.0


class MatchTier(str, Enum):
    """Match quality tier, strongest first."""

    EXTERNAL_ID_MATCH = "external_id_match"
    SCORED_MATCH = "scored_match"
    POSSIBLE_MATCH = "possible_match"
    NO_MATCH = "no_match"

    @property
    def rank(self) -> int:
        """Numeric strength of the tier; higher is stronger."""
        return _TIER_RANKS[self]

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, MatchTier):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, MatchTier):
            return NotImplemented
        return self.rank >= other.rank

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, MatchTier):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, MatchTier):
            return NotImplemented
        return self.rank <= other.rank


_TIER_RANKS = {
    MatchTier.EXTERNAL_ID_MATCH: 3,
    MatchTier.SCORED_MATCH: 2,
    MatchTier.POSSIBLE_MATCH: 1,
    MatchTier.NO_MATCH: 0,
}


class CandidateStrategy(str, Enum):
    """Identity of a candidate-finding strategy."""

    EXTERNAL_ID = "external_id"
    SCORED = "scored"


@dataclass(frozen=True)
class ExternalIdentifier:
    """An identity assertion (system + value) from a source system."""

    system: str
    value: str

    def to_fhir(self) -> dict[str, str]:
        """Convert to FHIR Identifier format."""
        return {"system": self.system, "value": self.value}

    def to_search_param(self) -> str:
        """Convert to FHIR search parameter format (system|value)."""
        return f"{self.system}|{self.value}"

    def __str__(self) -> str:
        return self.to_search_param()


@dataclass(frozen=True)
class MatchOutcome:
    """Classification of a match between a base record and a golden record."""

    tier: MatchTier
    score: float | None = None

    EXTERNAL_ID: ClassVar["MatchOutcome"]

    @property
    def is_match(self) -> bool:
        return self.tier is not MatchTier.NO_MATCH


MatchOutcome.EXTERNAL_ID = MatchOutcome(
    tier=MatchTier.EXTERNAL_ID_MATCH, score=MAX_CONFIDENCE
)


@dataclass(frozen=True)
class MatchedCandidate:
    """A golden record proposed as a match, with the outcome and its source."""

    golden_record_id: InternalId
    outcome: MatchOutcome
    strategy: CandidateStrategy

    @property
    def tier(self) -> MatchTier:
        return self.outcome.tier


@dataclass(frozen=True)
class MatchTraceEvent:
    """Diagnostic record of a successful deterministic match."""

    golden_record_id: InternalId
    identifier: ExternalIdentifier
    entity_type: str
    strategy: CandidateStrategy = CandidateStrategy.EXTERNAL_ID


@dataclass(frozen=True)
class BaseRecord:
    """
    Incoming entity representation being evaluated for linkage.

    Wraps a FHIR resource. The resource content is opaque to matching
    except for its type and its identifier array.
    """

    entity_type: str
    resource: Mapping[str, Any] = field(default_factory=dict, compare=False)
    resource_id: str | None = None

    @classmethod
    def from_resource(cls, resource: Mapping[str, Any]) -> "BaseRecord":
        """
        Build a BaseRecord from a FHIR resource.

        Raises:
            InvalidRecordError: If the resource is not a mapping or has no
                resourceType
        """
        if not isinstance(resource, Mapping):
            raise InvalidRecordError(
                f"Expected a resource mapping, got {type(resource).__name__}"
            )

        entity_type = resource.get("resourceType")
        if not entity_type or not isinstance(entity_type, str):
            raise InvalidRecordError("Resource has no resourceType")

        resource_id = resource.get("id")
        return cls(
            entity_type=entity_type,
            resource=resource,
            resource_id=str(resource_id) if resource_id else None,
        )

    @property
    def identifiers(self) -> list[Mapping[str, Any]]:
        """Raw FHIR identifier entries in record order."""
        raw = self.resource.get("identifier")
        if not isinstance(raw, list):
            return []
        return [entry for entry in raw if isinstance(entry, Mapping)]

    def validate(self) -> None:
        """Fail fast when the record cannot be matched at all."""
        if not self.entity_type or not isinstance(self.entity_type, str):
            raise InvalidRecordError("Base record has no entity type")
