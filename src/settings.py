"""
Application settings for golden-record candidate matching.

- Defaults are intended for development use.
- For testing, override via pyproject.toml [tool.pytest.ini_options].
- For production, set environment variables to override fields.
"""

from typing import Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.mdm.aggregator import AggregationMode
from src.mdm.models import CandidateStrategy


class Settings(BaseSettings):
    """Matching service configuration."""

    # FHIR Store Configuration
    fhir_base_url: str = Field(
        default="http://localhost:8080/fhir",
        description="Base URL of the FHIR server holding golden records",
    )
    fhir_timeout: float = Field(
        default=30.0,
        description="Timeout for FHIR server requests in seconds",
    )
    golden_record_tag_system: str = Field(
        default="http://hapifhir.io/fhir/NamingSystem/mdm-record-status",
        description="Meta tag system marking golden records",
    )
    golden_record_tag_code: str = Field(
        default="GOLDEN_RECORD",
        description="Meta tag code marking golden records",
    )

    # Candidate Search Configuration
    candidate_strategies: list[CandidateStrategy] = Field(
        default=[CandidateStrategy.EXTERNAL_ID, CandidateStrategy.SCORED],
        description="Candidate finders in priority order",
    )
    aggregation_mode: AggregationMode = Field(
        default=AggregationMode.MERGE_ALL,
        description="Merge all strategies or stop at the first with results",
    )
    concurrent_finders: bool = Field(
        default=True,
        description="Run candidate finders concurrently",
    )
    candidate_search_limit: int = Field(
        default=100,
        ge=1,
        description="Maximum similarity hits considered per record",
    )
    eid_systems: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Enterprise identifier systems per entity type",
    )

    # Scoring Thresholds
    certain_match_threshold: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        description="Minimum confidence for a SCORED_MATCH",
    )
    possible_match_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Minimum confidence for a POSSIBLE_MATCH",
    )

    # Lookup Cache Configuration
    lookup_cache_enabled: bool = Field(
        default=True,
        description="Cache golden record lookups by external identifier",
    )
    lookup_cache_max_size: int = Field(
        default=10_000,
        ge=1,
        description="Maximum cached golden record lookups",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode="after")
    def check_thresholds(self) -> Self:
        """Reject a possible-match threshold above the certain-match threshold."""
        if self.possible_match_threshold > self.certain_match_threshold:
            raise ValueError(
                "possible_match_threshold must not exceed certain_match_threshold"
            )
        return self


settings = Settings()
