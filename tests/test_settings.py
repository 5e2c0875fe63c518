"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from src.mdm.aggregator import AggregationMode
from src.mdm.models import CandidateStrategy
from src.settings import Settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self) -> None:
        config = Settings()

        assert config.candidate_strategies == [
            CandidateStrategy.EXTERNAL_ID,
            CandidateStrategy.SCORED,
        ]
        assert config.aggregation_mode is AggregationMode.MERGE_ALL
        assert config.certain_match_threshold == 0.9
        assert config.possible_match_threshold == 0.7

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CANDIDATE_STRATEGIES", '["scored"]')
        monkeypatch.setenv("EID_SYSTEMS", '{"Patient": ["sys:mrn"]}')
        monkeypatch.setenv("AGGREGATION_MODE", "first_non_empty")

        config = Settings()

        assert config.candidate_strategies == [CandidateStrategy.SCORED]
        assert config.eid_systems == {"Patient": ["sys:mrn"]}
        assert config.aggregation_mode is AggregationMode.FIRST_NON_EMPTY

    def test_inverted_thresholds_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(certain_match_threshold=0.6, possible_match_threshold=0.8)

    def test_unknown_strategy_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(candidate_strategies=["phonetic"])
