"""Test configuration and fixtures."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.mdm.collaborators import GoldenRecordLookup, InternalIdResolver
from src.mdm.models import BaseRecord, CandidateStrategy, MatchedCandidate

GOLDEN_TAG = {
    "system": "http://hapifhir.io/fhir/NamingSystem/mdm-record-status",
    "code": "GOLDEN_RECORD",
}


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Configure pytest-anyio to use asyncio."""
    return "asyncio"


def golden_patient(resource_id: str | None, **extra: Any) -> dict[str, Any]:
    """Build a golden Patient resource; resource_id None means unsaved."""
    resource: dict[str, Any] = {
        "resourceType": "Patient",
        "meta": {"tag": [dict(GOLDEN_TAG)]},
        **extra,
    }
    if resource_id is not None:
        resource["id"] = resource_id
    return resource


def patient_record(*identifiers: tuple[str, str], **extra: Any) -> BaseRecord:
    """Build a Patient base record carrying the given (system, value) pairs."""
    return BaseRecord.from_resource(
        {
            "resourceType": "Patient",
            "id": "source-1",
            "identifier": [
                {"system": system, "value": value} for system, value in identifiers
            ],
            **extra,
        }
    )


def stub_finder(
    strategy: CandidateStrategy,
    candidates: list[MatchedCandidate] | None = None,
    error: Exception | None = None,
) -> MagicMock:
    """Create a candidate finder double returning fixed candidates."""
    finder = MagicMock()
    finder.strategy = strategy
    finder.find_candidates = AsyncMock(
        return_value=candidates or [], side_effect=error
    )
    return finder


@pytest.fixture
def mock_lookup() -> AsyncMock:
    """Golden-record lookup that finds nothing by default."""
    lookup = AsyncMock(spec=GoldenRecordLookup)
    lookup.lookup_by_external_id.return_value = None
    return lookup


@pytest.fixture
def mock_resolver() -> AsyncMock:
    """Resolver returning the resource id, or None for unsaved resources."""
    resolver = AsyncMock(spec=InternalIdResolver)

    async def _resolve(handle: dict[str, Any]) -> str | None:
        return handle.get("id")

    resolver.resolve_internal_id.side_effect = _resolve
    return resolver
