"""
FHIR Store service for golden-record matching collaborators.

Implements the golden-record lookup, internal id resolution, and
similarity index interfaces against a FHIR REST server:
- Lookup: search by identifier restricted to golden-record tagged resources
- Resolution: the server-assigned resource id
- Similarity: the FHIR $match operation
"""

import logging
from typing import Any

import httpx

from src.exceptions import LookupFailure
from src.mdm.models import BaseRecord, GoldenRecordHandle, InternalId
from src.settings import settings

logger = logging.getLogger(__name__)


class FHIRStoreService:
    """HTTP client for golden records held in a FHIR server."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        golden_tag_system: str | None = None,
        golden_tag_code: str | None = None,
        match_count: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.fhir_base_url).rstrip("/")
        self.timeout = timeout or settings.fhir_timeout
        self.golden_tag_system = golden_tag_system or settings.golden_record_tag_system
        self.golden_tag_code = golden_tag_code or settings.golden_record_tag_code
        self.match_count = match_count or settings.candidate_search_limit
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def golden_tag(self) -> str:
        """Golden-record tag in FHIR token search format (system|code)."""
        return f"{self.golden_tag_system}|{self.golden_tag_code}"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Accept": "application/fhir+json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def lookup_by_external_id(
        self, value: str, entity_type: str
    ) -> GoldenRecordHandle | None:
        """
        Find the golden record tagged with an external identifier value.

        Args:
            value: External identifier value
            entity_type: FHIR resource type of the golden record

        Returns:
            The golden record resource, or None if no golden record carries
            the identifier

        Raises:
            LookupFailure: If the server fails or more than one golden
                record carries the identifier
        """
        params = {"identifier": value, "_tag": self.golden_tag}
        data = await self._request("GET", f"/{entity_type}", params=params)

        resources = _bundle_resources(data, entity_type)
        if not resources:
            return None
        if len(resources) > 1:
            ids = ", ".join(str(r.get("id")) for r in resources)
            raise LookupFailure(
                f"Found {len(resources)} golden {entity_type} resources "
                f"sharing EID {value}: {ids}"
            )
        return resources[0]

    async def resolve_internal_id(
        self, handle: GoldenRecordHandle
    ) -> InternalId | None:
        """Return the server-assigned id, or None for an unsaved resource."""
        resource_id = handle.get("id")
        if not resource_id:
            return None
        return str(resource_id)

    async def search(
        self, record: BaseRecord
    ) -> list[tuple[GoldenRecordHandle, float]]:
        """
        Rank golden records by similarity using the FHIR $match operation.

        Args:
            record: Base record to match

        Returns:
            (golden record, score) pairs in server rank order
        """
        parameters = {
            "resourceType": "Parameters",
            "parameter": [
                {"name": "resource", "resource": dict(record.resource)},
                {"name": "count", "valueInteger": self.match_count},
                {"name": "onlyCertainMatches", "valueBoolean": False},
            ],
        }
        data = await self._request(
            "POST", f"/{record.entity_type}/$match", json=parameters
        )

        hits: list[tuple[GoldenRecordHandle, float]] = []
        for entry in data.get("entry", []):
            resource = entry.get("resource", {})
            if resource.get("resourceType") != record.entity_type:
                continue
            if not self._is_golden(resource):
                continue
            score = entry.get("search", {}).get("score")
            hits.append((resource, float(score) if score is not None else 0.0))

        logger.debug(
            "$match for %s/%s returned %d golden records",
            record.entity_type,
            record.resource_id,
            len(hits),
        )
        return hits

    def _is_golden(self, resource: dict[str, Any]) -> bool:
        """Check whether a resource carries the golden-record tag."""
        tags = resource.get("meta", {}).get("tag", [])
        return any(
            tag.get("system") == self.golden_tag_system
            and tag.get("code") == self.golden_tag_code
            for tag in tags
        )

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        """Send a request and return the JSON body, mapping errors to LookupFailure."""
        client = await self._get_client()
        try:
            response = await client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "FHIR server returned %d for %s %s",
                e.response.status_code,
                method,
                url,
            )
            raise LookupFailure(
                f"FHIR server returned {e.response.status_code} for {method} {url}"
            ) from e
        except httpx.HTTPError as e:
            logger.error("FHIR server unreachable for %s %s: %s", method, url, e)
            raise LookupFailure(f"FHIR server unreachable: {e}") from e

        data: dict[str, Any] = response.json()
        return data


def _bundle_resources(
    bundle: dict[str, Any], resource_type: str
) -> list[dict[str, Any]]:
    """Collect resources of one type from a searchset bundle."""
    resources = []
    for entry in bundle.get("entry", []):
        resource = entry.get("resource", {})
        if resource.get("resourceType") == resource_type:
            resources.append(resource)
    return resources


def create_fhir_store_service() -> FHIRStoreService:
    """Create a FHIRStoreService with default configuration."""
    return FHIRStoreService()
