"""
External identifier (EID) extraction.

Reads the FHIR identifier array of a base record and returns the
identifiers that count as enterprise identity assertions for its
entity type, in the order they appear on the record.
"""

import logging
from collections.abc import Iterable, Mapping

from src.mdm.models import BaseRecord, ExternalIdentifier

logger = logging.getLogger(__name__)


class ExternalIdentifierExtractor:
    """
    Extracts canonical external identifiers from base records.

    An entity type with configured EID systems only recognizes identifiers
    in those systems. An entity type with no configured systems recognizes
    every identifier that carries both a system and a value.
    """

    def __init__(self, eid_systems: Mapping[str, Iterable[str]] | None = None):
        """
        Initialize the extractor.

        Args:
            eid_systems: Map of entity type (e.g. "Patient") to the
                identifier systems treated as external identifiers
        """
        self.eid_systems: dict[str, frozenset[str]] = {
            entity_type: frozenset(systems)
            for entity_type, systems in (eid_systems or {}).items()
        }

    def systems_for(self, entity_type: str) -> frozenset[str] | None:
        """Configured EID systems for an entity type, or None if unrestricted."""
        systems = self.eid_systems.get(entity_type)
        return systems or None

    def extract(self, record: BaseRecord) -> list[ExternalIdentifier]:
        """
        Extract external identifiers from a base record.

        Returns an empty list if the record carries no recognized
        identifiers. Repeated (system, value) pairs are returned once,
        at their first position.
        """
        allowed = self.systems_for(record.entity_type)
        identifiers: list[ExternalIdentifier] = []
        seen: set[ExternalIdentifier] = set()

        for entry in record.identifiers:
            system = entry.get("system")
            value = entry.get("value")
            if not isinstance(system, str) or not isinstance(value, str):
                continue
            if not system or not value:
                continue
            if allowed is not None and system not in allowed:
                continue

            identifier = ExternalIdentifier(system=system, value=value)
            if identifier in seen:
                continue
            seen.add(identifier)
            identifiers.append(identifier)

        logger.debug(
            "Extracted %d external identifiers from %s/%s",
            len(identifiers),
            record.entity_type,
            record.resource_id,
        )
        return identifiers
