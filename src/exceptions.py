"""Custom exceptions for golden-record candidate matching."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.mdm.models import CandidateStrategy


class MdmError(Exception):
    """Base exception for MDM matching errors."""

    pass


class InvalidRecordError(MdmError):
    """Base record lacks the structure required for matching."""

    pass


class LookupFailure(MdmError):
    """A matching collaborator (lookup, id resolution, index search) failed."""

    def __init__(
        self, message: str, strategy: "CandidateStrategy | None" = None
    ) -> None:
        super().__init__(message)
        self.strategy = strategy


class ConfigurationError(MdmError):
    """Error while wiring matching components from settings."""

    pass
