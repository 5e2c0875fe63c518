"""
Candidate finding strategies.

- By external identifier: deterministic EID equality
- By similarity score: graded matches from a similarity index
"""

from src.mdm.finders.base import CandidateFinder, TraceSink
from src.mdm.finders.by_eid import ExternalIdCandidateFinder
from src.mdm.finders.scored import ScoredCandidateFinder

__all__ = [
    "CandidateFinder",
    "ExternalIdCandidateFinder",
    "ScoredCandidateFinder",
    "TraceSink",
]
