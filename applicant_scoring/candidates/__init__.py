"""Candidate source data: profiles, backfill discovery and document text.

Components:
- CandidateProfile: Dataclass view over the candidate and latest application rows
- CandidateRepository: Read-only queries against the ATS tables
- TextExtractor / HttpTextExtractor / NullTextExtractor: document text adapters
"""

from applicant_scoring.candidates.extraction import (
    HttpTextExtractor,
    NullTextExtractor,
    TextExtractor,
)
from applicant_scoring.candidates.repository import CandidateRepository
from applicant_scoring.candidates.schemas import CandidateProfile

__all__ = [
    "CandidateProfile",
    "CandidateRepository",
    "HttpTextExtractor",
    "NullTextExtractor",
    "TextExtractor",
]
