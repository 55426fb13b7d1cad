"""Scoring context assembly.

Combines a candidate's profile with the extracted text of up to two
documents (resume, then cover letter) into a ScoringContext whose text is
capped at ``context_max_chars``. Extraction failures never abort assembly;
a failed document contributes nothing.
"""

import logging

from applicant_scoring.candidates.extraction import TextExtractor
from applicant_scoring.candidates.repository import CandidateRepository
from applicant_scoring.scoring.errors import TransientCallFailure
from applicant_scoring.scoring.schemas import ScoringContext

logger = logging.getLogger(__name__)

SECTION_SEPARATOR = "\n\n"


class ContextBuilder:
    """Builds ScoringContext objects for the evaluator.

    Args:
        candidates: Source of candidate profiles.
        extractor: Document text extractor.
        max_chars: Hard cap on the combined document text.
    """

    def __init__(
        self,
        candidates: CandidateRepository,
        extractor: TextExtractor,
        max_chars: int = 25_000,
    ) -> None:
        self._candidates = candidates
        self._extractor = extractor
        self._max_chars = max_chars

    async def build(self, candidate_id: int) -> ScoringContext | None:
        """Assemble the context for one candidate.

        Returns:
            ScoringContext, or None if the candidate does not exist.

        Raises:
            TransientCallFailure: The candidate lookup itself failed.
        """
        try:
            profile = await self._candidates.get_profile(candidate_id)
        except Exception as e:
            logger.warning("Candidate lookup failed for %s: %s", candidate_id, e)
            raise TransientCallFailure(
                f"Candidate lookup failed: {e}", code="candidate_lookup_failed"
            ) from e
        if profile is None:
            return None

        sections: list[str] = []
        for label, ref in profile.document_refs:
            text = await self._extract(ref)
            if text:
                sections.append(f"{label}:\n{text}")

        combined = SECTION_SEPARATOR.join(sections)[: self._max_chars]
        logger.debug(
            "Built context for candidate %s (%d sections, %d chars)",
            candidate_id,
            len(sections),
            len(combined),
        )

        return ScoringContext(
            candidate_id=candidate_id,
            name=profile.name,
            email=profile.email,
            job_title=profile.job_title,
            location=profile.location,
            years_experience=profile.years_experience,
            expected_salary=profile.expected_salary,
            combined_text=combined,
        )

    async def _extract(self, ref: str) -> str:
        """Extract one document; any failure yields ""."""
        try:
            text = await self._extractor.extract(ref)
        except Exception as e:  # extractors must not raise
            logger.warning("Extractor raised for %s: %s", ref, e)
            return ""
        return text.strip() if isinstance(text, str) else ""
