"""Read-only candidate queries used by context building and backfill.

The candidates, applications and job_listings tables are owned by the
ATS. Application columns that vary between deployments (resume_url,
years_experience, ...) are read through ``to_jsonb(a)->>'col'`` so a
missing column yields NULL instead of a query error.
"""

import logging
from typing import Any

from applicant_scoring.candidates.schemas import CandidateProfile
from applicant_scoring.config.settings import get_settings
from applicant_scoring.storage.database import Database

logger = logging.getLogger(__name__)


class CandidateRepository:
    """Queries over candidates, applications and scores.

    Args:
        database: Connected Database instance.
        schema: Schema holding the ATS tables (defaults to settings.db_schema).
    """

    def __init__(self, database: Database, schema: str | None = None) -> None:
        self._db = database
        self._schema = schema or get_settings().db_schema

    async def get_profile(self, candidate_id: int) -> CandidateProfile | None:
        """Build the profile for a candidate.

        Returns:
            CandidateProfile, or None if the candidate row does not exist.
        """
        s = self._schema
        cand = await self._db.fetchrow(
            f"""
            SELECT candidate_id, first_name, last_name, email, address,
                   city, state, country, expected_salary_range
              FROM {s}.candidates
             WHERE candidate_id = $1
            """,
            candidate_id,
        )
        if cand is None:
            return None

        app = await self._db.fetchrow(
            f"""
            SELECT a.application_id,
                   a.expected_salary_range,
                   to_jsonb(a)->>'years_experience' AS years_experience,
                   to_jsonb(a)->>'resume_url' AS resume_url,
                   to_jsonb(a)->>'cover_letter_url' AS cover_letter_url,
                   jl.job_title
              FROM {s}.applications a
              LEFT JOIN {s}.job_listings jl
                ON a.job_requisition_id IS NOT NULL
               AND jl.job_requisition_id = a.job_requisition_id
             WHERE a.candidate_id = $1
             ORDER BY a.application_date DESC NULLS LAST, a.application_id DESC
             LIMIT 1
            """,
            candidate_id,
        )

        resume_ref = _get(app, "resume_url")
        if not resume_ref:
            resume_ref = await self._latest_document_ref(candidate_id, "resume_url")
        cover_ref = _get(app, "cover_letter_url")
        if not cover_ref:
            cover_ref = await self._latest_document_ref(candidate_id, "cover_letter_url")

        return _build_profile(candidate_id, cand, app, resume_ref, cover_ref)

    async def _latest_document_ref(self, candidate_id: int, column: str) -> str:
        """Most recent non-empty document reference across all applications."""
        # column is one of two literals chosen by get_profile
        value = await self._db.fetchval(
            f"""
            SELECT to_jsonb(a)->>'{column}'
              FROM {self._schema}.applications a
             WHERE a.candidate_id = $1
               AND COALESCE(to_jsonb(a)->>'{column}', '') <> ''
             ORDER BY a.application_date DESC NULLS LAST, a.application_id DESC
             LIMIT 1
            """,
            candidate_id,
        )
        return value or ""

    async def find_unscored(self, limit: int = 20) -> list[int]:
        """Candidates with source documents but no stored score.

        Args:
            limit: Maximum ids to return.

        Returns:
            Candidate ids, newest first.
        """
        s = self._schema
        rows = await self._db.fetch(
            f"""
            SELECT c.candidate_id
              FROM {s}.candidates c
             WHERE EXISTS (
                     SELECT 1 FROM {s}.applications a
                      WHERE a.candidate_id = c.candidate_id
                        AND (COALESCE(to_jsonb(a)->>'resume_url', '') <> ''
                             OR COALESCE(to_jsonb(a)->>'cover_letter_url', '') <> '')
                   )
               AND NOT EXISTS (
                     SELECT 1 FROM {s}.candidate_ai_scores cs
                      WHERE cs.candidate_id = c.candidate_id
                   )
             ORDER BY c.candidate_id DESC
             LIMIT $1
            """,
            limit,
        )
        return [row["candidate_id"] for row in rows]


def _get(row: Any, key: str) -> str:
    """Read a column as a stripped string; '' for missing rows or NULLs."""
    if row is None:
        return ""
    value = row.get(key)
    return str(value).strip() if value is not None else ""


def _build_profile(
    candidate_id: int,
    cand: Any,
    app: Any,
    resume_ref: str,
    cover_ref: str,
) -> CandidateProfile:
    """Convert candidate and application records to a CandidateProfile."""
    name = f"{_get(cand, 'first_name')} {_get(cand, 'last_name')}".strip()
    email = _get(cand, "email")
    location = ", ".join(
        part for part in (_get(cand, "city"), _get(cand, "state"), _get(cand, "country"))
        if part
    ) or _get(cand, "address")

    return CandidateProfile(
        candidate_id=candidate_id,
        name=name or email or "Unknown",
        email=email or "n/a",
        job_title=_get(app, "job_title"),
        location=location,
        years_experience=_get(app, "years_experience"),
        expected_salary=(
            _get(app, "expected_salary_range") or _get(cand, "expected_salary_range")
        ),
        resume_ref=resume_ref,
        cover_letter_ref=cover_ref,
        application_id=app["application_id"] if app is not None else None,
    )
