"""Score store: versioned persistence of evaluation results.

Rows live in ``candidate_ai_scores``, unique per (candidate_id, model,
version). Reads and writes never raise: an unreadable score is reported
as "no score" and a failed write as a None id, because an absent score is
a normal state callers already handle.
"""

import json
import logging
from typing import Any

from applicant_scoring.config.settings import get_settings
from applicant_scoring.scoring.errors import PersistenceFailure
from applicant_scoring.scoring.schemas import Score
from applicant_scoring.storage.database import Database

logger = logging.getLogger(__name__)

_COLUMNS = """
    id, candidate_id, model, version, created_at, overall_score,
    experience_fit, skills_fit, culture_fit, location_fit,
    risk_flags, strengths, recommendations, rationale, raw_json, provenance
"""


class ScoreRepository:
    """Repository for candidate score persistence and retrieval.

    Provides create_tables, get_latest, list_history and upsert over the
    ``candidate_ai_scores`` table.

    Args:
        database: Connected Database instance.
        schema: Schema holding the table (defaults to settings.db_schema).
    """

    def __init__(self, database: Database, schema: str | None = None) -> None:
        self._db = database
        self._table = f"{schema or get_settings().db_schema}.candidate_ai_scores"

    async def create_tables(self) -> None:
        """Create the score table and indexes if they don't exist."""
        index_prefix = self._table.replace(".", "_")
        await self._db.execute(f"""
        CREATE TABLE IF NOT EXISTS {self._table} (
            id              BIGSERIAL PRIMARY KEY,
            candidate_id    BIGINT NOT NULL,
            model           TEXT NOT NULL,
            version         TEXT NOT NULL,
            created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            overall_score   REAL,
            experience_fit  REAL,
            skills_fit      REAL,
            culture_fit     REAL,
            location_fit    REAL,
            risk_flags      TEXT[],
            strengths       TEXT[],
            recommendations TEXT[],
            rationale       TEXT,
            raw_json        JSONB,
            provenance      TEXT
                CHECK (provenance IS NULL OR provenance IN ('strict', 'repaired')),
            UNIQUE (candidate_id, model, version)
        );

        CREATE INDEX IF NOT EXISTS {index_prefix}_latest
            ON {self._table} (candidate_id, created_at DESC, id DESC);
        """)
        logger.info("Ensured table %s", self._table)

    async def get_latest(self, candidate_id: int) -> Score | None:
        """Most recent score for a candidate, or None.

        Never raises; storage errors are logged and reported as None.
        """
        sql = f"""
            SELECT {_COLUMNS}
              FROM {self._table}
             WHERE candidate_id = $1
             ORDER BY created_at DESC, id DESC
             LIMIT 1
        """
        try:
            row = await self._db.fetchrow(sql, candidate_id)
            return _row_to_score(row) if row is not None else None
        except Exception as e:
            _log_failure("get_latest", candidate_id, e)
            return None

    async def list_history(self, candidate_id: int, limit: int = 50) -> list[Score]:
        """All stored versions for a candidate, newest first. Never raises."""
        sql = f"""
            SELECT {_COLUMNS}
              FROM {self._table}
             WHERE candidate_id = $1
             ORDER BY created_at DESC, id DESC
             LIMIT $2
        """
        try:
            rows = await self._db.fetch(sql, candidate_id, limit)
            return [_row_to_score(row) for row in rows]
        except Exception as e:
            _log_failure("list_history", candidate_id, e)
            return []

    async def upsert(
        self,
        candidate_id: int,
        model: str,
        version: str,
        fields: dict[str, Any],
    ) -> int | None:
        """Insert a score, or overwrite the row with the same version.

        On conflict the evaluation columns are replaced and created_at is
        reset to NOW() so the row becomes the latest again.

        Args:
            candidate_id: Candidate being scored.
            model: Model identifier.
            version: Version tag (canonical or rerun).
            fields: Evaluation columns, as from StructuredEvaluation.score_fields().

        Returns:
            Row id, or None if the write failed.
        """
        sql = f"""
            INSERT INTO {self._table} (
                candidate_id, model, version, overall_score, experience_fit,
                skills_fit, culture_fit, location_fit, risk_flags, strengths,
                recommendations, rationale, raw_json, provenance
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14)
            ON CONFLICT (candidate_id, model, version) DO UPDATE SET
                overall_score = EXCLUDED.overall_score,
                experience_fit = EXCLUDED.experience_fit,
                skills_fit = EXCLUDED.skills_fit,
                culture_fit = EXCLUDED.culture_fit,
                location_fit = EXCLUDED.location_fit,
                risk_flags = EXCLUDED.risk_flags,
                strengths = EXCLUDED.strengths,
                recommendations = EXCLUDED.recommendations,
                rationale = EXCLUDED.rationale,
                raw_json = EXCLUDED.raw_json,
                provenance = EXCLUDED.provenance,
                created_at = NOW()
            RETURNING id
        """
        raw_json = fields.get("raw_json")
        try:
            return await self._db.fetchval(
                sql,
                candidate_id,
                model,
                str(version or "v1"),
                fields.get("overall_score"),
                fields.get("experience_fit"),
                fields.get("skills_fit"),
                fields.get("culture_fit"),
                fields.get("location_fit"),
                fields.get("risk_flags"),
                fields.get("strengths"),
                fields.get("recommendations"),
                fields.get("rationale"),
                json.dumps(raw_json) if raw_json is not None else None,
                fields.get("provenance"),
            )
        except Exception as e:
            _log_failure("upsert", candidate_id, e)
            return None


def _log_failure(operation: str, candidate_id: int, error: Exception) -> None:
    failure = PersistenceFailure(f"{operation} failed for candidate {candidate_id}: {error}")
    logger.error("Score store error: %s", failure.to_dict())


def _row_to_score(row: Any) -> Score:
    """Convert an asyncpg Record to a Score."""
    raw_json = row.get("raw_json")
    if isinstance(raw_json, str):
        raw_json = json.loads(raw_json)
    return Score(
        id=row["id"],
        candidate_id=row["candidate_id"],
        model=row["model"],
        version=row["version"],
        created_at=row["created_at"],
        overall_score=row.get("overall_score"),
        experience_fit=row.get("experience_fit"),
        skills_fit=row.get("skills_fit"),
        culture_fit=row.get("culture_fit"),
        location_fit=row.get("location_fit"),
        risk_flags=_as_list(row.get("risk_flags")),
        strengths=_as_list(row.get("strengths")),
        recommendations=_as_list(row.get("recommendations")),
        rationale=row.get("rationale"),
        raw_json=raw_json,
        provenance=row.get("provenance"),
    )


def _as_list(value: Any) -> list[str] | None:
    return list(value) if value is not None else None
