"""Storage layer - PostgreSQL connection management."""

from applicant_scoring.storage.database import Database

__all__ = ["Database"]
