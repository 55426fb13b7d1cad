"""Schema definitions for candidate source data.

A CandidateProfile is assembled from the ``candidates`` row and the
candidate's most recent application. It is read-only input to context
building and is never persisted by the scoring pipeline.
"""

from dataclasses import dataclass


@dataclass
class CandidateProfile:
    """Profile fields the evaluator sees, plus document references.

    Attributes:
        candidate_id: Primary key in the candidates table.
        name: Display name, falling back to email, then "Unknown".
        email: Contact email or "n/a".
        job_title: Title of the job listing applied to.
        location: City/state/country joined, or the raw address.
        years_experience: Free text as captured on the application.
        expected_salary: Application value, falling back to the candidate's.
        resume_ref: Reference to the resume document, "" if none.
        cover_letter_ref: Reference to the cover letter document, "" if none.
        application_id: Most recent application, if any.
    """

    candidate_id: int
    name: str = "Unknown"
    email: str = "n/a"
    job_title: str = ""
    location: str = ""
    years_experience: str = ""
    expected_salary: str = ""
    resume_ref: str = ""
    cover_letter_ref: str = ""
    application_id: int | None = None

    @property
    def document_refs(self) -> list[tuple[str, str]]:
        """(label, reference) pairs for documents that exist, resume first."""
        refs = []
        if self.resume_ref:
            refs.append(("RESUME TEXT", self.resume_ref))
        if self.cover_letter_ref:
            refs.append(("COVER LETTER TEXT", self.cover_letter_ref))
        return refs
