"""Application services."""

from ballotbox.application.services.candidate_catalog import (
    CandidateCatalog,
    CatalogSnapshot,
)
from ballotbox.application.services.submission_guard import SubmissionGuard


__all__ = ["CandidateCatalog", "CatalogSnapshot", "SubmissionGuard"]
