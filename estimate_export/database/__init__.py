"""Database models for the estimate export service."""

from estimate_export.database.models import (
    Claim,
    ClaimDraft,
    Contact,
    EstimateExport,
    Lead,
    Organization,
    Report,
    User,
)

__all__ = [
    "Claim",
    "ClaimDraft",
    "Contact",
    "EstimateExport",
    "Lead",
    "Organization",
    "Report",
    "User",
]
