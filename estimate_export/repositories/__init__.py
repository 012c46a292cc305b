"""Repository layer modules."""

from estimate_export.repositories.claim_draft_repository import ClaimDraftRepository
from estimate_export.repositories.estimate_export_repository import EstimateExportRepository
from estimate_export.repositories.lead_repository import LeadRepository
from estimate_export.repositories.report_repository import ReportRepository
from estimate_export.repositories.user_repository import UserRepository

__all__ = [
    "ClaimDraftRepository",
    "EstimateExportRepository",
    "LeadRepository",
    "ReportRepository",
    "UserRepository",
]
