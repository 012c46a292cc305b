"""Estimate export orchestration.

Resolves the caller's organization, the lead and its latest claim-draft
scope, then runs the parse -> build -> bundle -> persist pipeline. Every
lookup after the user is filtered by the caller's organization, so a lead
owned by another organization is reported exactly like a missing one.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from estimate_export.core.exceptions import NotFoundError, PreconditionFailedError
from estimate_export.database.models import ClaimDraft, Lead
from estimate_export.repositories.claim_draft_repository import ClaimDraftRepository
from estimate_export.repositories.estimate_export_repository import EstimateExportRepository
from estimate_export.repositories.lead_repository import LeadRepository
from estimate_export.repositories.report_repository import ReportRepository
from estimate_export.repositories.user_repository import UserRepository
from estimate_export.services.estimate.archive_service import ArchiveService, ExportDocuments
from estimate_export.services.estimate.models import EstimateMetadata
from estimate_export.services.estimate.pricing import price_scope, resolve_tax_rate
from estimate_export.services.estimate.scope_parser import parse_scope
from estimate_export.services.estimate.summary_builder import build_summary
from estimate_export.services.estimate.symbility_builder import build_symbility_json
from estimate_export.services.estimate.xactimate_builder import build_xactimate_xml
from estimate_export.services.storage_service import StorageService
from estimate_export.utils.logging import get_logger

LOGGER = get_logger(__name__)

ORG_NOT_FOUND = "User organization not found"
LEAD_NOT_FOUND = "Lead not found"
NO_SCOPE = "No scope found. Generate claim draft first."


@dataclass(frozen=True)
class ScopeContext:
    """Everything loaded before the pipeline runs."""

    org_id: str
    lead: Lead
    draft: ClaimDraft


def derive_metadata(lead: Lead) -> EstimateMetadata:
    """Build export header metadata from a lead and its linked records.

    The name prefers the contact's full name over the lead title.
    """
    contact = lead.contact
    claim = lead.claim

    name = (contact.full_name if contact else "") or lead.title
    address = contact.address if contact else None
    date_of_loss = claim.date_of_loss.isoformat() if claim and claim.date_of_loss else None
    claim_number = lead.claim_number or (claim.claim_number if claim else None)

    return EstimateMetadata(
        name=name or None,
        address=address or None,
        date_of_loss=date_of_loss,
        claim_number=claim_number,
    )


class EstimateExportService:
    """Service for exporting and pricing a lead's estimate."""

    def __init__(
        self,
        session: AsyncSession,
        storage_service: Optional[StorageService] = None,
        archive_service: Optional[ArchiveService] = None,
    ):
        """Initialize export service.

        Args:
            session: Database session
            storage_service: Object storage client; created when omitted
            archive_service: Bundle builder; created when omitted
        """
        self.session = session
        self.user_repo = UserRepository(session)
        self.lead_repo = LeadRepository(session)
        self.draft_repo = ClaimDraftRepository(session)
        self.report_repo = ReportRepository(session)
        self.export_repo = EstimateExportRepository(session)
        self.storage_service = storage_service or StorageService()
        self.archive_service = archive_service or ArchiveService(
            storage_service=self.storage_service,
            report_repository=self.report_repo,
        )

    async def _resolve_org(self, user_id: str) -> str:
        org_id = await self.user_repo.get_org_id_for_user(user_id)
        if not org_id:
            raise NotFoundError(ORG_NOT_FOUND)
        return org_id

    async def _resolve_lead(self, lead_id: str, org_id: str) -> Lead:
        lead = await self.lead_repo.get_for_org(lead_id, org_id)
        if lead is None:
            LOGGER.info("Lead not visible to org", extra={"lead_id": lead_id, "org_id": org_id})
            raise NotFoundError(LEAD_NOT_FOUND)
        return lead

    async def load_scope_context(self, user_id: str, lead_id: str) -> ScopeContext:
        """Resolve org, lead and latest scope-bearing draft, in that order.

        Raises:
            NotFoundError: No organization for the user, or no such lead in it
            PreconditionFailedError: The lead has no draft with a scope yet
        """
        org_id = await self._resolve_org(user_id)
        lead = await self._resolve_lead(lead_id, org_id)

        draft = await self.draft_repo.get_latest_for_lead(lead.id, org_id)
        if draft is None or draft.scope is None:
            raise PreconditionFailedError(NO_SCOPE)

        return ScopeContext(org_id=org_id, lead=lead, draft=draft)

    async def export_estimate(self, user_id: str, lead_id: str) -> Dict[str, Any]:
        """Export a lead's latest scope as XML, Symbility JSON and a ZIP bundle.

        Each call persists a new export record, even for an unchanged scope.

        Args:
            user_id: Supabase user ID of the caller
            lead_id: Lead to export

        Returns:
            Response envelope with the export id, documents and bundle URL

        Raises:
            NotFoundError: Organization or lead not found
            PreconditionFailedError: No scope generated yet
            ScopeFormatError: The stored scope is malformed
            StorageError: The bundle could not be stored
        """
        context = await self.load_scope_context(user_id, lead_id)
        lead = context.lead

        scope = parse_scope(context.draft.scope)
        metadata = derive_metadata(lead)

        xml = build_xactimate_xml(scope, metadata)
        symbility = build_symbility_json(scope, metadata)
        summary = build_summary(scope).to_dict()

        archive_key = lead.claim_id or lead.id
        archive = await self.archive_service.build_archive(
            archive_key,
            ExportDocuments(xml=xml, symbility=symbility, summary=summary),
            org_id=context.org_id,
            include_reports=lead.claim_id is not None,
        )

        try:
            export = await self.export_repo.create_export(
                org_id=context.org_id,
                lead_id=lead.id,
                claim_id=lead.claim_id,
                xml=xml,
                symbility=symbility,
                summary=summary,
            )
        except Exception:
            # The uploaded bundle has no export row pointing at it
            LOGGER.error(
                "Export record not saved; bundle left in storage",
                extra={"lead_id": lead.id, "org_id": context.org_id, "path": archive.path},
            )
            raise

        LOGGER.info(
            "Estimate exported",
            extra={
                "export_id": export.id,
                "lead_id": lead.id,
                "line_items": summary["lineItemCount"],
            },
        )

        return {
            "success": True,
            "id": export.id,
            "xml": xml,
            "symbility": symbility,
            "summary": summary,
            "downloadZipUrl": archive.url,
        }

    async def price_estimate(
        self,
        user_id: str,
        lead_id: str,
        city: Optional[str] = None,
        tax_rate: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Price a lead's latest scope. Nothing is persisted."""
        context = await self.load_scope_context(user_id, lead_id)

        scope = parse_scope(context.draft.scope)
        rate = resolve_tax_rate(
            city=city,
            tax_rate=Decimal(str(tax_rate)) if tax_rate is not None else None,
        )
        priced = price_scope(scope, tax_rate=rate)

        LOGGER.info(
            "Estimate priced",
            extra={"lead_id": lead_id, "tax_rate": str(rate), "total": str(priced.total)},
        )
        return {"success": True, "pricing": priced.to_dict()}

    async def list_exports(self, user_id: str, lead_id: str) -> Dict[str, Any]:
        """List a lead's previous exports, newest first."""
        org_id = await self._resolve_org(user_id)
        lead = await self._resolve_lead(lead_id, org_id)

        exports = await self.export_repo.list_for_lead(lead.id, org_id)
        items: List[Dict[str, Any]] = [
            {
                "id": export.id,
                "leadId": export.lead_id,
                "claimId": export.claim_id,
                "summary": export.summary,
                "createdAt": export.created_at.isoformat() if export.created_at else None,
            }
            for export in exports
        ]
        return {"success": True, "exports": items}
