"""Export bundle: a ZIP of the generated documents plus prior claim reports.

Every bundle is uploaded under a fresh object key, so earlier bundles are
never replaced.
"""

import io
import json
import os
import uuid
import zipfile
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from estimate_export.core.config import settings
from estimate_export.repositories.report_repository import ReportRepository
from estimate_export.services.storage_service import StorageService
from estimate_export.utils.logging import get_logger

LOGGER = get_logger(__name__)

ZIP_CONTENT_TYPE = "application/zip"


@dataclass(frozen=True)
class ExportDocuments:
    """Artifacts produced by the builders for one export."""

    xml: str
    symbility: Dict[str, Any]
    summary: Dict[str, Any]


@dataclass(frozen=True)
class ArchiveResult:
    """Where a stored bundle lives and how to download it."""

    path: str
    url: str


def _json_bytes(payload: Dict[str, Any]) -> bytes:
    return json.dumps(payload, indent=2).encode("utf-8")


def _report_entry_name(index: int, storage_path: str) -> str:
    return f"reports/{index:02d}-{os.path.basename(storage_path) or 'report'}"


class ArchiveService:
    """Builds export bundles and stores them in the exports bucket."""

    def __init__(
        self,
        storage_service: Optional[StorageService] = None,
        report_repository: Optional[ReportRepository] = None,
        exports_bucket: Optional[str] = None,
        reports_bucket: Optional[str] = None,
        url_ttl: Optional[int] = None,
    ):
        self.storage_service = storage_service or StorageService()
        self.report_repository = report_repository
        self.exports_bucket = exports_bucket or settings.storage.exports_bucket
        self.reports_bucket = reports_bucket or settings.storage.reports_bucket
        self.url_ttl = url_ttl or settings.storage.export_url_ttl

    async def _collect_reports(self, claim_id: str, org_id: str) -> List[Dict[str, Any]]:
        """Download every stored report for the claim.

        Raises:
            StorageError: If any report cannot be read
        """
        if self.report_repository is None:
            return []

        reports = await self.report_repository.list_for_claim(claim_id, org_id)
        collected = []
        for index, report in enumerate(reports, start=1):
            content = await self.storage_service.download_bytes(
                self.reports_bucket, report.storage_path
            )
            collected.append(
                {
                    "id": report.id,
                    "title": report.title,
                    "path": _report_entry_name(index, report.storage_path),
                    "content": content,
                }
            )
        return collected

    async def build_archive(
        self,
        claim_id: str,
        documents: ExportDocuments,
        *,
        org_id: str,
        include_reports: bool = True,
    ) -> ArchiveResult:
        """Bundle the export documents, upload the ZIP and return its location.

        Args:
            claim_id: Claim (or lead, when no claim is linked) the bundle
                belongs to; also names the storage folder
            documents: XML, Symbility JSON and summary from this export
            org_id: Owning organization, used to scope report lookups
            include_reports: Add the claim's previously generated reports

        Returns:
            Object path and signed download URL of the uploaded bundle

        Raises:
            StorageError: If a report cannot be read or the upload fails
        """
        reports = await self._collect_reports(claim_id, org_id) if include_reports else []

        manifest = {
            "claimId": claim_id,
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "files": ["estimate.xml", "estimate-symbility.json", "summary.json"],
            "reports": [
                {"id": report["id"], "title": report["title"], "path": report["path"]}
                for report in reports
            ],
        }

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            archive.writestr("estimate.xml", documents.xml.encode("utf-8"))
            archive.writestr("estimate-symbility.json", _json_bytes(documents.symbility))
            archive.writestr("summary.json", _json_bytes(documents.summary))
            for report in reports:
                archive.writestr(report["path"], report["content"])
            archive.writestr("manifest.json", _json_bytes(manifest))

        object_path = f"{org_id}/{claim_id}/estimate-{uuid.uuid4().hex}.zip"
        payload = buffer.getvalue()
        await self.storage_service.upload_bytes(
            payload, self.exports_bucket, object_path, content_type=ZIP_CONTENT_TYPE
        )

        LOGGER.info(
            "Export bundle stored",
            extra={
                "claim_id": claim_id,
                "path": object_path,
                "report_count": len(reports),
                "size": len(payload),
            },
        )
        url = await self.storage_service.create_download_url(
            self.exports_bucket, object_path, expires_in=self.url_ttl
        )
        return ArchiveResult(path=object_path, url=url)
