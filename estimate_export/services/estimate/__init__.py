"""Estimate export pipeline: parse, build formats, summarize, price, bundle."""

from estimate_export.services.estimate.archive_service import (
    ArchiveResult,
    ArchiveService,
    ExportDocuments,
)
from estimate_export.services.estimate.models import (
    EstimateMetadata,
    EstimateSummary,
    LineItem,
    Scope,
)
from estimate_export.services.estimate.pricing import (
    AZ_CITY_TAX_RATES,
    PricedEstimate,
    PricingFactors,
    price_scope,
    resolve_tax_rate,
)
from estimate_export.services.estimate.scope_parser import parse_scope
from estimate_export.services.estimate.summary_builder import build_summary
from estimate_export.services.estimate.symbility_builder import build_symbility_json
from estimate_export.services.estimate.xactimate_builder import build_xactimate_xml

__all__ = [
    "AZ_CITY_TAX_RATES",
    "ArchiveResult",
    "ArchiveService",
    "EstimateMetadata",
    "EstimateSummary",
    "ExportDocuments",
    "LineItem",
    "PricedEstimate",
    "PricingFactors",
    "Scope",
    "build_summary",
    "build_symbility_json",
    "build_xactimate_xml",
    "parse_scope",
    "price_scope",
    "resolve_tax_rate",
]
