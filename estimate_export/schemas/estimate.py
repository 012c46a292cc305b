"""Request and response schemas for the estimate endpoints."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ExportRequest(BaseModel):
    """Body of ``POST /estimate/export``."""

    model_config = ConfigDict(strict=True, str_strip_whitespace=True, extra="ignore")

    leadId: str = Field(..., min_length=1, description="Lead to export")


class PricedEstimateRequest(ExportRequest):
    """Body of ``POST /estimate/priced``."""

    city: Optional[str] = Field(None, description="Arizona city used to look up the sales tax rate")
    taxRate: Optional[float] = Field(
        None, ge=0, le=1, description="Explicit tax rate as a fraction; overrides the city"
    )


class ExportResponse(BaseModel):
    success: bool = True
    id: str
    xml: str
    symbility: Dict[str, Any]
    summary: Dict[str, Any]
    downloadZipUrl: str


class PricedEstimateResponse(BaseModel):
    success: bool = True
    pricing: Dict[str, Any]


class ExportHistoryItem(BaseModel):
    id: str
    leadId: str
    claimId: Optional[str] = None
    summary: Dict[str, Any]
    createdAt: Optional[str] = None


class ExportHistoryResponse(BaseModel):
    success: bool = True
    exports: List[ExportHistoryItem]
