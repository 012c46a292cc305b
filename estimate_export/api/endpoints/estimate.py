"""Estimate export, pricing and export-history endpoints.

Every endpoint runs the same gate sequence: authenticate, rate-limit the
caller (category ``API``), then validate the JSON body. Errors are raised
as :class:`APIError` subclasses and rendered by the app-level handler.
"""

import json
from typing import Annotated, Type, TypeVar

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from estimate_export.core.auth import get_current_user
from estimate_export.core.database import get_async_session as get_session
from estimate_export.core.exceptions import (
    APIError,
    InternalServerError,
    InvalidInputError,
    RateLimitExceededError,
    ScopeFormatError,
)
from estimate_export.core.rate_limit import check_rate_limit
from estimate_export.schemas.auth import CurrentUser
from estimate_export.schemas.estimate import (
    ExportHistoryResponse,
    ExportRequest,
    ExportResponse,
    PricedEstimateRequest,
    PricedEstimateResponse,
)
from estimate_export.services.export_service import EstimateExportService
from estimate_export.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()

RATE_LIMIT_CATEGORY = "API"

RequestModel = TypeVar("RequestModel", bound=BaseModel)


async def get_rate_limited_user(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Authenticated caller who still has request budget left."""
    result = await check_rate_limit(current_user.id, RATE_LIMIT_CATEGORY)
    if not result.success:
        raise RateLimitExceededError(
            limit=result.limit,
            remaining=result.remaining,
            reset=result.reset,
        )
    return current_user


async def get_export_service(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> EstimateExportService:
    return EstimateExportService(db_session)


async def parse_body(request: Request, model: Type[RequestModel]) -> RequestModel:
    """Validate a JSON request body, reporting every failing field.

    Raises:
        InvalidInputError: Body is not JSON or fails the schema
    """
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidInputError(
            details=[{"field": "body", "message": "Request body must be valid JSON"}]
        )

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        details = [
            {
                "field": ".".join(str(part) for part in error["loc"]) or "body",
                "message": error["msg"],
            }
            for error in e.errors()
        ]
        raise InvalidInputError(details=details) from e


def _scope_error(e: ScopeFormatError, lead_id: str) -> InvalidInputError:
    LOGGER.warning(
        f"Stored scope rejected: {e.message}",
        extra={"lead_id": lead_id, "error_count": len(e.errors)},
    )
    return InvalidInputError("Invalid scope format", details=e.errors)


@router.post(
    "/export",
    response_model=ExportResponse,
    status_code=status.HTTP_200_OK,
    summary="Export a lead's estimate",
    operation_id="export_estimate",
)
async def export_estimate(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_rate_limited_user)],
    export_service: Annotated[EstimateExportService, Depends(get_export_service)],
):
    """Build Xactimate XML, Symbility JSON, a summary and a ZIP bundle."""
    body = await parse_body(request, ExportRequest)

    try:
        return await export_service.export_estimate(current_user.id, body.leadId)
    except APIError:
        raise
    except ScopeFormatError as e:
        raise _scope_error(e, body.leadId) from e
    except Exception as e:
        LOGGER.error(
            f"[estimate/export] Error: {e}",
            exc_info=True,
            extra={"lead_id": body.leadId, "user_id": current_user.id},
        )
        raise InternalServerError("Failed to export estimate", details=str(e)) from e


@router.post(
    "/priced",
    response_model=PricedEstimateResponse,
    summary="Price a lead's estimate",
    operation_id="price_estimate",
)
async def price_estimate(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_rate_limited_user)],
    export_service: Annotated[EstimateExportService, Depends(get_export_service)],
):
    """Apply waste, regional, labor, tax and O&P factors to the latest scope."""
    body = await parse_body(request, PricedEstimateRequest)

    try:
        return await export_service.price_estimate(
            current_user.id, body.leadId, city=body.city, tax_rate=body.taxRate
        )
    except APIError:
        raise
    except ScopeFormatError as e:
        raise _scope_error(e, body.leadId) from e
    except Exception as e:
        LOGGER.error(
            f"[estimate/priced] Error: {e}",
            exc_info=True,
            extra={"lead_id": body.leadId, "user_id": current_user.id},
        )
        raise InternalServerError("Failed to price estimate", details=str(e)) from e


@router.get(
    "/exports",
    response_model=ExportHistoryResponse,
    summary="List a lead's exports",
    operation_id="list_estimate_exports",
)
async def list_exports(
    current_user: Annotated[CurrentUser, Depends(get_rate_limited_user)],
    export_service: Annotated[EstimateExportService, Depends(get_export_service)],
    lead_id: Annotated[str, Query(alias="leadId")] = "",
):
    """Export history for a lead, newest first."""
    lead_id = lead_id.strip()
    if not lead_id:
        raise InvalidInputError(
            details=[{"field": "leadId", "message": "String should have at least 1 character"}]
        )

    try:
        return await export_service.list_exports(current_user.id, lead_id)
    except APIError:
        raise
    except Exception as e:
        LOGGER.error(
            f"[estimate/exports] Error: {e}",
            exc_info=True,
            extra={"lead_id": lead_id, "user_id": current_user.id},
        )
        raise InternalServerError("Failed to list exports", details=str(e)) from e
