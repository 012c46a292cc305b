"""Symbility-style JSON export."""

from typing import Any, Dict, Optional

from estimate_export.services.estimate.models import (
    EstimateMetadata,
    Scope,
    ensure_metadata,
    ensure_scope,
    money,
)

SYMBILITY_FORMAT = "symbility"
SYMBILITY_VERSION = "1.0"


def build_symbility_json(scope: Scope, metadata: Optional[EstimateMetadata] = None) -> Dict[str, Any]:
    """Render a scope as a Symbility claim document.

    Raises:
        BuilderError: If ``scope`` is not a parsed Scope
    """
    scope = ensure_scope(scope)
    metadata = ensure_metadata(metadata)

    return {
        "format": SYMBILITY_FORMAT,
        "version": SYMBILITY_VERSION,
        "claim": {
            "claimNumber": metadata.claim_number or "",
            "insuredName": metadata.name or "",
            "propertyAddress": metadata.address or "",
            "dateOfLoss": metadata.date_of_loss or "",
        },
        "lineItems": [
            {
                "lineNumber": item.line_number,
                "category": item.category or "",
                "code": item.code or "",
                "description": item.description,
                "quantity": float(item.quantity),
                "unitOfMeasure": item.unit,
                "unitCost": money(item.unit_price),
                "totalCost": money(item.total),
            }
            for item in scope.line_items
        ],
        "totals": {
            "lineItemCount": len(scope.line_items),
            "totalCost": money(scope.total_cost),
        },
    }
