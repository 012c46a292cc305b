"""Turn a stored, untyped scope payload into a validated :class:`Scope`.

Scopes are written by the claim-draft generator as free-form JSON and only
get a schema here. The accepted shapes are a list of line items, or an
object carrying that list under ``lineItems``, ``items`` or ``line_items``;
a JSON string holding either shape is decoded first.

Validation is all-or-nothing: every problem found is collected and raised
together in one :class:`ScopeFormatError`.
"""

import json
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence

from estimate_export.core.config import settings
from estimate_export.core.exceptions import ScopeFormatError
from estimate_export.services.estimate.models import LineItem, Scope, round_cents
from estimate_export.utils.logging import get_logger

LOGGER = get_logger(__name__)

LIST_KEYS = ("lineItems", "items", "line_items")

FIELD_ALIASES: Dict[str, Sequence[str]] = {
    "line_number": ("lineNumber", "line_number"),
    "description": ("description", "desc"),
    "quantity": ("quantity", "qty"),
    "unit": ("unit", "uom"),
    "unit_price": ("unitPrice", "unit_price", "price", "rate"),
    "total": ("total", "amount"),
    "category": ("category", "categoryCode"),
    "code": ("code", "activityCode", "selector"),
}

DEFAULT_UNIT = "EA"

# Upper bound for quantities, prices and line totals
MAX_AMOUNT = Decimal("1000000000000")


def _lookup(item: Dict[str, Any], name: str) -> Any:
    for key in FIELD_ALIASES[name]:
        if item.get(key) is not None:
            return item[key]
    return None


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Parse a JSON number or numeric string as Decimal, None if not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.replace(",", "").replace("$", "").strip())
        except InvalidOperation:
            return None
    else:
        return None
    return result if result.is_finite() else None


def _to_line_number(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    number = _to_decimal(value)
    if number is None or number != number.to_integral_value():
        return None
    return int(number)


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _extract_items(raw: Any) -> List[Any]:
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise ScopeFormatError(f"Scope is not valid JSON: {e}") from e

    if isinstance(raw, list):
        items = raw
    elif isinstance(raw, dict):
        items = None
        for key in LIST_KEYS:
            if key in raw:
                items = raw[key]
                break
        if items is None:
            raise ScopeFormatError(
                f"Scope object has no line item list (expected one of: {', '.join(LIST_KEYS)})"
            )
        if not isinstance(items, list):
            raise ScopeFormatError("Scope line items must be a list")
    else:
        raise ScopeFormatError(
            f"Scope must be a list or an object of line items, got {type(raw).__name__}"
        )

    if not items:
        raise ScopeFormatError("Scope contains no line items")
    return items


def _check_amount(
    value: Any,
    field_name: str,
    label: str,
    errors: List[str],
) -> Optional[Decimal]:
    """Parse a non-negative amount no larger than MAX_AMOUNT, recording any error."""
    amount = _to_decimal(value)
    if amount is None:
        errors.append(f"{label}: {field_name} must be a number")
    elif amount < 0:
        errors.append(f"{label}: {field_name} must not be negative")
    elif amount > MAX_AMOUNT:
        errors.append(f"{label}: {field_name} must not exceed {MAX_AMOUNT:,}")
    else:
        return amount
    return None


def _parse_item(
    raw_item: Any,
    position: int,
    tolerance: Decimal,
    errors: List[str],
) -> Optional[LineItem]:
    """Validate one item, appending messages to ``errors``; None if invalid."""
    label = f"Line {position}"
    if not isinstance(raw_item, dict):
        errors.append(f"{label}: expected an object, got {type(raw_item).__name__}")
        return None

    item_errors: List[str] = []

    raw_line_number = _lookup(raw_item, "line_number")
    if raw_line_number is None:
        line_number = position
    else:
        line_number = _to_line_number(raw_line_number)
        if line_number is None or line_number < 1:
            item_errors.append(f"{label}: lineNumber must be a positive integer")
        else:
            label = f"Line {line_number}"

    description = _optional_text(_lookup(raw_item, "description"))
    if description is None:
        item_errors.append(f"{label}: description is required")

    quantity = _check_amount(_lookup(raw_item, "quantity"), "quantity", label, item_errors)
    unit_price = _check_amount(_lookup(raw_item, "unit_price"), "unitPrice", label, item_errors)

    raw_total = _lookup(raw_item, "total")
    total = None
    if raw_total is not None:
        total = _check_amount(raw_total, "total", label, item_errors)

    if item_errors:
        errors.extend(item_errors)
        return None

    expected = quantity * unit_price
    if expected > MAX_AMOUNT:
        errors.append(f"{label}: quantity x unitPrice must not exceed {MAX_AMOUNT:,}")
        return None
    if total is None:
        total = round_cents(expected)
    elif abs(total - expected) >= tolerance:
        errors.append(
            f"{label}: total {total} does not match quantity x unitPrice ({round_cents(expected)})"
        )
        return None

    unit = _optional_text(_lookup(raw_item, "unit")) or DEFAULT_UNIT

    return LineItem(
        line_number=line_number,
        description=description,
        quantity=quantity,
        unit=unit.upper(),
        unit_price=unit_price,
        total=total,
        category=_optional_text(_lookup(raw_item, "category")),
        code=_optional_text(_lookup(raw_item, "code")),
    )


def parse_scope(raw: Any, tolerance: Optional[Decimal] = None) -> Scope:
    """Validate a stored scope payload and return the structured scope.

    Args:
        raw: Scope as stored on the claim draft (list, object or JSON text)
        tolerance: Allowed ``|total - quantity * unitPrice|``; defaults to
            the configured scope total tolerance

    Returns:
        Scope with the line items in stored order

    Raises:
        ScopeFormatError: If the payload or any line item is invalid
    """
    if tolerance is None:
        tolerance = Decimal(str(settings.estimate.total_tolerance))

    items = _extract_items(raw)

    errors: List[str] = []
    parsed: List[LineItem] = []
    seen_numbers: Dict[int, int] = {}

    for position, raw_item in enumerate(items, start=1):
        line_item = _parse_item(raw_item, position, tolerance, errors)
        if line_item is None:
            continue
        if line_item.line_number in seen_numbers:
            errors.append(
                f"Line {line_item.line_number}: duplicate lineNumber "
                f"(items {seen_numbers[line_item.line_number]} and {position})"
            )
            continue
        seen_numbers[line_item.line_number] = position
        parsed.append(line_item)

    if errors:
        LOGGER.warning(
            "Scope rejected",
            extra={"error_count": len(errors), "item_count": len(items)},
        )
        raise ScopeFormatError(
            f"Scope has {len(errors)} invalid line item(s)", errors=errors
        )

    return Scope(line_items=tuple(parsed))
