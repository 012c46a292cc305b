"""In-memory estimate model shared by the parser, builders and pricing.

All types are frozen so the two format builders can read the same scope
without coordinating.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional, Tuple

from estimate_export.core.exceptions import BuilderError

CENTS = Decimal("0.01")


def round_cents(value: Decimal) -> Decimal:
    """Round a money amount half-up to cents."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def money(value: Decimal) -> float:
    """Money amount as a JSON number."""
    return float(round_cents(value))


def format_money(value: Decimal) -> str:
    return f"{round_cents(value):.2f}"


def format_quantity(value: Decimal) -> str:
    """Plain decimal text without exponent or trailing zeros (``30``, ``2.5``)."""
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


@dataclass(frozen=True)
class LineItem:
    """One priced line of a scope."""

    line_number: int
    description: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    total: Decimal
    category: Optional[str] = None
    code: Optional[str] = None


@dataclass(frozen=True)
class Scope:
    """Validated scope: line items in their stored order."""

    line_items: Tuple[LineItem, ...]

    @property
    def total_cost(self) -> Decimal:
        return sum((item.total for item in self.line_items), Decimal("0"))

    def __len__(self) -> int:
        return len(self.line_items)


@dataclass(frozen=True)
class EstimateMetadata:
    """Identifying context stamped into export headers.

    Supplied from the lead, contact and claim records, never from the scope.
    """

    name: Optional[str] = None
    address: Optional[str] = None
    date_of_loss: Optional[str] = None
    claim_number: Optional[str] = None


@dataclass(frozen=True)
class EstimateSummary:
    line_item_count: int
    total_cost: Decimal
    by_category: Dict[str, Decimal] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lineItemCount": self.line_item_count,
            "totalCost": money(self.total_cost),
            "byCategory": {name: money(value) for name, value in self.by_category.items()},
        }


def ensure_scope(scope: Any) -> Scope:
    """Check that a builder received a parsed scope.

    Raises:
        BuilderError: The input did not come from the scope parser.
    """
    if not isinstance(scope, Scope):
        raise BuilderError(f"Expected a parsed Scope, got {type(scope).__name__}")
    for index, item in enumerate(scope.line_items):
        if not isinstance(item, LineItem):
            raise BuilderError(
                f"Scope item {index} is {type(item).__name__}, not LineItem"
            )
    return scope


def ensure_metadata(metadata: Any) -> EstimateMetadata:
    if metadata is None:
        return EstimateMetadata()
    if not isinstance(metadata, EstimateMetadata):
        raise BuilderError(f"Expected EstimateMetadata, got {type(metadata).__name__}")
    return metadata
