"""Priced estimate: waste, regional, labor, tax and O&P on top of a scope.

Each adjustment is computed on the running total of the previous ones and
rounded half-up to cents before the next step, so the reported amounts
always add up to the reported total.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from estimate_export.core.config import settings, EstimateSettings
from estimate_export.services.estimate.models import (
    Scope,
    ensure_scope,
    money,
    round_cents,
)

# Combined state + city sales tax by Arizona city, as a fraction
AZ_CITY_TAX_RATES: Dict[str, Decimal] = {
    "Phoenix": Decimal("0.089"),
    "Prescott": Decimal("0.0918"),
    "Chino Valley": Decimal("0.0835"),
    "Prescott Valley": Decimal("0.0918"),
    "Sedona": Decimal("0.0918"),
    "Cottonwood": Decimal("0.0943"),
    "Verde Valley": Decimal("0.086"),
    "Flagstaff": Decimal("0.0918"),
    "Tucson": Decimal("0.087"),
    "Mesa": Decimal("0.0805"),
    "Scottsdale": Decimal("0.0765"),
    "Tempe": Decimal("0.0805"),
    "Chandler": Decimal("0.078"),
    "Glendale": Decimal("0.086"),
    "Gilbert": Decimal("0.078"),
}

_CITY_LOOKUP = {name.lower(): rate for name, rate in AZ_CITY_TAX_RATES.items()}


def _as_decimal(value: Any) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


@dataclass(frozen=True)
class PricingFactors:
    """Multipliers applied to a scope subtotal."""

    waste: Decimal = Decimal("0.10")
    region: Decimal = Decimal("1.00")
    labor: Decimal = Decimal("1.00")
    overhead_and_profit: Decimal = Decimal("0.20")

    @classmethod
    def from_settings(cls, config: Optional[EstimateSettings] = None) -> "PricingFactors":
        config = config or settings.estimate
        return cls(
            waste=_as_decimal(config.waste_factor),
            region=_as_decimal(config.region_multiplier),
            labor=_as_decimal(config.labor_burden),
            overhead_and_profit=_as_decimal(config.overhead_and_profit),
        )


@dataclass(frozen=True)
class PricedItem:
    code: str
    description: str
    quantity: Decimal
    unit: str
    base_price: Decimal
    total_price: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "description": self.description,
            "quantity": float(self.quantity),
            "unit": self.unit,
            "basePrice": money(self.base_price),
            "totalPrice": money(self.total_price),
        }


@dataclass(frozen=True)
class PricedEstimate:
    subtotal: Decimal
    waste: Decimal
    waste_amount: Decimal
    region: Decimal
    region_amount: Decimal
    labor: Decimal
    labor_amount: Decimal
    tax: Decimal
    tax_amount: Decimal
    op: Decimal
    op_amount: Decimal
    total: Decimal
    priced_items: Tuple[PricedItem, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subtotal": money(self.subtotal),
            "waste": float(self.waste),
            "wasteAmount": money(self.waste_amount),
            "region": float(self.region),
            "regionAmount": money(self.region_amount),
            "labor": float(self.labor),
            "laborAmount": money(self.labor_amount),
            "tax": float(self.tax),
            "taxAmount": money(self.tax_amount),
            "op": float(self.op),
            "opAmount": money(self.op_amount),
            "total": money(self.total),
            "pricedItems": [item.to_dict() for item in self.priced_items],
        }


def resolve_tax_rate(
    city: Optional[str] = None,
    tax_rate: Optional[Any] = None,
    default: Optional[Any] = None,
) -> Decimal:
    """Pick the tax rate: explicit rate, else the city's rate, else the default.

    City names match case-insensitively; an unknown city gets the default.
    """
    if tax_rate is not None:
        return _as_decimal(tax_rate)
    if city:
        rate = _CITY_LOOKUP.get(city.strip().lower())
        if rate is not None:
            return rate
    return _as_decimal(default if default is not None else settings.estimate.default_tax_rate)


def price_scope(
    scope: Scope,
    *,
    tax_rate: Any,
    factors: Optional[PricingFactors] = None,
) -> PricedEstimate:
    """Price a parsed scope.

    Args:
        scope: Parsed scope
        tax_rate: Sales tax as a fraction (0.089 for 8.9%)
        factors: Waste, region, labor and O&P factors; configured defaults
            when omitted

    Returns:
        PricedEstimate with every amount rounded to cents
    """
    scope = ensure_scope(scope)
    factors = factors or PricingFactors.from_settings()
    tax = _as_decimal(tax_rate)

    subtotal = round_cents(scope.total_cost)
    waste_amount = round_cents(subtotal * factors.waste)
    region_amount = round_cents((subtotal + waste_amount) * (factors.region - 1))
    labor_amount = round_cents((subtotal + waste_amount + region_amount) * (factors.labor - 1))
    pretax = subtotal + waste_amount + region_amount + labor_amount
    tax_amount = round_cents(pretax * tax)
    op_amount = round_cents(pretax * factors.overhead_and_profit)

    item_multiplier = (1 + factors.waste) * factors.region * factors.labor
    priced_items: List[PricedItem] = [
        PricedItem(
            code=item.code or "",
            description=item.description,
            quantity=item.quantity,
            unit=item.unit,
            base_price=item.unit_price,
            total_price=round_cents(item.total * item_multiplier),
        )
        for item in scope.line_items
    ]

    return PricedEstimate(
        subtotal=subtotal,
        waste=factors.waste,
        waste_amount=waste_amount,
        region=factors.region,
        region_amount=region_amount,
        labor=factors.labor,
        labor_amount=labor_amount,
        tax=tax,
        tax_amount=tax_amount,
        op=factors.overhead_and_profit,
        op_amount=op_amount,
        total=pretax + tax_amount + op_amount,
        priced_items=tuple(priced_items),
    )
