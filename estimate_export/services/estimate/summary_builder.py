from decimal import Decimal
from typing import Dict

from estimate_export.services.estimate.models import EstimateSummary, Scope, ensure_scope


def build_summary(scope: Scope) -> EstimateSummary:
    """Aggregate line count, total cost and per-category subtotals.

    Items without a category count toward ``total_cost`` only. Categories
    are listed alphabetically.
    """
    scope = ensure_scope(scope)

    by_category: Dict[str, Decimal] = {}
    for item in scope.line_items:
        if item.category:
            by_category[item.category] = by_category.get(item.category, Decimal("0")) + item.total

    return EstimateSummary(
        line_item_count=len(scope.line_items),
        total_cost=scope.total_cost,
        by_category=dict(sorted(by_category.items())),
    )
