"""Tests for stored scope parsing and validation."""

import json
from decimal import Decimal

import pytest

from estimate_export.core.exceptions import ScopeFormatError
from estimate_export.services.estimate.models import LineItem, Scope
from estimate_export.services.estimate.scope_parser import parse_scope


class TestAcceptedShapes:
    def test_parses_bare_list_with_short_aliases(self, shingles_scope):
        scope = parse_scope(shingles_scope)

        assert isinstance(scope, Scope)
        assert scope.line_items == (
            LineItem(
                line_number=1,
                description="Shingles",
                quantity=Decimal("30"),
                unit="SQ",
                unit_price=Decimal("120"),
                total=Decimal("3600"),
            ),
        )

    @pytest.mark.parametrize("key", ["lineItems", "items", "line_items"])
    def test_parses_object_wrappers(self, key, shingles_scope):
        scope = parse_scope({key: shingles_scope})
        assert len(scope) == 1
        assert scope.line_items[0].description == "Shingles"

    def test_decodes_json_text(self, roof_scope):
        scope = parse_scope(json.dumps(roof_scope))
        assert len(scope) == 5
        assert scope.line_items[0].code == "RFG 300S"

    def test_accepts_long_aliases_and_numeric_strings(self):
        scope = parse_scope([
            {
                "line_number": "7",
                "description": "  Ice & water barrier ",
                "quantity": "2,000",
                "unit": "sf",
                "unit_price": "$1.85",
                "amount": "3700.00",
                "categoryCode": "RFG",
                "activityCode": "RFG IWS",
            }
        ])

        item = scope.line_items[0]
        assert item.line_number == 7
        assert item.description == "Ice & water barrier"
        assert item.quantity == Decimal("2000")
        assert item.unit == "SF"
        assert item.unit_price == Decimal("1.85")
        assert item.total == Decimal("3700.00")
        assert item.category == "RFG"
        assert item.code == "RFG IWS"

    def test_keeps_stored_order(self, roof_scope):
        roof_scope["lineItems"].reverse()
        scope = parse_scope(roof_scope)
        assert [item.line_number for item in scope.line_items] == [5, 4, 3, 2, 1]


class TestDerivedValues:
    def test_missing_total_is_derived_and_rounded(self):
        scope = parse_scope([{"desc": "Starter strip", "qty": 3, "unitPrice": "2.335"}])
        assert scope.line_items[0].total == Decimal("7.01")

    def test_missing_line_number_uses_position(self):
        scope = parse_scope([
            {"desc": "A", "qty": 1, "unitPrice": 1},
            {"desc": "B", "qty": 1, "unitPrice": 1},
        ])
        assert [item.line_number for item in scope.line_items] == [1, 2]

    def test_missing_unit_defaults_to_each(self):
        scope = parse_scope([{"desc": "Permit", "qty": 1, "unitPrice": 150}])
        assert scope.line_items[0].unit == "EA"

    def test_blank_category_is_none(self):
        scope = parse_scope([{"desc": "Permit", "qty": 1, "unitPrice": 150, "category": "  "}])
        assert scope.line_items[0].category is None


class TestTotalInvariant:
    def test_every_parsed_item_satisfies_total_invariant(self, roof_scope):
        scope = parse_scope(roof_scope)
        for item in scope.line_items:
            assert abs(item.total - item.quantity * item.unit_price) < Decimal("0.01")

    def test_mismatched_total_is_rejected(self):
        with pytest.raises(ScopeFormatError) as exc_info:
            parse_scope([{"desc": "Shingles", "qty": 30, "unit": "SQ", "unitPrice": 120, "total": 3500}])

        assert len(exc_info.value.errors) == 1
        assert "Line 1" in exc_info.value.errors[0]
        assert "3600.00" in exc_info.value.errors[0]

    def test_rounding_within_tolerance_is_accepted(self):
        scope = parse_scope([{"desc": "Vent", "qty": 3, "unitPrice": 3.333, "total": 10.00}])
        assert scope.line_items[0].total == Decimal("10.0")

    def test_custom_tolerance(self):
        raw = [{"desc": "Vent", "qty": 1, "unitPrice": 10, "total": 10.5}]
        with pytest.raises(ScopeFormatError):
            parse_scope(raw)
        assert parse_scope(raw, tolerance=Decimal("1")).line_items[0].total == Decimal("10.5")


class TestRejectedInput:
    @pytest.mark.parametrize(
        "raw",
        [
            None,
            42,
            "not json",
            "{\"lineItems\": 5}",
            {"scope": []},
            [],
            {"items": []},
        ],
    )
    def test_structurally_invalid_scope(self, raw):
        with pytest.raises(ScopeFormatError):
            parse_scope(raw)

    def test_collects_errors_from_every_item(self):
        with pytest.raises(ScopeFormatError) as exc_info:
            parse_scope([
                {"desc": "", "qty": 1, "unitPrice": 1},
                "not an object",
                {"desc": "Flashing", "qty": -2, "unitPrice": 10},
                {"desc": "Ridge cap", "qty": 1, "unitPrice": "abc"},
            ])

        errors = exc_info.value.errors
        assert len(errors) == 4
        assert "description is required" in errors[0]
        assert "expected an object" in errors[1]
        assert "quantity must not be negative" in errors[2]
        assert "unitPrice must be a number" in errors[3]

    def test_no_partial_result_when_one_item_is_bad(self, roof_scope):
        roof_scope["lineItems"][2]["total"] = 1
        with pytest.raises(ScopeFormatError) as exc_info:
            parse_scope(roof_scope)
        assert len(exc_info.value.errors) == 1

    def test_duplicate_line_numbers(self):
        with pytest.raises(ScopeFormatError) as exc_info:
            parse_scope([
                {"lineNumber": 1, "desc": "A", "qty": 1, "unitPrice": 1},
                {"lineNumber": 1, "desc": "B", "qty": 1, "unitPrice": 1},
            ])
        assert "duplicate lineNumber" in exc_info.value.errors[0]

    @pytest.mark.parametrize("line_number", [0, -1, 1.5, "x", True])
    def test_invalid_line_number(self, line_number):
        with pytest.raises(ScopeFormatError) as exc_info:
            parse_scope([{"lineNumber": line_number, "desc": "A", "qty": 1, "unitPrice": 1}])
        assert "lineNumber must be a positive integer" in exc_info.value.errors[0]

    @pytest.mark.parametrize("quantity", [True, "NaN", "Infinity", None, [1]])
    def test_non_numeric_quantity(self, quantity):
        with pytest.raises(ScopeFormatError) as exc_info:
            parse_scope([{"desc": "A", "qty": quantity, "unitPrice": 1}])
        assert "quantity must be a number" in exc_info.value.errors[0]

    def test_position_label_matches_line_number_label(self):
        with pytest.raises(ScopeFormatError) as exc_info:
            parse_scope([
                {"desc": "A", "qty": 1, "unitPrice": 1},
                {"desc": "", "qty": 1, "unitPrice": 1},
            ])
        assert exc_info.value.errors == ["Line 2: description is required"]

    @pytest.mark.parametrize(
        "item",
        [
            {"desc": "Shingles", "qty": 1e15, "unitPrice": 1},
            {"desc": "Shingles", "qty": 1, "unitPrice": "1e26"},
            {"desc": "Shingles", "qty": 1, "unitPrice": 1, "total": "1e26"},
        ],
    )
    def test_oversized_amounts(self, item):
        with pytest.raises(ScopeFormatError) as exc_info:
            parse_scope([item])
        assert "must not exceed 1,000,000,000,000" in exc_info.value.errors[0]

    def test_oversized_product(self):
        with pytest.raises(ScopeFormatError) as exc_info:
            parse_scope([{"desc": "Shingles", "qty": 1e11, "unitPrice": 1e11}])
        assert exc_info.value.errors == [
            "Line 1: quantity x unitPrice must not exceed 1,000,000,000,000"
        ]
