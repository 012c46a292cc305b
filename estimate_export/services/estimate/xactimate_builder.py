"""Xactimate-style (ESX) XML export.

Tag names match what the ESX import parser reads back (``ClaimNumber``,
``InsuredName``, ``DateOfLoss``, ``LineItem`` with ``Category``, ``Code``,
``Description``, ``Qty``, ``Unit``, ``UnitPrice``, ``Total``), so an
exported estimate can be re-imported.
"""

import re
import xml.etree.ElementTree as ET
from typing import Optional

from estimate_export.services.estimate.models import (
    EstimateMetadata,
    Scope,
    ensure_metadata,
    ensure_scope,
    format_money,
    format_quantity,
)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
ESX_VERSION = "1.0"

# Characters XML 1.0 cannot represent, even escaped
_INVALID_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def _text(parent: ET.Element, tag: str, value: Optional[str]) -> ET.Element:
    element = ET.SubElement(parent, tag)
    element.text = _INVALID_XML_CHARS.sub("", value or "")
    return element


def build_xactimate_xml(scope: Scope, metadata: Optional[EstimateMetadata] = None) -> str:
    """Render a scope as an ESX XML document.

    Missing metadata renders as empty elements. The output contains no
    timestamps, so identical input always gives identical text.

    Raises:
        BuilderError: If ``scope`` is not a parsed Scope
    """
    scope = ensure_scope(scope)
    metadata = ensure_metadata(metadata)

    root = ET.Element("ESX", {"version": ESX_VERSION})

    header = ET.SubElement(root, "Header")
    _text(header, "ClaimNumber", metadata.claim_number)
    _text(header, "InsuredName", metadata.name)
    _text(header, "PropertyAddress", metadata.address)
    _text(header, "DateOfLoss", metadata.date_of_loss)

    line_items = ET.SubElement(root, "LineItems")
    for item in scope.line_items:
        line = ET.SubElement(line_items, "LineItem", {"number": str(item.line_number)})
        _text(line, "Category", item.category)
        _text(line, "Code", item.code)
        _text(line, "Description", item.description)
        _text(line, "Qty", format_quantity(item.quantity))
        _text(line, "Unit", item.unit)
        _text(line, "UnitPrice", format_money(item.unit_price))
        _text(line, "Total", format_money(item.total))

    totals = ET.SubElement(root, "Totals")
    _text(totals, "LineItemCount", str(len(scope.line_items)))
    _text(totals, "Total", format_money(scope.total_cost))

    ET.indent(root, space="  ")
    return f"{XML_DECLARATION}\n{ET.tostring(root, encoding='unicode')}\n"
