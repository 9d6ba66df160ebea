"""Supporting-information entry builder.

Each output entry carries exactly one of a coded value, a free-text value
or a quantity value (a bare boolean is allowed when none of the three is
supplied). Free text only goes in ``code.text`` for ``chief-complaint``;
every other category that has a ``code`` element must carry a coding, so
its free text becomes ``valueString``.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from decimal import Decimal
from typing import Any

from .. import protocol
from ..models import SupportingInfoEntry
from ..utils.date_parser import format_date, format_datetime
from .builders import codeable_concept, coding

logger = logging.getLogger(__name__)

FREE_TEXT_CODE_CATEGORIES = frozenset({"chief-complaint"})
CODE_REQUIRED_CATEGORIES = frozenset({protocol.INVESTIGATION_RESULT_CATEGORY})


def normalize_category(category: str) -> str:
    value = (category or "").strip().lower()
    return protocol.SUPPORTING_INFO_CATEGORY_ALIASES.get(value, value)


def ucum_code(unit: str | None) -> str:
    if not unit:
        return ""
    return protocol.UCUM_CODES.get(unit, unit)


def build_supporting_info(
    entry: SupportingInfoEntry,
    sequence: int,
    coded_categories: Collection[str] | None = None,
) -> dict[str, Any]:
    """Build one ``Claim.supportingInfo`` element.

    Args:
        entry: Supporting info input
        sequence: Sequence number to assign
        coded_categories: Categories allowed to carry a coded value. None
            allows every category.

    Returns:
        Supporting info element with exactly one value
    """
    category = normalize_category(entry.category)
    info: dict[str, Any] = {
        "sequence": sequence,
        "category": codeable_concept(protocol.SUPPORTING_INFO_CATEGORY_SYSTEM, category),
    }

    coded_allowed = coded_categories is None or category in coded_categories
    free_text = entry.code_text or entry.value_string

    if category in CODE_REQUIRED_CATEGORIES and coded_allowed:
        if entry.code:
            info["code"] = _coded_value(entry, category)
        else:
            code, display = protocol.INVESTIGATION_NOT_PERFORMED
            info["code"] = {
                "coding": [coding(protocol.INVESTIGATION_RESULT_SYSTEM, code, display)]
            }
        if free_text or entry.value_quantity is not None:
            logger.debug(f"Dropping uncoded value on coded-only category {category}")
    elif entry.value_quantity is not None:
        info["valueQuantity"] = _quantity(entry.value_quantity, entry.value_quantity_unit)
    elif entry.code and coded_allowed:
        info["code"] = _coded_value(entry, category)
    elif free_text or entry.code:
        text = free_text or entry.code_display or entry.code
        if category in FREE_TEXT_CODE_CATEGORIES and entry.code_text:
            info["code"] = {"text": text}
        else:
            info["valueString"] = text
    elif entry.value_boolean is not None:
        info["valueBoolean"] = entry.value_boolean

    if entry.timing_period_start:
        info["timingPeriod"] = {
            "start": format_datetime(entry.timing_period_start),
            "end": format_datetime(entry.timing_period_end or entry.timing_period_start),
        }
    elif entry.timing_date:
        info["timingDate"] = format_date(entry.timing_date)

    if entry.reason_code:
        info["reason"] = codeable_concept(
            protocol.code_system("supporting-info-reason"), entry.reason_code
        )

    return info


def birth_weight_entry(grams: Decimal) -> SupportingInfoEntry:
    """Convert a raw birth weight in grams into a ``birth-weight`` entry in kg."""
    kilograms = (grams / Decimal("1000")).quantize(Decimal("0.001"))
    return SupportingInfoEntry(
        category=protocol.BIRTH_WEIGHT_CATEGORY,
        value_quantity=kilograms,
        value_quantity_unit="kg",
    )


def _coded_value(entry: SupportingInfoEntry, category: str) -> dict[str, Any]:
    system = entry.code_system or protocol.SUPPORTING_INFO_CODE_SYSTEMS.get(
        category, protocol.SUPPORTING_INFO_CODE_SYSTEM
    )
    return {"coding": [coding(system, entry.code, entry.code_display)]}


def _quantity(value: Decimal, unit: str | None) -> dict[str, Any]:
    quantity: dict[str, Any] = {"value": float(value), "system": protocol.UCUM_SYSTEM}
    code = ucum_code(unit)
    if code:
        quantity["code"] = code
    return quantity
