"""Utility for structuring stored claim rows into a ClaimRecord.

Claim rows usually arrive from the submissions store in a nested shape:
- claim.{claim_number, claim_type, ...}
- patient / provider / insurer / coverage / practitioner
- diagnoses[], items[], supporting_info[], attachments[]

List columns may still be JSON-encoded strings, and entity keys may be
camelCase when they came straight from an API payload.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from ..models import ClaimRecord

logger = logging.getLogger(__name__)

ENTITY_KEYS = ("patient", "provider", "insurer", "coverage", "practitioner", "mother_patient")
LIST_KEYS = ("diagnoses", "items", "supporting_info", "attachments")

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def structure_claim_record(claim_data: dict[str, Any]) -> ClaimRecord:
    """Structure a stored claim row for the claim builders.

    Args:
        claim_data: Either a flat record or a nested record with a
            ``claim`` key holding the claim-level columns.

    Returns:
        Validated ClaimRecord

    Raises:
        pydantic.ValidationError: If the structured record is invalid
    """
    claim_fields = claim_data.get("claim")
    if isinstance(claim_fields, dict):
        record = {**snake_case_keys(claim_fields)}
    else:
        record = {
            k: v for k, v in snake_case_keys(claim_data).items() if k not in ENTITY_KEYS + LIST_KEYS
        }

    for key in ENTITY_KEYS:
        entity = claim_data.get(key) or claim_data.get(_camel(key))
        if isinstance(entity, str):
            entity = _parse_json_object(entity)
        if entity:
            record[key] = snake_case_keys(entity)

    for key in LIST_KEYS:
        value = claim_data.get(key)
        if value is None and isinstance(claim_fields, dict):
            value = claim_fields.get(key)
        record[key] = [snake_case_keys(row) for row in parse_json_records(value)]

    for item in record["items"]:
        for seq_key in ("diagnosis_sequences", "information_sequences"):
            if isinstance(item.get(seq_key), str):
                item[seq_key] = [int(s) for s in parse_json_list(item[seq_key])]

    if "claim_type" not in record and claim_data.get("type"):
        logger.warning("Claim row uses deprecated 'type' key; use 'claim_type'")
        record["claim_type"] = claim_data["type"]

    return ClaimRecord.model_validate(record)


def parse_json_records(value: Any) -> list[dict[str, Any]]:
    """Parse a value that may be a JSON string or a list of objects.

    Non-dict elements are dropped.
    """
    if not value:
        return []

    if isinstance(value, str):
        try:
            value = json.loads(value)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Ignoring list column that is not valid JSON")
            return []

    if isinstance(value, dict):
        return [value]

    if isinstance(value, list):
        return [row for row in value if isinstance(row, dict)]

    return []


def parse_json_list(value: Any) -> list[str]:
    """Parse a value that may be a JSON string or list.

    Always returns a list of strings for consistency.

    Args:
        value: String, list, or None

    Returns:
        List of strings (all values converted to str)
    """
    if not value:
        return []

    if isinstance(value, list):
        return [str(item) for item in value]

    if isinstance(value, str):
        try:
            parsed = json.loads(value)
            if isinstance(parsed, list):
                return [str(item) for item in parsed]
            return [str(parsed)]
        except (json.JSONDecodeError, TypeError):
            return [value]

    return [str(value)]


def snake_case_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Convert top-level camelCase keys to snake_case.

    When both spellings are present the snake_case value wins.
    """
    result: dict[str, Any] = {}
    for key, value in data.items():
        snake = _CAMEL_BOUNDARY.sub("_", key).lower()
        if snake in result and snake != key:
            continue
        result[snake] = value
    return result


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def _parse_json_object(value: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return None
    return parsed if isinstance(parsed, dict) else None
