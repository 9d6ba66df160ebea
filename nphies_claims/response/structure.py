"""Structural checks for response envelopes."""

from __future__ import annotations

from typing import Any

from .. import protocol
from .models import StructureCheck


def validate_response_structure(
    response: Any, expected_event: str = protocol.EVENT_BATCH_RESPONSE
) -> StructureCheck:
    """Check that a response envelope has the expected message shape.

    The header event must be ``expected_event``; a ``claim-response`` event
    is also accepted so single responses pass the batch check.

    Args:
        response: Parsed JSON response
        expected_event: Event code the header should carry

    Returns:
        StructureCheck with every structural problem found
    """
    errors: list[str] = []

    if not response:
        return StructureCheck(valid=False, errors=["Response is empty"])

    if not isinstance(response, dict) or response.get("resourceType") != "Bundle":
        return StructureCheck(valid=False, errors=["Response is not a FHIR Bundle"])

    if response.get("type") != "message":
        errors.append('Bundle type is not "message"')

    entries = response.get("entry")
    if not isinstance(entries, list) or not entries:
        errors.append("Bundle has no entries")
        return StructureCheck(valid=False, errors=errors)

    header = entries[0].get("resource") if isinstance(entries[0], dict) else None
    if not isinstance(header, dict) or header.get("resourceType") != "MessageHeader":
        errors.append("First entry must be MessageHeader")
        header = {}

    event = (header.get("eventCoding") or {}).get("code")
    if event not in (expected_event, protocol.EVENT_CLAIM_RESPONSE):
        errors.append(f"MessageHeader event should be {expected_event}")

    if not any(_has_claim_response(e) for e in entries) and not any(
        _resource_type(e) == "OperationOutcome" for e in entries
    ):
        errors.append("Bundle must contain ClaimResponse(s) or OperationOutcome")

    return StructureCheck(valid=not errors, errors=errors)


def _resource_type(entry: Any) -> str | None:
    if not isinstance(entry, dict):
        return None
    resource = entry.get("resource")
    if isinstance(resource, dict):
        return resource.get("resourceType")
    return entry.get("resourceType")


def _has_claim_response(entry: Any) -> bool:
    resource_type = _resource_type(entry)
    if resource_type == "ClaimResponse":
        return True
    if resource_type == "Bundle":
        nested = entry.get("resource") if isinstance(entry.get("resource"), dict) else entry
        return any(_resource_type(e) == "ClaimResponse" for e in nested.get("entry") or [])
    return False
