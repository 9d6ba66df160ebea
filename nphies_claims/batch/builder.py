"""Batch claim builder.

A batch is sent as N independent claim-request envelopes, one claim each,
tied together by batch-identifier / batch-number / batch-period
extensions on the Claim resource. No enclosing envelope is built.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Sequence
from datetime import date
from typing import Any

from .. import protocol
from ..claims.base import assemble_bundle
from ..claims.registry import BuilderRegistry, get_registry
from ..config import EngineSettings, get_settings
from ..exceptions import BatchValidationError
from ..models import BatchRequest, ClaimRecord, Provider
from ..resources.builders import codeable_concept, new_id, provider_license
from ..utils.date_parser import format_date
from .models import BatchMarker, ValidationResult
from .rules import BatchRuleRegistry, default_batch_registry

logger = logging.getLogger(__name__)


def validate(
    claims: Sequence[ClaimRecord], rules: BatchRuleRegistry | None = None
) -> ValidationResult:
    """Check a claim list against every batch rule.

    Args:
        claims: Claims proposed for one batch
        rules: Rule registry (defaults to the built-in rules)

    Returns:
        ValidationResult with every violation, not only the first
    """
    rules = rules or default_batch_registry
    errors: list[str] = []
    for rule in rules.active_rules():
        errors.extend(rule(claims))
    if errors:
        logger.info(f"Batch of {len(claims)} claims failed validation: {'; '.join(errors)}")
    return ValidationResult(valid=not errors, errors=errors)


def split(
    request: BatchRequest,
    registry: BuilderRegistry | None = None,
    rules: BatchRuleRegistry | None = None,
) -> list[dict[str, Any]]:
    """Split a batch into one envelope per claim.

    Validation runs before anything is built; each claim is then built by
    its registry builder and stamped with the batch extensions.

    Args:
        request: Batch request
        registry: Builder registry (defaults to the global one)
        rules: Batch rule registry (defaults to the built-in rules)

    Returns:
        One envelope per claim, in input order

    Raises:
        BatchValidationError: If any batch rule is violated
    """
    result = validate(request.claims, rules)
    if not result.valid:
        raise BatchValidationError(
            f"Batch validation failed: {'; '.join(result.errors)}", result.errors
        )

    registry = registry or get_registry()
    period_start, period_end = _batch_period(request)

    envelopes = []
    for number, record in enumerate(request.claims, start=1):
        bundle = registry.get_builder(record.claim_type).build_bundle(record)
        envelopes.append(
            inject_batch_extensions(
                bundle, request.batch_identifier, number, period_start, period_end
            )
        )

    logger.info(f"Split batch {request.batch_identifier} into {len(envelopes)} envelopes")
    return envelopes


def inject_batch_extensions(
    bundle: dict[str, Any],
    batch_identifier: str,
    batch_number: int,
    period_start: date | None = None,
    period_end: date | None = None,
) -> dict[str, Any]:
    """Return a copy of ``bundle`` with batch extensions on its Claim.

    Existing ``extension-batch-*`` extensions are replaced, so injecting
    twice gives the same result as injecting once. The input is not
    modified.
    """
    result = copy.deepcopy(bundle)
    claim = _find_claim(result)
    if claim is None:
        logger.warning("No Claim resource found in bundle; batch extensions not added")
        return result

    extensions = [
        ext
        for ext in claim.get("extension", [])
        if protocol.BATCH_EXTENSION_MARKER not in ext.get("url", "")
    ]
    extensions.append(
        {
            "url": protocol.EXT_BATCH_IDENTIFIER,
            "valueIdentifier": {
                "system": protocol.BATCH_IDENTIFIER_SYSTEM,
                "value": batch_identifier,
            },
        }
    )
    extensions.append({"url": protocol.EXT_BATCH_NUMBER, "valuePositiveInt": batch_number})
    extensions.append(
        {
            "url": protocol.EXT_BATCH_PERIOD,
            "valuePeriod": {
                "start": format_date(period_start or date.today()),
                "end": format_date(period_end or period_start or date.today()),
            },
        }
    )
    claim["extension"] = extensions

    if "priority" not in claim:
        claim["priority"] = codeable_concept(protocol.PROCESS_PRIORITY_SYSTEM, "normal")

    return result


def read_batch_extensions(resource: dict[str, Any]) -> BatchMarker:
    """Read batch values from an envelope or a Claim resource.

    Missing values come back as None.
    """
    claim = resource if resource.get("resourceType") == "Claim" else _find_claim(resource)
    extensions = (claim or {}).get("extension", [])

    identifier = number = start = end = None
    for ext in extensions:
        url = ext.get("url", "")
        if url == protocol.EXT_BATCH_IDENTIFIER:
            identifier = ext.get("valueIdentifier", {}).get("value")
        elif url == protocol.EXT_BATCH_NUMBER:
            number = ext.get("valuePositiveInt")
        elif url == protocol.EXT_BATCH_PERIOD:
            period = ext.get("valuePeriod", {})
            start, end = period.get("start"), period.get("end")

    return BatchMarker(
        batch_identifier=identifier, batch_number=number, period_start=start, period_end=end
    )


def build_poll_request(
    provider: Provider | None,
    batch_identifier: str | None = None,
    settings: EngineSettings | None = None,
) -> dict[str, Any]:
    """Build a poll-request envelope asking for deferred claim responses.

    Args:
        provider: Requesting provider
        batch_identifier: Restrict the poll to one batch
        settings: Engine settings

    Returns:
        Bundle with a MessageHeader focused on a poll Task
    """
    settings = settings or get_settings()
    header_id = new_id()
    task_id = new_id()
    sender = {
        "type": "Organization",
        "identifier": {
            "system": protocol.PROVIDER_LICENSE_SYSTEM,
            "value": provider_license(provider or Provider(), settings),
        },
    }
    nphies = {
        "type": "Organization",
        "identifier": {
            "system": protocol.NPHIES_LICENSE_SYSTEM,
            "value": protocol.NPHIES_LICENSE_VALUE,
        },
    }

    task_inputs = [
        {
            "type": codeable_concept(protocol.TASK_INPUT_TYPE_SYSTEM, "message-type"),
            "valueCode": protocol.EVENT_CLAIM_RESPONSE,
        }
    ]
    if batch_identifier:
        task_inputs.append(
            {
                "type": codeable_concept(protocol.TASK_INPUT_TYPE_SYSTEM, "batch-identifier"),
                "valueString": batch_identifier,
            }
        )

    header = {
        "fullUrl": f"urn:uuid:{header_id}",
        "resource": {
            "resourceType": "MessageHeader",
            "id": header_id,
            "meta": {"profile": [protocol.MESSAGE_HEADER_PROFILE]},
            "eventCoding": {
                "system": protocol.MESSAGE_EVENTS_SYSTEM,
                "code": protocol.EVENT_POLL_REQUEST,
            },
            "destination": [{"endpoint": protocol.NPHIES_ENDPOINT, "receiver": nphies}],
            "sender": sender,
            "source": {"endpoint": settings.provider_endpoint},
            "focus": [{"reference": f"urn:uuid:{task_id}"}],
        },
    }
    task = {
        "fullUrl": f"urn:uuid:{task_id}",
        "resource": {
            "resourceType": "Task",
            "id": task_id,
            "meta": {"profile": [protocol.POLL_REQUEST_PROFILE]},
            "status": "requested",
            "intent": "order",
            "code": codeable_concept(protocol.TASK_CODE_SYSTEM, "poll"),
            "requester": sender,
            "owner": nphies,
            "input": task_inputs,
        },
    }
    return assemble_bundle([header, task])


def unpack_legacy_batch(bundle: dict[str, Any]) -> list[dict[str, Any]]:
    """Extract the Claim entries from a historical multi-claim envelope.

    Older submissions put every batch claim in one envelope with a
    multi-focus header. Those envelopes are rejected by the exchange and
    are no longer built; this helper only reads them for display.
    """
    entries = bundle.get("entry") or []
    by_url = {e.get("fullUrl"): e for e in entries if e.get("fullUrl")}

    header = next(
        (e["resource"] for e in entries if e.get("resource", {}).get("resourceType") == "MessageHeader"),
        None,
    )
    focused = [
        by_url[f["reference"]]
        for f in (header or {}).get("focus", [])
        if f.get("reference") in by_url
    ]
    if focused:
        return [copy.deepcopy(e) for e in focused if e["resource"].get("resourceType") == "Claim"]

    return [
        copy.deepcopy(e) for e in entries if e.get("resource", {}).get("resourceType") == "Claim"
    ]


def _find_claim(bundle: dict[str, Any]) -> dict[str, Any] | None:
    for entry in bundle.get("entry") or []:
        resource = entry.get("resource") or {}
        if resource.get("resourceType") == "Claim":
            return resource
    return None


def _batch_period(request: BatchRequest) -> tuple[date | None, date | None]:
    """Batch period from the request, else the span of claim service dates."""
    dates = [c.service_date for c in request.claims if c.service_date]
    start = request.period_start or (min(dates) if dates else None)
    end = request.period_end or (max(dates) if dates else start)
    return start, end
