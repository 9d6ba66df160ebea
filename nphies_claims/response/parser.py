"""Claim response parsing and classification.

Turns response envelopes from the exchange into ParsedOutcome /
BatchOutcome values. Parsing never raises: a malformed envelope yields an
unsuccessful outcome carrying a single ``PARSE_ERROR`` issue.
"""

from __future__ import annotations

import logging
from typing import Any

from .. import protocol
from ..models import AdjudicationOutcome, IssueSeverity, ProcessingOutcome
from .models import (
    Adjudication,
    BatchOutcome,
    Issue,
    ItemAdjudication,
    ParsedOutcome,
    ResponseTotal,
)

logger = logging.getLogger(__name__)

PARSE_ERROR = "PARSE_ERROR"
NO_CLAIM_RESPONSE = "NO_CLAIM_RESPONSE"

SUCCESS_OUTCOMES = frozenset(
    {ProcessingOutcome.COMPLETE, ProcessingOutcome.PARTIAL, ProcessingOutcome.QUEUED}
)


def parse_claim_response(bundle: dict[str, Any]) -> ParsedOutcome:
    """Classify a single claim-response envelope.

    Args:
        bundle: Response Bundle as returned by the exchange

    Returns:
        ParsedOutcome; never raises
    """
    try:
        entries = _entries(bundle)
        generated = _is_nphies_generated(bundle)

        issues = []
        outcome_resource = _find_resource(entries, "OperationOutcome")
        if outcome_resource is not None:
            issues = parse_operation_outcome(outcome_resource)
            if any(i.is_failure for i in issues):
                logger.info(f"Response {bundle.get('id')} rejected with {len(issues)} issue(s)")
                return ParsedOutcome(
                    outcome=ProcessingOutcome.ERROR,
                    success=False,
                    issues=issues,
                    response_id=bundle.get("id"),
                    is_nphies_generated=generated,
                )

        claim_response = _find_resource(entries, "ClaimResponse")
        if claim_response is None:
            issues.append(
                Issue(
                    severity=IssueSeverity.ERROR,
                    code=NO_CLAIM_RESPONSE,
                    message="No ClaimResponse found in bundle",
                )
            )
            return ParsedOutcome(
                outcome=ProcessingOutcome.ERROR,
                success=False,
                issues=issues,
                response_id=bundle.get("id"),
                is_nphies_generated=generated,
            )

        return parse_claim_response_resource(claim_response, issues, generated)
    except Exception as e:
        logger.error(f"Failed to parse claim response: {e}", exc_info=True)
        return _parse_error(e)


def parse_claim_response_resource(
    claim_response: dict[str, Any],
    issues: list[Issue] | None = None,
    is_nphies_generated: bool = False,
) -> ParsedOutcome:
    """Classify a bare ClaimResponse resource.

    ``issues`` carries non-failing OperationOutcome issues found alongside
    the resource; ClaimResponse ``error`` entries are appended to them.
    """
    issues = list(issues or [])
    extensions = claim_response.get("extension") or []

    raw_outcome = claim_response.get("outcome") or ProcessingOutcome.COMPLETE.value
    try:
        outcome = ProcessingOutcome(raw_outcome)
    except ValueError:
        logger.warning(f"Unknown processing outcome '{raw_outcome}'")
        outcome = ProcessingOutcome.ERROR
        issues.append(
            Issue(
                severity=IssueSeverity.ERROR,
                code=PARSE_ERROR,
                message=f"Unknown processing outcome: {raw_outcome}",
            )
        )

    adjudication = None
    if outcome != ProcessingOutcome.QUEUED:
        adjudication = _adjudication_outcome(extensions)

    issues.extend(_claim_response_errors(claim_response))

    success = outcome in SUCCESS_OUTCOMES and adjudication != AdjudicationOutcome.REJECTED

    request = claim_response.get("request") or {}
    claim_identifier = (request.get("identifier") or {}).get("value")
    if not claim_identifier and request.get("reference"):
        claim_identifier = request["reference"].rsplit("/", 1)[-1]

    batch_identifier = None
    batch_number = None
    for ext in extensions:
        url = ext.get("url", "")
        if protocol.EXT_BATCH_IDENTIFIER_MARKER in url:
            batch_identifier = (ext.get("valueIdentifier") or {}).get("value")
        elif protocol.EXT_BATCH_NUMBER_MARKER in url:
            batch_number = ext.get("valuePositiveInt")

    generated = is_nphies_generated or any(
        "extension-is-nphies-generated" in ext.get("url", "") and ext.get("valueBoolean") is True
        for ext in extensions
    )

    identifiers = claim_response.get("identifier") or []
    return ParsedOutcome(
        outcome=outcome,
        success=success,
        adjudication_outcome=adjudication,
        disposition=claim_response.get("disposition"),
        issues=issues,
        response_id=(identifiers[0].get("value") if identifiers else None) or claim_response.get("id"),
        claim_identifier=claim_identifier,
        batch_identifier=batch_identifier,
        batch_number=batch_number,
        pre_auth_ref=claim_response.get("preAuthRef"),
        is_nphies_generated=generated,
        items=[_item_adjudication(item) for item in claim_response.get("item") or []],
        totals=[_total(total) for total in claim_response.get("total") or []],
    )


def parse_batch_response(bundle: dict[str, Any]) -> BatchOutcome:
    """Classify a batch-response envelope.

    Each nested claim-response Bundle (or direct ClaimResponse) is parsed
    on its own; one malformed entry does not stop its siblings.

    Args:
        bundle: Batch response Bundle

    Returns:
        BatchOutcome; never raises
    """
    try:
        entries = _entries(bundle)
    except Exception as e:
        logger.error(f"Failed to parse batch response: {e}", exc_info=True)
        return BatchOutcome(success=False, issues=_parse_error(e).issues)

    outcome_resource = _find_resource(entries, "OperationOutcome")
    if outcome_resource is not None:
        try:
            batch_issues = parse_operation_outcome(outcome_resource)
        except Exception as e:
            logger.error(f"Failed to parse batch OperationOutcome: {e}", exc_info=True)
            batch_issues = _parse_error(e).issues
        if any(i.is_failure for i in batch_issues):
            return BatchOutcome(
                success=False,
                issues=batch_issues,
                bundle_id=bundle.get("id"),
                timestamp=bundle.get("timestamp"),
            )

    claim_outcomes: list[ParsedOutcome] = []
    for entry in entries:
        resource = entry.get("resource") if isinstance(entry, dict) else None
        if resource is None and isinstance(entry, dict) and entry.get("resourceType"):
            resource = entry
        if not isinstance(resource, dict):
            continue

        resource_type = resource.get("resourceType")
        if resource_type == "Bundle":
            claim_outcomes.append(parse_claim_response(resource))
        elif resource_type == "ClaimResponse":
            try:
                claim_outcomes.append(parse_claim_response_resource(resource))
            except Exception as e:
                logger.error(f"Failed to parse ClaimResponse entry: {e}", exc_info=True)
                claim_outcomes.append(_parse_error(e))

    issues = [
        issue
        for result in claim_outcomes
        if not result.success
        for issue in result.issues
    ]
    return BatchOutcome(
        success=not any(i.is_failure for i in issues),
        claim_outcomes=claim_outcomes,
        issues=issues,
        has_queued_claims=any(r.outcome == ProcessingOutcome.QUEUED for r in claim_outcomes),
        has_pended_claims=any(
            r.adjudication_outcome == AdjudicationOutcome.PENDED for r in claim_outcomes
        ),
        bundle_id=bundle.get("id"),
        timestamp=bundle.get("timestamp"),
    )


def parse_operation_outcome(resource: dict[str, Any]) -> list[Issue]:
    """Map OperationOutcome issues to Issue values."""
    issues = []
    for issue in resource.get("issue") or []:
        details = issue.get("details") or {}
        codings = details.get("coding") or [{}]
        expression = issue.get("expression")
        issues.append(
            Issue(
                severity=_severity(issue.get("severity")),
                code=codings[0].get("code") or issue.get("code"),
                message=codings[0].get("display") or issue.get("diagnostics") or details.get("text"),
                expression=", ".join(expression) if expression else None,
            )
        )
    return issues


def _severity(value: str | None) -> IssueSeverity:
    try:
        return IssueSeverity(value)
    except ValueError:
        logger.warning(f"Unknown issue severity '{value}', treating as error")
        return IssueSeverity.ERROR


def _adjudication_outcome(extensions: list[dict[str, Any]]) -> AdjudicationOutcome | None:
    for ext in extensions:
        if protocol.EXT_ADJUDICATION_OUTCOME_MARKER in ext.get("url", ""):
            codings = (ext.get("valueCodeableConcept") or {}).get("coding") or [{}]
            code = codings[0].get("code")
            try:
                return AdjudicationOutcome(code)
            except ValueError:
                logger.warning(f"Unknown adjudication outcome '{code}'")
                return None
    return None


def _claim_response_errors(claim_response: dict[str, Any]) -> list[Issue]:
    issues = []
    for error in claim_response.get("error") or []:
        codings = (error.get("code") or {}).get("coding") or [{}]
        expression = next(
            (
                ext.get("valueString")
                for ext in codings[0].get("extension") or []
                if "error-expression" in ext.get("url", "")
            ),
            None,
        )
        issues.append(
            Issue(
                severity=IssueSeverity.ERROR,
                code=codings[0].get("code"),
                message=codings[0].get("display"),
                expression=expression,
            )
        )
    return issues


def _item_adjudication(item: dict[str, Any]) -> ItemAdjudication:
    outcome = None
    for ext in item.get("extension") or []:
        if protocol.EXT_ADJUDICATION_OUTCOME_MARKER in ext.get("url", ""):
            outcome = ((ext.get("valueCodeableConcept") or {}).get("coding") or [{}])[0].get("code")

    adjudications = []
    for adj in item.get("adjudication") or []:
        amount = adj.get("amount") or {}
        reason = ((adj.get("reason") or {}).get("coding") or [{}])[0].get("code")
        adjudications.append(
            Adjudication(
                category=((adj.get("category") or {}).get("coding") or [{}])[0].get("code"),
                amount=amount.get("value"),
                value=adj.get("value"),
                currency=amount.get("currency"),
                reason=reason,
            )
        )
    return ItemAdjudication(
        item_sequence=item.get("itemSequence"), outcome=outcome, adjudications=adjudications
    )


def _total(total: dict[str, Any]) -> ResponseTotal:
    amount = total.get("amount") or {}
    return ResponseTotal(
        category=((total.get("category") or {}).get("coding") or [{}])[0].get("code"),
        amount=amount.get("value"),
        currency=amount.get("currency"),
    )


def _is_nphies_generated(bundle: dict[str, Any]) -> bool:
    tags = (bundle.get("meta") or {}).get("tag") or []
    return any(tag.get("code") == protocol.NPHIES_GENERATED_TAG for tag in tags)


def _entries(bundle: Any) -> list[dict[str, Any]]:
    if not isinstance(bundle, dict) or not isinstance(bundle.get("entry"), list):
        raise ValueError("Invalid response bundle")
    return bundle["entry"]


def _find_resource(entries: list[dict[str, Any]], resource_type: str) -> dict[str, Any] | None:
    for entry in entries:
        resource = entry.get("resource") if isinstance(entry, dict) else None
        if isinstance(resource, dict) and resource.get("resourceType") == resource_type:
            return resource
    return None


def _parse_error(error: Exception) -> ParsedOutcome:
    return ParsedOutcome(
        outcome=ProcessingOutcome.ERROR,
        success=False,
        issues=[Issue(severity=IssueSeverity.ERROR, code=PARSE_ERROR, message=str(error))],
    )
