"""Tests for claim and batch response parsing."""

from __future__ import annotations

from typing import Any

import pytest

from nphies_claims import protocol
from nphies_claims.models import AdjudicationOutcome, IssueSeverity, ProcessingOutcome
from nphies_claims.response.parser import (
    PARSE_ERROR,
    parse_batch_response,
    parse_claim_response,
    parse_operation_outcome,
)

ADJUDICATION_URL = protocol.extension_url("adjudication-outcome")


def claim_response(outcome: str | None = "complete", adjudication: str | None = "approved", **extra):
    resource: dict[str, Any] = {
        "resourceType": "ClaimResponse",
        "id": "cr-1",
        "identifier": [{"system": "http://payer/claimresponse", "value": "RESP-1"}],
        "request": {"identifier": {"value": "CLM-1001"}},
        "disposition": "Processed",
    }
    if outcome is not None:
        resource["outcome"] = outcome
    if adjudication is not None:
        resource["extension"] = [
            {
                "url": ADJUDICATION_URL,
                "valueCodeableConcept": {"coding": [{"code": adjudication}]},
            }
        ]
    resource.update(extra)
    return resource


def envelope(*resources: dict[str, Any], **extra) -> dict[str, Any]:
    bundle = {
        "resourceType": "Bundle",
        "id": "resp-bundle",
        "type": "message",
        "entry": [
            {
                "resource": {
                    "resourceType": "MessageHeader",
                    "eventCoding": {"code": protocol.EVENT_CLAIM_RESPONSE},
                }
            }
        ]
        + [{"resource": r} for r in resources],
    }
    bundle.update(extra)
    return bundle


def operation_outcome(severity: str, code: str = "BV-00163") -> dict[str, Any]:
    return {
        "resourceType": "OperationOutcome",
        "issue": [
            {
                "severity": severity,
                "code": "business-rule",
                "details": {"coding": [{"code": code, "display": "Invalid provider"}]},
                "expression": ["Claim.provider"],
            }
        ],
    }


class TestParseClaimResponse:
    """Tests for parse_claim_response."""

    def test_approved(self):
        result = parse_claim_response(envelope(claim_response()))

        assert result.success
        assert result.outcome == ProcessingOutcome.COMPLETE
        assert result.adjudication_outcome == AdjudicationOutcome.APPROVED
        assert result.response_id == "RESP-1"
        assert result.claim_identifier == "CLM-1001"
        assert result.disposition == "Processed"
        assert result.issues == []

    def test_fatal_operation_outcome(self):
        result = parse_claim_response(envelope(operation_outcome("fatal"), claim_response()))

        assert not result.success
        assert result.outcome == ProcessingOutcome.ERROR
        assert result.issues[0].severity == IssueSeverity.FATAL
        assert result.issues[0].code == "BV-00163"
        assert result.issues[0].message == "Invalid provider"
        assert result.issues[0].expression == "Claim.provider"

    def test_fatal_operation_outcome_without_claim_response(self):
        result = parse_claim_response(envelope(operation_outcome("fatal")))

        assert not result.success
        assert result.outcome == ProcessingOutcome.ERROR
        assert len(result.issues) == 1

    def test_warning_operation_outcome_does_not_fail(self):
        result = parse_claim_response(envelope(operation_outcome("warning"), claim_response()))

        assert result.success
        assert result.issues[0].severity == IssueSeverity.WARNING

    def test_queued_has_no_adjudication(self):
        result = parse_claim_response(envelope(claim_response("queued", "approved")))

        assert result.success
        assert result.outcome == ProcessingOutcome.QUEUED
        assert result.adjudication_outcome is None

    def test_rejected_is_unsuccessful(self):
        result = parse_claim_response(envelope(claim_response("complete", "rejected")))

        assert not result.success
        assert result.adjudication_outcome == AdjudicationOutcome.REJECTED

    def test_partial_and_pended_are_successful(self):
        assert parse_claim_response(envelope(claim_response("partial", "partial"))).success
        assert parse_claim_response(envelope(claim_response("complete", "pended"))).success

    def test_missing_outcome_means_complete(self):
        result = parse_claim_response(envelope(claim_response(None, None)))

        assert result.outcome == ProcessingOutcome.COMPLETE
        assert result.success

    def test_error_outcome(self):
        result = parse_claim_response(envelope(claim_response("error", None)))
        assert not result.success

    def test_unknown_outcome_is_error(self):
        result = parse_claim_response(envelope(claim_response("weird", None)))

        assert result.outcome == ProcessingOutcome.ERROR
        assert not result.success

    def test_no_claim_response(self):
        result = parse_claim_response(envelope())

        assert not result.success
        assert result.issues[-1].code == "NO_CLAIM_RESPONSE"

    def test_claim_response_errors_become_issues(self):
        resource = claim_response(
            "complete",
            "approved",
            error=[{"code": {"coding": [{"code": "GE-00013", "display": "Invalid coding"}]}}],
        )
        result = parse_claim_response(envelope(resource))

        assert result.issues[0].code == "GE-00013"
        assert result.issues[0].severity == IssueSeverity.ERROR

    def test_reference_fallback_for_claim_identifier(self):
        resource = claim_response(request={"reference": "Claim/abc-123"})
        assert parse_claim_response(envelope(resource)).claim_identifier == "abc-123"

    def test_batch_markers_and_generated_flag(self):
        resource = claim_response()
        resource["extension"] += [
            {
                "url": protocol.EXT_BATCH_IDENTIFIER,
                "valueIdentifier": {"value": "B-100"},
            },
            {"url": protocol.EXT_BATCH_NUMBER, "valuePositiveInt": 7},
        ]
        bundle = envelope(resource, meta={"tag": [{"code": protocol.NPHIES_GENERATED_TAG}]})

        result = parse_claim_response(bundle)

        assert result.batch_identifier == "B-100"
        assert result.batch_number == 7
        assert result.is_nphies_generated

    def test_item_adjudications_and_totals(self):
        resource = claim_response(
            item=[
                {
                    "itemSequence": 1,
                    "adjudication": [
                        {"category": {"coding": [{"code": "eligible"}]}, "amount": {"value": 100.0, "currency": "SAR"}},
                        {"category": {"coding": [{"code": "benefit"}]}, "amount": {"value": 80.0, "currency": "SAR"}},
                        {"category": {"coding": [{"code": "approved-quantity"}]}, "value": 1},
                    ],
                }
            ],
            total=[{"category": {"coding": [{"code": "benefit"}]}, "amount": {"value": 80.0, "currency": "SAR"}}],
            preAuthRef="PA-1",
        )

        result = parse_claim_response(envelope(resource))
        item = result.items[0]

        assert item.item_sequence == 1
        assert item.eligible_amount == 100.0
        assert item.benefit_amount == 80.0
        assert item.copay_amount is None
        assert item.approved_quantity == 1
        assert result.totals[0].amount == 80.0
        assert result.pre_auth_ref == "PA-1"

    @pytest.mark.parametrize("bundle", [None, "garbage", {"resourceType": "Bundle"}])
    def test_malformed_input_never_raises(self, bundle):
        result = parse_claim_response(bundle)

        assert not result.success
        assert result.outcome == ProcessingOutcome.ERROR
        assert [i.code for i in result.issues] == [PARSE_ERROR]


class TestParseOperationOutcome:
    def test_falls_back_to_diagnostics(self):
        issues = parse_operation_outcome(
            {"issue": [{"severity": "error", "code": "invalid", "diagnostics": "Bad bundle"}]}
        )

        assert issues[0].code == "invalid"
        assert issues[0].message == "Bad bundle"
        assert issues[0].is_failure


class TestParseBatchResponse:
    """Tests for parse_batch_response."""

    def test_nested_claim_responses(self):
        batch = {
            "resourceType": "Bundle",
            "id": "batch-1",
            "type": "message",
            "entry": [
                {"resource": {"resourceType": "MessageHeader", "eventCoding": {"code": "batch-response"}}},
                {"resource": envelope(claim_response("complete", "approved"))},
                {"resource": envelope(claim_response("queued", None))},
                {"resource": envelope(claim_response("complete", "pended"))},
            ],
        }

        result = parse_batch_response(batch)

        assert result.success
        assert len(result.claim_outcomes) == 3
        assert result.has_queued_claims
        assert result.has_pended_claims
        assert result.bundle_id == "batch-1"

    def test_failed_claim_with_error_issue(self):
        batch = envelope(
            envelope(operation_outcome("error")),
            envelope(claim_response()),
        )

        result = parse_batch_response(batch)

        assert not result.success
        assert result.issues[0].code == "BV-00163"

    def test_top_level_error_short_circuits(self):
        result = parse_batch_response(envelope(operation_outcome("fatal"), claim_response()))

        assert not result.success
        assert result.claim_outcomes == []

    def test_one_bad_entry_does_not_stop_siblings(self):
        batch = envelope({"resourceType": "Bundle"}, claim_response())

        result = parse_batch_response(batch)

        assert len(result.claim_outcomes) == 2
        assert result.claim_outcomes[0].issues[0].code == PARSE_ERROR
        assert result.claim_outcomes[1].success

    def test_malformed_batch(self):
        result = parse_batch_response(None)
        assert not result.success
        assert result.issues[0].code == PARSE_ERROR
