"""Tests for response structure validation."""

from __future__ import annotations

from nphies_claims.response.structure import validate_response_structure


def batch_response(**overrides):
    bundle = {
        "resourceType": "Bundle",
        "type": "message",
        "entry": [
            {"resource": {"resourceType": "MessageHeader", "eventCoding": {"code": "batch-response"}}},
            {"resource": {"resourceType": "ClaimResponse", "outcome": "complete"}},
        ],
    }
    bundle.update(overrides)
    return bundle


class TestValidateResponseStructure:
    """Tests for validate_response_structure."""

    def test_valid_batch_response(self):
        result = validate_response_structure(batch_response())
        assert result.valid
        assert result.errors == []

    def test_nested_claim_response_bundles(self):
        bundle = batch_response(
            entry=[
                {"resource": {"resourceType": "MessageHeader", "eventCoding": {"code": "batch-response"}}},
                {
                    "resource": {
                        "resourceType": "Bundle",
                        "entry": [{"resource": {"resourceType": "ClaimResponse"}}],
                    }
                },
            ]
        )
        assert validate_response_structure(bundle).valid

    def test_empty(self):
        assert validate_response_structure(None).errors == ["Response is empty"]
        assert validate_response_structure({}).errors == ["Response is empty"]

    def test_not_a_bundle(self):
        result = validate_response_structure({"resourceType": "ClaimResponse"})
        assert result.errors == ["Response is not a FHIR Bundle"]

    def test_wrong_bundle_type(self):
        result = validate_response_structure(batch_response(type="collection"))
        assert result.errors == ['Bundle type is not "message"']

    def test_no_entries(self):
        result = validate_response_structure(batch_response(entry=[]))
        assert not result.valid
        assert "Bundle has no entries" in result.errors

    def test_header_must_come_first(self):
        bundle = batch_response()
        bundle["entry"].reverse()

        result = validate_response_structure(bundle)

        assert "First entry must be MessageHeader" in result.errors

    def test_wrong_event(self):
        bundle = batch_response()
        bundle["entry"][0]["resource"]["eventCoding"]["code"] = "claim-request"

        result = validate_response_structure(bundle)

        assert result.errors == ["MessageHeader event should be batch-response"]

    def test_requires_claim_response_or_outcome(self):
        bundle = batch_response()
        bundle["entry"] = bundle["entry"][:1]

        result = validate_response_structure(bundle)

        assert result.errors == ["Bundle must contain ClaimResponse(s) or OperationOutcome"]

    def test_operation_outcome_only_is_valid(self):
        bundle = batch_response()
        bundle["entry"][1] = {"resource": {"resourceType": "OperationOutcome", "issue": []}}
        assert validate_response_structure(bundle).valid
