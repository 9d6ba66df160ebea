"""Tests for batch constraint rules."""

from __future__ import annotations

import pytest

from nphies_claims.batch.builder import validate
from nphies_claims.batch.rules import (
    MAX_BATCH_SIZE,
    BatchRuleRegistry,
    batch_size_rule,
    same_claim_type_rule,
    same_insurer_rule,
)
from nphies_claims.models import ClaimRecord


def make_claim(number: int, **overrides) -> ClaimRecord:
    data = {
        "claim_number": f"C-{number}",
        "claim_type": "institutional",
        "patient": {"identifier": "1023456789"},
        "provider": {"provider_id": "PRV-1"},
        "insurer": {"insurer_id": "INS-1"},
    }
    data.update(overrides)
    return ClaimRecord.model_validate(data)


class TestBatchSizeRule:
    """Tests for batch_size_rule."""

    def test_single_claim_rejected(self):
        assert batch_size_rule([make_claim(1)]) == ["Batch must contain at least 2 claims"]

    def test_too_many_claims_rejected(self):
        claims = [make_claim(i) for i in range(MAX_BATCH_SIZE + 1)]
        assert batch_size_rule(claims) == ["Batch cannot exceed 200 claims. Current: 201"]

    def test_bounds_accepted(self):
        assert batch_size_rule([make_claim(1), make_claim(2)]) == []


class TestHomogeneityRules:
    """Tests for the same-insurer, same-provider and same-type rules."""

    def test_insurer_mismatch(self):
        claims = [make_claim(1), make_claim(2, insurer={"insurer_id": "INS-2"})]
        errors = same_insurer_rule(claims)
        assert len(errors) == 1
        assert "insurer" in errors[0]

    def test_insurer_missing_everywhere(self):
        claims = [make_claim(1, insurer=None), make_claim(2, insurer=None)]
        assert same_insurer_rule(claims) == ["Batch claims must identify an insurer (payer)"]

    def test_type_mismatch_lists_types(self):
        claims = [make_claim(1), make_claim(2, claim_type="vision")]
        assert same_claim_type_rule(claims) == [
            "All claims in a batch must be of the same type. Found: institutional, vision"
        ]

    def test_synonyms_count_as_same_type(self):
        claims = [make_claim(1, claim_type="inpatient"), make_claim(2)]
        assert same_claim_type_rule(claims) == []


class TestValidate:
    """Tests for validate, which aggregates every rule."""

    def test_valid_batch(self):
        result = validate([make_claim(1), make_claim(2)])
        assert result.valid
        assert result.errors == []

    def test_reports_every_violation(self):
        claims = [
            make_claim(1),
            make_claim(2, insurer={"insurer_id": "INS-2"}, provider={"provider_id": "PRV-2"}),
        ]
        result = validate(claims)

        assert not result.valid
        assert any("insurer" in e for e in result.errors)
        assert any("provider" in e for e in result.errors)

    def test_missing_parties(self):
        result = validate([make_claim(1, patient=None), make_claim(2)])
        assert "Claim 1: Missing patient" in result.errors

    def test_custom_rule_registry(self):
        rules = BatchRuleRegistry()
        rules.register(batch_size_rule)
        rules.register(batch_size_rule)

        assert len(rules.active_rules()) == 1
        assert validate([make_claim(1)], rules).errors == ["Batch must contain at least 2 claims"]


@pytest.mark.parametrize("size", [2, 200])
def test_size_limits_inclusive(size):
    assert validate([make_claim(i) for i in range(size)]).valid
