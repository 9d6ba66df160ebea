"""Tests for the claim record structuring utility."""

from __future__ import annotations

import json
from decimal import Decimal

import pytest
from pydantic import ValidationError

from nphies_claims.utils.record_structurer import (
    parse_json_list,
    parse_json_records,
    snake_case_keys,
    structure_claim_record,
)


class TestParseJsonList:
    """Tests for parse_json_list helper."""

    def test_returns_empty_list_for_none(self):
        assert parse_json_list(None) == []

    def test_returns_list_as_strings(self):
        assert parse_json_list([1, 2]) == ["1", "2"]

    def test_parses_json_string_array(self):
        assert parse_json_list("[1, 2, 3]") == ["1", "2", "3"]

    def test_keeps_plain_string(self):
        assert parse_json_list("not json") == ["not json"]


class TestParseJsonRecords:
    """Tests for parse_json_records helper."""

    def test_parses_json_string(self):
        assert parse_json_records('[{"a": 1}]') == [{"a": 1}]

    def test_wraps_single_object(self):
        assert parse_json_records({"a": 1}) == [{"a": 1}]

    def test_drops_non_dict_rows(self):
        assert parse_json_records([{"a": 1}, "x", 3]) == [{"a": 1}]

    def test_invalid_json_is_empty(self):
        assert parse_json_records("{oops") == []


class TestSnakeCaseKeys:
    """Tests for snake_case_keys."""

    def test_converts_camel_case(self):
        assert snake_case_keys({"claimNumber": "1", "unitPrice": 2}) == {
            "claim_number": "1",
            "unit_price": 2,
        }

    def test_snake_case_wins_over_camel(self):
        result = snake_case_keys({"claim_number": "A", "claimNumber": "B"})
        assert result == {"claim_number": "A"}


class TestStructureClaimRecord:
    """Tests for structure_claim_record."""

    def test_nested_row_with_json_columns(self):
        row = {
            "claim": {"claimNumber": "CLM-9", "claimType": "inpatient", "serviceDate": "2025-03-15"},
            "patient": json.dumps({"name": "Test Patient", "identifier": "2123456789"}),
            "insurer": {"insurerId": "INS-1"},
            "items": json.dumps(
                [
                    {
                        "productOrServiceCode": "X1",
                        "unitPrice": "10.00",
                        "diagnosisSequences": "[1, 2]",
                    }
                ]
            ),
            "diagnoses": [{"diagnosis_code": "A00"}],
        }

        record = structure_claim_record(row)

        assert record.claim_number == "CLM-9"
        assert record.normalized_type == "institutional"
        assert record.patient.identifier == "2123456789"
        assert record.insurer_key == "INS-1"
        assert record.items[0].unit_price == Decimal("10.00")
        assert record.items[0].diagnosis_sequences == [1, 2]
        assert record.diagnoses[0].diagnosis_code == "A00"

    def test_flat_row(self):
        row = {
            "claim_number": 42,
            "claim_type": "vision",
            "service_date": "03/10/2025",
            "items": [{"product_or_service_code": "V1"}],
        }

        record = structure_claim_record(row)

        assert record.claim_number == "42"
        assert record.service_date.isoformat() == "2025-03-10"
        assert record.items[0].quantity == Decimal("1")

    def test_deprecated_type_key(self, caplog):
        record = structure_claim_record({"type": "vision"})
        assert record.claim_type == "vision"
        assert "deprecated" in caplog.text

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            structure_claim_record({"items": [{"product_or_service_code": "X", "unit_price": "-1"}]})
