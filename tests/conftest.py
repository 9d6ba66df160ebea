"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

# Add project root to path for imports
project_root = str(Path(__file__).parent.parent)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from nphies_claims.config import EngineSettings  # noqa: E402
from nphies_claims.models import ClaimRecord  # noqa: E402


@pytest.fixture
def settings() -> EngineSettings:
    """Settings with fixed values, independent of the environment."""
    return EngineSettings(
        provider_id="PR-DEFAULT",
        provider_domain="PR-FHIR",
        insurer_id="INS-DEFAULT",
        provider_endpoint="http://provider.example/",
        resource_base_url="http://provider.example",
        utc_offset_hours=3,
        currency="SAR",
    )


@pytest.fixture
def patient_data() -> dict[str, Any]:
    return {
        "patient_id": "P-001",
        "identifier": "1023456789",
        "identifier_type": "national_id",
        "name": "Ahmed Ali Alharbi",
        "gender": "male",
        "birth_date": "1985-06-12",
        "phone": "+966500000001",
        "marital_status": "married",
        "occupation": "business",
    }


@pytest.fixture
def provider_data() -> dict[str, Any]:
    return {
        "provider_id": "PRV-1",
        "nphies_id": "10000000000988",
        "provider_name": "Riyadh General Hospital",
        "provider_type": "hospital",
    }


@pytest.fixture
def insurer_data() -> dict[str, Any]:
    return {"insurer_id": "INS-1", "nphies_id": "7000911508", "insurer_name": "Tawuniya"}


@pytest.fixture
def institutional_data(patient_data, provider_data, insurer_data) -> dict[str, Any]:
    """An inpatient claim with two items and two diagnoses."""
    return {
        "claim_number": "CLM-1001",
        "claim_type": "institutional",
        "service_date": "2025-03-15",
        "request_date": "2025-03-20",
        "encounter_start": "2025-03-15T08:00:00",
        "encounter_class": "inpatient",
        "patient": patient_data,
        "provider": provider_data,
        "insurer": insurer_data,
        "coverage": {"member_id": "MEM-555", "policy_number": "POL-1", "plan_id": "GOLD"},
        "practitioner": {"name": "Sara Khalid", "license_number": "PR-LIC-9", "practice_code": "08.00"},
        "diagnoses": [
            {"diagnosis_code": "K35.8", "diagnosis_display": "Acute appendicitis"},
            {"diagnosis_code": "E11.9"},
        ],
        "supporting_info": [
            {"category": "chief-complaint", "code_text": "Abdominal pain"},
            {"category": "vital-sign-systolic", "value_quantity": "120", "value_quantity_unit": "mm[Hg]"},
        ],
        "items": [
            {
                "product_or_service_code": "83600-00-00",
                "quantity": "2",
                "unit_price": "150.505",
                "tax": "5",
            },
            {
                "product_or_service_code": "30571-00-00",
                "quantity": "1",
                "unit_price": "3200",
                "factor": "0.9",
                "patient_share": "100",
            },
        ],
    }


@pytest.fixture
def institutional_record(institutional_data) -> ClaimRecord:
    return ClaimRecord.model_validate(institutional_data)


@pytest.fixture
def vision_data(patient_data, provider_data, insurer_data) -> dict[str, Any]:
    """An optical claim with a free-text investigation result."""
    return {
        "claim_number": "VIS-2001",
        "claim_type": "vision",
        "service_date": "2025-03-10",
        "patient": patient_data,
        "provider": provider_data,
        "insurer": insurer_data,
        "diagnoses": [{"diagnosis_code": "H52.1"}],
        "supporting_info": [
            {"category": "investigation-result", "value_string": "Refraction done"},
            {"category": "chief-complaint", "code": "H52.1", "code_display": "Myopia"},
        ],
        "items": [
            {"product_or_service_code": "V2100", "quantity": "1", "unit_price": "250"},
        ],
    }


@pytest.fixture
def vision_record(vision_data) -> ClaimRecord:
    return ClaimRecord.model_validate(vision_data)


def find_resources(bundle: dict[str, Any], resource_type: str) -> list[dict[str, Any]]:
    """Return every resource of one type in a bundle."""
    return [
        entry["resource"]
        for entry in bundle["entry"]
        if entry["resource"]["resourceType"] == resource_type
    ]


def find_resource(bundle: dict[str, Any], resource_type: str) -> dict[str, Any]:
    return find_resources(bundle, resource_type)[0]


def extension(resource: dict[str, Any], url: str) -> dict[str, Any] | None:
    return next((e for e in resource.get("extension", []) if e["url"] == url), None)
