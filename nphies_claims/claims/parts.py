"""Claim parts shared by every claim type.

Stateless helpers for the pieces of a Claim resource that do not vary by
claim type: accounting period, episode, care team, insurance, diagnoses
and the computed total.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from .. import protocol
from ..models import ClaimItem, ClaimRecord, Diagnosis, quantize_money
from ..resources.builders import coding, codeable_concept, new_id, reference
from ..utils.date_parser import accounting_period_date


@dataclass(frozen=True)
class BundleIds:
    """Local resource ids shared by the entries of one envelope."""

    claim: str = field(default_factory=new_id)
    patient: str = field(default_factory=new_id)
    provider: str = field(default_factory=new_id)
    insurer: str = field(default_factory=new_id)
    coverage: str = field(default_factory=new_id)
    practitioner: str = field(default_factory=new_id)
    encounter: str = field(default_factory=new_id)
    mother: str = field(default_factory=new_id)

    @classmethod
    def for_record(cls, record: ClaimRecord) -> BundleIds:
        """Ids taken from the record's entities, generated where absent.

        The mother and the insurer get a generated id when theirs would
        collide with the newborn's or the provider's.
        """
        seeded = {
            "patient": record.patient.patient_id if record.patient else None,
            "provider": record.provider.provider_id if record.provider else None,
            "insurer": record.insurer.insurer_id if record.insurer else None,
            "coverage": record.coverage.coverage_id if record.coverage else None,
            "practitioner": record.practitioner.practitioner_id if record.practitioner else None,
            "mother": record.mother_patient.patient_id if record.mother_patient else None,
        }
        if seeded["mother"] and seeded["mother"] == seeded["patient"]:
            seeded["mother"] = None
        if seeded["insurer"] and seeded["insurer"] == seeded["provider"]:
            seeded["insurer"] = None
        return cls(**{name: value for name, value in seeded.items() if value})


def provider_identifier_system(record: ClaimRecord) -> str:
    """Base identifier system for provider-issued identifiers.

    Uses the provider's own system when configured, otherwise one derived
    from the provider name.
    """
    provider = record.provider
    if provider and provider.identifier_system:
        return provider.identifier_system.rstrip("/")
    name = (provider.provider_name if provider else None) or "provider"
    slug = re.sub(r"\s+", "", name).lower()
    return f"http://{slug}.com.sa/identifiers"


def accounting_period_extension(record: ClaimRecord) -> dict[str, Any]:
    """First claim extension. The day is always ``01``."""
    return {
        "url": protocol.EXT_ACCOUNTING_PERIOD,
        "valueDate": accounting_period_date(record.service_date, record.request_date),
    }


def episode_extension(record: ClaimRecord, system: str, default_value: str) -> dict[str, Any]:
    return {
        "url": protocol.EXT_EPISODE,
        "valueIdentifier": {
            "system": f"{system}/episode",
            "value": record.episode_identifier or default_value,
        },
    }


def newborn_extension() -> dict[str, Any]:
    return {"url": protocol.EXT_NEWBORN, "valueBoolean": True}


def claim_identifier(record: ClaimRecord, system: str, claim_id: str) -> list[dict[str, Any]]:
    return [{"system": f"{system}/claim", "value": record.claim_number or f"req_{claim_id[:8]}"}]


def care_team(record: ClaimRecord, practitioner_id: str, default_practice_code: str) -> list[dict[str, Any]]:
    practitioner = record.practitioner
    practice_code = (
        record.practice_code
        or (practitioner.practice_code if practitioner else None)
        or (practitioner.specialty_code if practitioner else None)
        or default_practice_code
    )
    return [
        {
            "sequence": 1,
            "provider": reference("Practitioner", practitioner_id),
            "role": codeable_concept(protocol.CARE_TEAM_ROLE_SYSTEM, "primary"),
            "qualification": codeable_concept(protocol.PRACTICE_CODES_SYSTEM, practice_code),
        }
    ]


def insurance(coverage_id: str) -> list[dict[str, Any]]:
    return [{"sequence": 1, "focal": True, "coverage": reference("Coverage", coverage_id)}]


def diagnosis_system(diagnosis: Diagnosis) -> str:
    system = diagnosis.diagnosis_system or protocol.ICD10_AM_SYSTEM
    if system == protocol.ICD10_SYSTEM:
        return protocol.ICD10_AM_SYSTEM
    return system


def diagnosis_type(diagnosis: Diagnosis, index: int) -> str:
    """The first diagnosis is principal, later ones secondary unless tagged."""
    if diagnosis.diagnosis_type:
        return diagnosis.diagnosis_type
    return protocol.DIAGNOSIS_PRINCIPAL if index == 0 else protocol.DIAGNOSIS_SECONDARY


def build_diagnosis(diagnosis: Diagnosis, index: int, with_admission: bool) -> dict[str, Any]:
    """Build one ``Claim.diagnosis`` element.

    ``with_admission`` adds the condition-onset extension and
    ``onAdmission``, which only institutional claims carry.
    """
    element: dict[str, Any] = {}
    if with_admission:
        element["extension"] = [
            {
                "url": protocol.EXT_CONDITION_ONSET,
                "valueCodeableConcept": codeable_concept(
                    protocol.CONDITION_ONSET_SYSTEM, diagnosis.condition_onset
                ),
            }
        ]
    element["sequence"] = diagnosis.sequence or index + 1
    element["diagnosisCodeableConcept"] = {
        "coding": [
            coding(diagnosis_system(diagnosis), diagnosis.diagnosis_code, diagnosis.diagnosis_display)
        ]
    }
    element["type"] = [
        codeable_concept(protocol.DIAGNOSIS_TYPE_SYSTEM, diagnosis_type(diagnosis, index))
    ]
    if with_admission:
        element["onAdmission"] = codeable_concept(
            protocol.DIAGNOSIS_ON_ADMISSION_SYSTEM, "y" if diagnosis.on_admission else "n"
        )
    return element


def money(value: Decimal, currency: str) -> dict[str, Any]:
    return {"value": float(quantize_money(value)), "currency": currency}


def product_or_service(item: ClaimItem) -> dict[str, Any]:
    return {
        "coding": [
            coding(
                item.product_or_service_system or protocol.PROCEDURES_SYSTEM,
                item.product_or_service_code,
                item.product_or_service_display,
            )
        ]
    }


def claim_total(items: list[ClaimItem]) -> Decimal:
    """Sum of item nets. A caller-supplied total is never used."""
    return quantize_money(sum((item.net for item in items), Decimal("0")))
