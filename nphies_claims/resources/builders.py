"""FHIR resource builders for the entities referenced by a claim.

Each builder takes a domain entity plus a caller-assigned local id and
returns a bundle entry ``{"fullUrl": ..., "resource": {...}}``. Missing
entity values fall back to a generated value, then to a fixed
placeholder; builders never raise.
"""

from __future__ import annotations

import logging
import re
import uuid
from typing import Any

from .. import protocol
from ..config import EngineSettings, get_settings
from ..models import Attachment, Coverage, Insurer, Patient, Practitioner, Provider
from ..utils.date_parser import format_date

logger = logging.getLogger(__name__)

SAUDI_ID_PATTERN = re.compile(r"^\d{10}$")


def new_id() -> str:
    return str(uuid.uuid4())


def entry_url(resource_type: str, resource_id: str, settings: EngineSettings | None = None) -> str:
    """Return the dereferenceable ``fullUrl`` for a bundled resource."""
    settings = settings or get_settings()
    return f"{settings.resource_base_url}/{resource_type}/{resource_id}"


def reference(resource_type: str, resource_id: str) -> dict[str, str]:
    return {"reference": f"{resource_type}/{resource_id}"}


def coding(system: str, code: str, display: str | None = None) -> dict[str, Any]:
    result: dict[str, Any] = {"system": system, "code": code}
    if display:
        result["display"] = display
    return result


def codeable_concept(system: str, code: str, display: str | None = None) -> dict[str, Any]:
    return {"coding": [coding(system, code, display)]}


def split_name(full_name: str | None) -> tuple[str, list[str]]:
    """Split a full name into (family, given). The last word is the family name."""
    if not full_name or not full_name.strip():
        return "", []
    parts = full_name.split()
    if len(parts) == 1:
        return parts[0], [parts[0]]
    return parts[-1], parts[:-1]


def resolve_identifier_type(identifier: str | None, identifier_type: str | None) -> str:
    """Correct the identifier type for 10-digit Saudi ids.

    National ids start with 1 and iqama numbers with 2; the exchange
    rejects a mismatched type, so the value pattern wins over the label.
    """
    declared = (identifier_type or "national_id").lower()
    if identifier and SAUDI_ID_PATTERN.match(identifier):
        detected = {"1": "national_id", "2": "iqama"}.get(identifier[0])
        if detected and detected != declared:
            logger.info(
                f"Correcting identifier type from '{declared}' to '{detected}' "
                f"for 10-digit id starting with {identifier[0]}"
            )
            return detected
    if declared not in protocol.PATIENT_IDENTIFIERS:
        return "national_id"
    return declared


def marital_status_code(status: str | None) -> str:
    if not status:
        return "U"
    if status.upper() in protocol.MARITAL_STATUS_CODES.values():
        return status.upper()
    return protocol.MARITAL_STATUS_CODES.get(status.lower(), "U")


def provider_type_code(provider_type: str | None) -> str:
    if not provider_type:
        return "1"
    value = provider_type.strip().lower()
    if value in protocol.PROVIDER_TYPE_DISPLAYS:
        return value
    return protocol.PROVIDER_TYPE_CODES.get(value, "1")


def _address(text: str, city: str | None, use: str) -> list[dict[str, Any]]:
    return [
        {
            "use": use,
            "text": text,
            "line": [text],
            "city": city or protocol.DEFAULT_CITY,
            "country": protocol.DEFAULT_COUNTRY[1],
        }
    ]


def build_patient(
    patient: Patient | None, patient_id: str, settings: EngineSettings | None = None
) -> dict[str, Any]:
    """Build a Patient entry.

    Args:
        patient: Patient entity, or None for a placeholder patient
        patient_id: Local resource id
        settings: Engine settings (defaults to environment settings)

    Returns:
        Bundle entry with the Patient resource
    """
    patient = patient or Patient()
    identifier_value = patient.identifier or patient.patient_id or "UNKNOWN"
    id_type = resolve_identifier_type(identifier_value, patient.identifier_type)
    type_code, type_display, id_system = protocol.PATIENT_IDENTIFIERS[id_type]
    gender = (patient.gender or "unknown").lower()
    family, given = split_name(patient.name)

    resource: dict[str, Any] = {
        "resourceType": "Patient",
        "id": patient_id,
        "meta": {"profile": [protocol.PATIENT_PROFILE]},
        "extension": [
            {
                "url": protocol.EXT_OCCUPATION,
                "valueCodeableConcept": codeable_concept(
                    protocol.OCCUPATION_SYSTEM,
                    patient.occupation or protocol.DEFAULT_OCCUPATION,
                ),
            }
        ],
        "identifier": [
            {
                "extension": [
                    {
                        "url": protocol.EXT_IDENTIFIER_COUNTRY,
                        "valueCodeableConcept": codeable_concept(
                            protocol.COUNTRY_SYSTEM, *protocol.DEFAULT_COUNTRY
                        ),
                    }
                ],
                "type": codeable_concept(protocol.IDENTIFIER_TYPE_SYSTEM, type_code, type_display),
                "system": id_system,
                "value": identifier_value,
            }
        ],
        "active": True,
        "name": [
            {
                "use": "official",
                "text": patient.name or "Unknown Patient",
                "family": family or "Unknown",
                "given": given or ["Unknown"],
            }
        ],
    }

    if patient.phone:
        resource["telecom"] = [{"system": "phone", "value": patient.phone}]

    resource["gender"] = gender
    resource["_gender"] = {
        "extension": [
            {
                "url": protocol.EXT_ADMINISTRATIVE_GENDER,
                "valueCodeableConcept": codeable_concept(
                    protocol.ADMINISTRATIVE_GENDER_SYSTEM, gender
                ),
            }
        ]
    }

    if patient.birth_date:
        resource["birthDate"] = format_date(patient.birth_date)

    resource["deceasedBoolean"] = False

    if patient.address:
        resource["address"] = _address(patient.address, patient.city, "home")

    resource["maritalStatus"] = codeable_concept(
        protocol.MARITAL_STATUS_SYSTEM, marital_status_code(patient.marital_status)
    )

    return {"fullUrl": entry_url("Patient", patient_id, settings), "resource": resource}


def build_provider_organization(
    provider: Provider | None, provider_id: str, settings: EngineSettings | None = None
) -> dict[str, Any]:
    settings = settings or get_settings()
    provider = provider or Provider()
    type_code = provider_type_code(provider.provider_type)

    resource: dict[str, Any] = {
        "resourceType": "Organization",
        "id": provider_id,
        "meta": {"profile": [protocol.PROVIDER_ORGANIZATION_PROFILE]},
        "extension": [
            {
                "url": protocol.EXT_PROVIDER_TYPE,
                "valueCodeableConcept": codeable_concept(
                    protocol.PROVIDER_TYPE_SYSTEM,
                    type_code,
                    protocol.PROVIDER_TYPE_DISPLAYS.get(type_code, "Healthcare Provider"),
                ),
            }
        ],
        "identifier": [
            {
                "system": protocol.PROVIDER_LICENSE_SYSTEM,
                "value": provider_license(provider, settings),
            }
        ],
        "active": True,
        "type": [codeable_concept(protocol.ORGANIZATION_TYPE_SYSTEM, "prov")],
        "name": provider.provider_name or "Provider Organization",
    }
    if provider.address:
        resource["address"] = _address(provider.address, provider.city, "work")

    return {"fullUrl": entry_url("Organization", provider_id, settings), "resource": resource}


def build_insurer_organization(
    insurer: Insurer | None, insurer_id: str, settings: EngineSettings | None = None
) -> dict[str, Any]:
    settings = settings or get_settings()
    insurer = insurer or Insurer()

    resource: dict[str, Any] = {
        "resourceType": "Organization",
        "id": insurer_id,
        "meta": {"profile": [protocol.INSURER_ORGANIZATION_PROFILE]},
        "identifier": [
            {
                "use": "official",
                "type": codeable_concept(protocol.IDENTIFIER_TYPE_SYSTEM, "NII"),
                "system": protocol.PAYER_LICENSE_SYSTEM,
                "value": insurer_license(insurer, settings),
            }
        ],
        "active": True,
        "type": [
            codeable_concept(protocol.ORGANIZATION_TYPE_SYSTEM, "ins", "Insurance Company")
        ],
        "name": insurer.insurer_name or "Insurance Organization",
    }
    if insurer.address:
        resource["address"] = _address(insurer.address, None, "work")

    return {"fullUrl": entry_url("Organization", insurer_id, settings), "resource": resource}


def build_coverage(
    coverage: Coverage | None,
    patient: Patient | None,
    coverage_id: str,
    patient_id: str,
    insurer_id: str,
    mother_patient_id: str | None = None,
    settings: EngineSettings | None = None,
) -> dict[str, Any]:
    """Build a Coverage entry.

    When ``mother_patient_id`` is given the claim is for a newborn covered
    under the mother's policy: the mother is subscriber and policy holder,
    the newborn is beneficiary, and the relationship is ``child``.
    """
    coverage = coverage or Coverage()
    patient = patient or Patient()

    member_id = (
        coverage.member_id
        or patient.identifier
        or patient.patient_id
        or f"MEM-{coverage_id[:8]}"
    )
    relationship = "child" if mother_patient_id else coverage.relationship
    subscriber_id = mother_patient_id or patient_id

    resource: dict[str, Any] = {
        "resourceType": "Coverage",
        "id": coverage_id,
        "meta": {"profile": [protocol.COVERAGE_PROFILE]},
        "identifier": [{"system": "http://payer.com/memberid", "value": member_id}],
        "status": "active" if coverage.is_active else "cancelled",
        "type": codeable_concept(
            protocol.COVERAGE_TYPE_SYSTEM,
            coverage.coverage_type,
            protocol.COVERAGE_TYPE_DISPLAYS.get(coverage.coverage_type, coverage.coverage_type),
        ),
        "policyHolder": reference("Patient", subscriber_id),
        "subscriber": reference("Patient", subscriber_id),
        "beneficiary": reference("Patient", patient_id),
        "relationship": codeable_concept(
            protocol.SUBSCRIBER_RELATIONSHIP_SYSTEM,
            relationship,
            protocol.RELATIONSHIP_DISPLAYS.get(relationship, relationship),
        ),
        "payor": [reference("Organization", insurer_id)],
        "class": [
            {
                "type": codeable_concept(protocol.COVERAGE_CLASS_SYSTEM, "plan"),
                "value": coverage.plan_id or "default-plan",
                "name": coverage.plan_name or "Insurance Plan",
            }
        ],
    }
    if coverage.dependent:
        resource["dependent"] = coverage.dependent
    if coverage.network:
        resource["network"] = coverage.network

    return {"fullUrl": entry_url("Coverage", coverage_id, settings), "resource": resource}


def build_practitioner(
    practitioner: Practitioner | None,
    practitioner_id: str,
    default_practice_code: str = protocol.DEFAULT_PRACTICE_CODE,
    settings: EngineSettings | None = None,
) -> dict[str, Any]:
    practitioner = practitioner or Practitioner()
    family, given = split_name(practitioner.name)
    practice_code = (
        practitioner.specialty_code or practitioner.practice_code or default_practice_code
    )

    resource = {
        "resourceType": "Practitioner",
        "id": practitioner_id,
        "meta": {"profile": [protocol.PRACTITIONER_PROFILE]},
        "identifier": [
            {
                "type": codeable_concept(protocol.IDENTIFIER_TYPE_SYSTEM, "MD"),
                "system": protocol.PRACTITIONER_LICENSE_SYSTEM,
                "value": practitioner.license_number
                or practitioner.nphies_id
                or f"PRACT-{practitioner_id[:8]}",
            }
        ],
        "active": True,
        "name": [
            {
                "use": "official",
                "text": practitioner.name or "Healthcare Provider",
                "family": practitioner.family_name or family or "Provider",
                "given": [practitioner.given_name] if practitioner.given_name else (given or ["Healthcare"]),
            }
        ],
        "qualification": [
            {"code": codeable_concept(protocol.PRACTICE_CODES_SYSTEM, practice_code)}
        ],
    }
    return {"fullUrl": entry_url("Practitioner", practitioner_id, settings), "resource": resource}


def build_message_header(
    provider: Provider | None,
    insurer: Insurer | None,
    focus_full_url: str,
    event: str = protocol.EVENT_CLAIM_REQUEST,
    settings: EngineSettings | None = None,
) -> dict[str, Any]:
    """Build the MessageHeader entry that addresses and focuses an envelope.

    The header's ``focus`` holds exactly one reference: the claim entry's
    ``fullUrl``.
    """
    settings = settings or get_settings()
    header_id = new_id()
    payer = insurer_license(insurer or Insurer(), settings)

    return {
        "fullUrl": f"urn:uuid:{header_id}",
        "resource": {
            "resourceType": "MessageHeader",
            "id": header_id,
            "meta": {"profile": [protocol.MESSAGE_HEADER_PROFILE]},
            "eventCoding": {"system": protocol.MESSAGE_EVENTS_SYSTEM, "code": event},
            "destination": [
                {
                    "endpoint": f"{protocol.PAYER_LICENSE_SYSTEM}/{payer}",
                    "receiver": {
                        "type": "Organization",
                        "identifier": {"system": protocol.PAYER_LICENSE_SYSTEM, "value": payer},
                    },
                }
            ],
            "sender": {
                "type": "Organization",
                "identifier": {
                    "system": protocol.PROVIDER_LICENSE_SYSTEM,
                    "value": provider_license(provider or Provider(), settings),
                },
            },
            "source": {"endpoint": settings.provider_endpoint},
            "focus": [{"reference": focus_full_url}],
        },
    }


def build_binary(attachment: Attachment, settings: EngineSettings | None = None) -> dict[str, Any]:
    binary_id = attachment.binary_id or f"binary-{new_id()}"
    return {
        "fullUrl": entry_url("Binary", binary_id, settings),
        "resource": {
            "resourceType": "Binary",
            "id": binary_id,
            "contentType": attachment.content_type,
            "data": attachment.base64_content,
        },
    }


def provider_license(provider: Provider, settings: EngineSettings) -> str:
    return provider.nphies_id or settings.provider_id


def insurer_license(insurer: Insurer, settings: EngineSettings) -> str:
    return insurer.nphies_id or settings.insurer_id
