"""Institutional claim builder (inpatient and day-case stays)."""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any

from .. import protocol
from ..models import ClaimItem, ClaimRecord, ClaimType
from ..resources.builders import codeable_concept, entry_url, reference
from ..resources.supporting_info import build_supporting_info
from ..utils.date_parser import compact_date
from . import parts
from .base import ClaimBuilder
from .parts import BundleIds

logger = logging.getLogger(__name__)

INPATIENT_CLASSES = frozenset({"inpatient", "daycase"})
SAME_DAY_CLASSES = frozenset({"daycase"})


class InstitutionalClaimBuilder(ClaimBuilder):
    """Builds institutional claims.

    Institutional envelopes carry an Encounter, five item extensions, and
    diagnoses with condition-onset and on-admission flags.
    """

    claim_type = ClaimType.INSTITUTIONAL
    default_sub_type = "ip"

    def build_claim_resource(self, record: ClaimRecord, ids: BundleIds) -> dict[str, Any]:
        system = parts.provider_identifier_system(record)

        # Order matters: accounting period first, episode last
        extensions = [
            parts.accounting_period_extension(record),
            {"url": protocol.EXT_ENCOUNTER, "valueReference": reference("Encounter", ids.encounter)},
        ]
        if record.eligibility_offline_ref:
            extensions.append(
                {
                    "url": protocol.EXT_ELIGIBILITY_OFFLINE_REFERENCE,
                    "valueString": record.eligibility_offline_ref,
                }
            )
        if record.eligibility_offline_date:
            extensions.append(
                {
                    "url": protocol.EXT_ELIGIBILITY_OFFLINE_DATE,
                    "valueDateTime": self.format_local_datetime(record.eligibility_offline_date),
                }
            )
        extensions.append(
            parts.episode_extension(
                record, system, f"provider_EpisodeID_{record.claim_number or ids.claim[:8]}"
            )
        )
        if record.is_newborn:
            extensions.append(parts.newborn_extension())

        claim: dict[str, Any] = {
            "resourceType": "Claim",
            "id": ids.claim,
            "meta": {"profile": [self.profile_url]},
            "extension": extensions,
            "identifier": parts.claim_identifier(record, system, ids.claim),
            "status": "active",
            "type": codeable_concept(protocol.CLAIM_TYPE_SYSTEM, self.claim_type.value),
            "subType": codeable_concept(
                protocol.CLAIM_SUBTYPE_SYSTEM, record.sub_type or self.default_sub_type
            ),
            "use": "claim",
            "patient": reference("Patient", ids.patient),
            "created": self.format_local_datetime(record.request_date),
            "insurer": reference("Organization", ids.insurer),
            "provider": reference("Organization", ids.provider),
            "priority": codeable_concept(protocol.PROCESS_PRIORITY_SYSTEM, record.priority),
            "payee": {"type": codeable_concept(protocol.PAYEE_TYPE_SYSTEM, "provider")},
            "careTeam": parts.care_team(record, ids.practitioner, self.default_practice_code),
        }

        information_sequences: list[int] = []
        supporting_info = self.supporting_info_entries(record)
        if supporting_info:
            claim["supportingInfo"] = []
            for idx, entry in enumerate(supporting_info, start=1):
                claim["supportingInfo"].append(build_supporting_info(entry, idx))
                information_sequences.append(idx)

        if record.diagnoses:
            claim["diagnosis"] = [
                parts.build_diagnosis(diag, idx, with_admission=True)
                for idx, diag in enumerate(record.diagnoses)
            ]

        claim["insurance"] = parts.insurance(ids.coverage)

        if record.items:
            claim["item"] = [
                self.build_item(item, idx, record, information_sequences)
                for idx, item in enumerate(record.items, start=1)
            ]

        claim["total"] = parts.money(parts.claim_total(record.items), self.currency(record))

        return {"fullUrl": entry_url("Claim", ids.claim, self.settings), "resource": claim}

    def build_item(
        self,
        item: ClaimItem,
        sequence: int,
        record: ClaimRecord,
        information_sequences: list[int],
    ) -> dict[str, Any]:
        currency = self.currency(record, item)
        system = parts.provider_identifier_system(record)
        invoice = item.patient_invoice or (
            f"Invc-{compact_date(record.service_date)}/{record.claim_number or 'IP'}"
        )
        serviced = item.serviced_date or record.encounter_start or record.service_date or date.today()

        element: dict[str, Any] = {
            "extension": [
                {"url": protocol.EXT_PACKAGE, "valueBoolean": item.is_package},
                {"url": protocol.EXT_TAX, "valueMoney": parts.money(item.tax, currency)},
                {
                    "url": protocol.EXT_PATIENT_SHARE,
                    "valueMoney": parts.money(item.patient_share, currency),
                },
                {
                    "url": protocol.EXT_PATIENT_INVOICE,
                    "valueIdentifier": {"system": f"{system}/patientInvoice", "value": invoice},
                },
                {"url": protocol.EXT_MATERNITY, "valueBoolean": item.is_maternity},
            ],
            "sequence": sequence,
            "careTeamSequence": [1],
            "diagnosisSequence": item.diagnosis_sequences or [1],
            "informationSequence": item.information_sequences or list(information_sequences),
            "productOrService": parts.product_or_service(item),
            "servicedDate": self.format_date(serviced),
            "quantity": {"value": float(item.quantity)},
            "unitPrice": parts.money(item.unit_price, currency),
            "net": parts.money(item.net, currency),
        }
        if item.factor != 1:
            element["factor"] = float(item.factor)
        return element

    def build_encounter_resource(self, record: ClaimRecord, ids: BundleIds) -> dict[str, Any]:
        """Build the finished Encounter for the stay.

        Admission specialty is always present. Intended length of stay is
        added for inpatient and day-case classes, and whenever the stay has
        ended. An end date also forces discharge specialty and discharge
        disposition.
        """
        encounter_class = record.encounter_class or protocol.DEFAULT_ENCOUNTER_CLASS
        class_code, class_display = protocol.ENCOUNTER_CLASS_CODES.get(
            encounter_class, protocol.ENCOUNTER_CLASS_CODES["ambulatory"]
        )
        if encounter_class not in protocol.ENCOUNTER_CLASS_CODES:
            logger.warning(f"Unknown encounter class '{encounter_class}', using ambulatory")

        admission_specialty = (
            record.admission_specialty or record.practice_code or self.default_practice_code
        )
        hospitalization_extensions: list[dict[str, Any]] = [
            {
                "url": protocol.EXT_ADMISSION_SPECIALTY,
                "valueCodeableConcept": self._practice_concept(admission_specialty),
            }
        ]

        ended = record.encounter_end is not None
        if encounter_class in INPATIENT_CLASSES or ended:
            los_code = record.intended_length_of_stay_code or (
                "ISD" if encounter_class in SAME_DAY_CLASSES else "IO"
            )
            hospitalization_extensions.append(
                {
                    "url": protocol.EXT_INTENDED_LENGTH_OF_STAY,
                    "valueCodeableConcept": codeable_concept(
                        protocol.INTENDED_LENGTH_OF_STAY_SYSTEM,
                        los_code,
                        protocol.INTENDED_LENGTH_OF_STAY_DISPLAYS.get(los_code, los_code),
                    ),
                }
            )

        if ended:
            hospitalization_extensions.append(
                {
                    "url": protocol.EXT_DISCHARGE_SPECIALTY,
                    "valueCodeableConcept": self._practice_concept(
                        record.discharge_specialty or admission_specialty
                    ),
                }
            )

        admit_source = record.admit_source or protocol.DEFAULT_ADMIT_SOURCE
        hospitalization: dict[str, Any] = {
            "extension": hospitalization_extensions,
            "admitSource": codeable_concept(
                protocol.ADMIT_SOURCE_SYSTEM,
                admit_source,
                protocol.ADMIT_SOURCE_DISPLAYS.get(admit_source, admit_source),
            ),
        }
        if ended:
            disposition = record.discharge_disposition or protocol.DEFAULT_DISCHARGE_DISPOSITION
            hospitalization["dischargeDisposition"] = codeable_concept(
                protocol.DISCHARGE_DISPOSITION_SYSTEM,
                disposition,
                protocol.DISCHARGE_DISPOSITION_DISPLAYS.get(disposition, disposition),
            )

        service_type = record.service_type or protocol.DEFAULT_SERVICE_TYPE
        period = {
            "start": self.format_local_datetime(record.encounter_start or record.service_date)
        }
        if ended:
            period["end"] = self.format_local_datetime(record.encounter_end)

        domain = re.sub(r"[^a-z0-9]", "", self.settings.provider_domain.lower())
        encounter = {
            "resourceType": "Encounter",
            "id": ids.encounter,
            "meta": {"profile": [protocol.ENCOUNTER_PROFILE]},
            "identifier": [
                {
                    "system": f"http://{domain}.com.sa/identifiers/encounter",
                    "value": record.encounter_identifier
                    or record.claim_number
                    or f"ENC-{ids.encounter[:8]}",
                }
            ],
            "status": "finished",
            "class": {
                "system": protocol.ENCOUNTER_CLASS_SYSTEM,
                "code": class_code,
                "display": class_display,
            },
            "serviceType": codeable_concept(
                protocol.SERVICE_TYPE_SYSTEM,
                service_type,
                protocol.SERVICE_TYPE_DISPLAYS.get(service_type, service_type),
            ),
            "subject": reference("Patient", ids.patient),
            "period": period,
            "hospitalization": hospitalization,
            "serviceProvider": reference("Organization", ids.provider),
        }
        return {"fullUrl": entry_url("Encounter", ids.encounter, self.settings), "resource": encounter}

    @staticmethod
    def _practice_concept(code: str) -> dict[str, Any]:
        return codeable_concept(
            protocol.PRACTICE_CODES_SYSTEM,
            code,
            protocol.PRACTICE_CODE_DISPLAYS.get(code, protocol.DEFAULT_PRACTICE_DISPLAY),
        )
