"""Vision claim builder (optical outpatient claims)."""

from __future__ import annotations

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

# Only investigation results may carry a coded value on vision claims.
VISION_CODED_CATEGORIES = frozenset({protocol.INVESTIGATION_RESULT_CATEGORY})


class VisionClaimBuilder(ClaimBuilder):
    """Builds vision claims. Vision envelopes never carry an Encounter."""

    claim_type = ClaimType.VISION
    default_practice_code = protocol.VISION_PRACTICE_CODE

    def build_claim_resource(self, record: ClaimRecord, ids: BundleIds) -> dict[str, Any]:
        system = parts.provider_identifier_system(record)
        episode_default = (
            f"EpisodeID_{compact_date(record.service_date)}_{record.claim_number or ids.claim[:8]}"
        )

        extensions = [
            parts.accounting_period_extension(record),
            parts.episode_extension(record, system, episode_default),
        ]
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
            "subType": codeable_concept(protocol.CLAIM_SUBTYPE_SYSTEM, "op"),
            "use": "claim",
            "patient": reference("Patient", ids.patient),
            "created": self.format_local_datetime(record.request_date),
            "insurer": reference("Organization", ids.insurer),
            "provider": reference("Organization", ids.provider),
            "priority": codeable_concept(protocol.PROCESS_PRIORITY_SYSTEM, record.priority),
            "payee": {"type": codeable_concept(protocol.PAYEE_TYPE_SYSTEM, "provider")},
            "careTeam": parts.care_team(record, ids.practitioner, self.default_practice_code),
        }

        if record.diagnoses:
            claim["diagnosis"] = [
                parts.build_diagnosis(diag, idx, with_admission=False)
                for idx, diag in enumerate(record.diagnoses)
            ]

        information_sequences: list[int] = []
        supporting_info = self.supporting_info_entries(record)
        if supporting_info:
            claim["supportingInfo"] = []
            for idx, entry in enumerate(supporting_info, start=1):
                claim["supportingInfo"].append(
                    build_supporting_info(entry, idx, coded_categories=VISION_CODED_CATEGORIES)
                )
                information_sequences.append(idx)

        claim["insurance"] = parts.insurance(ids.coverage)

        if record.items:
            claim["item"] = [
                self.build_item(item, idx, record, information_sequences)
                for idx, item in enumerate(record.items, start=1)
            ]

        claim["total"] = parts.money(parts.claim_total(record.items), self.currency(record))

        return {"fullUrl": entry_url("Claim", ids.claim, self.settings), "resource": claim}

    def build_encounter_resource(self, record: ClaimRecord, ids: BundleIds) -> None:
        return None

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
            f"Invc-{compact_date(record.service_date)}-{item.product_or_service_code or 'Proc'}"
        )

        element: dict[str, Any] = {
            "extension": [
                {
                    "url": protocol.EXT_PATIENT_SHARE,
                    "valueMoney": parts.money(item.patient_share, currency),
                },
                {"url": protocol.EXT_TAX, "valueMoney": parts.money(item.tax, currency)},
                {
                    "url": protocol.EXT_PATIENT_INVOICE,
                    "valueIdentifier": {"system": f"{system}/patientInvoice", "value": invoice},
                },
            ],
            "sequence": sequence,
            "careTeamSequence": [1],
            "diagnosisSequence": item.diagnosis_sequences or [1],
            "informationSequence": item.information_sequences or list(information_sequences),
            "productOrService": parts.product_or_service(item),
            "servicedDate": self.format_date(
                item.serviced_date or record.service_date or record.request_date or date.today()
            ),
            "quantity": {"value": float(item.quantity)},
            "unitPrice": parts.money(item.unit_price, currency),
            "net": parts.money(item.net, currency),
        }
        if item.factor != 1:
            element["factor"] = float(item.factor)
        return element
