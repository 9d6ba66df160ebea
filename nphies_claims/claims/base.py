"""Base claim builder.

Defines the capability interface every claim type implements and the
template that assembles a claim-request envelope from its parts.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any

from .. import protocol
from ..config import EngineSettings, get_settings
from ..models import ClaimItem, ClaimRecord, ClaimType, Patient, SupportingInfoEntry
from ..resources.builders import (
    build_binary,
    build_coverage,
    build_insurer_organization,
    build_message_header,
    build_patient,
    build_practitioner,
    build_provider_organization,
    new_id,
)
from ..resources.supporting_info import birth_weight_entry
from ..utils.date_parser import format_date, format_datetime, format_datetime_with_offset
from .parts import BundleIds

logger = logging.getLogger(__name__)


def assemble_bundle(entries: list[dict[str, Any]], timestamp: datetime | None = None) -> dict[str, Any]:
    """Wrap an ordered entry list in a message Bundle shell.

    Args:
        entries: Entries in wire order, MessageHeader first
        timestamp: Bundle timestamp (defaults to now)

    Returns:
        Bundle envelope with a fresh id
    """
    return {
        "resourceType": "Bundle",
        "id": new_id(),
        "meta": {"profile": [protocol.BUNDLE_PROFILE]},
        "type": "message",
        "timestamp": format_datetime(timestamp),
        "entry": entries,
    }


class ClaimBuilder(ABC):
    """Abstract base class for claim-type builders.

    Subclasses supply the claim resource, the optional encounter and the
    item shape for their claim type; ``build_bundle`` handles everything
    the claim types share.
    """

    claim_type: ClaimType = ClaimType.INSTITUTIONAL
    default_practice_code: str = protocol.DEFAULT_PRACTICE_CODE

    def __init__(self, settings: EngineSettings | None = None) -> None:
        self.settings = settings or get_settings()

    @abstractmethod
    def build_claim_resource(self, record: ClaimRecord, ids: BundleIds) -> dict[str, Any]:
        """Build the Claim entry.

        Returns:
            Bundle entry with the Claim resource
        """
        pass

    @abstractmethod
    def build_encounter_resource(self, record: ClaimRecord, ids: BundleIds) -> dict[str, Any] | None:
        """Build the Encounter entry, or None when the claim type has none."""
        pass

    @abstractmethod
    def build_item(
        self,
        item: ClaimItem,
        sequence: int,
        record: ClaimRecord,
        information_sequences: list[int],
    ) -> dict[str, Any]:
        """Build one ``Claim.item`` element."""
        pass

    def build_bundle(self, record: ClaimRecord) -> dict[str, Any]:
        """Build a complete claim-request envelope for one claim record.

        Entry order: header, claim, encounter (if any), coverage,
        practitioner, provider, insurer, patient, mother (newborn claims),
        attachments.
        """
        ids = BundleIds.for_record(record)
        settings = self.settings

        claim_entry = self.build_claim_resource(record, ids)
        encounter_entry = self.build_encounter_resource(record, ids)
        header = build_message_header(
            record.provider, record.insurer, claim_entry["fullUrl"], settings=settings
        )

        entries = [header, claim_entry]
        if encounter_entry is not None:
            entries.append(encounter_entry)

        mother_id = ids.mother if record.is_newborn else None
        entries.append(
            build_coverage(
                record.coverage,
                record.patient,
                ids.coverage,
                ids.patient,
                ids.insurer,
                mother_patient_id=mother_id,
                settings=settings,
            )
        )
        entries.append(
            build_practitioner(
                record.practitioner, ids.practitioner, self.default_practice_code, settings
            )
        )
        entries.append(build_provider_organization(record.provider, ids.provider, settings))
        entries.append(build_insurer_organization(record.insurer, ids.insurer, settings))
        entries.append(build_patient(record.patient, ids.patient, settings))

        if record.is_newborn:
            mother = record.mother_patient
            if mother is None:
                logger.warning(
                    f"Newborn claim {record.claim_number} has no mother record; "
                    "bundling a placeholder mother patient"
                )
                mother = Patient()
            entries.append(build_patient(mother, ids.mother, settings))

        for attachment in record.attachments:
            entries.append(build_binary(attachment, settings))

        logger.debug(
            f"Built {self.claim_type.value} envelope for claim {record.claim_number} "
            f"with {len(entries)} entries"
        )
        return assemble_bundle(entries)

    # --- Shared helpers ---

    @property
    def profile_url(self) -> str:
        return protocol.CLAIM_PROFILES[self.claim_type.value]

    def format_date(self, value: date | datetime | None) -> str | None:
        return format_date(value)

    def format_datetime(self, value: datetime | None = None) -> str:
        return format_datetime(value)

    def format_local_datetime(self, value: date | datetime | None = None) -> str:
        return format_datetime_with_offset(value, self.settings.utc_offset_hours)

    def supporting_info_entries(self, record: ClaimRecord) -> list[SupportingInfoEntry]:
        """Supporting info for the claim, with birth weight added for newborns.

        The raw birth weight (grams) becomes a ``birth-weight`` entry in kg
        unless one is already present.
        """
        entries = list(record.supporting_info)
        if record.is_newborn and record.birth_weight is not None:
            has_weight = any(
                e.category.lower() == protocol.BIRTH_WEIGHT_CATEGORY for e in entries
            )
            if not has_weight:
                entries.append(birth_weight_entry(record.birth_weight))
        return entries

    def currency(self, record: ClaimRecord, item: ClaimItem | None = None) -> str:
        return (item.currency if item and item.currency else None) or record.currency or self.settings.currency
