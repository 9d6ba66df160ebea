"""FHIR resource builders for claim envelopes."""

from .builders import (
    build_binary,
    build_coverage,
    build_insurer_organization,
    build_message_header,
    build_patient,
    build_practitioner,
    build_provider_organization,
    entry_url,
    new_id,
    reference,
)
from .supporting_info import birth_weight_entry, build_supporting_info

__all__ = [
    "birth_weight_entry",
    "build_binary",
    "build_coverage",
    "build_insurer_organization",
    "build_message_header",
    "build_patient",
    "build_practitioner",
    "build_provider_organization",
    "build_supporting_info",
    "entry_url",
    "new_id",
    "reference",
]
