"""NPHIES Claims Package.

Builds NPHIES FHIR R4 claim-request envelopes from claim records, splits
claim batches into per-claim envelopes, and classifies the exchange's
responses. Transport and persistence live outside this package.

Usage:
    from nphies_claims import build_claim_bundle, structure_claim_record

    record = structure_claim_record(row)
    bundle = build_claim_bundle(record)

Modules:
    protocol: Profile, extension and code-system constants
    config: Engine settings from environment variables or a settings file
    models: Claim record input models
    resources: Builders for the entities a claim references
    claims: Claim-type builders and the builder registry
    batch: Batch validation, splitting and polling
    response: Claim and batch response parsing
    utils: Date formatting and record structuring
"""

from .batch import build_poll_request, split, validate
from .claims import build_claim_bundle, get_builder
from .config import EngineSettings, get_settings, load_settings
from .exceptions import BatchValidationError, ConfigValidationError
from .models import BatchRequest, ClaimRecord, ClaimType
from .response import parse_batch_response, parse_claim_response, validate_response_structure
from .utils.record_structurer import structure_claim_record

__version__ = "0.1.0"

__all__ = [
    "BatchRequest",
    "BatchValidationError",
    "ClaimRecord",
    "ClaimType",
    "ConfigValidationError",
    "EngineSettings",
    "build_claim_bundle",
    "build_poll_request",
    "get_builder",
    "get_settings",
    "load_settings",
    "parse_batch_response",
    "parse_claim_response",
    "split",
    "structure_claim_record",
    "validate",
    "validate_response_structure",
]
