"""Pydantic models for claim records.

Defines the read-only input shapes the builders consume: the claim
record, the entities it references, and the batch request wrapper.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from . import protocol
from .utils.date_parser import parse_flexible_date

MONEY_QUANTUM = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    """Round a monetary amount to the currency minor unit (half-up)."""
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def _coerce_date(v: Any) -> Any:
    # ISO strings are left to pydantic; other claim-feed formats go through
    # the flexible parser.
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, str):
        if not v.strip():
            return None
        if "T" in v:
            return v.split("T")[0]
        parsed = parse_flexible_date(v.strip())
        if parsed is not None:
            return parsed.date()
    return v


def _coerce_datetime(v: Any) -> Any:
    if isinstance(v, date) and not isinstance(v, datetime):
        return datetime(v.year, v.month, v.day)
    if isinstance(v, str):
        if not v.strip():
            return None
        if "T" not in v and " " not in v.strip():
            parsed = parse_flexible_date(v.strip())
            if parsed is not None:
                return parsed
    return v


class ClaimType(str, Enum):
    """Canonical claim types accepted by the exchange."""

    INSTITUTIONAL = "institutional"
    PROFESSIONAL = "professional"
    PHARMACY = "pharmacy"
    ORAL = "oral"
    VISION = "vision"


CLAIM_TYPE_SYNONYMS = {
    "inpatient": ClaimType.INSTITUTIONAL,
    "daycase": ClaimType.INSTITUTIONAL,
    "dental": ClaimType.ORAL,
}


def normalize_claim_type(label: str | None) -> str:
    """Normalize a claim-type label to its canonical value.

    Synonyms collapse (``inpatient``/``daycase`` to institutional,
    ``dental`` to oral); a missing label means institutional. Unknown
    labels are returned lowercased so callers can report them.
    """
    if not label or not label.strip():
        return ClaimType.INSTITUTIONAL.value
    normalized = label.strip().lower()
    if normalized in CLAIM_TYPE_SYNONYMS:
        return CLAIM_TYPE_SYNONYMS[normalized].value
    return normalized


class IssueSeverity(str, Enum):
    INFORMATION = "information"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"


class ProcessingOutcome(str, Enum):
    """Whether the exchange processed the message."""

    COMPLETE = "complete"
    PARTIAL = "partial"
    QUEUED = "queued"
    ERROR = "error"


class AdjudicationOutcome(str, Enum):
    """The payer's decision on a processed claim."""

    APPROVED = "approved"
    PARTIAL = "partial"
    DENIED = "denied"
    PENDED = "pended"
    REJECTED = "rejected"


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


# --- Entities ---


class Patient(_Record):
    patient_id: str | None = None
    identifier: str | None = None
    identifier_type: str = "national_id"
    name: str | None = None
    gender: str | None = None
    birth_date: date | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    marital_status: str | None = None
    occupation: str | None = None

    @field_validator("patient_id", "identifier", mode="before")
    @classmethod
    def stringify_ids(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("birth_date", mode="before")
    @classmethod
    def parse_birth_date(cls, v: Any) -> Any:
        return _coerce_date(v)


class Provider(_Record):
    provider_id: str | None = None
    nphies_id: str | None = None
    provider_name: str | None = None
    provider_type: str | None = None
    identifier_system: str | None = None
    address: str | None = None
    city: str | None = None

    @field_validator("provider_id", "nphies_id", mode="before")
    @classmethod
    def stringify_ids(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class Insurer(_Record):
    insurer_id: str | None = None
    nphies_id: str | None = None
    insurer_name: str | None = None
    address: str | None = None

    @field_validator("insurer_id", "nphies_id", mode="before")
    @classmethod
    def stringify_ids(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class Coverage(_Record):
    coverage_id: str | None = None
    member_id: str | None = None
    policy_number: str | None = None
    coverage_type: str = protocol.DEFAULT_COVERAGE_TYPE
    relationship: str = protocol.DEFAULT_RELATIONSHIP
    plan_id: str | None = None
    plan_name: str | None = None
    is_active: bool = True
    dependent: str | None = None
    network: str | None = None


class Practitioner(_Record):
    practitioner_id: str | None = None
    name: str | None = None
    family_name: str | None = None
    given_name: str | None = None
    license_number: str | None = None
    nphies_id: str | None = None
    specialty_code: str | None = None
    practice_code: str | None = None


class Diagnosis(_Record):
    diagnosis_code: str
    diagnosis_display: str | None = None
    diagnosis_system: str | None = None
    diagnosis_type: str | None = None
    condition_onset: str = protocol.DEFAULT_CONDITION_ONSET
    on_admission: bool = True
    sequence: int | None = None


class SupportingInfoEntry(_Record):
    """One clinical-context entry attached to a claim.

    At most one of the coded, free-text and quantity values ends up on the
    wire; ``nphies_claims.resources.supporting_info`` decides which.
    """

    category: str
    sequence: int | None = None
    code: str | None = None
    code_system: str | None = None
    code_display: str | None = None
    code_text: str | None = None
    value_string: str | None = None
    value_quantity: Decimal | None = None
    value_quantity_unit: str | None = None
    value_boolean: bool | None = None
    timing_date: date | None = None
    timing_period_start: datetime | None = None
    timing_period_end: datetime | None = None
    reason_code: str | None = None

    @field_validator("timing_date", mode="before")
    @classmethod
    def parse_timing_date(cls, v: Any) -> Any:
        return _coerce_date(v)

    @field_validator("timing_period_start", "timing_period_end", mode="before")
    @classmethod
    def parse_timing_period(cls, v: Any) -> Any:
        return _coerce_datetime(v)


class ClaimItem(_Record):
    """A billed line. ``net`` is always derived, never supplied."""

    sequence: int | None = None
    product_or_service_code: str
    product_or_service_system: str | None = None
    product_or_service_display: str | None = None
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = Decimal("0")
    factor: Decimal = Decimal("1")
    tax: Decimal = Decimal("0")
    patient_share: Decimal = Decimal("0")
    currency: str | None = None
    is_package: bool = False
    is_maternity: bool = False
    patient_invoice: str | None = None
    serviced_date: date | None = None
    diagnosis_sequences: list[int] | None = None
    information_sequences: list[int] | None = None

    @field_validator("quantity", "unit_price", "factor", "tax", "patient_share", mode="before")
    @classmethod
    def default_missing_amounts(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None or v == "":
            return {"quantity": "1", "factor": "1"}.get(info.field_name, "0")
        return v

    @field_validator("quantity", "unit_price", "factor", "tax", "patient_share")
    @classmethod
    def non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Amounts cannot be negative")
        return v

    @field_validator("serviced_date", mode="before")
    @classmethod
    def parse_serviced_date(cls, v: Any) -> Any:
        return _coerce_date(v)

    @property
    def net(self) -> Decimal:
        """quantity x unit_price x factor + tax, at currency precision."""
        return quantize_money(self.quantity * self.unit_price * self.factor + self.tax)


class Attachment(_Record):
    binary_id: str | None = None
    content_type: str = "application/pdf"
    base64_content: str
    title: str | None = None


# --- Claim record ---


class ClaimRecord(_Record):
    """Everything needed to build one claim envelope."""

    claim_number: str | None = None
    claim_type: str | None = None
    sub_type: str | None = None
    priority: str = "normal"
    service_date: date | None = None
    request_date: date | None = None

    # Encounter metadata (institutional)
    encounter_start: datetime | None = None
    encounter_end: datetime | None = None
    encounter_class: str | None = None
    encounter_identifier: str | None = None
    service_type: str | None = None
    admit_source: str | None = None
    admission_specialty: str | None = None
    discharge_specialty: str | None = None
    discharge_disposition: str | None = None
    intended_length_of_stay_code: str | None = None

    practice_code: str | None = None
    episode_identifier: str | None = None
    eligibility_offline_ref: str | None = None
    eligibility_offline_date: datetime | None = None
    currency: str | None = None
    total_amount: Decimal | None = None

    # Newborn claims
    is_newborn: bool = False
    birth_weight: Decimal | None = Field(default=None, description="Grams")
    mother_patient: Patient | None = None

    patient: Patient | None = None
    provider: Provider | None = None
    insurer: Insurer | None = None
    coverage: Coverage | None = None
    practitioner: Practitioner | None = None

    diagnoses: list[Diagnosis] = Field(default_factory=list)
    supporting_info: list[SupportingInfoEntry] = Field(default_factory=list)
    items: list[ClaimItem] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)

    @field_validator("claim_number", mode="before")
    @classmethod
    def stringify_claim_number(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("claim_type", "encounter_class", mode="before")
    @classmethod
    def lower_label(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower() or None
        return v

    @field_validator("service_date", "request_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> Any:
        return _coerce_date(v)

    @field_validator("encounter_start", "encounter_end", "eligibility_offline_date", mode="before")
    @classmethod
    def parse_datetimes(cls, v: Any) -> Any:
        return _coerce_datetime(v)

    @property
    def normalized_type(self) -> str:
        return normalize_claim_type(self.claim_type)

    @property
    def provider_key(self) -> str | None:
        """Identifier used to decide whether two claims share a provider."""
        if self.provider is None:
            return None
        return self.provider.provider_id or self.provider.nphies_id

    @property
    def insurer_key(self) -> str | None:
        if self.insurer is None:
            return None
        return self.insurer.insurer_id or self.insurer.nphies_id


class BatchRequest(_Record):
    batch_identifier: str = Field(..., min_length=1)
    period_start: date | None = None
    period_end: date | None = None
    claims: list[ClaimRecord] = Field(default_factory=list)

    @field_validator("period_start", "period_end", mode="before")
    @classmethod
    def parse_period(cls, v: Any) -> Any:
        return _coerce_date(v)
