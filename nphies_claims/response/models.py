"""Normalized response outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..models import AdjudicationOutcome, IssueSeverity, ProcessingOutcome

FAILURE_SEVERITIES = frozenset({IssueSeverity.ERROR, IssueSeverity.FATAL})


@dataclass(frozen=True)
class Issue:
    """A protocol issue reported by the exchange."""

    severity: IssueSeverity
    code: str | None
    message: str | None
    expression: str | None = None

    @property
    def is_failure(self) -> bool:
        return self.severity in FAILURE_SEVERITIES


@dataclass(frozen=True)
class Adjudication:
    category: str | None
    amount: float | None = None
    value: float | None = None
    currency: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class ItemAdjudication:
    """Payer decision for one claim item."""

    item_sequence: int | None
    outcome: str | None
    adjudications: list[Adjudication] = field(default_factory=list)

    def _amount(self, category: str) -> float | None:
        for adj in self.adjudications:
            if adj.category == category:
                return adj.amount
        return None

    @property
    def eligible_amount(self) -> float | None:
        return self._amount("eligible")

    @property
    def benefit_amount(self) -> float | None:
        return self._amount("benefit")

    @property
    def copay_amount(self) -> float | None:
        return self._amount("copay")

    @property
    def approved_quantity(self) -> float | None:
        for adj in self.adjudications:
            if adj.category == "approved-quantity":
                return adj.value
        return None


@dataclass(frozen=True)
class ResponseTotal:
    category: str | None
    amount: float | None
    currency: str | None


@dataclass(frozen=True)
class ParsedOutcome:
    """Normalized result of one claim response."""

    outcome: ProcessingOutcome
    success: bool
    adjudication_outcome: AdjudicationOutcome | None = None
    disposition: str | None = None
    issues: list[Issue] = field(default_factory=list)
    response_id: str | None = None
    claim_identifier: str | None = None
    batch_identifier: str | None = None
    batch_number: int | None = None
    pre_auth_ref: str | None = None
    is_nphies_generated: bool = False
    items: list[ItemAdjudication] = field(default_factory=list)
    totals: list[ResponseTotal] = field(default_factory=list)

    @property
    def failure_issues(self) -> list[Issue]:
        return [i for i in self.issues if i.is_failure]


@dataclass(frozen=True)
class BatchOutcome:
    """Aggregated result of a batch response envelope."""

    success: bool
    claim_outcomes: list[ParsedOutcome] = field(default_factory=list)
    issues: list[Issue] = field(default_factory=list)
    has_queued_claims: bool = False
    has_pended_claims: bool = False
    bundle_id: str | None = None
    timestamp: str | None = None


@dataclass(frozen=True)
class StructureCheck:
    valid: bool
    errors: list[str] = field(default_factory=list)
