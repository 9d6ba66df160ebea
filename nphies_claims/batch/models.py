"""Data models for batch validation and batch markers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class ValidationResult:
    """Aggregated outcome of every batch rule."""

    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class BatchMarker:
    """Batch values stamped onto (or read back from) a claim resource."""

    batch_identifier: str | None
    batch_number: int | None
    period_start: date | str | None = None
    period_end: date | str | None = None
