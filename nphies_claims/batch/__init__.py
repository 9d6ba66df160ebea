"""Batch validation, splitting and polling."""

from .builder import (
    build_poll_request,
    inject_batch_extensions,
    read_batch_extensions,
    split,
    unpack_legacy_batch,
    validate,
)
from .models import BatchMarker, ValidationResult
from .rules import MAX_BATCH_SIZE, MIN_BATCH_SIZE, BatchRuleRegistry, default_batch_registry

__all__ = [
    "BatchMarker",
    "BatchRuleRegistry",
    "MAX_BATCH_SIZE",
    "MIN_BATCH_SIZE",
    "ValidationResult",
    "build_poll_request",
    "default_batch_registry",
    "inject_batch_extensions",
    "read_batch_extensions",
    "split",
    "unpack_legacy_batch",
    "validate",
]
