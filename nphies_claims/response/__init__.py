"""Response parsing for claim and batch responses."""

from .models import (
    Adjudication,
    BatchOutcome,
    Issue,
    ItemAdjudication,
    ParsedOutcome,
    ResponseTotal,
    StructureCheck,
)
from .parser import (
    PARSE_ERROR,
    parse_batch_response,
    parse_claim_response,
    parse_claim_response_resource,
    parse_operation_outcome,
)
from .structure import validate_response_structure

__all__ = [
    "Adjudication",
    "BatchOutcome",
    "Issue",
    "ItemAdjudication",
    "PARSE_ERROR",
    "ParsedOutcome",
    "ResponseTotal",
    "StructureCheck",
    "parse_batch_response",
    "parse_claim_response",
    "parse_claim_response_resource",
    "parse_operation_outcome",
    "validate_response_structure",
]
