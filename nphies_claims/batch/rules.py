"""Batch constraint rules.

Each rule inspects the whole claim list and returns the error messages it
finds (empty when satisfied). ``validate`` runs every active rule and
aggregates the messages, so a caller sees all problems at once.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

from ..models import ClaimRecord

MIN_BATCH_SIZE = 2
MAX_BATCH_SIZE = 200

BatchRule = Callable[[Sequence[ClaimRecord]], list[str]]


class BatchRuleRegistry:
    def __init__(self) -> None:
        self._rules: list[BatchRule] = []

    def register(self, rule: BatchRule) -> None:
        if rule not in self._rules:
            self._rules.append(rule)

    def extend(self, rules: Iterable[BatchRule]) -> None:
        for rule in rules:
            self.register(rule)

    def active_rules(self) -> Iterable[BatchRule]:
        return tuple(self._rules)


def batch_size_rule(claims: Sequence[ClaimRecord]) -> list[str]:
    errors = []
    if len(claims) < MIN_BATCH_SIZE:
        errors.append(f"Batch must contain at least {MIN_BATCH_SIZE} claims")
    if len(claims) > MAX_BATCH_SIZE:
        errors.append(f"Batch cannot exceed {MAX_BATCH_SIZE} claims. Current: {len(claims)}")
    return errors


def same_insurer_rule(claims: Sequence[ClaimRecord]) -> list[str]:
    if not claims:
        return []
    insurers = {c.insurer_key for c in claims if c.insurer_key}
    if len(insurers) > 1:
        return ["All claims in a batch must be for the same insurer (payer)"]
    if not insurers:
        return ["Batch claims must identify an insurer (payer)"]
    return []


def same_provider_rule(claims: Sequence[ClaimRecord]) -> list[str]:
    providers = {c.provider_key for c in claims if c.provider_key}
    if len(providers) > 1:
        return ["All claims in a batch must be for the same provider"]
    return []


def same_claim_type_rule(claims: Sequence[ClaimRecord]) -> list[str]:
    types = sorted({c.normalized_type for c in claims})
    if len(types) > 1:
        return [f"All claims in a batch must be of the same type. Found: {', '.join(types)}"]
    return []


def required_parties_rule(claims: Sequence[ClaimRecord]) -> list[str]:
    errors = []
    for idx, claim in enumerate(claims, start=1):
        if claim.patient is None:
            errors.append(f"Claim {idx}: Missing patient")
        if claim.provider is None:
            errors.append(f"Claim {idx}: Missing provider")
    return errors


DEFAULT_BATCH_RULES: list[BatchRule] = [
    batch_size_rule,
    same_insurer_rule,
    same_provider_rule,
    same_claim_type_rule,
    required_parties_rule,
]

default_batch_registry = BatchRuleRegistry()
default_batch_registry.extend(DEFAULT_BATCH_RULES)
