"""Builder registry mapping claim types to claim builders.

The dispatch table is filled once at import. Claim types without a
dedicated builder (professional, oral, pharmacy) route to the
institutional builder, as do unknown labels; both fallbacks are logged.
"""

from __future__ import annotations

import logging

from ..config import EngineSettings
from ..models import ClaimRecord, ClaimType, normalize_claim_type
from .base import ClaimBuilder
from .institutional import InstitutionalClaimBuilder
from .vision import VisionClaimBuilder

logger = logging.getLogger(__name__)

FALLBACK_CLAIM_TYPE = ClaimType.INSTITUTIONAL


class BuilderRegistry:
    """Registry of claim builder instances keyed by ClaimType."""

    def __init__(self) -> None:
        self._builders: dict[ClaimType, ClaimBuilder] = {}
        self._fallback: ClaimBuilder | None = None

    def register(self, claim_type: ClaimType, builder: ClaimBuilder) -> None:
        if claim_type in self._builders:
            logger.warning(f"Overwriting existing builder for {claim_type.value}")
        self._builders[claim_type] = builder
        logger.debug(f"Registered claim builder: {claim_type.value}")

    def set_fallback(self, builder: ClaimBuilder) -> None:
        self._fallback = builder

    def is_registered(self, claim_type: ClaimType) -> bool:
        return claim_type in self._builders

    def registered_types(self) -> list[ClaimType]:
        return list(self._builders)

    def get_builder(self, claim_type: str | ClaimType | None) -> ClaimBuilder:
        """Resolve the builder for a claim-type label.

        Args:
            claim_type: Canonical type, synonym (``inpatient``, ``dental``),
                or None

        Returns:
            The registered builder, or the fallback builder

        Raises:
            LookupError: If nothing is registered and no fallback is set
        """
        label = claim_type.value if isinstance(claim_type, ClaimType) else claim_type
        normalized = normalize_claim_type(label)

        try:
            canonical: ClaimType | None = ClaimType(normalized)
        except ValueError:
            canonical = None
            logger.warning(
                f"Unknown claim type '{label}', using {FALLBACK_CLAIM_TYPE.value} builder"
            )

        if canonical is not None and canonical in self._builders:
            return self._builders[canonical]

        if self._fallback is None:
            raise LookupError(f"No claim builder registered for type: {label}")

        if canonical is not None:
            logger.warning(
                f"No dedicated builder for {canonical.value} claims, "
                f"using {FALLBACK_CLAIM_TYPE.value} builder"
            )
        return self._fallback


def create_default_registry(settings: EngineSettings | None = None) -> BuilderRegistry:
    """Create a registry with the built-in builders.

    Args:
        settings: Engine settings shared by every builder

    Returns:
        BuilderRegistry with institutional and vision builders and an
        institutional fallback
    """
    registry = BuilderRegistry()
    institutional = InstitutionalClaimBuilder(settings)
    registry.register(ClaimType.INSTITUTIONAL, institutional)
    registry.register(ClaimType.VISION, VisionClaimBuilder(settings))
    registry.set_fallback(institutional)
    return registry


# Global registry instance
_registry = create_default_registry()


def get_registry() -> BuilderRegistry:
    """Get the global builder registry."""
    return _registry


def get_builder(claim_type: str | ClaimType | None) -> ClaimBuilder:
    return _registry.get_builder(claim_type)


def build_claim_bundle(record: ClaimRecord, registry: BuilderRegistry | None = None) -> dict:
    """Build the claim-request envelope for one record.

    Args:
        record: Claim record
        registry: Registry to dispatch through (defaults to the global one)

    Returns:
        Bundle envelope
    """
    registry = registry or _registry
    return registry.get_builder(record.claim_type).build_bundle(record)
