"""Claim-type builders and the registry that dispatches between them."""

from .base import ClaimBuilder, assemble_bundle
from .institutional import InstitutionalClaimBuilder
from .parts import BundleIds
from .registry import (
    BuilderRegistry,
    build_claim_bundle,
    create_default_registry,
    get_builder,
    get_registry,
)
from .vision import VisionClaimBuilder

__all__ = [
    "BuilderRegistry",
    "BundleIds",
    "ClaimBuilder",
    "InstitutionalClaimBuilder",
    "VisionClaimBuilder",
    "assemble_bundle",
    "build_claim_bundle",
    "create_default_registry",
    "get_builder",
    "get_registry",
]
