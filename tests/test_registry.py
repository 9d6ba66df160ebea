"""Tests for the claim builder registry."""

from __future__ import annotations

import pytest
from conftest import find_resource

from nphies_claims.claims.institutional import InstitutionalClaimBuilder
from nphies_claims.claims.registry import (
    BuilderRegistry,
    build_claim_bundle,
    create_default_registry,
    get_registry,
)
from nphies_claims.claims.vision import VisionClaimBuilder
from nphies_claims.models import ClaimType, normalize_claim_type


class TestNormalizeClaimType:
    """Tests for claim-type normalization."""

    def test_synonyms(self):
        assert normalize_claim_type("Inpatient") == "institutional"
        assert normalize_claim_type("daycase") == "institutional"
        assert normalize_claim_type("dental") == "oral"

    def test_missing_means_institutional(self):
        assert normalize_claim_type(None) == "institutional"
        assert normalize_claim_type("  ") == "institutional"

    def test_unknown_is_lowercased(self):
        assert normalize_claim_type("Chiropractic") == "chiropractic"


class TestBuilderRegistry:
    """Tests for BuilderRegistry dispatch."""

    @pytest.fixture
    def registry(self, settings) -> BuilderRegistry:
        return create_default_registry(settings)

    def test_registered_types(self, registry):
        assert set(registry.registered_types()) == {ClaimType.INSTITUTIONAL, ClaimType.VISION}
        assert registry.is_registered(ClaimType.VISION)
        assert not registry.is_registered(ClaimType.ORAL)

    def test_vision_dispatch(self, registry):
        assert isinstance(registry.get_builder("vision"), VisionClaimBuilder)
        assert isinstance(registry.get_builder(ClaimType.VISION), VisionClaimBuilder)

    def test_synonym_dispatch(self, registry):
        assert isinstance(registry.get_builder("inpatient"), InstitutionalClaimBuilder)

    def test_unregistered_type_falls_back(self, registry, caplog):
        assert isinstance(registry.get_builder("dental"), InstitutionalClaimBuilder)
        assert "No dedicated builder for oral" in caplog.text

    def test_unknown_type_falls_back(self, registry, caplog):
        assert isinstance(registry.get_builder("chiropractic"), InstitutionalClaimBuilder)
        assert "Unknown claim type" in caplog.text

    def test_no_fallback_raises(self):
        with pytest.raises(LookupError):
            BuilderRegistry().get_builder("vision")

    def test_global_registry(self):
        assert get_registry().is_registered(ClaimType.INSTITUTIONAL)


class TestBuildClaimBundle:
    def test_dispatches_on_record_type(self, settings, vision_record):
        bundle = build_claim_bundle(vision_record, create_default_registry(settings))
        claim = find_resource(bundle, "Claim")
        assert claim["type"]["coding"][0]["code"] == "vision"
