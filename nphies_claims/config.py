"""Shared configuration for the NPHIES claim engine.

This module centralizes environment variable access and default values
to prevent drift between builders. Deployments that keep their licence
ids in a file can overlay a YAML or JSON settings file with
``load_settings``.
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from . import protocol
from .exceptions import ConfigValidationError

logger = logging.getLogger(__name__)

# Sender / receiver licence defaults
NPHIES_PROVIDER_ID = os.getenv("NPHIES_PROVIDER_ID", "1010613708")
NPHIES_PROVIDER_DOMAIN = os.getenv("NPHIES_PROVIDER_DOMAIN", "PR-FHIR")
NPHIES_INSURER_ID = os.getenv("NPHIES_INSURER_ID", "INS-FHIR")

# Envelope locators
NPHIES_PROVIDER_ENDPOINT = os.getenv("NPHIES_PROVIDER_ENDPOINT", "http://provider.com")
NPHIES_RESOURCE_BASE_URL = os.getenv("NPHIES_RESOURCE_BASE_URL", "http://provider.com")

# Wire formatting
NPHIES_UTC_OFFSET_HOURS = int(os.getenv("NPHIES_UTC_OFFSET_HOURS", "3"))
NPHIES_CURRENCY = os.getenv("NPHIES_CURRENCY", protocol.CURRENCY)


class EngineSettings(BaseModel):
    """Immutable engine-wide defaults shared by every builder."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    provider_id: str = Field(default=NPHIES_PROVIDER_ID, min_length=1)
    provider_domain: str = Field(default=NPHIES_PROVIDER_DOMAIN, min_length=1)
    insurer_id: str = Field(default=NPHIES_INSURER_ID, min_length=1)
    provider_endpoint: str = Field(default=NPHIES_PROVIDER_ENDPOINT)
    resource_base_url: str = Field(default=NPHIES_RESOURCE_BASE_URL)
    utc_offset_hours: int = Field(default=NPHIES_UTC_OFFSET_HOURS, ge=-12, le=14)
    currency: str = Field(default=NPHIES_CURRENCY, min_length=3, max_length=3)

    @field_validator("provider_endpoint", "resource_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    """Return the settings built from environment variables."""
    return EngineSettings()


def load_settings(file_path: str | Path) -> EngineSettings:
    """Load settings from a YAML or JSON file.

    Keys missing from the file fall back to the environment defaults.

    Args:
        file_path: Path to a ``.yaml``, ``.yml`` or ``.json`` file

    Returns:
        Validated EngineSettings

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file extension is not supported
        ConfigValidationError: If the content is malformed or invalid
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    suffix = path.suffix.lower()
    try:
        with open(path) as f:
            if suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            elif suffix == ".json":
                data = json.load(f)
            else:
                raise ValueError(f"Unsupported settings format: {suffix}")
    except yaml.YAMLError as e:
        raise ConfigValidationError(
            f"Invalid YAML in {path}", [{"file": str(path), "error": str(e)}]
        ) from e
    except json.JSONDecodeError as e:
        raise ConfigValidationError(
            f"Invalid JSON in {path}", [{"file": str(path), "error": str(e)}]
        ) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigValidationError(
            f"Settings file {path} must contain a mapping",
            [{"file": str(path), "error": f"got {type(data).__name__}"}],
        )

    # Allow the settings to sit under a top-level "nphies" key
    if "nphies" in data and isinstance(data["nphies"], dict):
        data = data["nphies"]

    return _validate(data, str(path))


def _validate(data: dict[str, Any], source: str) -> EngineSettings:
    try:
        settings = EngineSettings(**data)
    except ValidationError as e:
        errors = [
            {
                "file": source,
                "field": ".".join(str(loc) for loc in err["loc"]),
                "error": err["msg"],
            }
            for err in e.errors()
        ]
        raise ConfigValidationError(f"Invalid settings in {source}", errors) from e

    logger.info(f"Loaded NPHIES settings from {source}")
    return settings
