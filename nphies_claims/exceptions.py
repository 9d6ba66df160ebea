"""Exceptions raised by the claim engine."""

from __future__ import annotations

from typing import Any


class ConfigValidationError(Exception):
    """Raised when a settings file fails validation."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


class BatchValidationError(Exception):
    """Raised by ``split`` when a batch breaks one or more batch rules.

    ``errors`` carries every violated rule, not only the first one.
    """

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []
