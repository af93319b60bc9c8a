"""Custom exception hierarchy for the cluster topology model."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .validation import FieldError


class TopologyError(Exception):
    """Base exception for all topology errors."""


class ConfigError(TopologyError):
    """Invalid or missing configuration."""


class DecodeError(TopologyError):
    """A serialized topology document could not be decoded."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class ImageSelectionError(TopologyError):
    """An image does not select exactly one source."""

    def __init__(self, message: str, selected: list[str] | None = None):
        super().__init__(message)
        self.selected = selected or []


class TopologyValidationError(TopologyError):
    """One or more configuration errors were found by a validation pass."""

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        summary = "; ".join(str(e) for e in self.errors)
        super().__init__(f"{len(self.errors)} validation error(s): {summary}")
