"""Exceptions raised while building a measurement report."""

from __future__ import annotations


class ReportParseError(ValueError):
    """Raised when an SR document cannot be turned into a report record."""


class ContentNotFoundError(ReportParseError):
    """Raised when a required coded content item is absent."""

    def __init__(self, code_value: str, description: str | None = None) -> None:
        self.code_value = code_value
        self.description = description
        label = f"{description} ({code_value})" if description else code_value
        super().__init__(f"Required content item {label} not found")


class MissingTrackingIdentifierError(ReportParseError):
    """Raised when a merged measurement group carries no tracking identifier."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "Measurement content has no Tracking Unique Identifier")
