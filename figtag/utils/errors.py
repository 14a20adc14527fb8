"""Custom exceptions for figtag core logic."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from figtag.charts.models import RejectionReason


class FigtagError(Exception):
    """Base class for errors raised by figtag."""


class ArtifactPersistenceError(FigtagError):
    """Raised when a rendered chart artifact cannot be written to the store."""

    def __init__(self, message: str, *, chart_id: str, filename: str | None = None) -> None:
        super().__init__(message)
        self.chart_id = chart_id
        self.filename = filename


class InvalidChartDescriptorError(FigtagError):
    """Raised by strict validation helpers when a descriptor is rejected."""

    def __init__(self, message: str, *, chart_id: str | None, rejection: RejectionReason) -> None:
        super().__init__(message)
        self.chart_id = chart_id
        self.rejection = rejection


class SettingsError(FigtagError):
    """Raised when the settings file is missing, unreadable or invalid."""
