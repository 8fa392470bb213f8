"""Custom exceptions for the genomic risk workflow."""

from __future__ import annotations


class UploadValidationError(Exception):
    """Raised when an uploaded file fails the extension or size checks."""

    def __init__(self, title: str, description: str):
        super().__init__(f"{title}: {description}")
        self.title = title
        self.description = description


class AnalysisNotReadyError(Exception):
    """Raised when analysis is requested without exactly three typed files."""


class InvalidTransitionError(Exception):
    """Raised when the analysis session is asked for an illegal state change."""

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot move analysis from '{current}' to '{target}'")
        self.current = current
        self.target = target


class PredictorError(Exception):
    """Raised when the remote predictor cannot be reached or answers malformed data."""
