"""
AlertHub - Error Taxonomy
Exceptions raised by the report pipeline and translated by the API layer.
"""

from typing import Dict, Optional


class AlertHubError(Exception):
    """Base class for all AlertHub errors."""


class SubmissionValidationError(AlertHubError):
    """
    One or more input fields are malformed or unknown.

    Carries a field -> message map that is returned to the caller as-is.
    """

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__(", ".join(f"{k}: {v}" for k, v in self.errors.items()))


class GeocodingError(AlertHubError):
    """Reverse geocoding failed for a single coordinate/culture request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ReportNotFoundError(AlertHubError):
    """No danger report exists with the requested id."""

    def __init__(self, report_id: int):
        self.report_id = report_id
        super().__init__(f"Danger report {report_id} not found")


class ReportCreationError(AlertHubError):
    """Creating a danger report failed and the unit of work was rolled back."""


class TriageError(AlertHubError):
    """A triage batch failed and was rolled back; no report changed state."""
