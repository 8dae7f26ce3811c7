"""
AlertHub - Core Utilities
Central configuration, logging, errors and utility functions.
"""

from alerthub.core.config import settings
from alerthub.core.constants import (
    DESCRIPTION_MAX_LENGTH,
    UNKNOWN_PLACE,
)
from alerthub.core.exceptions import (
    AlertHubError,
    SubmissionValidationError,
    GeocodingError,
    ReportNotFoundError,
    ReportCreationError,
    TriageError,
)
from alerthub.core.geo_utils import (
    Point,
    is_valid_coordinate,
    format_coordinate,
    to_ewkt,
)

__all__ = [
    "settings",
    "DESCRIPTION_MAX_LENGTH",
    "UNKNOWN_PLACE",
    "AlertHubError",
    "SubmissionValidationError",
    "GeocodingError",
    "ReportNotFoundError",
    "ReportCreationError",
    "TriageError",
    "Point",
    "is_valid_coordinate",
    "format_coordinate",
    "to_ewkt",
]
