"""
AlertHub - Crowdsource Module
Handles citizen danger reports, their triage and read-side views.
"""

from alerthub.crowdsource.report_handler import (
    ReportHandler,
    ImageUpload,
)
from alerthub.crowdsource.queries import (
    ReportQueries,
    ReportView,
    ArchivedReportView,
    OperatorReportView,
    ImportanceGroup,
)
from alerthub.crowdsource.validation import (
    ReportSubmission,
    validate_submission,
    parse_disaster_type,
    disaster_type_from_index,
)
from alerthub.crowdsource.image_storage import (
    LocalImageStorage,
    new_image_name,
)
from alerthub.crowdsource.cultures import (
    translate_disaster,
    translate_status,
    normalize_culture,
)

__all__ = [
    # Report Handler
    "ReportHandler",
    "ImageUpload",
    # Queries
    "ReportQueries",
    "ReportView",
    "ArchivedReportView",
    "OperatorReportView",
    "ImportanceGroup",
    # Validation
    "ReportSubmission",
    "validate_submission",
    "parse_disaster_type",
    "disaster_type_from_index",
    # Image Storage
    "LocalImageStorage",
    "new_image_name",
    # Cultures
    "translate_disaster",
    "translate_status",
    "normalize_culture",
]
