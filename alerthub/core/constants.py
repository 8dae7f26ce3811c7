"""
AlertHub - Constants and Reference Data
Static values used throughout the application.
"""

from typing import Tuple

# =============================================================================
# REPORTS
# =============================================================================

# Column limits shared by the ORM models and submission validation
DESCRIPTION_MAX_LENGTH: int = 2000
IMAGE_NAME_MAX_LENGTH: int = 200
CULTURE_MAX_LENGTH: int = 10
PLACE_NAME_MAX_LENGTH: int = 450
USER_ID_MAX_LENGTH: int = 450

# Shown in place of country/municipality until enrichment has stored them
UNKNOWN_PLACE: str = "unknown"

# Accepted upload types, "image/<subtype>" -> stored as "<uuid>.<subtype>"
IMAGE_CONTENT_TYPE_PREFIX: str = "image/"
ALLOWED_IMAGE_SUBTYPES: Tuple[str, ...] = ("jpeg", "jpg", "png", "gif", "webp", "heic")

# =============================================================================
# ACCESS
# =============================================================================

# Header carrying the caller's role claim, set by the upstream auth gateway
ROLE_HEADER: str = "X-User-Role"
