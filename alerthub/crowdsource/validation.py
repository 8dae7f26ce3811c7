"""
Submission validation for citizen danger reports

Checks the raw form fields of a submission before anything is persisted
and reports problems per field.
"""

import logging
import math
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from alerthub.core.constants import (
    ALLOWED_IMAGE_SUBTYPES,
    DESCRIPTION_MAX_LENGTH,
    IMAGE_CONTENT_TYPE_PREFIX,
    USER_ID_MAX_LENGTH,
)
from alerthub.core.exceptions import SubmissionValidationError
from alerthub.core.geo_utils import is_valid_latitude, is_valid_longitude
from alerthub.crowdsource.cultures import normalize_culture
from alerthub.database.models import DisasterType

logger = logging.getLogger(__name__)


def parse_disaster_type(value: Any) -> DisasterType:
    """
    Parse a disaster type given by name ("Flood", "FLOOD") or index ("1").

    Raises:
        ValueError: If the value names no known disaster type
    """
    if isinstance(value, DisasterType):
        return value
    if isinstance(value, bool):
        raise ValueError("Unknown disaster type")
    if isinstance(value, int):
        try:
            return DisasterType(value)
        except ValueError:
            raise ValueError(f"Unknown disaster type index {value}") from None

    text = str(value).strip()
    if not text:
        raise ValueError("Disaster type is required")
    if text.lstrip("-").isdigit():
        return parse_disaster_type(int(text))
    try:
        return DisasterType[text.upper()]
    except KeyError:
        raise ValueError(f"Unknown disaster type '{text}'") from None


def disaster_type_from_index(index: int) -> DisasterType:
    """Disaster type for a public index, as used by the operator endpoints."""
    try:
        return DisasterType(index)
    except ValueError:
        raise SubmissionValidationError(
            {"disaster_index": f"Unknown disaster type index {index}"}
        ) from None


def _parse_coordinate(value: Any, name: str) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"{name} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number") from None
    if not math.isfinite(number):
        raise ValueError(f"{name} must be a finite number")
    return number


class ReportSubmission(BaseModel):
    """Validated fields of a danger report submission."""

    model_config = ConfigDict(str_strip_whitespace=True)

    disaster_type: DisasterType
    longitude: float
    latitude: float
    culture: str
    user_id: str = Field(min_length=1, max_length=USER_ID_MAX_LENGTH)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    image_content_type: Optional[str] = None

    @field_validator("disaster_type", mode="before")
    @classmethod
    def _check_disaster_type(cls, value):
        return parse_disaster_type(value)

    @field_validator("longitude", mode="before")
    @classmethod
    def _check_longitude(cls, value):
        number = _parse_coordinate(value, "Longitude")
        if not is_valid_longitude(number):
            raise ValueError("Longitude must be between -180 and 180")
        return number

    @field_validator("latitude", mode="before")
    @classmethod
    def _check_latitude(cls, value):
        number = _parse_coordinate(value, "Latitude")
        if not is_valid_latitude(number):
            raise ValueError("Latitude must be between -90 and 90")
        return number

    @field_validator("culture", mode="before")
    @classmethod
    def _check_culture(cls, value):
        canonical = normalize_culture(str(value or ""))
        if canonical is None:
            raise ValueError(f"Unsupported culture '{value}'")
        return canonical

    @field_validator("description", mode="before")
    @classmethod
    def _empty_description_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("image_content_type")
    @classmethod
    def _check_image_content_type(cls, value):
        if value is None:
            return value
        content_type = value.lower()
        if not content_type.startswith(IMAGE_CONTENT_TYPE_PREFIX):
            raise ValueError("Uploaded file must be an image")
        if content_type[len(IMAGE_CONTENT_TYPE_PREFIX):] not in ALLOWED_IMAGE_SUBTYPES:
            raise ValueError(f"Unsupported image type '{value}'")
        return content_type

    @property
    def image_extension(self) -> Optional[str]:
        """'png' for 'image/png'; None without an image."""
        if self.image_content_type is None:
            return None
        return self.image_content_type.split("/", 1)[1]


def _field_errors(error: ValidationError) -> Dict[str, str]:
    """Collapse pydantic errors to the first message per field."""
    errors: Dict[str, str] = {}
    for item in error.errors():
        field = str(item["loc"][0]) if item["loc"] else "__root__"
        message = item["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(field, message)
    return errors


def validate_submission(
    disaster_type: Any,
    longitude: Any,
    latitude: Any,
    culture: Any,
    user_id: Any,
    description: Optional[str] = None,
    image_content_type: Optional[str] = None,
) -> ReportSubmission:
    """
    Validate raw submission fields.

    Returns:
        ReportSubmission with parsed values

    Raises:
        SubmissionValidationError: With a field -> message map
    """
    try:
        return ReportSubmission(
            disaster_type=disaster_type,
            longitude=longitude,
            latitude=latitude,
            culture=culture,
            user_id=user_id if user_id is not None else "",
            description=description,
            image_content_type=image_content_type,
        )
    except ValidationError as e:
        errors = _field_errors(e)
        logger.info(f"Rejected danger report submission: {errors}")
        raise SubmissionValidationError(errors) from None
