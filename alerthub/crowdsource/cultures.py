"""
Display strings for disaster types and report statuses per culture.

Unknown cultures translate to an empty string rather than falling back to
English; clients rely on that to detect unsupported cultures.
"""

from typing import Dict, Iterable, Optional

from alerthub.core.config import settings
from alerthub.database.models import DisasterType, ReportStatus

DISASTER_TYPES_ENGLISH: Dict[DisasterType, str] = {
    disaster_type: disaster_type.label for disaster_type in DisasterType
}

DISASTER_TYPES_GREEK: Dict[DisasterType, str] = {
    DisasterType.EARTHQUAKE: "Σεισμός",
    DisasterType.FLOOD: "Πλημμύρα",
    DisasterType.FIRE: "Πυρκαγιά",
    DisasterType.TORNADO: "Ανεμοστρόβιλος",
    DisasterType.HURRICANE: "Τυφώνας",
    DisasterType.TSUNAMI: "Τσουνάμι",
    DisasterType.LANDSLIDE: "Κατολίσθηση",
    DisasterType.STORM: "Καταιγίδα",
    DisasterType.HEATWAVE: "Καύσωνας",
    DisasterType.OTHER: "Άλλο",
}

STATUSES_ENGLISH: Dict[ReportStatus, str] = {
    ReportStatus.PENDING: "Pending",
    ReportStatus.APPROVED: "Approved",
    ReportStatus.REJECTED: "Rejected",
}

STATUSES_GREEK: Dict[ReportStatus, str] = {
    ReportStatus.PENDING: "Εκκρεμεί",
    ReportStatus.APPROVED: "Εγκεκριμένο",
    ReportStatus.REJECTED: "Ακυρωμένο",
}

DISASTER_TRANSLATIONS: Dict[str, Dict[DisasterType, str]] = {
    "en-us": DISASTER_TYPES_ENGLISH,
    "el-gr": DISASTER_TYPES_GREEK,
}

STATUS_TRANSLATIONS: Dict[str, Dict[ReportStatus, str]] = {
    "en-us": STATUSES_ENGLISH,
    "el-gr": STATUSES_GREEK,
}


def translate_disaster(disaster_type: DisasterType, culture: str) -> str:
    """Disaster type display string, or "" for an unsupported culture."""
    table = DISASTER_TRANSLATIONS.get(culture.lower())
    if table is None:
        return ""
    return table[disaster_type]


def translate_status(status: ReportStatus, culture: str) -> str:
    """Report status display string, or "" for an unsupported culture."""
    table = STATUS_TRANSLATIONS.get(culture.lower())
    if table is None:
        return ""
    return table[status]


def is_default_culture(culture: str) -> bool:
    """True for the reference culture whose strings are the enum labels."""
    return culture.lower() == settings.default_culture.lower()


def normalize_culture(
    culture: str,
    supported: Optional[Iterable[str]] = None
) -> Optional[str]:
    """
    Canonical spelling of a supported culture, matched case-insensitively.

    Returns:
        e.g. "el-GR" for "el-gr", or None if the culture is not supported
    """
    wanted = culture.strip().lower()
    for candidate in supported or settings.supported_cultures:
        if candidate.lower() == wanted:
            return candidate
    return None
