"""
Database module for AlertHub
PostgreSQL + PostGIS for danger report persistence
"""

from .connection import DatabaseConnection, init_db
from .models import (
    Base,
    DisasterType,
    ReportStatus,
    TaskStatus,
    DangerReport,
    ActiveReportMarker,
    ArchivedReportMarker,
    PlaceName,
    EnrichmentTask,
)
from .pagination import Page, paginate, total_pages
from .store import ReportStore

__all__ = [
    "DatabaseConnection",
    "init_db",
    "Base",
    "DisasterType",
    "ReportStatus",
    "TaskStatus",
    "DangerReport",
    "ActiveReportMarker",
    "ArchivedReportMarker",
    "PlaceName",
    "EnrichmentTask",
    "Page",
    "paginate",
    "total_pages",
    "ReportStore",
]
