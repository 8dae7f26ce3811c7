"""
Read-side views over danger reports

Paginated, culture-aware projections for citizens and operators. All
queries run in read sessions and never write.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from alerthub.core.config import settings
from alerthub.core.constants import UNKNOWN_PLACE
from alerthub.core.exceptions import ReportNotFoundError, SubmissionValidationError
from alerthub.crowdsource.cultures import (
    is_default_culture,
    translate_disaster,
    translate_status,
)
from alerthub.database.connection import DatabaseConnection
from alerthub.database.models import (
    ActiveReportMarker,
    ArchivedReportMarker,
    DangerReport,
    DisasterType,
    PlaceName,
    ReportStatus,
)
from alerthub.database.pagination import Page, check_page_arguments, paginate, total_pages

logger = logging.getLogger(__name__)


@dataclass
class ReportView:
    """Danger report as shown to citizens."""
    id: int
    disaster_type: str
    longitude: float
    latitude: float
    created_at: datetime
    image_url: Optional[str]
    description: Optional[str]
    status: str
    culture: str
    country: str
    municipality: str
    user_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "disaster_type": self.disaster_type,
            "longitude": self.longitude,
            "latitude": self.latitude,
            "created_at": self.created_at.isoformat(),
            "image_url": self.image_url,
            "description": self.description,
            "status": self.status,
            "culture": self.culture,
            "country": self.country,
            "municipality": self.municipality,
            "user_id": self.user_id,
        }


@dataclass
class ArchivedReportView:
    """Triaged report in the approved/rejected archives."""
    id: int
    disaster_type: str
    longitude: float
    latitude: float
    created_at: datetime
    country: str
    municipality: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "disaster_type": self.disaster_type,
            "longitude": self.longitude,
            "latitude": self.latitude,
            "created_at": self.created_at.isoformat(),
            "country": self.country,
            "municipality": self.municipality,
        }


@dataclass
class OperatorReportView:
    """Active report as listed for an incident cluster."""
    id: int
    disaster_type: str
    longitude: float
    latitude: float
    created_at: datetime
    image_url: Optional[str]
    description: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "disaster_type": self.disaster_type,
            "longitude": self.longitude,
            "latitude": self.latitude,
            "created_at": self.created_at.isoformat(),
            "image_url": self.image_url,
            "description": self.description,
        }


@dataclass
class ImportanceGroup:
    """Active reports sharing country, municipality and disaster type."""
    disaster_type: str
    disaster_type_index: int
    country: str
    municipality: str
    importance: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "disaster_type": self.disaster_type,
            "disaster_type_index": self.disaster_type_index,
            "country": self.country,
            "municipality": self.municipality,
            "importance": self.importance,
        }


class ReportQueries:
    """
    Query/projection layer for danger reports.

    Usage:
        queries = ReportQueries(db, images_url="https://host/UploadDangerReportImages")
        feed = queries.active_reports(page_number=1, items_per_page=10, culture="el-GR")
    """

    def __init__(self, db: DatabaseConnection, images_url: Optional[str] = None):
        self.db = db
        self.images_url = (images_url or settings.images_mount_path).rstrip("/")

    # ------------------------------------------------------------------
    # Projection helpers
    # ------------------------------------------------------------------

    def image_url(self, image_name: Optional[str]) -> Optional[str]:
        if image_name is None:
            return None
        return f"{self.images_url}/{image_name}"

    @staticmethod
    def _place(report: DangerReport, culture: str):
        place_name = report.place_name_for(culture)
        if place_name is None:
            return UNKNOWN_PLACE, UNKNOWN_PLACE
        return place_name.country, place_name.municipality

    @staticmethod
    def _disaster_label(disaster_type: DisasterType, culture: str) -> str:
        if is_default_culture(culture):
            return disaster_type.label
        return translate_disaster(disaster_type, culture)

    def _report_view(self, report: DangerReport, culture: str, translate: bool) -> ReportView:
        country, municipality = self._place(report, culture)
        if translate:
            disaster_type = translate_disaster(report.disaster_type, culture)
            status = translate_status(report.status, culture)
        else:
            disaster_type = report.disaster_type.label
            status = report.status.label
        return ReportView(
            id=report.id,
            disaster_type=disaster_type,
            longitude=report.longitude,
            latitude=report.latitude,
            created_at=report.created_at,
            image_url=self.image_url(report.image_name),
            description=report.description,
            status=status,
            culture=report.culture,
            country=country,
            municipality=municipality,
            user_id=report.user_id,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_report(self, report_id: int, culture: str) -> ReportView:
        """
        Get one report, projected into a culture.

        Raises:
            ReportNotFoundError: If no report has this id
        """
        with self.db.get_read_session() as session:
            report = session.scalars(
                select(DangerReport)
                .where(DangerReport.id == report_id)
                .options(selectinload(DangerReport.place_names))
            ).first()

            if report is None:
                logger.warning(f"The danger report with id: {report_id} was not found")
                raise ReportNotFoundError(report_id)

            return self._report_view(report, culture, translate=True)

    def active_reports(
        self,
        page_number: int,
        items_per_page: int,
        culture: str
    ) -> List[ReportView]:
        """Active reports, newest first, one page."""
        stmt = paginate(
            select(DangerReport)
            .join(ActiveReportMarker, ActiveReportMarker.report_id == DangerReport.id)
            .options(selectinload(DangerReport.place_names))
            .order_by(DangerReport.created_at.desc(), DangerReport.id.desc()),
            page_number,
            items_per_page,
        )
        translate = not is_default_culture(culture)

        with self.db.get_read_session() as session:
            reports = session.scalars(stmt).all()
            return [self._report_view(report, culture, translate) for report in reports]

    def archived_reports(
        self,
        status: ReportStatus,
        page_number: int,
        items_per_page: int,
        culture: str
    ) -> Page[ArchivedReportView]:
        """Approved or rejected reports, newest first, with the page count."""
        if not status.is_terminal:
            raise SubmissionValidationError({"status": "Archived reports are approved or rejected"})
        check_page_arguments(page_number, items_per_page)

        base = (
            select(DangerReport)
            .join(ArchivedReportMarker, ArchivedReportMarker.report_id == DangerReport.id)
            .where(DangerReport.status == status)
        )
        count_stmt = select(func.count()).select_from(base.subquery())
        page_stmt = paginate(
            base
            .options(selectinload(DangerReport.place_names))
            .order_by(DangerReport.created_at.desc(), DangerReport.id.desc()),
            page_number,
            items_per_page,
        )

        with self.db.get_read_session() as session:
            count = session.scalar(count_stmt) or 0
            items = []
            for report in session.scalars(page_stmt).all():
                country, municipality = self._place(report, culture)
                items.append(ArchivedReportView(
                    id=report.id,
                    disaster_type=self._disaster_label(report.disaster_type, culture),
                    longitude=report.longitude,
                    latitude=report.latitude,
                    created_at=report.created_at,
                    country=country,
                    municipality=municipality,
                ))

        return Page(total_pages=total_pages(count, items_per_page), items=items)

    def approved_reports(self, page_number: int, items_per_page: int, culture: str) -> Page[ArchivedReportView]:
        return self.archived_reports(ReportStatus.APPROVED, page_number, items_per_page, culture)

    def rejected_reports(self, page_number: int, items_per_page: int, culture: str) -> Page[ArchivedReportView]:
        return self.archived_reports(ReportStatus.REJECTED, page_number, items_per_page, culture)

    def importance_ranking(
        self,
        page_number: int,
        items_per_page: int,
        culture: str
    ) -> Page[ImportanceGroup]:
        """
        Active reports grouped by country, municipality and disaster type,
        largest groups first.

        Only place names stored for the given culture are grouped, so each
        report counts once. Groups of equal size keep storage order.
        """
        check_page_arguments(page_number, items_per_page)

        importance = func.count(PlaceName.id).label("importance")
        grouped = (
            select(
                PlaceName.country,
                PlaceName.municipality,
                DangerReport.disaster_type,
                importance,
            )
            .join(DangerReport, PlaceName.report_id == DangerReport.id)
            .join(ActiveReportMarker, ActiveReportMarker.report_id == DangerReport.id)
            .where(func.lower(PlaceName.culture) == culture.lower())
            .group_by(PlaceName.country, PlaceName.municipality, DangerReport.disaster_type)
        )
        count_stmt = select(func.count()).select_from(grouped.subquery())
        page_stmt = paginate(
            grouped.order_by(importance.desc(), func.min(PlaceName.id)),
            page_number,
            items_per_page,
        )

        with self.db.get_read_session() as session:
            count = session.scalar(count_stmt) or 0
            rows = session.execute(page_stmt).all()

        items = [
            ImportanceGroup(
                disaster_type=self._disaster_label(row.disaster_type, culture),
                disaster_type_index=int(row.disaster_type),
                country=row.country,
                municipality=row.municipality,
                importance=row.importance,
            )
            for row in rows
        ]
        return Page(total_pages=total_pages(count, items_per_page), items=items)

    def active_reports_by_disaster_and_municipality(
        self,
        disaster_type: DisasterType,
        municipality: str,
        culture: str
    ) -> List[OperatorReportView]:
        """Active reports of one disaster type in one municipality (exact match)."""
        stmt = (
            select(DangerReport)
            .join(ActiveReportMarker, ActiveReportMarker.report_id == DangerReport.id)
            .where(
                DangerReport.disaster_type == disaster_type,
                DangerReport.place_names.any(PlaceName.municipality == municipality),
            )
            .order_by(ActiveReportMarker.id)
        )

        with self.db.get_read_session() as session:
            reports = session.scalars(stmt).all()
            return [
                OperatorReportView(
                    id=report.id,
                    disaster_type=self._disaster_label(report.disaster_type, culture),
                    longitude=report.longitude,
                    latitude=report.latitude,
                    created_at=report.created_at,
                    image_url=self.image_url(report.image_name),
                    description=report.description,
                )
                for report in reports
            ]
