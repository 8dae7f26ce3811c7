"""
Report store for AlertHub
Write-side operations over danger reports, their markers, place names and
enrichment tasks. Every method works inside the caller's session, so the
caller's unit of work decides what commits together.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from .models import (
    DangerReport,
    ActiveReportMarker,
    ArchivedReportMarker,
    PlaceName,
    EnrichmentTask,
    DisasterType,
    ReportStatus,
    TaskStatus,
)

logger = logging.getLogger(__name__)


class ReportStore:
    """
    Danger report persistence bound to one session.

    Usage:
        with db.get_session() as session:
            store = ReportStore(session)
            store.add_report(report)
    """

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Reports and markers
    # ------------------------------------------------------------------

    def add_report(self, report: DangerReport) -> DangerReport:
        """
        Insert a report and its active marker.

        The report row is flushed first so the marker can reference its id.
        """
        self.session.add(report)
        self.session.flush()

        self.session.add(ActiveReportMarker(report_id=report.id))
        self.session.flush()

        return report

    def get(self, report_id: int) -> Optional[DangerReport]:
        """Get report by ID."""
        return self.session.get(DangerReport, report_id)

    def lock_active_reports(
        self,
        disaster_type: DisasterType,
        municipality: str
    ) -> List[DangerReport]:
        """
        Active reports of a disaster type whose place names (any culture)
        name the municipality exactly.

        Rows are locked FOR UPDATE where the backend supports it, so two
        triage batches over the same reports serialize.
        """
        stmt = (
            select(DangerReport)
            .join(ActiveReportMarker, ActiveReportMarker.report_id == DangerReport.id)
            .where(
                DangerReport.disaster_type == disaster_type,
                DangerReport.place_names.any(PlaceName.municipality == municipality),
            )
            .options(selectinload(DangerReport.active_marker))
            .order_by(DangerReport.id)
            .with_for_update(of=DangerReport)
        )
        return list(self.session.scalars(stmt))

    def archive(self, report: DangerReport, outcome: ReportStatus) -> bool:
        """
        Move a report from active to archived with the given outcome.

        Status, marker removal and marker insertion are flushed together.

        Returns:
            False if the report had already been triaged (left untouched)
        """
        if not outcome.is_terminal:
            raise ValueError(f"Cannot archive report with outcome {outcome.value}")

        if report.status.is_terminal or report.active_marker is None:
            logger.warning(
                f"Report {report.id} is already archived as {report.status.value}; skipping"
            )
            return False

        report.status = outcome
        self.session.delete(report.active_marker)
        self.session.add(ArchivedReportMarker(report_id=report.id))
        self.session.flush()

        logger.debug(f"Report {report.id} archived as {outcome.value}")
        return True

    # ------------------------------------------------------------------
    # Place names
    # ------------------------------------------------------------------

    def save_place_name(
        self,
        report_id: int,
        culture: str,
        country: str,
        municipality: str
    ) -> PlaceName:
        """
        Insert or overwrite the place names of a report for one culture.

        Returns:
            The stored PlaceName row
        """
        existing = self.session.scalars(
            select(PlaceName).where(
                PlaceName.report_id == report_id,
                PlaceName.culture == culture,
            )
        ).first()

        if existing is not None:
            existing.country = country
            existing.municipality = municipality
            place_name = existing
        else:
            place_name = PlaceName(
                report_id=report_id,
                culture=culture,
                country=country,
                municipality=municipality,
            )
            self.session.add(place_name)

        self.session.flush()
        return place_name

    # ------------------------------------------------------------------
    # Enrichment tasks
    # ------------------------------------------------------------------

    def schedule_enrichment(self, report: DangerReport) -> EnrichmentTask:
        """Queue place-name enrichment for a report in the current unit of work."""
        task = EnrichmentTask(
            report_id=report.id,
            longitude=report.longitude,
            latitude=report.latitude,
            status=TaskStatus.PENDING,
            attempts=0,
            available_at=datetime.utcnow(),
        )
        self.session.add(task)
        self.session.flush()
        return task

    def claim_task(self, task_id: int) -> Optional[EnrichmentTask]:
        """
        Mark a pending task as running and count the attempt.

        Returns:
            The claimed task, or None if it is missing, not pending or
            still backing off
        """
        task = self.session.scalars(
            select(EnrichmentTask)
            .where(EnrichmentTask.id == task_id)
            .with_for_update()
        ).first()

        if task is None or task.status != TaskStatus.PENDING:
            return None
        if task.available_at > datetime.utcnow():
            return None

        task.status = TaskStatus.RUNNING
        task.attempts += 1
        self.session.flush()
        return task

    def complete_task(self, task_id: int) -> None:
        task = self.session.get(EnrichmentTask, task_id)
        if task is None:
            return
        task.status = TaskStatus.COMPLETED
        task.last_error = None
        self.session.flush()

    def fail_task(
        self,
        task_id: int,
        error: str,
        max_attempts: int,
        backoff_seconds: float
    ) -> Optional[EnrichmentTask]:
        """
        Record a failed attempt.

        The task goes back to PENDING with exponential backoff until it has
        used max_attempts, then it is marked FAILED.
        """
        task = self.session.get(EnrichmentTask, task_id)
        if task is None:
            return None

        task.last_error = error
        if task.attempts >= max_attempts:
            task.status = TaskStatus.FAILED
        else:
            delay = backoff_seconds * (2 ** max(task.attempts - 1, 0))
            task.status = TaskStatus.PENDING
            task.available_at = datetime.utcnow() + timedelta(seconds=delay)

        self.session.flush()
        return task

    def due_task_ids(self, limit: int = 100) -> List[int]:
        """Ids of pending tasks whose backoff has elapsed, oldest first."""
        stmt = (
            select(EnrichmentTask.id)
            .where(
                EnrichmentTask.status == TaskStatus.PENDING,
                EnrichmentTask.available_at <= datetime.utcnow(),
            )
            .order_by(EnrichmentTask.available_at, EnrichmentTask.id)
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def requeue_running_tasks(self) -> int:
        """Reset tasks left RUNNING by a stopped worker. Returns the count."""
        result = self.session.execute(
            update(EnrichmentTask)
            .where(EnrichmentTask.status == TaskStatus.RUNNING)
            .values(status=TaskStatus.PENDING, available_at=datetime.utcnow())
        )
        return result.rowcount or 0

    def reschedule_failed_tasks(self) -> int:
        """Give FAILED tasks a fresh set of attempts. Returns the count."""
        result = self.session.execute(
            update(EnrichmentTask)
            .where(EnrichmentTask.status == TaskStatus.FAILED)
            .values(status=TaskStatus.PENDING, attempts=0, available_at=datetime.utcnow())
        )
        return result.rowcount or 0
