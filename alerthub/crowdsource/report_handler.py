"""
Danger report handler for crowdsourced data
Creates citizen reports and moves them through operator triage
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Any, BinaryIO, Optional, Union

from alerthub.core.config import settings
from alerthub.core.exceptions import (
    ReportCreationError,
    SubmissionValidationError,
    TriageError,
)
from alerthub.core.geo_utils import Point
from alerthub.crowdsource.image_storage import LocalImageStorage, new_image_name
from alerthub.crowdsource.validation import (
    ReportSubmission,
    disaster_type_from_index,
    validate_submission,
)
from alerthub.database.connection import DatabaseConnection
from alerthub.database.models import DangerReport, DisasterType, ReportStatus
from alerthub.database.store import ReportStore

logger = logging.getLogger(__name__)


@dataclass
class ImageUpload:
    """Photo attached to a submission."""
    content_type: str
    stream: BinaryIO
    filename: Optional[str] = None


class ReportHandler:
    """
    Handles danger reports from citizens.

    Creation and triage each run as a single unit of work: either every
    row they touch is committed, or nothing is.
    """

    def __init__(
        self,
        db: DatabaseConnection,
        storage: LocalImageStorage,
        worker: Optional[Any] = None,
        upload_executor: Optional[ThreadPoolExecutor] = None,
    ):
        """
        Initialize report handler.

        Args:
            db: Database connection
            storage: Image storage backend
            worker: Enrichment worker notified after commit (optional; the
                worker's sweep picks up tasks without it)
            upload_executor: Executor running image uploads alongside the
                database work
        """
        self.db = db
        self.storage = storage
        self.worker = worker
        self._uploads = upload_executor or ThreadPoolExecutor(
            max_workers=4, thread_name_prefix="image-upload"
        )

        logger.info("ReportHandler initialized")

    def close(self) -> None:
        self._uploads.shutdown(wait=True)

    def create_report(
        self,
        disaster_type: Any,
        longitude: Any,
        latitude: Any,
        culture: Any,
        user_id: Any,
        description: Optional[str] = None,
        image: Optional[ImageUpload] = None,
    ) -> int:
        """
        Create a new danger report.

        The report, its active marker and its enrichment task are written
        in one transaction that commits only after the photo (if any) is
        stored.

        Args:
            disaster_type: Disaster type name or index
            longitude: Report longitude
            latitude: Report latitude
            culture: Culture the submitter used
            user_id: Submitting user
            description: Free text description
            image: Optional photo

        Returns:
            Id of the created report

        Raises:
            SubmissionValidationError: Field-level problems, nothing stored
            ReportCreationError: Storage failed, everything rolled back
        """
        submission = validate_submission(
            disaster_type=disaster_type,
            longitude=longitude,
            latitude=latitude,
            culture=culture,
            user_id=user_id,
            description=description,
            image_content_type=image.content_type if image else None,
        )

        upload: Optional[Future] = None
        if image is not None:
            image_name = new_image_name(submission.image_extension)
            upload = self._uploads.submit(self.storage.store, image_name, image.stream)
        else:
            image_name = settings.placeholder_image_name

        try:
            with self.db.get_session() as session:
                store = ReportStore(session)
                report = store.add_report(self._build_report(submission, image_name))
                task = store.schedule_enrichment(report)

                if upload is not None:
                    upload.result()

                report_id, task_id = report.id, task.id
        except Exception as e:
            logger.error(
                "An exception was thrown while trying to create a danger report",
                exc_info=True
            )
            if upload is not None:
                self._discard_upload(upload, image_name)
            raise ReportCreationError("Could not create danger report") from e

        logger.info(
            f"Successfully created danger report {report_id} by user: {submission.user_id}"
        )

        if self.worker is not None:
            self.worker.enqueue_job(task_id)

        return report_id

    def _build_report(self, submission: ReportSubmission, image_name: str) -> DangerReport:
        return DangerReport(
            disaster_type=submission.disaster_type,
            location=Point(latitude=submission.latitude, longitude=submission.longitude),
            latitude=submission.latitude,
            longitude=submission.longitude,
            created_at=datetime.utcnow(),
            image_name=image_name,
            description=submission.description,
            status=ReportStatus.PENDING,
            culture=submission.culture,
            user_id=submission.user_id,
        )

    def _discard_upload(self, upload: Future, image_name: str) -> None:
        """Wait for an in-flight upload and remove whatever it stored."""
        try:
            upload.result()
        except Exception as e:
            logger.warning(f"Image upload {image_name} failed: {e}")
            return

        try:
            self.storage.delete(image_name)
        except OSError as e:
            logger.error(f"Could not remove orphaned image {image_name}: {e}")

    def triage(
        self,
        disaster_type: Union[DisasterType, int],
        municipality: str,
        outcome: ReportStatus,
    ) -> int:
        """
        Approve or reject every active report of a disaster type in a
        municipality.

        The batch is all-or-nothing. Reports that were already triaged are
        left as they are.

        Args:
            disaster_type: Disaster type or its public index
            municipality: Exact municipality name, in any culture
            outcome: ReportStatus.APPROVED or ReportStatus.REJECTED

        Returns:
            Number of reports that changed state

        Raises:
            SubmissionValidationError: Unknown disaster type or outcome
            TriageError: The batch failed and was rolled back
        """
        if not isinstance(disaster_type, DisasterType):
            disaster_type = disaster_type_from_index(disaster_type)
        if not outcome.is_terminal:
            raise SubmissionValidationError(
                {"outcome": "Outcome must be approved or rejected"}
            )

        try:
            with self.db.get_session() as session:
                store = ReportStore(session)
                reports = store.lock_active_reports(disaster_type, municipality)
                transitioned = 0
                for report in reports:
                    if store.archive(report, outcome):
                        transitioned += 1
        except Exception as e:
            logger.error(
                f"An error occurred while trying to mark reports of {disaster_type.label} "
                f"in municipality {municipality} as {outcome.value}",
                exc_info=True
            )
            raise TriageError("Could not update danger reports") from e

        logger.info(
            f"{transitioned} {disaster_type.label} reports in {municipality} "
            f"marked {outcome.value}"
        )
        return transitioned

    def approve(self, disaster_type: Union[DisasterType, int], municipality: str) -> int:
        """Approve every active matching report."""
        return self.triage(disaster_type, municipality, ReportStatus.APPROVED)

    def reject(self, disaster_type: Union[DisasterType, int], municipality: str) -> int:
        """Reject every active matching report."""
        return self.triage(disaster_type, municipality, ReportStatus.REJECTED)
