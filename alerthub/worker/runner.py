"""
Background worker for enrichment tasks

Tasks live in the enrichment_tasks table, written in the same transaction
as their report. The in-process queue only carries task ids as a prompt
wake-up; a periodic sweep picks up anything that was missed, so tasks
survive restarts and are attempted at least once.
"""

import logging
import queue
import threading
from typing import List, Optional

from alerthub.core.config import settings
from alerthub.database.connection import DatabaseConnection
from alerthub.database.models import EnrichmentTask, TaskStatus
from alerthub.database.store import ReportStore
from alerthub.worker.enrichment import EnrichmentJob

logger = logging.getLogger(__name__)


class EnrichmentWorker:
    """
    Thread pool consuming enrichment tasks.

    Usage:
        worker = EnrichmentWorker(db, job)
        worker.start()
        worker.enqueue_job(task_id)
        ...
        worker.stop()
    """

    def __init__(
        self,
        db: DatabaseConnection,
        job: EnrichmentJob,
        num_threads: Optional[int] = None,
        poll_interval: Optional[float] = None,
        max_attempts: Optional[int] = None,
        retry_backoff_seconds: Optional[float] = None,
    ):
        self.db = db
        self.job = job
        self.num_threads = num_threads or settings.enrichment_workers
        self.poll_interval = poll_interval or settings.enrichment_poll_interval_seconds
        self.max_attempts = max_attempts or settings.enrichment_max_attempts
        self.retry_backoff_seconds = (
            retry_backoff_seconds
            if retry_backoff_seconds is not None
            else settings.enrichment_retry_backoff_seconds
        )

        self.queue: "queue.Queue[int]" = queue.Queue()
        self.is_running = False
        self._stop_event = threading.Event()
        self._threads: List[threading.Thread] = []
        self._sweep_lock = threading.Lock()

    def start(self) -> None:
        """Start the worker threads."""
        if self.is_running:
            return

        with self.db.get_session() as session:
            recovered = ReportStore(session).requeue_running_tasks()
        if recovered:
            logger.warning(f"[Worker] Requeued {recovered} interrupted enrichment tasks")

        self.is_running = True
        self._stop_event.clear()
        for index in range(self.num_threads):
            thread = threading.Thread(
                target=self._process_queue,
                name=f"enrichment-worker-{index}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)

        self.sweep()
        logger.info(f"[Worker] Started with {self.num_threads} threads.")

    def stop(self, timeout: Optional[float] = 10.0) -> None:
        """Stop the worker threads after their current task."""
        if not self.is_running:
            return
        self.is_running = False
        self._stop_event.set()
        for thread in self._threads:
            thread.join(timeout=timeout)
        self._threads = []
        logger.info("[Worker] Stopped.")

    def enqueue_job(self, task_id: int) -> None:
        """Wake a worker for a committed task."""
        logger.info(f"[Worker] Enqueuing enrichment task {task_id}")
        self.queue.put(task_id)

    def sweep(self) -> int:
        """
        Queue every pending task whose backoff has elapsed.

        Returns:
            Number of task ids queued
        """
        if not self._sweep_lock.acquire(blocking=False):
            return 0
        try:
            with self.db.get_read_session() as session:
                task_ids = ReportStore(session).due_task_ids()
            for task_id in task_ids:
                self.queue.put(task_id)
            return len(task_ids)
        finally:
            self._sweep_lock.release()

    def reschedule_failed(self) -> int:
        """Give FAILED tasks a fresh set of attempts and queue them."""
        with self.db.get_session() as session:
            count = ReportStore(session).reschedule_failed_tasks()
        if count:
            logger.info(f"[Worker] Rescheduled {count} failed enrichment tasks")
            self.sweep()
        return count

    def process_task(self, task_id: int) -> Optional[TaskStatus]:
        """
        Claim and run one task.

        Returns:
            The task's resulting status, or None if it could not be claimed
        """
        with self.db.get_session() as session:
            task: Optional[EnrichmentTask] = ReportStore(session).claim_task(task_id)
            if task is None:
                return None
            report_id, longitude, latitude = task.report_id, task.longitude, task.latitude
            attempt = task.attempts

        logger.info(f"[Worker] Processing enrichment task {task_id} (attempt {attempt})")

        try:
            result = self.job.run(report_id, longitude, latitude)
        except Exception as e:
            logger.error(f"[Worker] Enrichment task {task_id} crashed: {e}", exc_info=True)
            error = f"{e.__class__.__name__}: {e}"
        else:
            error = None if result.is_complete else result.error_summary()

        with self.db.get_session() as session:
            store = ReportStore(session)
            if error is None:
                store.complete_task(task_id)
                return TaskStatus.COMPLETED

            task = store.fail_task(
                task_id, error, self.max_attempts, self.retry_backoff_seconds
            )
            status = task.status if task is not None else None

        if status == TaskStatus.FAILED:
            logger.error(f"[Worker] Enrichment task {task_id} failed permanently: {error}")
        else:
            logger.warning(f"[Worker] Enrichment task {task_id} will be retried: {error}")
        return status

    def _process_queue(self) -> None:
        """Main loop consuming task ids."""
        while not self._stop_event.is_set():
            try:
                task_id = self.queue.get(timeout=self.poll_interval)
            except queue.Empty:
                try:
                    self.sweep()
                except Exception as e:
                    logger.error(f"[Worker] Sweep failed: {e}")
                continue

            try:
                self.process_task(task_id)
            except Exception as e:
                logger.error(f"[Worker] Task {task_id} failed: {e}", exc_info=True)
            finally:
                self.queue.task_done()
