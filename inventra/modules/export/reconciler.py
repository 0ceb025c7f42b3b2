"""Periodic sweep for export jobs that stopped making progress.

A job can stall at PENDING when its task never reached the broker, or at
PROCESSING when the worker died and the broker did not redeliver. Stalled
PENDING jobs are dispatched again; stalled PROCESSING jobs are failed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from inventra.models.enums import ExportJobStatus
from inventra.modules.export.channel import ExportTaskChannel
from inventra.modules.export.constants import EXPORT_TIMED_OUT_MESSAGE
from inventra.modules.export.job_store import ExportJobStore
from inventra.modules.export.notifier import StatusNotifier
from inventra.modules.export.schemas import ExportStatusUpdate, ExportTask

logger = logging.getLogger(__name__)


class ExportReconciler:
    def __init__(
        self,
        store: ExportJobStore,
        channel: ExportTaskChannel,
        notifier: StatusNotifier,
        pending_timeout: timedelta,
        processing_timeout: timedelta,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.store = store
        self.channel = channel
        self.notifier = notifier
        self.pending_timeout = pending_timeout
        self.processing_timeout = processing_timeout
        self.clock = clock

    async def reconcile(self) -> dict:
        """Run one sweep. Returns counts of redispatched, expired and errored jobs."""
        stats = {"redispatched": 0, "expired": 0, "errors": 0}
        now = self.clock()

        stale_pending = await self.store.find_stale(
            ExportJobStatus.PENDING, updated_before=now - self.pending_timeout
        )
        for job in stale_pending:
            try:
                self.channel.enqueue(ExportTask.for_job(job))
            except Exception:
                logger.exception("Error re-dispatching stale export job %s", job.id)
                stats["errors"] += 1
                continue
            await self.store.touch(job.id)
            stats["redispatched"] += 1

        stale_processing = await self.store.find_stale(
            ExportJobStatus.PROCESSING, updated_before=now - self.processing_timeout
        )
        for job in stale_processing:
            failed = await self.store.fail(job.id, EXPORT_TIMED_OUT_MESSAGE)
            if failed is None:
                continue
            await self.notifier.publish(ExportStatusUpdate.for_job(failed))
            stats["expired"] += 1

        if any(stats.values()):
            logger.info(
                "Export reconciliation: redispatched=%d expired=%d errors=%d",
                stats["redispatched"],
                stats["expired"],
                stats["errors"],
            )
        return stats
