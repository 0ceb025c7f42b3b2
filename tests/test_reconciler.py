"""Tests for ExportReconciler: stalled job recovery."""

from datetime import UTC, datetime, timedelta

import pytest

from conftest import RecordingTaskChannel
from inventra.models.enums import ExportCategory, ExportFormat, ExportJobStatus
from inventra.modules.export.constants import EXPORT_TIMED_OUT_MESSAGE
from inventra.modules.export.reconciler import ExportReconciler

PENDING_TIMEOUT = timedelta(minutes=15)
PROCESSING_TIMEOUT = timedelta(hours=1)


def _reconciler(store, channel, notifier) -> ExportReconciler:
    return ExportReconciler(
        store=store,
        channel=channel,
        notifier=notifier,
        pending_timeout=PENDING_TIMEOUT,
        processing_timeout=PROCESSING_TIMEOUT,
    )


async def _job_created_ago(store, owner_id, age: timedelta):
    return await store.create(
        owner_id=owner_id,
        category=ExportCategory.STOCK,
        export_format=ExportFormat.XLSX,
        created_at=datetime.now(UTC) - age,
    )


class TestStalePending:
    @pytest.mark.asyncio
    async def test_stale_pending_job_is_redispatched(
        self, job_store, task_channel, notifier, owner_id
    ):
        stale = await _job_created_ago(job_store, owner_id, timedelta(hours=1))
        await _job_created_ago(job_store, owner_id, timedelta(minutes=1))

        stats = await _reconciler(job_store, task_channel, notifier).reconcile()

        assert stats == {"redispatched": 1, "expired": 0, "errors": 0}
        assert [t.job_id for t in task_channel.tasks] == [stale.id]
        assert (await job_store.find_by_id(stale.id)).status == ExportJobStatus.PENDING

    @pytest.mark.asyncio
    async def test_redispatched_job_is_not_picked_up_again_immediately(
        self, job_store, task_channel, notifier, owner_id
    ):
        await _job_created_ago(job_store, owner_id, timedelta(hours=1))
        reconciler = _reconciler(job_store, task_channel, notifier)

        await reconciler.reconcile()
        stats = await reconciler.reconcile()

        assert stats["redispatched"] == 0
        assert len(task_channel.tasks) == 1

    @pytest.mark.asyncio
    async def test_enqueue_failure_is_counted_and_job_left_pending(
        self, job_store, notifier, owner_id
    ):
        stale = await _job_created_ago(job_store, owner_id, timedelta(hours=1))
        channel = RecordingTaskChannel(fail_with=ConnectionError("broker down"))

        stats = await _reconciler(job_store, channel, notifier).reconcile()

        assert stats == {"redispatched": 0, "expired": 0, "errors": 1}
        assert (await job_store.find_by_id(stale.id)).status == ExportJobStatus.PENDING


class TestStaleProcessing:
    @pytest.mark.asyncio
    async def test_timed_out_processing_job_is_failed(
        self, job_store, task_channel, notifier, owner_id
    ):
        job = await _job_created_ago(job_store, owner_id, timedelta(hours=3))
        await job_store.mark_processing(job.id)
        reconciler = ExportReconciler(
            store=job_store,
            channel=task_channel,
            notifier=notifier,
            pending_timeout=PENDING_TIMEOUT,
            processing_timeout=PROCESSING_TIMEOUT,
            clock=lambda: datetime.now(UTC) + timedelta(hours=2),
        )

        stats = await reconciler.reconcile()

        assert stats["expired"] == 1
        stored = await job_store.find_by_id(job.id)
        assert stored.status == ExportJobStatus.FAILED
        assert stored.error_message == EXPORT_TIMED_OUT_MESSAGE
        assert stored.file_url is None
        assert notifier.statuses == ["FAILED"]
        assert task_channel.tasks == []

    @pytest.mark.asyncio
    async def test_recent_processing_job_is_left_alone(
        self, job_store, task_channel, notifier, owner_id
    ):
        job = await _job_created_ago(job_store, owner_id, timedelta(hours=3))
        await job_store.mark_processing(job.id)

        stats = await _reconciler(job_store, task_channel, notifier).reconcile()

        assert stats == {"redispatched": 0, "expired": 0, "errors": 0}
        assert (await job_store.find_by_id(job.id)).status == ExportJobStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_terminal_jobs_are_never_touched(
        self, job_store, task_channel, notifier, owner_id
    ):
        job = await _job_created_ago(job_store, owner_id, timedelta(days=1))
        await job_store.complete(job.id, "https://cdn.test/a.xlsx")
        reconciler = ExportReconciler(
            store=job_store,
            channel=task_channel,
            notifier=notifier,
            pending_timeout=PENDING_TIMEOUT,
            processing_timeout=PROCESSING_TIMEOUT,
            clock=lambda: datetime.now(UTC) + timedelta(days=2),
        )

        stats = await reconciler.reconcile()

        assert stats == {"redispatched": 0, "expired": 0, "errors": 0}
        stored = await job_store.find_by_id(job.id)
        assert stored.status == ExportJobStatus.COMPLETED
        assert stored.file_url == "https://cdn.test/a.xlsx"
