"""Tests for SqlAlchemyExportJobStore: persistence and guarded transitions."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest

from inventra.models.enums import ExportCategory, ExportFormat, ExportJobStatus
from inventra.models.export_job import ERROR_MESSAGE_MAX_LENGTH


async def _create(store, owner_id, created_at=None, category=ExportCategory.PRODUCT):
    return await store.create(
        owner_id=owner_id,
        category=category,
        export_format=ExportFormat.XLSX,
        created_at=created_at,
    )


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_persists_pending_job(self, job_store, owner_id):
        job = await _create(job_store, owner_id)

        stored = await job_store.find_by_id(job.id)
        assert stored is not None
        assert stored.owner_id == owner_id
        assert stored.category == ExportCategory.PRODUCT
        assert stored.export_format == ExportFormat.XLSX
        assert stored.status == ExportJobStatus.PENDING
        assert stored.file_url is None
        assert stored.error_message is None

    @pytest.mark.asyncio
    async def test_find_by_id_returns_none_for_unknown_job(self, job_store):
        assert await job_store.find_by_id(uuid.uuid4()) is None


class TestFindByOwner:
    @pytest.mark.asyncio
    async def test_jobs_are_returned_newest_first(self, job_store, owner_id):
        base = datetime(2024, 1, 15, 10, 0, 0, tzinfo=UTC)
        j1 = await _create(job_store, owner_id, created_at=base)
        j2 = await _create(job_store, owner_id, created_at=base + timedelta(seconds=1))
        j3 = await _create(job_store, owner_id, created_at=base + timedelta(seconds=2))

        jobs = await job_store.find_by_owner(owner_id)
        assert [j.id for j in jobs] == [j3.id, j2.id, j1.id]

    @pytest.mark.asyncio
    async def test_ordering_does_not_depend_on_insertion_order(self, job_store, owner_id):
        base = datetime(2024, 1, 15, 10, 0, 0, tzinfo=UTC)
        late = await _create(job_store, owner_id, created_at=base + timedelta(minutes=5))
        early = await _create(job_store, owner_id, created_at=base)
        middle = await _create(job_store, owner_id, created_at=base + timedelta(minutes=1))

        jobs = await job_store.find_by_owner(owner_id)
        assert [j.id for j in jobs] == [late.id, middle.id, early.id]

    @pytest.mark.asyncio
    async def test_other_owners_jobs_are_excluded(self, job_store, owner_id):
        await _create(job_store, owner_id)
        await _create(job_store, uuid.uuid4())

        jobs = await job_store.find_by_owner(owner_id)
        assert len(jobs) == 1
        assert jobs[0].owner_id == owner_id

    @pytest.mark.asyncio
    async def test_owner_without_jobs_gets_empty_list(self, job_store):
        assert await job_store.find_by_owner(uuid.uuid4()) == []


class TestTransitions:
    @pytest.mark.asyncio
    async def test_mark_processing_from_pending(self, job_store, owner_id):
        job = await _create(job_store, owner_id)

        processing = await job_store.mark_processing(job.id)
        assert processing is not None
        assert processing.status == ExportJobStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_mark_processing_is_repeatable_while_active(self, job_store, owner_id):
        job = await _create(job_store, owner_id)
        await job_store.mark_processing(job.id)

        again = await job_store.mark_processing(job.id)
        assert again is not None
        assert again.status == ExportJobStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_complete_sets_url_only(self, job_store, owner_id):
        job = await _create(job_store, owner_id)
        await job_store.mark_processing(job.id)

        done = await job_store.complete(job.id, "https://cdn.test/exports/a.xlsx")
        assert done.status == ExportJobStatus.COMPLETED
        assert done.file_url == "https://cdn.test/exports/a.xlsx"
        assert done.error_message is None

    @pytest.mark.asyncio
    async def test_fail_sets_error_only(self, job_store, owner_id):
        job = await _create(job_store, owner_id)
        await job_store.mark_processing(job.id)

        failed = await job_store.fail(job.id, "No data to export")
        assert failed.status == ExportJobStatus.FAILED
        assert failed.error_message == "No data to export"
        assert failed.file_url is None

    @pytest.mark.asyncio
    async def test_fail_truncates_long_messages(self, job_store, owner_id):
        job = await _create(job_store, owner_id)

        failed = await job_store.fail(job.id, "x" * (ERROR_MESSAGE_MAX_LENGTH + 100))
        assert len(failed.error_message) == ERROR_MESSAGE_MAX_LENGTH

    @pytest.mark.asyncio
    async def test_transitions_on_missing_job_return_none(self, job_store):
        missing = uuid.uuid4()
        assert await job_store.mark_processing(missing) is None
        assert await job_store.complete(missing, "https://cdn.test/x.xlsx") is None
        assert await job_store.fail(missing, "boom") is None


class TestTerminalStatesAreAbsorbing:
    @pytest.mark.asyncio
    async def test_completed_job_cannot_fail(self, job_store, owner_id):
        job = await _create(job_store, owner_id)
        await job_store.complete(job.id, "https://cdn.test/a.xlsx")

        assert await job_store.fail(job.id, "late failure") is None

        stored = await job_store.find_by_id(job.id)
        assert stored.status == ExportJobStatus.COMPLETED
        assert stored.file_url == "https://cdn.test/a.xlsx"
        assert stored.error_message is None

    @pytest.mark.asyncio
    async def test_failed_job_cannot_complete(self, job_store, owner_id):
        job = await _create(job_store, owner_id)
        await job_store.fail(job.id, "boom")

        assert await job_store.complete(job.id, "https://cdn.test/a.xlsx") is None

        stored = await job_store.find_by_id(job.id)
        assert stored.status == ExportJobStatus.FAILED
        assert stored.file_url is None
        assert stored.error_message == "boom"

    @pytest.mark.asyncio
    async def test_terminal_job_cannot_return_to_processing(self, job_store, owner_id):
        job = await _create(job_store, owner_id)
        await job_store.complete(job.id, "https://cdn.test/a.xlsx")

        assert await job_store.mark_processing(job.id) is None
        stored = await job_store.find_by_id(job.id)
        assert stored.status == ExportJobStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_second_completion_keeps_first_url(self, job_store, owner_id):
        job = await _create(job_store, owner_id)
        await job_store.complete(job.id, "https://cdn.test/first.xlsx")

        assert await job_store.complete(job.id, "https://cdn.test/second.xlsx") is None
        stored = await job_store.find_by_id(job.id)
        assert stored.file_url == "https://cdn.test/first.xlsx"


class TestFindStale:
    @pytest.mark.asyncio
    async def test_returns_only_jobs_in_status_older_than_cutoff(self, job_store, owner_id):
        now = datetime.now(UTC)
        old = await _create(job_store, owner_id, created_at=now - timedelta(hours=2))
        await _create(job_store, owner_id, created_at=now)

        stale = await job_store.find_stale(
            ExportJobStatus.PENDING, updated_before=now - timedelta(hours=1)
        )
        assert [j.id for j in stale] == [old.id]

    @pytest.mark.asyncio
    async def test_ignores_other_statuses(self, job_store, owner_id):
        now = datetime.now(UTC)
        old = await _create(job_store, owner_id, created_at=now - timedelta(hours=2))

        stale = await job_store.find_stale(
            ExportJobStatus.PROCESSING, updated_before=now - timedelta(hours=1)
        )
        assert stale == []
        assert (await job_store.find_by_id(old.id)).status == ExportJobStatus.PENDING

    @pytest.mark.asyncio
    async def test_touch_refreshes_active_job(self, job_store, owner_id):
        now = datetime.now(UTC)
        old = await _create(job_store, owner_id, created_at=now - timedelta(hours=2))

        await job_store.touch(old.id)

        stale = await job_store.find_stale(
            ExportJobStatus.PENDING, updated_before=now - timedelta(hours=1)
        )
        assert stale == []
