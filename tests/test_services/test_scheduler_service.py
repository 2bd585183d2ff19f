"""Tests for SchedulerService: job table, state machine, triggering and run guards."""

import asyncio
from typing import Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest

from discipline_tracker.domain.errors import InvalidSchedule
from discipline_tracker.services.scheduler.base import (
    RuntimeScheduler,
    ScheduledJob,
    SchedulerState,
)
from discipline_tracker.services.scheduler.scheduler_service import SchedulerService

JOB_NAMES = [
    "morning-reminder",
    "afternoon-reminder",
    "evening-reminder",
    "cleanup-notifications",
]


class FakeBackend(RuntimeScheduler):
    """Records registrations instead of firing anything."""

    def __init__(self):
        self.jobs: Dict[str, ScheduledJob] = {}
        self.schedule_calls: List[str] = []
        self.started = 0
        self.stopped = 0

    def schedule(self, job: ScheduledJob) -> None:
        self.schedule_calls.append(job.name)
        self.jobs[job.name] = job

    def cancel(self, name: str) -> bool:
        return self.jobs.pop(name, None) is not None

    def list_jobs(self) -> List[str]:
        return list(self.jobs)

    async def start(self) -> None:
        self.started += 1

    async def stop(self) -> None:
        self.jobs.clear()
        self.stopped += 1


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def reminders():
    mock = MagicMock()
    mock.create_task_reminders = AsyncMock(return_value=3)
    return mock


@pytest.fixture
def notifications():
    mock = MagicMock()
    mock.cleanup_old_notifications = AsyncMock(return_value=5)
    return mock


@pytest.fixture
def scheduler(backend, reminders, notifications):
    return SchedulerService(backend, reminders, notifications, "Africa/Lagos", retention_days=30)


class TestJobTable:
    def test_fixed_jobs_in_order(self, scheduler):
        assert scheduler.job_names == JOB_NAMES
        assert scheduler.state == SchedulerState.UNINITIALIZED

    def test_status_reports_local_times(self, scheduler):
        status = {s.name: s for s in scheduler.get_status()}
        assert status["morning-reminder"].time_of_day == "07:00"
        assert status["afternoon-reminder"].time_of_day == "13:00"
        assert status["evening-reminder"].time_of_day == "21:00"
        assert status["cleanup-notifications"].time_of_day == "02:00"
        assert all(s.timezone == "Africa/Lagos" for s in status.values())
        assert not any(s.running for s in status.values())

    def test_malformed_time_rejected(self, backend, reminders, notifications, monkeypatch):
        table = {
            "scheduler.reminders": [{"name": "morning-reminder", "slot": "7am", "time": "7 o'clock"}],
            "scheduler.cleanup": {},
        }
        monkeypatch.setattr(
            "discipline_tracker.services.scheduler.scheduler_service.get_config_value",
            lambda key, default=None: table.get(key, default),
        )
        with pytest.raises(InvalidSchedule, match="Invalid time of day"):
            SchedulerService(backend, reminders, notifications, "Africa/Lagos")

    def test_unknown_slot_rejected(self, backend, reminders, notifications, monkeypatch):
        table = {
            "scheduler.reminders": [{"name": "noon-reminder", "slot": "noon", "time": "12:00"}],
            "scheduler.cleanup": {},
        }
        monkeypatch.setattr(
            "discipline_tracker.services.scheduler.scheduler_service.get_config_value",
            lambda key, default=None: table.get(key, default),
        )
        with pytest.raises(InvalidSchedule):
            SchedulerService(backend, reminders, notifications, "Africa/Lagos")

    def test_unknown_timezone_rejected(self, backend, reminders, notifications):
        with pytest.raises(InvalidSchedule, match="Invalid timezone"):
            SchedulerService(backend, reminders, notifications, "Mars/Olympus_Mons")


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_initialize_twice_registers_once(self, scheduler, backend):
        await scheduler.initialize()
        await scheduler.initialize()

        assert backend.schedule_calls == JOB_NAMES
        assert backend.started == 1
        assert scheduler.state == SchedulerState.RUNNING
        assert all(s.running for s in scheduler.get_status())

    @pytest.mark.asyncio
    async def test_stop_all_then_reinitialize(self, scheduler, backend):
        await scheduler.initialize()
        await scheduler.stop_all()
        assert scheduler.state == SchedulerState.STOPPED
        assert backend.list_jobs() == []
        assert not any(s.running for s in scheduler.get_status())

        await scheduler.initialize()
        assert scheduler.state == SchedulerState.RUNNING
        assert sorted(backend.list_jobs()) == sorted(JOB_NAMES)
        assert len(backend.schedule_calls) == 8

    @pytest.mark.asyncio
    async def test_stop_single_job(self, scheduler, backend):
        await scheduler.initialize()
        assert scheduler.stop_job("evening-reminder") is True
        assert scheduler.stop_job("evening-reminder") is False
        assert scheduler.stop_job("no-such-job") is False

        status = {s.name: s.running for s in scheduler.get_status()}
        assert status["evening-reminder"] is False
        assert status["morning-reminder"] is True

    @pytest.mark.asyncio
    async def test_fire_after_stop_does_not_run(self, scheduler, backend, reminders):
        await scheduler.initialize()
        fire = backend.jobs["morning-reminder"].callback
        await scheduler.stop_all()

        await fire()
        reminders.create_task_reminders.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_scheduled_fire_runs_action(self, scheduler, backend, reminders):
        await scheduler.initialize()
        await backend.jobs["afternoon-reminder"].callback()
        reminders.create_task_reminders.assert_awaited_once_with("1pm")


class TestTriggerJob:
    @pytest.mark.asyncio
    async def test_trigger_reminder_job(self, scheduler, reminders):
        result = await scheduler.trigger_job("morning-reminder")
        assert result == 3
        reminders.create_task_reminders.assert_awaited_once_with("7am")

        status = {s.name: s for s in scheduler.get_status()}
        assert status["morning-reminder"].run_count == 1
        assert status["morning-reminder"].last_run_at is not None
        assert status["morning-reminder"].last_error is None

    @pytest.mark.asyncio
    async def test_trigger_cleanup_uses_retention(self, scheduler, notifications):
        assert await scheduler.trigger_job("cleanup-notifications") == 5
        notifications.cleanup_old_notifications.assert_awaited_once_with(30)

    @pytest.mark.asyncio
    async def test_unknown_job_raises(self, scheduler):
        with pytest.raises(InvalidSchedule, match="Unknown job"):
            await scheduler.trigger_job("weekly-digest")

    @pytest.mark.asyncio
    async def test_handler_failure_is_caught_and_recorded(self, scheduler, reminders):
        reminders.create_task_reminders.side_effect = [RuntimeError("db down"), 2]

        assert await scheduler.trigger_job("evening-reminder") is None
        status = {s.name: s for s in scheduler.get_status()}
        assert "RuntimeError: db down" in status["evening-reminder"].last_error

        # The job stays usable for the next run
        assert await scheduler.trigger_job("evening-reminder") == 2
        status = {s.name: s for s in scheduler.get_status()}
        assert status["evening-reminder"].last_error is None
        assert status["evening-reminder"].run_count == 2

    @pytest.mark.asyncio
    async def test_overlapping_run_is_skipped(self, scheduler, reminders):
        release = asyncio.Event()

        async def slow(slot):
            await release.wait()
            return 1

        reminders.create_task_reminders.side_effect = slow

        first = asyncio.create_task(scheduler.trigger_job("morning-reminder"))
        await asyncio.sleep(0)
        second = await scheduler.trigger_job("morning-reminder")
        release.set()

        assert second is None
        assert await first == 1
        assert reminders.create_task_reminders.await_count == 1
