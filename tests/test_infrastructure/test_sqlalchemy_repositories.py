"""Tests for SQLAlchemy repository implementations.

Uses a temporary SQLite file so that concurrent sessions really contend on
the same rows.
"""

import asyncio
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.orm.exc import StaleDataError

from discipline_tracker.domain.disciplines import Weekday
from discipline_tracker.domain.errors import RecordConflict
from discipline_tracker.domain.repositories import (
    NotificationRepository,
    SubjectRepository,
    WeeklyRecordRepository,
)
from discipline_tracker.models.base import utcnow
from discipline_tracker.models.notification import Notification, NotificationStatus
from discipline_tracker.models.subject import Subject
from discipline_tracker.models.value_objects import DisciplineProgress

MONDAY = datetime(2024, 1, 15)


def progress(key, *days):
    return DisciplineProgress.from_days(key, days)


# ========================================================================
# WeeklyRecordRepository tests
# ========================================================================


class TestSqlAlchemyWeeklyRecordRepository:
    def test_satisfies_protocol(self, record_repo):
        assert isinstance(record_repo, WeeklyRecordRepository)

    @pytest.mark.asyncio
    async def test_get_or_create_seeds_every_kind(self, record_repo, local):
        record = await record_repo.get_or_create("w1", local(2024, 1, 17, 12))
        assert record.id is not None
        assert record.week_start == MONDAY
        assert record.week_end.date() == datetime(2024, 1, 21).date()
        assert [p.discipline for p in record.disciplines] == [
            "prayer",
            "bible_study",
            "fasting",
            "evangelism",
        ]
        assert not any(p.any_done for p in record.disciplines)

    @pytest.mark.asyncio
    async def test_get_or_create_is_idempotent(self, record_repo, local):
        first = await record_repo.get_or_create("w1", local(2024, 1, 15, 8))
        second = await record_repo.get_or_create("w1", local(2024, 1, 21, 22))
        assert first.id == second.id

    @pytest.mark.asyncio
    async def test_save_merges_by_kind(self, record_repo, local):
        await record_repo.save("w1", MONDAY, [progress("prayer", Weekday.MONDAY)])
        record = await record_repo.save(
            "w1", local(2024, 1, 19, 9), [progress("fasting", Weekday.FRIDAY)]
        )

        assert record.get_discipline("prayer").completed_days == [Weekday.MONDAY]
        assert record.get_discipline("fasting").completed_days == [Weekday.FRIDAY]
        assert len(record.disciplines) == 4

    @pytest.mark.asyncio
    async def test_save_replaces_days_of_given_kind(self, record_repo):
        await record_repo.save("w1", MONDAY, [progress("prayer", Weekday.MONDAY)])
        record = await record_repo.save("w1", MONDAY, [progress("prayer", Weekday.TUESDAY)])
        assert record.get_discipline("prayer").completed_days == [Weekday.TUESDAY]

    @pytest.mark.asyncio
    async def test_save_appends_unknown_kind_once(self, record_repo):
        await record_repo.save("w1", MONDAY, [progress("choir", Weekday.MONDAY)])
        record = await record_repo.save("w1", MONDAY, [progress("choir", Weekday.SUNDAY)])
        keys = [p.discipline for p in record.disciplines]
        assert keys.count("choir") == 1
        assert keys[-1] == "choir"

    @pytest.mark.asyncio
    async def test_version_advances_on_every_write(self, record_repo):
        created = await record_repo.get_or_create("w1", MONDAY)
        saved = await record_repo.save("w1", MONDAY, [progress("prayer", Weekday.MONDAY)])
        assert saved.version == created.version + 1

    @pytest.mark.asyncio
    async def test_concurrent_saves_keep_both_kinds(self, record_repo):
        await record_repo.get_or_create("w1", MONDAY)
        await asyncio.gather(
            record_repo.save("w1", MONDAY, [progress("prayer", Weekday.MONDAY)]),
            record_repo.save("w1", MONDAY, [progress("bible_study", Weekday.MONDAY)]),
        )
        record = await record_repo.find("w1", MONDAY)
        assert record.get_discipline("prayer").any_done
        assert record.get_discipline("bible_study").any_done

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_conflict(self, session_factory, catalog, tz):
        from discipline_tracker.infrastructure.repositories import (
            SqlAlchemyWeeklyRecordRepository,
        )

        repo = SqlAlchemyWeeklyRecordRepository(session_factory, catalog, tz, retry_attempts=2)
        repo._select = AsyncMock(side_effect=StaleDataError("row changed"))

        with pytest.raises(RecordConflict) as exc_info:
            await repo.save("w1", MONDAY, [progress("prayer", Weekday.MONDAY)])
        assert exc_info.value.attempts == 2
        assert repo._select.await_count == 2

    @pytest.mark.asyncio
    async def test_find_missing_returns_none(self, record_repo):
        assert await record_repo.find("nobody", MONDAY) is None

    @pytest.mark.asyncio
    async def test_list_recent_newest_first(self, record_repo):
        for weeks_ago in range(5):
            await record_repo.get_or_create("w1", MONDAY - timedelta(weeks=weeks_ago))

        recent = await record_repo.list_recent("w1", 3)
        assert [r.week_start for r in recent] == [
            MONDAY,
            MONDAY - timedelta(weeks=1),
            MONDAY - timedelta(weeks=2),
        ]
        assert len(await record_repo.list_all("w1")) == 5

    @pytest.mark.asyncio
    async def test_find_many_omits_missing_subjects(self, record_repo):
        await record_repo.get_or_create("w1", MONDAY)
        await record_repo.get_or_create("w2", MONDAY)
        records = await record_repo.find_many(["w1", "w2", "w9"], MONDAY)
        assert [r.subject_id for r in records] == ["w1", "w2"]
        assert await record_repo.find_many([], MONDAY) == []

    @pytest.mark.asyncio
    async def test_find_with_reflections(self, record_repo):
        await record_repo.save_reflection("w1", MONDAY, "Grateful", datetime(2024, 1, 16, 9))
        await record_repo.save_reflection("w2", MONDAY, "Tired", datetime(2024, 1, 18, 9))
        await record_repo.get_or_create("w3", MONDAY)

        records = await record_repo.find_with_reflections(["w1", "w2", "w3"], MONDAY)
        assert [r.subject_id for r in records] == ["w2", "w1"]


# ========================================================================
# NotificationRepository tests
# ========================================================================


def make_notification(subject_id="w1", **kwargs):
    defaults = dict(title="Task Reminder", message="Hi", type="task_reminder")
    defaults.update(kwargs)
    return Notification(subject_id=subject_id, **defaults)


class TestSqlAlchemyNotificationRepository:
    def test_satisfies_protocol(self, notification_repo):
        assert isinstance(notification_repo, NotificationRepository)

    @pytest.mark.asyncio
    async def test_add_and_get_scoped_to_owner(self, notification_repo):
        created = await notification_repo.add(make_notification())
        assert created.id is not None
        assert created.status == NotificationStatus.UNREAD.value

        assert (await notification_repo.get(created.id, "w1")).message == "Hi"
        assert await notification_repo.get(created.id, "w2") is None

    @pytest.mark.asyncio
    async def test_duplicate_dedup_key_is_skipped(self, notification_repo):
        key = "w1:2024-01-17:7am"
        assert await notification_repo.add(make_notification(dedup_key=key)) is not None
        assert await notification_repo.add(make_notification(dedup_key=key)) is None
        assert await notification_repo.count("w1") == 1

    @pytest.mark.asyncio
    async def test_without_dedup_key_duplicates_are_kept(self, notification_repo):
        await notification_repo.add(make_notification())
        await notification_repo.add(make_notification())
        assert await notification_repo.count("w1") == 2

    @pytest.mark.asyncio
    async def test_list_newest_first_with_paging(self, notification_repo):
        base = datetime(2024, 1, 10, 12)
        for i in range(3):
            await notification_repo.add(
                make_notification(message=f"n{i}", created_at=base + timedelta(hours=i))
            )
        page = await notification_repo.list_for_subject("w1", limit=2)
        assert [n.message for n in page] == ["n2", "n1"]
        rest = await notification_repo.list_for_subject("w1", limit=2, skip=2)
        assert [n.message for n in rest] == ["n0"]

    @pytest.mark.asyncio
    async def test_mark_all_read_only_touches_owner(self, notification_repo):
        await notification_repo.add(make_notification("w1"))
        await notification_repo.add(make_notification("w1"))
        await notification_repo.add(make_notification("w2"))

        assert await notification_repo.mark_all_read("w1", utcnow()) == 2
        assert await notification_repo.count("w1", status="unread") == 0
        assert await notification_repo.count("w2", status="unread") == 1

    @pytest.mark.asyncio
    async def test_delete_read_before_keeps_unread_and_recent(self, notification_repo):
        old = datetime(2023, 1, 1)
        await notification_repo.add(make_notification(status="read", created_at=old))
        await notification_repo.add(make_notification(status="unread", created_at=old))
        await notification_repo.add(make_notification(status="read"))

        deleted = await notification_repo.delete_read_before(utcnow() - timedelta(days=30))
        assert deleted == 1
        assert await notification_repo.count("w1") == 2

    @pytest.mark.asyncio
    async def test_delete_reports_missing(self, notification_repo):
        created = await notification_repo.add(make_notification())
        assert await notification_repo.delete(created.id, "w2") is False
        assert await notification_repo.delete(created.id, "w1") is True


# ========================================================================
# SubjectRepository tests
# ========================================================================


class TestSqlAlchemySubjectRepository:
    def test_satisfies_protocol(self, subject_repo):
        assert isinstance(subject_repo, SubjectRepository)

    @pytest.mark.asyncio
    async def test_list_eligible_excludes_roles_and_inactive(self, subject_repo, seed_subjects):
        eligible = await subject_repo.list_eligible(["executive"])
        assert [s.id for s in eligible] == ["w1", "w2"]

    @pytest.mark.asyncio
    async def test_list_eligible_without_exclusions(self, subject_repo, seed_subjects):
        eligible = await subject_repo.list_eligible()
        assert [s.id for s in eligible] == ["w1", "w2", "x1"]

    @pytest.mark.asyncio
    async def test_upsert_updates_existing(self, subject_repo, seed_subjects):
        await subject_repo.upsert(
            Subject(id="w1", full_name="Ada Obi-Nwosu", email="ada@example.com", role="worker")
        )
        subject = await subject_repo.get("w1")
        assert subject.full_name == "Ada Obi-Nwosu"
        assert subject.first_name == "Ada"
