import logging
from datetime import date, datetime, timezone

import pytest

from daybook.services import diary_service, user_setting_service
from daybook.services.reminder_scheduler import REMINDER_JOB_ID, REMINDER_MESSAGE, ReminderScheduler


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def scheduler(session_factory, notifier):
    scheduler = ReminderScheduler(session_factory, notifier)
    yield scheduler
    scheduler.stop()


async def test_reminder_fires_only_on_the_exact_local_minute(scheduler, notifier, make_user):
    await make_user(8001, timezone="Europe/Warsaw", hour=21, minute=0)

    # Warsaw is UTC+2 on 2024-06-01
    assert await scheduler.check_reminders(utc(2024, 6, 1, 18, 59)) == 0
    assert await scheduler.check_reminders(utc(2024, 6, 1, 19, 0)) == 1
    assert await scheduler.check_reminders(utc(2024, 6, 1, 19, 1)) == 0

    assert notifier.sent == [(8001, REMINDER_MESSAGE)]


async def test_no_reminder_once_todays_entry_exists(db, scheduler, notifier, make_user):
    warsaw = await make_user(8002, timezone="Europe/Warsaw")
    await diary_service.upsert_entry(db, warsaw.id, date(2024, 6, 1), "already written")

    assert await scheduler.check_reminders(utc(2024, 6, 1, 19, 0)) == 0
    assert notifier.sent == []


async def test_yesterdays_entry_does_not_silence_today(db, scheduler, notifier, make_user):
    ny = await make_user(8003, timezone="America/New_York", hour=20, minute=30)
    await diary_service.upsert_entry(db, ny.id, date(2024, 5, 31), "yesterday")

    # 20:30 EDT on June 1st
    assert await scheduler.check_reminders(utc(2024, 6, 2, 0, 30)) == 1
    assert notifier.sent[0][0] == 8003


async def test_repeated_local_hour_on_fall_back_day_reminds_once(db, scheduler, notifier, make_user):
    # Warsaw leaves CEST at 01:00Z on 2024-10-27, so local 02:30 happens at 00:30Z and 01:30Z
    warsaw = await make_user(8005, timezone="Europe/Warsaw", hour=2, minute=30)

    assert await scheduler.check_reminders(utc(2024, 10, 27, 0, 30)) == 1
    assert await scheduler.check_reminders(utc(2024, 10, 27, 1, 30)) == 0
    assert notifier.sent == [(8005, REMINDER_MESSAGE)]

    settings = await user_setting_service.get_user_settings(db, warsaw.id)
    await db.refresh(settings)
    assert settings.last_reminder_date == date(2024, 10, 27)

    # the next local day is reminded again
    assert await scheduler.check_reminders(utc(2024, 10, 28, 1, 30)) == 1


async def test_failed_send_is_not_recorded(session_factory, make_user, make_notifier):
    await make_user(8006, timezone="UTC", hour=8, minute=0)
    scheduler = ReminderScheduler(session_factory, make_notifier(fail_for={8006}))
    assert await scheduler.check_reminders(utc(2024, 6, 1, 8, 0)) == 0

    async with session_factory() as session:
        due = await diary_service.get_users_due_for_reminder(session, utc(2024, 6, 1, 8, 0))
    assert [c.tgid for c in due] == [8006]


async def test_disabled_reminders_are_skipped(scheduler, notifier, make_user):
    await make_user(8004, timezone="UTC", hour=12, minute=0, reminders_enabled=False)
    assert await scheduler.check_reminders(utc(2024, 6, 1, 12, 0)) == 0
    assert notifier.sent == []


async def test_one_failing_send_does_not_stop_the_others(session_factory, make_user, make_notifier, caplog):
    for tgid in (8101, 8102, 8103):
        await make_user(tgid, timezone="UTC", hour=9, minute=15)

    notifier = make_notifier(fail_for={8102})
    scheduler = ReminderScheduler(session_factory, notifier)

    with caplog.at_level(logging.ERROR):
        sent = await scheduler.check_reminders(utc(2024, 6, 1, 9, 15))

    assert sent == 2
    assert sorted(chat_id for chat_id, _ in notifier.sent) == [8101, 8103]
    assert "Failed to send reminder to user 8102" in caplog.text


async def test_scan_failure_is_logged_and_tick_survives(notifier, caplog):
    def broken_factory():
        raise RuntimeError("database is unreachable")

    scheduler = ReminderScheduler(broken_factory, notifier)
    with caplog.at_level(logging.ERROR):
        assert await scheduler.check_reminders(utc(2024, 6, 1, 12, 0)) == 0

    assert "Error checking reminders" in caplog.text
    assert notifier.sent == []


async def test_clock_is_used_when_no_instant_given(session_factory, notifier, make_user):
    await make_user(8201, timezone="Asia/Tokyo", hour=7, minute=45)
    scheduler = ReminderScheduler(session_factory, notifier, clock=lambda: utc(2024, 6, 1, 22, 45))

    assert await scheduler.check_reminders() == 1


async def test_send_reminder_reports_failure(session_factory, make_notifier):
    scheduler = ReminderScheduler(session_factory, make_notifier(fail_for={1}))
    assert await scheduler.send_reminder(1) is False
    assert await scheduler.send_reminder(2) is True


async def test_start_and_stop_are_idempotent(scheduler, caplog):
    assert not scheduler.is_running

    scheduler.start()
    with caplog.at_level(logging.WARNING):
        scheduler.start()

    assert scheduler.is_running
    assert "already running" in caplog.text
    jobs = scheduler._scheduler.get_jobs()
    assert [job.id for job in jobs] == [REMINDER_JOB_ID]
    assert jobs[0].max_instances == 1
    assert jobs[0].coalesce is True

    scheduler.stop()
    scheduler.stop()
    assert not scheduler.is_running

    scheduler.start()
    assert scheduler.is_running

    scheduler.stop()
