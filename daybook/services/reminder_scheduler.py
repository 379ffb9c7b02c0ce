from apscheduler.schedulers.asyncio import AsyncIOScheduler
from datetime import datetime
from typing import Callable, Optional, Protocol
import logging
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from daybook.services import diary_service, user_setting_service
from daybook.services.diary_service import ReminderCandidate
from daybook.utils.timezone import should_send_reminder, utc_now

logger = logging.getLogger(__name__)

REMINDER_JOB_ID = "diary_reminder_job"

REMINDER_MESSAGE = "\n".join([
    "🔔 Diary reminder",
    "",
    "You haven't added an entry for today yet.",
    "",
    "Add one: /add [rating] text",
    "",
    "Turn reminders off: /reminder_off",
])

class Notifier(Protocol):
    async def send_message(self, chat_id: int, text: str): ...

class ReminderScheduler:
    """
    Once-a-minute scan that reminds users who have not written today's entry.

    Built and owned by the application lifespan; start() and stop() are both
    safe to call repeatedly.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: Notifier,
        interval_seconds: int = 60,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self.interval_seconds = interval_seconds
        self.clock = clock or utc_now
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self):
        if self.is_running:
            logger.warning("Reminder scheduler is already running")
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.check_reminders,
            "interval",
            seconds=self.interval_seconds,
            id=REMINDER_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info(f"🚀 Reminder scheduler started (runs every {self.interval_seconds}s)")

    def stop(self):
        """Stop scheduling new ticks. A tick already running is left to finish."""
        if not self.is_running:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("🛑 Reminder scheduler stopped")

    async def check_reminders(self, now: Optional[datetime] = None) -> int:
        """
        One tick: find users without today's entry whose local time equals
        their reminder time and message them. Returns how many were sent.
        """
        now = now or self.clock()
        try:
            async with self.session_factory() as db:
                candidates = await diary_service.get_users_due_for_reminder(db, now)
        except Exception as e:
            logger.exception(f"❌ Error checking reminders: {e}")
            return 0

        sent = 0
        for candidate in candidates:
            try:
                due = should_send_reminder(
                    candidate.reminder_hour,
                    candidate.reminder_minute,
                    candidate.timezone,
                    now,
                )
            except Exception as e:
                logger.error(f"❌ Could not evaluate reminder time for user {candidate.tgid}: {e}")
                continue

            if due and await self.send_reminder(candidate.tgid):
                sent += 1
                await self.record_reminder(candidate)

        if sent:
            logger.info(f"⏰ Reminder tick sent {sent} reminder(s)")
        return sent

    async def send_reminder(self, tgid: int) -> bool:
        try:
            await self.notifier.send_message(tgid, REMINDER_MESSAGE)
            logger.info(f"✅ Reminder sent to user {tgid}")
            return True
        except Exception as e:
            logger.error(f"❌ Failed to send reminder to user {tgid}: {e}")
            return False

    async def record_reminder(self, candidate: ReminderCandidate):
        """
        Store the local day the reminder was for. On a DST fall-back day the
        reminder minute can come round twice; the second pass sees this date
        and skips the user.
        """
        try:
            async with self.session_factory() as db:
                await user_setting_service.mark_reminder_sent(db, candidate.user_id, candidate.date_key)
        except Exception as e:
            logger.error(f"❌ Could not record reminder for user {candidate.tgid}: {e}")
