import os

# Must be set before daybook.core.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ.pop("TELEGRAM_BOT_TOKEN", None)

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from daybook.core.database import Base
import daybook.models.entry  # noqa: F401 (register tables on Base.metadata)
import daybook.models.user  # noqa: F401
import daybook.models.user_setting  # noqa: F401
from daybook.schemas.user_setting import UserSettingUpdate
from daybook.services import user_service, user_setting_service


class FakeNotifier:
    """Records sends; chat ids in ``fail_for`` raise like a blocked chat would."""

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    async def send_message(self, chat_id, text):
        if chat_id in self.fail_for:
            raise RuntimeError(f"Forbidden: bot was blocked by user {chat_id}")
        self.sent.append((chat_id, text))
        return {"message_id": len(self.sent)}


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'daybook.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def user(db):
    return await user_service.get_or_create_user(db, tgid=1001, first_name="Ada")


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def make_user(db):
    async def _make(tgid, timezone="UTC", hour=21, minute=0, reminders_enabled=True):
        created = await user_service.get_or_create_user(db, tgid=tgid)
        await user_setting_service.update_user_settings(
            db,
            UserSettingUpdate(
                timezone=timezone,
                reminder_hour=hour,
                reminder_minute=minute,
                reminders_enabled=reminders_enabled,
            ),
            created.id,
        )
        return created
    return _make


@pytest.fixture
def make_notifier():
    return FakeNotifier
