import pytest
from pydantic import ValidationError

from daybook.schemas.user_setting import UserSettingResponse, UserSettingUpdate
from daybook.services import user_service, user_setting_service


def test_reminder_time_expands_to_hour_and_minute():
    update = UserSettingUpdate(reminder_time="7:05")
    assert update.changes() == {"reminder_hour": 7, "reminder_minute": 5}


def test_changes_only_holds_sent_fields():
    assert UserSettingUpdate().changes() == {}
    assert UserSettingUpdate(timezone=" Europe/Warsaw ").changes() == {"timezone": "Europe/Warsaw"}
    assert UserSettingUpdate(reminders_enabled=False).changes() == {"reminders_enabled": False}


@pytest.mark.parametrize(
    "kwargs",
    [
        {"timezone": "Not/AZone"},
        {"reminder_time": "21"},
        {"reminder_time": "21:60"},
        {"reminder_hour": 24},
        {"reminder_minute": 60},
    ],
)
def test_invalid_updates_fail_validation(kwargs):
    with pytest.raises(ValidationError):
        UserSettingUpdate(**kwargs)


async def test_new_user_gets_default_settings(db):
    created = await user_service.get_or_create_user(db, tgid=555)
    settings = await user_setting_service.get_user_settings(db, created.id)

    assert settings.timezone == "UTC"
    assert settings.reminders_enabled is True
    assert (settings.reminder_hour, settings.reminder_minute) == (21, 0)
    assert UserSettingResponse.model_validate(settings).reminder_time == "21:00"


async def test_get_or_create_user_is_idempotent_and_keeps_profile(db):
    first = await user_service.get_or_create_user(db, tgid=556, username="ada", first_name="Ada")
    again = await user_service.get_or_create_user(db, tgid=556)
    renamed = await user_service.get_or_create_user(db, tgid=556, username="ada_l")

    assert first.id == again.id == renamed.id
    assert again.username == "ada"
    assert renamed.username == "ada_l"
    assert renamed.first_name == "Ada"
    assert renamed.settings is not None


async def test_update_settings_partially(db, user):
    updated = await user_setting_service.update_user_settings(
        db, UserSettingUpdate(timezone="Asia/Tokyo", reminder_time="06:30"), user.id
    )
    assert updated.timezone == "Asia/Tokyo"
    assert (updated.reminder_hour, updated.reminder_minute) == (6, 30)

    updated = await user_setting_service.update_user_settings(db, UserSettingUpdate(reminders_enabled=False), user.id)
    assert updated.timezone == "Asia/Tokyo"
    assert updated.reminders_enabled is False
    assert await user_setting_service.get_user_timezone(db, user.id) == "Asia/Tokyo"


async def test_timezone_falls_back_to_default_without_settings_row(db):
    assert await user_setting_service.get_user_timezone(db, 999999) == "UTC"


async def test_service_rejects_unknown_timezone_without_schema(db, user):
    update = UserSettingUpdate.model_construct(timezone="Nowhere/Special")
    with pytest.raises(ValueError):
        await user_setting_service.update_user_settings(db, update, user.id)
