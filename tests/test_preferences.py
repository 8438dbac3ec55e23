"""Tests for per-user notification preferences."""

from appraisal.services.notifications.preferences import (
    get_user_notification_preference,
    is_notification_enabled,
    update_user_notification_preference,
)
from appraisal.services.notifications.types import NotificationType


class TestPreferences:
    async def test_defaults_to_all_enabled_without_row(self, db, users):
        pref = await get_user_notification_preference(db, users["staff"].id)
        assert all(pref.as_dict().values())
        for type in NotificationType:
            assert await is_notification_enabled(db, users["staff"].id, type)

    async def test_global_switch_overrides_type_flags(self, db, users):
        user_id = users["staff"].id
        await update_user_notification_preference(db, user_id, {"email_enabled": False})
        assert not await is_notification_enabled(db, user_id, NotificationType.ADMIN_RELEASED)

    async def test_type_flag_disables_only_that_type(self, db, users):
        user_id = users["manager"].id
        await update_user_notification_preference(db, user_id, {"assessment_submitted": False})
        assert not await is_notification_enabled(db, user_id, NotificationType.ASSESSMENT_SUBMITTED)
        assert await is_notification_enabled(db, user_id, NotificationType.ASSESSMENT_ACKNOWLEDGED)

    async def test_partial_update_keeps_other_flags(self, db, users):
        user_id = users["staff"].id
        await update_user_notification_preference(db, user_id, {"admin_released": False})
        await update_user_notification_preference(db, user_id, {"assessment_returned": False})
        pref = await get_user_notification_preference(db, user_id)
        assert pref.admin_released is False
        assert pref.assessment_returned is False
        assert pref.email_enabled is True

    async def test_unknown_and_non_boolean_values_are_ignored(self, db, users):
        user_id = users["staff"].id
        await update_user_notification_preference(
            db, user_id, {"sms_enabled": False, "email_enabled": "no"}
        )
        pref = await get_user_notification_preference(db, user_id)
        assert pref.email_enabled is True
