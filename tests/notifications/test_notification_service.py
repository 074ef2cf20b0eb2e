from hrms.core.enums import Role
from hrms.notifications.model import NotificationType

from fakes import actor, fake_container


def _setup():
    c = fake_container()
    worker = c.repos.employees.add("Ravi Kumar")
    user = c.repos.users.add(email="ravi@acme.io", password_hash="x", role=Role.EMPLOYEE, employee_id=worker.employee_id)
    me = actor(worker, user_id=user.user_id)
    for title in ("Leave approved", "Shift changed", "Review due"):
        c.notification_service.notify(user.user_id, NotificationType.REMINDER, title, title)
    return c, me


def test_mark_selected_notifications_read():
    c, me = _setup()
    first = c.notification_service.list_for(me)[0]

    assert c.notification_service.mark_read(me, [first.notification_id]) == 1

    unread = c.notification_service.list_for(me, unread_only=True)
    assert first.notification_id not in [n.notification_id for n in unread]
    assert len(unread) == 2
    assert len(c.notification_service.list_for(me)) == 3
    assert c.notification_service.unread_count(me) == 2


def test_mark_all_read_only_touches_own_notifications():
    c, me = _setup()
    stranger = actor(role=Role.HR)
    c.notification_service.notify(stranger.user_id, NotificationType.REMINDER, "Other", "Other")

    assert c.notification_service.mark_read(me) == 3
    assert c.notification_service.mark_read(me) == 0
    assert c.notification_service.list_for(me, unread_only=True) == []
    assert c.notification_service.unread_count(stranger) == 1


def test_notify_without_user_is_skipped():
    c, _ = _setup()
    c.notification_service.notify(None, NotificationType.REMINDER, "Nobody", "Nobody")
    c.notification_service.notify_employee(None, NotificationType.REMINDER, "Nobody", "Nobody")
    assert len(c.repos.notifications.rows) == 3
