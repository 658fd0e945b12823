import pytest

from core.exceptions import NotFound, ValidationFailed
from services import notification_service
from conftest import make_user


async def _inbox(user, count):
    created = []
    for i in range(count):
        created.append(await notification_service.notify(
            str(user["_id"]), "ORDER", f"Order #{i}", "Your order is on its way", {"order_id": str(i)}
        ))
    return created


async def test_unread_count_only_counts_own_inbox(raw_db):
    alice = make_user(raw_db, role="customer")
    bob = make_user(raw_db, role="customer")
    alice_notes = await _inbox(alice, 3)
    await _inbox(bob, 2)

    assert await notification_service.unread_count(str(alice["_id"])) == 3
    assert await notification_service.unread_count(str(bob["_id"])) == 2

    await notification_service.mark_read(alice_notes[0]["id"], str(alice["_id"]))

    assert await notification_service.unread_count(str(alice["_id"])) == 2
    assert await notification_service.unread_count(str(bob["_id"])) == 2


async def test_mark_read_is_idempotent(raw_db):
    alice = make_user(raw_db)
    note = (await _inbox(alice, 1))[0]
    first = await notification_service.mark_read(note["id"], str(alice["_id"]))
    second = await notification_service.mark_read(note["id"], str(alice["_id"]))
    assert first["is_read"] is True
    assert second["is_read"] is True
    assert await notification_service.unread_count(str(alice["_id"])) == 0


async def test_foreign_notification_is_not_found(raw_db):
    alice = make_user(raw_db)
    bob = make_user(raw_db)
    note = (await _inbox(alice, 1))[0]

    with pytest.raises(NotFound):
        await notification_service.mark_read(note["id"], str(bob["_id"]))
    with pytest.raises(NotFound):
        await notification_service.delete_notification(note["id"], str(bob["_id"]))
    assert raw_db.notifications.all()[0]["is_read"] is False


async def test_admin_inbox_is_shared_and_separate(raw_db):
    alice = make_user(raw_db)
    await _inbox(alice, 1)
    admin_note = await notification_service.notify_admins(
        "RESTAURANT_UPDATE", "Update", "Momo House requested changes", {"approval_id": "abc"}
    )

    assert admin_note["user_id"] is None
    assert admin_note["is_admin_notification"] is True
    assert await notification_service.unread_count(None, admin_scope=True) == 1
    assert await notification_service.unread_count(str(alice["_id"])) == 1

    with pytest.raises(NotFound):
        await notification_service.mark_read(admin_note["id"], str(alice["_id"]))


async def test_admin_notification_needs_reference(raw_db):
    with pytest.raises(ValidationFailed):
        await notification_service.notify_admins("RESTAURANT_UPDATE", "Update", "no data", {})


async def test_unknown_type_is_rejected(raw_db):
    alice = make_user(raw_db)
    with pytest.raises(ValidationFailed):
        await notification_service.notify(str(alice["_id"]), "BIRTHDAY", "Hi", "Happy birthday")
    assert raw_db.notifications.all() == []


async def test_list_reports_totals_and_filters(raw_db):
    alice = make_user(raw_db)
    notes = await _inbox(alice, 3)
    await notification_service.notify(str(alice["_id"]), "SYSTEM", "Maintenance", "Back at 6pm")
    await notification_service.mark_read(notes[1]["id"], str(alice["_id"]))

    listed = await notification_service.list_notifications(str(alice["_id"]))
    assert listed["total"] == 4
    assert listed["unread_count"] == 3
    assert len(listed["notifications"]) == 4

    unread = await notification_service.list_notifications(str(alice["_id"]), unread_only=True)
    assert unread["total"] == 3
    assert all(not n["is_read"] for n in unread["notifications"])

    system = await notification_service.list_notifications(str(alice["_id"]), ntype="SYSTEM")
    assert [n["title"] for n in system["notifications"]] == ["Maintenance"]

    page = await notification_service.list_notifications(str(alice["_id"]), skip=1, limit=2)
    assert len(page["notifications"]) == 2
    assert page["total"] == 4


async def test_mark_all_read_reports_modified(raw_db):
    alice = make_user(raw_db)
    bob = make_user(raw_db)
    notes = await _inbox(alice, 3)
    await _inbox(bob, 1)
    await notification_service.mark_read(notes[0]["id"], str(alice["_id"]))

    assert await notification_service.mark_all_read(str(alice["_id"])) == 2
    assert await notification_service.mark_all_read(str(alice["_id"])) == 0
    assert await notification_service.unread_count(str(bob["_id"])) == 1


async def test_delete_removes_notification(raw_db):
    alice = make_user(raw_db)
    notes = await _inbox(alice, 2)
    result = await notification_service.delete_notification(notes[0]["id"], str(alice["_id"]))
    assert result["notification_id"] == notes[0]["id"]
    assert len(raw_db.notifications.all()) == 1
    with pytest.raises(NotFound):
        await notification_service.delete_notification(notes[0]["id"], str(alice["_id"]))


async def test_mark_processed_stamps_pending_admin_entries(raw_db):
    admin = make_user(raw_db, role="admin")
    await notification_service.notify_admins("RESTAURANT_UPDATE", "Update", "changes", {"approval_id": "a1"})
    await notification_service.notify_admins("RESTAURANT_UPDATE", "Update", "changes", {"approval_id": "a2"})

    stamped = await notification_service.mark_processed("a1", "REJECTED", str(admin["_id"]), "Blurry logo")

    assert stamped == 1
    a1 = raw_db.notifications.all({"data.approval_id": "a1"})[0]
    assert a1["status"] == "REJECTED"
    assert a1["rejection_reason"] == "Blurry logo"
    assert a1["processed_by"] == admin["_id"]
    assert raw_db.notifications.all({"data.approval_id": "a2"})[0]["status"] == "PENDING"
    assert await notification_service.mark_processed("a1", "APPROVED", str(admin["_id"])) == 0
