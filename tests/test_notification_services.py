import uuid

import pytest
from fastapi import HTTPException

from app.models.notification import NotificationType
from app.schemas.notification import NotificationCreate
from app.services.notification import Notifications, notifications, notify


def _send(db, sender, recipient, message="Please review"):
    return Notifications.create(
        db,
        sender.id,
        NotificationCreate(
            user_id=recipient.id,
            type=NotificationType.document_updated,
            message=message,
        ),
    )


class TestNotifications:
    def test_create_and_list(self, db_session, make_user):
        sender, recipient = make_user(name="Sender"), make_user()
        created = _send(db_session, sender, recipient)
        assert created.is_read is False
        assert created.sender_id == sender.id

        listed = Notifications.list_for_user(db_session, recipient.id, False, 5, 0)
        assert [n.id for n in listed] == [created.id]
        assert listed[0].sender_name == "Sender"
        assert Notifications.list_for_user(db_session, sender.id, False, 5, 0) == []

    def test_create_unknown_recipient(self, db_session, make_user):
        with pytest.raises(HTTPException) as exc:
            Notifications.create(
                db_session,
                make_user().id,
                NotificationCreate(
                    user_id=uuid.uuid4(),
                    type=NotificationType.document_updated,
                    message="hi",
                ),
            )
        assert exc.value.status_code == 404

    def test_list_response_counts_unread(self, db_session, make_user):
        sender, recipient = make_user(), make_user()
        for i in range(7):
            _send(db_session, sender, recipient, message=f"note {i}")
        first = Notifications.list_for_user(db_session, recipient.id, False, 5, 0)[0]
        Notifications.mark_read(db_session, str(first.id), recipient.id)

        response = notifications.list_response(db_session, recipient.id, True, 5, 0)
        assert len(response["notifications"]) == 5
        assert response["unread_count"] == 6
        assert all(not n.is_read for n in response["notifications"])

    def test_mark_read_is_owner_only(self, db_session, make_user):
        sender, recipient = make_user(), make_user()
        note = _send(db_session, sender, recipient)
        with pytest.raises(HTTPException) as exc:
            Notifications.mark_read(db_session, str(note.id), sender.id)
        assert exc.value.status_code == 403

        read = Notifications.mark_read(db_session, str(note.id), recipient.id)
        assert read.is_read is True
        assert read.read_at is not None

    def test_mark_many_and_clear(self, db_session, make_user):
        sender, recipient = make_user(), make_user()
        notes = [_send(db_session, sender, recipient) for _ in range(3)]

        assert Notifications.mark_many_read(
            db_session, recipient.id, [str(notes[0].id)]
        ) == 1
        assert Notifications.unread_count(db_session, recipient.id) == 2
        assert Notifications.mark_many_read(db_session, recipient.id, []) == 0
        assert Notifications.mark_many_read(db_session, recipient.id, None) == 2
        assert Notifications.unread_count(db_session, recipient.id) == 0

        assert Notifications.clear_read(db_session, recipient.id) == 3
        assert Notifications.list_for_user(db_session, recipient.id, False, 5, 0) == []

    def test_delete(self, db_session, make_user):
        sender, recipient = make_user(), make_user()
        note = _send(db_session, sender, recipient)
        with pytest.raises(HTTPException) as exc:
            Notifications.delete(db_session, str(note.id), sender.id)
        assert exc.value.status_code == 403
        Notifications.delete(db_session, str(note.id), recipient.id)
        with pytest.raises(HTTPException) as exc:
            Notifications.delete(db_session, str(note.id), recipient.id)
        assert exc.value.status_code == 404

    def test_notify_helper(self, db_session, make_user):
        recipient = make_user()
        notify(recipient.id, NotificationType.document_assigned, "Assigned")
        assert Notifications.unread_count(db_session, recipient.id) == 1
