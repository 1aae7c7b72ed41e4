def _send(client, headers, recipient, message="Please review"):
    return client.post(
        "/notifications",
        headers=headers,
        json={"user_id": str(recipient.id), "type": "document_updated", "message": message},
    )


def test_notification_inbox(client, make_user, headers_for):
    sender, recipient = make_user(name="Sender"), make_user()
    created = [_send(client, headers_for(sender), recipient, f"m{i}") for i in range(6)]
    assert all(r.status_code == 201 for r in created)

    inbox = client.get("/notifications", headers=headers_for(recipient)).json()
    assert len(inbox["notifications"]) == 5
    assert inbox["unread_count"] == 6
    assert inbox["limit"] == 5
    assert inbox["notifications"][0]["sender_name"] == "Sender"

    first_id = created[0].json()["id"]
    read = client.patch(f"/notifications/{first_id}", headers=headers_for(recipient))
    assert read.json()["is_read"] is True

    unread = client.get(
        "/notifications",
        headers=headers_for(recipient),
        params={"unreadOnly": "true", "limit": 50},
    ).json()
    assert len(unread["notifications"]) == 5

    marked = client.patch("/notifications", headers=headers_for(recipient), json={})
    assert marked.json() == {"marked": 5}

    cleared = client.delete("/notifications", headers=headers_for(recipient))
    assert cleared.json() == {"deleted": 6}


def test_cannot_touch_other_users_notifications(client, make_user, headers_for):
    sender, recipient = make_user(), make_user()
    note = _send(client, headers_for(sender), recipient).json()

    assert client.patch(f"/notifications/{note['id']}", headers=headers_for(sender)).status_code == 403
    assert client.delete(f"/notifications/{note['id']}", headers=headers_for(sender)).status_code == 403
    assert client.delete(f"/notifications/{note['id']}", headers=headers_for(recipient)).status_code == 204


def test_mark_selected(client, make_user, headers_for):
    sender, recipient = make_user(), make_user()
    first = _send(client, headers_for(sender), recipient).json()
    _send(client, headers_for(sender), recipient)

    response = client.patch(
        "/notifications",
        headers=headers_for(recipient),
        json={"notification_ids": [first["id"]]},
    )
    assert response.json() == {"marked": 1}
    inbox = client.get("/notifications", headers=headers_for(recipient)).json()
    assert inbox["unread_count"] == 1


def test_unknown_recipient(client, auth_headers):
    response = client.post(
        "/notifications",
        headers=auth_headers,
        json={
            "user_id": "00000000-0000-0000-0000-000000000000",
            "type": "document_updated",
            "message": "hi",
        },
    )
    assert response.status_code == 404
