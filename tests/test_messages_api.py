# tests/test_messages_api.py
# PURPOSE: sending, conversation views and read receipts.


def _send(client, sender, recipient, content: str):
    r = client.post(
        "/api/messages/",
        json={"recipient_id": recipient["id"], "content": content},
        headers=sender["headers"],
    )
    assert r.status_code == 201, r.text
    return r.json()


def test_invalid_recipient_id_format_is_400(client, alice):
    r = client.post(
        "/api/messages/",
        json={"recipient_id": "not-an-id", "content": "hello"},
        headers=alice["headers"],
    )
    assert r.status_code == 400


def test_nonexistent_recipient_is_404(client, alice):
    r = client.post(
        "/api/messages/",
        json={"recipient_id": 4242, "content": "hello"},
        headers=alice["headers"],
    )
    assert r.status_code == 404
    assert r.json()["error"] == "Recipient not found"


def test_missing_content_is_400(client, alice, bob):
    r = client.post("/api/messages/", json={"recipient_id": bob["id"]}, headers=alice["headers"])
    assert r.status_code == 400


def test_offline_recipient_message_is_persisted(client, alice, bob):
    # Bob has no realtime connection; the message is still stored
    sent = _send(client, alice, bob, "Are you there?")
    assert sent["sender"]["id"] == alice["id"]
    assert sent["recipient"]["id"] == bob["id"]
    assert sent["read"] is False

    r = client.get(f"/api/messages/{alice['id']}", headers=bob["headers"])
    assert r.status_code == 200
    thread = r.json()
    assert thread["user"]["id"] == alice["id"]
    assert [m["content"] for m in thread["messages"]] == ["Are you there?"]


def test_conversation_is_oldest_first(client, alice, bob):
    _send(client, alice, bob, "one")
    _send(client, bob, alice, "two")
    _send(client, alice, bob, "three")
    thread = client.get(f"/api/messages/{bob['id']}", headers=alice["headers"]).json()
    assert [m["content"] for m in thread["messages"]] == ["one", "two", "three"]


def test_conversation_path_validation(client, alice):
    assert client.get("/api/messages/abc", headers=alice["headers"]).status_code == 400
    assert client.get("/api/messages/9999", headers=alice["headers"]).status_code == 404


def test_conversations_grouped_by_other_user(client, alice, bob, carol):
    _send(client, bob, alice, "from bob 1")
    _send(client, alice, bob, "to bob")
    _send(client, carol, alice, "from carol")

    r = client.get("/api/messages/", headers=alice["headers"])
    assert r.status_code == 200
    convos = r.json()
    # Latest conversation first
    assert [c["user"]["id"] for c in convos] == [carol["id"], bob["id"]]
    bob_convo = convos[1]
    assert [m["content"] for m in bob_convo["messages"]] == ["to bob", "from bob 1"]
    assert bob_convo["unread_count"] == 1
    assert convos[0]["unread_count"] == 1


def test_mark_read(client, alice, bob):
    _send(client, bob, alice, "a")
    _send(client, bob, alice, "b")
    _send(client, alice, bob, "c")

    r = client.patch(f"/api/messages/read/{bob['id']}", headers=alice["headers"])
    assert r.status_code == 200
    assert r.json()["modified_count"] == 2

    # Idempotent
    again = client.patch(f"/api/messages/read/{bob['id']}", headers=alice["headers"])
    assert again.json()["modified_count"] == 0

    # Alice's own message to Bob is untouched
    thread = client.get(f"/api/messages/{alice['id']}", headers=bob["headers"]).json()
    by_content = {m["content"]: m["read"] for m in thread["messages"]}
    assert by_content == {"a": True, "b": True, "c": False}


def test_mark_read_bad_sender_id(client, alice):
    assert client.patch("/api/messages/read/xyz", headers=alice["headers"]).status_code == 400
