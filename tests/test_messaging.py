"""Conversations, unread counts and message ownership."""
import pytest

API = "/api/v1"


@pytest.fixture
def colleague(owner, invite_member):
    return invite_member(owner, "co@acme.com")


def _direct(client, account, other_user_id):
    return client.post(f"{API}/conversations", headers=account.headers, json={
        "type": "direct", "participant_ids": [other_user_id],
    })


def _post(client, account, conversation_id, content):
    response = client.post(
        f"{API}/conversations/{conversation_id}/messages", headers=account.headers, json={"content": content}
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestConversations:
    def test_direct_conversation_is_reused(self, client, owner, colleague):
        first = _direct(client, owner, colleague.user_id)
        assert first.status_code == 201
        conversation = first.json()
        assert {p["user_id"] for p in conversation["participants"]} == {owner.user_id, colleague.user_id}

        again = _direct(client, colleague, owner.user_id).json()
        assert again["id"] == conversation["id"]

    def test_direct_needs_exactly_one_other_member(self, client, owner):
        response = client.post(f"{API}/conversations", headers=owner.headers, json={
            "type": "direct", "participant_ids": [owner.user_id],
        })
        assert response.status_code == 400

    def test_external_needs_external_participant(self, client, owner):
        missing = client.post(f"{API}/conversations", headers=owner.headers, json={"type": "external"})
        assert missing.status_code == 400

        created = client.post(f"{API}/conversations", headers=owner.headers, json={
            "type": "external",
            "name": "Client updates",
            "external_participants": [{"email": "Client@Riverside.com", "name": "Riverside LLC"}],
        })
        assert created.status_code == 201
        externals = [p["external_email"] for p in created.json()["participants"] if p["external_email"]]
        assert externals == ["client@riverside.com"]

    def test_group_rejects_externals(self, client, owner, colleague):
        response = client.post(f"{API}/conversations", headers=owner.headers, json={
            "type": "group",
            "participant_ids": [colleague.user_id],
            "external_participants": [{"email": "client@riverside.com"}],
        })
        assert response.status_code == 400

    def test_outsider_cannot_be_added(self, client, owner, other_org):
        assert _direct(client, owner, other_org.user_id).status_code == 400

    def test_non_participant_sees_not_found(self, client, owner, colleague, invite_member):
        conversation = client.post(f"{API}/conversations", headers=owner.headers, json={
            "type": "group", "name": "Site leads", "participant_ids": [colleague.user_id],
        }).json()
        outsider = invite_member(owner, "ou@acme.com")

        url = f"{API}/conversations/{conversation['id']}"
        assert client.get(url, headers=outsider.headers).status_code == 404
        assert client.get(f"{url}/messages", headers=outsider.headers).status_code == 404
        assert [c["id"] for c in client.get(f"{API}/conversations", headers=outsider.headers).json()] == []

    def test_archive_hides_from_list(self, client, owner, colleague):
        conversation = _direct(client, owner, colleague.user_id).json()
        url = f"{API}/conversations/{conversation['id']}"
        assert client.patch(url, headers=owner.headers, json={"is_archived": True}).json()["is_archived"] is True

        assert client.get(f"{API}/conversations", headers=owner.headers).json() == []
        archived = client.get(f"{API}/conversations?include_archived=true", headers=owner.headers).json()
        assert [c["id"] for c in archived] == [conversation["id"]]


class TestMessages:
    def test_unread_counts_and_preview(self, client, owner, colleague):
        conversation = _direct(client, owner, colleague.user_id).json()
        _post(client, owner, conversation["id"], "Rebar arrives at 7")
        _post(client, owner, conversation["id"], "x" * 150)

        url = f"{API}/conversations/{conversation['id']}"
        theirs = client.get(url, headers=colleague.headers).json()
        assert theirs["unread_count"] == 2
        assert theirs["last_message_preview"] == "x" * 100
        assert client.get(url, headers=owner.headers).json()["unread_count"] == 0

        dashboard = client.get(f"{API}/dashboard", headers=colleague.headers).json()
        assert dashboard["unread_messages"] == 2

        read = client.post(f"{url}/read", headers=colleague.headers).json()
        assert read["unread_count"] == 0
        assert read["participants"]

    def test_messages_oldest_first(self, client, owner, colleague):
        conversation = _direct(client, owner, colleague.user_id).json()
        for text in ("one", "two", "three"):
            _post(client, owner, conversation["id"], text)

        url = f"{API}/conversations/{conversation['id']}/messages"
        assert [m["content"] for m in client.get(url, headers=colleague.headers).json()] == ["one", "two", "three"]
        assert [m["content"] for m in client.get(f"{url}?limit=2", headers=colleague.headers).json()] == [
            "two", "three",
        ]

    def test_only_sender_edits_or_deletes(self, client, owner, colleague):
        conversation = _direct(client, owner, colleague.user_id).json()
        message = _post(client, owner, conversation["id"], "Pour moved to Friday")
        url = f"{API}/conversations/{conversation['id']}/messages/{message['id']}"

        assert client.patch(url, headers=colleague.headers, json={"content": "Hacked"}).status_code == 403
        edited = client.patch(url, headers=owner.headers, json={"content": "Pour moved to Saturday"})
        assert edited.status_code == 200
        assert edited.json()["edited_at"] is not None

        assert client.delete(url, headers=colleague.headers).status_code == 403
        assert client.delete(url, headers=owner.headers).status_code == 204

        thread = client.get(f"{API}/conversations/{conversation['id']}/messages", headers=owner.headers).json()
        assert thread[0]["content"] == ""
        assert thread[0]["deleted_at"] is not None
        assert client.patch(url, headers=owner.headers, json={"content": "Back"}).status_code == 404

    def test_reply_must_be_in_same_conversation(self, client, owner, colleague):
        conversation = _direct(client, owner, colleague.user_id).json()
        response = client.post(f"{API}/conversations/{conversation['id']}/messages", headers=owner.headers, json={
            "content": "Re: nothing", "reply_to_id": "missing",
        })
        assert response.status_code == 400

    def test_preview_follows_edits_and_deletes(self, client, owner, colleague):
        conversation = _direct(client, owner, colleague.user_id).json()
        first = _post(client, owner, conversation["id"], "Crane booked for Monday")
        second = _post(client, owner, conversation["id"], "gate code is 4471")
        url = f"{API}/conversations/{conversation['id']}"

        client.delete(f"{url}/messages/{second['id']}", headers=owner.headers)
        theirs = client.get(url, headers=colleague.headers).json()
        assert theirs["last_message_preview"] == "Crane booked for Monday"
        assert theirs["last_message_at"] == first["created_at"]
        listed = client.get(f"{API}/conversations", headers=colleague.headers).json()
        assert listed[0]["last_message_preview"] == "Crane booked for Monday"

        client.patch(f"{url}/messages/{first['id']}", headers=owner.headers, json={"content": "Crane moved to Tuesday"})
        assert client.get(url, headers=colleague.headers).json()["last_message_preview"] == "Crane moved to Tuesday"

        client.delete(f"{url}/messages/{first['id']}", headers=owner.headers)
        emptied = client.get(url, headers=colleague.headers).json()
        assert emptied["last_message_preview"] is None
        assert emptied["last_message_at"] is None


class TestLeaving:
    def test_leave_group(self, client, owner, colleague):
        conversation = client.post(f"{API}/conversations", headers=owner.headers, json={
            "type": "group", "name": "Site crew", "participant_ids": [colleague.user_id],
        }).json()
        url = f"{API}/conversations/{conversation['id']}"

        assert client.post(f"{url}/leave", headers=colleague.headers).status_code == 204
        assert client.get(url, headers=colleague.headers).status_code == 404
        assert client.get(f"{API}/conversations", headers=colleague.headers).json() == []

        _post(client, owner, conversation["id"], "Anyone still here?")
        participants = {p["user_id"]: p for p in client.get(url, headers=owner.headers).json()["participants"]}
        assert participants[colleague.user_id]["is_active"] is False
        assert participants[colleague.user_id]["unread_count"] == 0
        assert participants[owner.user_id]["is_active"] is True

    def test_direct_conversations_cannot_be_left(self, client, owner, colleague):
        conversation = _direct(client, owner, colleague.user_id).json()
        response = client.post(f"{API}/conversations/{conversation['id']}/leave", headers=colleague.headers)
        assert response.status_code == 400

    def test_archive_flag_cannot_be_nulled(self, client, owner, colleague):
        conversation = _direct(client, owner, colleague.user_id).json()
        response = client.patch(
            f"{API}/conversations/{conversation['id']}", headers=owner.headers, json={"is_archived": None}
        )
        assert response.status_code == 422
