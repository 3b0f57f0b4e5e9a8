import pytest
from starlette.websockets import WebSocketDisconnect

from conftest import API


@pytest.fixture
def community(client, buyer):
    _, headers = buyer
    res = client.post(f"{API}/communities", data={"name": "Kelpie Owners", "description": "Herding tips"}, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


def _token(headers):
    return headers["Authorization"].split(" ", 1)[1]


def test_creator_is_first_member(community, buyer):
    user, _ = buyer
    assert community["createdBy"]["id"] == user["id"]
    assert [m["id"] for m in community["members"]] == [user["id"]]


def test_list_requires_auth(client, community, buyer):
    _, headers = buyer
    assert client.get(f"{API}/communities").status_code == 401
    assert [c["id"] for c in client.get(f"{API}/communities", headers=headers).json()] == [community["id"]]


def test_join_and_leave(client, community, buyer, other_buyer):
    _, creator_headers = buyer
    other, headers = other_buyer
    base = f"{API}/communities/{community['id']}"

    res = client.post(f"{base}/join", headers=headers)
    assert res.status_code == 200
    assert other["id"] in [m["id"] for m in res.json()["members"]]
    assert client.post(f"{base}/join", headers=headers).status_code == 409

    res = client.post(f"{base}/leave", headers=headers)
    assert res.status_code == 200
    assert other["id"] not in [m["id"] for m in res.json()["members"]]
    assert client.post(f"{base}/leave", headers=headers).status_code == 409

    assert client.post(f"{base}/leave", headers=creator_headers).status_code == 409


def test_only_members_send_and_messages_are_oldest_first(client, community, buyer, other_buyer):
    _, creator_headers = buyer
    _, headers = other_buyer
    base = f"{API}/communities/{community['id']}"

    assert client.post(f"{base}/messages", data={"content": "hi"}, headers=headers).status_code == 403

    client.post(f"{base}/join", headers=headers)
    client.post(f"{base}/messages", data={"content": "one"}, headers=creator_headers)
    client.post(f"{base}/messages", data={"content": "two"}, headers=headers)
    client.post(f"{base}/messages", data={"content": "three"}, headers=creator_headers)

    messages = client.get(f"{base}/messages", headers=headers).json()
    assert [m["content"] for m in messages] == ["one", "two", "three"]


def test_message_image_is_stored(client, community, buyer, upload_dir):
    _, headers = buyer
    res = client.post(
        f"{API}/communities/{community['id']}/messages",
        data={"content": "look"},
        files={"image": ("dog.jpg", b"jpeg", "image/jpeg")},
        headers=headers,
    )
    assert res.status_code == 201
    assert (upload_dir / "communities" / res.json()["image"]).exists()


def test_unknown_community(client, buyer):
    _, headers = buyer
    assert client.post(f"{API}/communities/00000000-0000-0000-0000-000000000000/join", headers=headers).status_code == 404


def test_socket_receives_presence_and_broadcast_messages(client, community, buyer):
    user, headers = buyer
    base = f"{API}/communities/{community['id']}"

    with client.websocket_connect(f"{base}/ws?token={_token(headers)}") as ws:
        assert ws.receive_json() == {"event": "online", "data": [user["id"]]}
        assert client.get(f"{base}/online", headers=headers).json() == [user["id"]]

        client.post(f"{base}/messages", data={"content": "live"}, headers=headers)
        event = ws.receive_json()
        assert event["event"] == "message"
        assert event["data"]["content"] == "live"
        assert event["data"]["sender"]["id"] == user["id"]

    assert client.get(f"{base}/online", headers=headers).json() == []


def test_socket_rejects_non_members_and_bad_tokens(client, community, other_buyer):
    _, headers = other_buyer
    base = f"{API}/communities/{community['id']}"

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"{base}/ws?token={_token(headers)}") as ws:
            ws.receive_json()

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"{base}/ws?token=garbage") as ws:
            ws.receive_json()
