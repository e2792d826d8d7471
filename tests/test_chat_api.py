import logging
from datetime import datetime, timedelta

from fastapi.testclient import TestClient

from app.main import app, create_app
from app.modules.chat.services.gateway import NO_CONFIGURATION_REPLY
from app.services.store import repo
from core.exceptions import ProviderError

from .conftest import make_settings

IMAGE = "data:image/png;base64,iVBORw0KGgo="


def chat(client, headers, **body):
    return client.post("/api/chat", json=body, headers=headers)


def test_first_message_creates_titled_conversation(client, user_headers, completion):
    res = chat(client, user_headers, message="Hello world, this is a long test message")
    assert res.status_code == 200
    body = res.json()

    assert body["title"] == "Hello world, this is a long te..."
    assert body["conversationId"]
    assert body["response"] == NO_CONFIGURATION_REPLY
    assert [m["role"] for m in body["history"]] == ["user", "assistant"]
    assert completion.calls == []


def test_short_message_is_used_as_title(client, user_headers):
    body = chat(client, user_headers, message="Hi there").json()
    assert body["title"] == "Hi there"


def test_without_credentials_reply_is_persisted(client, user_headers):
    conv_id = chat(client, user_headers, message="Anyone home?").json()["conversationId"]

    conv = client.get(f"/api/chat/{conv_id}", headers=user_headers).json()
    assert [(m["role"], m["content"]) for m in conv["messages"]] == [
        ("user", "Anyone home?"),
        ("assistant", NO_CONFIGURATION_REPLY),
    ]


def test_configured_provider_reply(client, settings, user_headers, completion):
    settings.GROQ_API_KEY = "gsk-test"
    completion.reply = "Hi! How can I help?"

    body = chat(client, user_headers, message="Hello").json()

    assert body["response"] == "Hi! How can I help?"
    provider, messages = completion.calls[0]
    assert provider.name == "Groq"
    assert messages[0]["role"] == "system"
    assert messages[-1] == {"role": "user", "content": "Hello"}


def test_follow_up_keeps_title_and_appends(client, settings, user_headers):
    settings.GROQ_API_KEY = "gsk-test"
    first = chat(client, user_headers, message="First question").json()

    second = chat(client, user_headers, message="Second question", conversationId=first["conversationId"])
    assert second.status_code == 200
    body = second.json()
    assert body["conversationId"] == first["conversationId"]
    assert body["title"] == "First question"
    assert [m["content"] for m in body["history"]][::2] == ["First question", "Second question"]
    assert len(body["history"]) == 4


def test_context_window_is_most_recent_messages(client, settings, user_headers, completion):
    settings.GROQ_API_KEY = "gsk-test"
    conv_id = None
    for i in range(5):
        body = {"message": f"question {i}"}
        if conv_id:
            body["conversationId"] = conv_id
        conv_id = chat(client, user_headers, **body).json()["conversationId"]

    _, messages = completion.calls[-1]
    # system prompt plus the six newest stored messages, the new turn included
    assert len(messages) == 7
    assert messages[1]["role"] == "assistant"
    assert messages[2]["content"] == "question 2"
    assert messages[-1]["content"] == "question 4"


def test_image_generation_shortcut(client, settings, user_headers, completion):
    settings.GROQ_API_KEY = "gsk-test"

    body = chat(client, user_headers, message="generate an image of a cat").json()

    assert "https://image.pollinations.ai/prompt/a%20cat" in body["response"]
    assert "**a cat**" in body["response"]
    assert completion.calls == []


def test_image_only_turn_uses_vision_provider(client, settings, user_headers, completion):
    settings.GROQ_API_KEY = "gsk-test"

    body = chat(client, user_headers, image=IMAGE).json()

    assert body["title"] == "New Image Chat"
    user_msg = body["history"][0]
    assert user_msg["content"] == "Image uploaded"
    assert user_msg["image"] == IMAGE

    provider, messages = completion.calls[0]
    assert provider.name == "Groq Vision"
    assert messages[-1]["content"][1] == {"type": "image_url", "image_url": {"url": IMAGE}}


def test_provider_failure_becomes_reply(client, settings, user_headers, completion):
    settings.GROQ_API_KEY = "gsk-test"
    completion.error = ProviderError("Groq", "rate limited")

    res = chat(client, user_headers, message="Hello")

    assert res.status_code == 200
    assert res.json()["response"] == "Error processing request with Groq: rate limited"


def test_provider_failure_is_logged(client, settings, user_headers, completion, caplog):
    settings.GROQ_API_KEY = "gsk-test"
    completion.error = ProviderError("Groq", "rate limited")

    with caplog.at_level(logging.WARNING, logger="app.modules.chat.services.chat_service"):
        chat(client, user_headers, message="Hello")

    assert "Groq failed, storing error reply" in caplog.text


def test_empty_turn_rejected(client, user_headers):
    for body in ({}, {"message": "   "}, {"message": "", "image": ""}):
        res = chat(client, user_headers, **body)
        assert res.status_code == 400
        assert res.json() == {"message": "Message or Image is required"}


def test_unknown_conversation_id(client, user_headers):
    res = chat(client, user_headers, message="Hello", conversationId="missing")
    assert res.status_code == 404
    assert res.json() == {"message": "Conversation not found"}


def test_conversations_are_private(client, user_headers, other_headers):
    conv_id = chat(client, user_headers, message="my secret").json()["conversationId"]

    assert client.get(f"/api/chat/{conv_id}", headers=other_headers).status_code == 404
    assert client.delete(f"/api/chat/{conv_id}", headers=other_headers).status_code == 404
    assert chat(client, other_headers, message="hijack", conversationId=conv_id).status_code == 404
    assert client.get("/api/chat/list", headers=other_headers).json() == []

    conv = client.get(f"/api/chat/{conv_id}", headers=user_headers).json()
    assert len(conv["messages"]) == 2


def test_list_orders_by_most_recent_activity(client, user_headers):
    first = chat(client, user_headers, message="first").json()["conversationId"]
    second = chat(client, user_headers, message="second").json()["conversationId"]
    chat(client, user_headers, message="again", conversationId=first)

    listed = client.get("/api/chat/list", headers=user_headers).json()
    assert [c["_id"] for c in listed] == [first, second]
    assert set(listed[0]) == {"_id", "title", "createdAt", "updatedAt"}


def test_delete_conversation(client, user_headers):
    conv_id = chat(client, user_headers, message="bye").json()["conversationId"]

    res = client.delete(f"/api/chat/{conv_id}", headers=user_headers)
    assert res.status_code == 200
    assert res.json() == {"message": "Conversation deleted"}
    assert client.get(f"/api/chat/{conv_id}", headers=user_headers).status_code == 404


def test_delete_all_only_touches_own_conversations(client, user_headers, other_headers):
    chat(client, user_headers, message="one")
    chat(client, user_headers, message="two")
    theirs = chat(client, other_headers, message="keep me").json()["conversationId"]

    res = client.delete("/api/chat", headers=user_headers)
    assert res.json() == {"message": "All conversations deleted", "deleted": 2}
    assert client.get("/api/chat/list", headers=user_headers).json() == []
    assert client.get(f"/api/chat/{theirs}", headers=other_headers).status_code == 200


def test_oversized_body_rejected():
    small = TestClient(create_app(make_settings(MAX_REQUEST_BYTES=64)))
    res = small.post("/api/chat", json={"message": "x" * 200})
    assert res.status_code == 413
    assert res.json() == {"message": "Request body too large"}


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def _utc_offset(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00")).utcoffset()


def test_timestamps_carry_utc_offset(client, user_headers):
    conv_id = chat(client, user_headers, message="what time is it").json()["conversationId"]

    conv = client.get(f"/api/chat/{conv_id}", headers=user_headers).json()
    assert _utc_offset(conv["createdAt"]) == timedelta(0)
    assert _utc_offset(conv["updatedAt"]) == timedelta(0)
    assert all(_utc_offset(m["timestamp"]) == timedelta(0) for m in conv["messages"])

    listed = client.get("/api/chat/list", headers=user_headers).json()
    assert _utc_offset(listed[0]["updatedAt"]) == timedelta(0)


def test_unexpected_error_is_json_500(client, user_headers, monkeypatch):
    async def broken(db, user_id):
        raise RuntimeError("database went away")

    monkeypatch.setattr(repo, "list_conversations", broken)
    crashing = TestClient(app, raise_server_exceptions=False)

    res = crashing.get("/api/chat/list", headers=user_headers)
    assert res.status_code == 500
    assert res.headers["content-type"].startswith("application/json")
    assert res.json() == {"message": "Server Error"}
