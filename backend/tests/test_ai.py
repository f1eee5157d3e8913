from openai import OpenAIError

from eltdash.services import ai_client
from eltdash.services.ai_client import ChatClient, ERROR_MESSAGE, UNAVAILABLE_MESSAGE, build_system_prompt


def test_chat_without_key_returns_apology(client, schools, admin_headers):
    resp = client.post("/api/ai/chat", json={"message": "How many instructors are there?"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.get_json()["message"] == {"role": "assistant", "content": UNAVAILABLE_MESSAGE}


def test_chat_accepts_conversation_and_school_context(client, schools, admin_headers, monkeypatch):
    kfna, _ = schools
    seen = {}

    def fake_chat(self, message, history=None, context=None):
        seen.update(message=message, history=history, context=context)
        return "There are no instructors yet."

    monkeypatch.setattr(ChatClient, "chat", fake_chat)
    resp = client.post("/api/ai/chat", json={
        "messages": [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello!"},
            {"role": "user", "content": "Instructor count?"},
        ],
        "schoolId": kfna.id,
    }, headers=admin_headers)

    assert resp.status_code == 200
    assert resp.get_json()["message"]["content"] == "There are no instructors yet."
    assert seen["message"] == "Instructor count?"
    assert len(seen["history"]) == 2
    assert seen["context"]["school"] == "KFNA"
    assert seen["context"]["instructorCount"] == 0


def test_chat_without_message_is_rejected(client, schools, admin_headers):
    resp = client.post("/api/ai/chat", json={"messages": []}, headers=admin_headers)
    assert resp.status_code == 400


def test_assistant_query_uses_requested_provider(client, schools, admin_headers, monkeypatch):
    providers = []
    real_get_client = ai_client.get_client

    def tracking_get_client(provider="openai"):
        providers.append(provider)
        return real_get_client(provider)

    monkeypatch.setattr("eltdash.routes.ai.get_client", tracking_get_client)
    resp = client.post("/api/assistant/query", json={"query": "Latest ECL news?", "provider": "perplexity"},
                       headers=admin_headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["response"] == UNAVAILABLE_MESSAGE
    assert providers == ["perplexity"]


def test_upstream_failure_is_turned_into_apology(app, monkeypatch):
    chat_client = ChatClient(api_key="sk-test", model="gpt-4o")

    def failing_complete(*args, **kwargs):
        raise OpenAIError("connection reset")

    monkeypatch.setattr(chat_client, "complete", failing_complete)
    assert chat_client.chat("hello") == ERROR_MESSAGE


def test_system_prompt_includes_context():
    prompt = build_system_prompt({"school": "KFNA"})
    assert prompt.endswith('Additional context information: {"school": "KFNA"}')
    assert build_system_prompt() == ai_client.SYSTEM_PROMPT
