from promptpolish.core.errors import UpstreamError
from promptpolish.services.chat_service import APOLOGY_MESSAGE


def _start_chat(client, headers):
    response = client.post("/api/chat", headers=headers)
    assert response.status_code == 201
    return response.json()["chatId"]


def test_chat_turn_returns_message_pair(client, alice, llm):
    llm.queue("Add the audience and the desired length.")
    chat_id = _start_chat(client, alice)

    response = client.post(f"/api/chat/{chat_id}/message", json={"content": "Improve: write a poem"}, headers=alice)

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["isUser"] is True
    assert body["user"]["content"] == "Improve: write a poem"
    assert body["ai"]["isUser"] is False
    assert body["ai"]["content"] == "Add the audience and the desired length."
    assert body["ai"]["conversationId"] == chat_id


def test_chat_history_grows_by_two_per_turn(client, alice, llm):
    llm.queue("reply one", UpstreamError(), "reply three")
    chat_id = _start_chat(client, alice)

    for n in range(3):
        client.post(f"/api/chat/{chat_id}/message", json={"content": f"question {n}"}, headers=alice)
        messages = client.get(f"/api/chat/{chat_id}", headers=alice).json()["messages"]
        assert len(messages) == 2 * (n + 1)

    assert [m["content"] for m in messages] == [
        "question 0", "reply one", "question 1", APOLOGY_MESSAGE, "question 2", "reply three",
    ]


def test_model_failure_is_not_an_error_response(client, alice, llm):
    llm.queue(UpstreamError())
    chat_id = _start_chat(client, alice)

    response = client.post(f"/api/chat/{chat_id}/message", json={"content": "hello"}, headers=alice)

    assert response.status_code == 200
    assert response.json()["ai"]["content"] == APOLOGY_MESSAGE


def test_chat_owned_by_someone_else_is_forbidden(client, alice, bob):
    chat_id = _start_chat(client, alice)

    post = client.post(f"/api/chat/{chat_id}/message", json={"content": "hi"}, headers=bob)
    read = client.get(f"/api/chat/{chat_id}", headers=bob)

    assert post.status_code == 403
    assert read.status_code == 403
    assert client.get(f"/api/chat/{chat_id}", headers=alice).json()["messages"] == []


def test_unknown_chat_is_404(client, alice):
    response = client.post("/api/chat/does-not-exist/message", json={"content": "hi"}, headers=alice)

    assert response.status_code == 404


def test_blank_message_is_400(client, alice):
    chat_id = _start_chat(client, alice)

    response = client.post(f"/api/chat/{chat_id}/message", json={"content": "  "}, headers=alice)

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "content"


def test_standalone_assistant(client, alice, llm):
    llm.queue("**Be** specific.")
    history = [{"role": "user" if i % 2 == 0 else "assistant", "content": f"h{i}"} for i in range(8)]

    response = client.post(
        "/api/assistant", json={"message": "any tips?", "conversationHistory": history}, headers=alice
    )

    assert response.status_code == 200
    assert response.json() == {"response": "Be** specific."}
    assert "h2" not in llm.prompts[-1] and "h3" in llm.prompts[-1]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
