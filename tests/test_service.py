"""Tests for the chat orchestration service."""

import threading
import uuid

import pytest
import requests

from chat_gateway.config import ChatConfig
from chat_gateway.memory import Turn
from chat_gateway.service import ChatService

from conftest import FakeCompletionClient


class TestChatService:
    def test_generates_conversation_id_when_missing(self, service):
        for cid in (None, "", "   "):
            result = service.chat("hello", cid)
            assert str(uuid.UUID(result.conversation_id)) == result.conversation_id

    def test_generated_ids_are_unique(self, service):
        ids = {service.chat("hello").conversation_id for _ in range(20)}
        assert len(ids) == 20

    def test_keeps_caller_conversation_id(self, service):
        assert service.chat("hello", "abc-123").conversation_id == "abc-123"

    def test_tool_decision_is_passed_to_client(self, service, fake_client):
        service.chat("I like cats", "c1")
        service.chat("AAPL", "c1")
        service.chat("what's my name and current stock price", "c1")
        assert [call["tools_enabled"] for call in fake_client.calls] == [False, True, False]

    def test_system_prompt_comes_from_config(self, fake_client):
        config = ChatConfig(system_prompt="Be brief.")
        ChatService(config, client=fake_client).chat("hi")
        assert fake_client.calls[0]["system_prompt"] == "Be brief."

    def test_prior_turns_supplied_and_updated(self, memory):
        client = FakeCompletionClient(answers=["Nice to meet you, Ada.", "Your name is Ada."])
        service = ChatService(client=client, memory=memory)

        service.chat("my name is Ada", "c1")
        service.chat("what's my name?", "c1")

        assert client.calls[0]["prior_turns"] == []
        assert client.calls[1]["prior_turns"] == [
            Turn("user", "my name is Ada"),
            Turn("assistant", "Nice to meet you, Ada."),
        ]
        assert [t.content for t in memory.history("c1")][-2:] == ["what's my name?", "Your name is Ada."]

    def test_memory_window_is_bounded(self, service, memory):
        for i in range(15):
            service.chat(f"question {i}", "c1")
        history = memory.history("c1")
        assert len(history) == 20
        assert history[0] == Turn("user", "question 5")

    def test_images_are_decomposed(self, memory):
        png = "data:image/png;base64,AAAA"
        client = FakeCompletionClient(answers=[f"Sure! {png} here you go", f"{png} {png}x", None])
        service = ChatService(client=client, memory=memory)

        single = service.chat("draw a cat", "c1")
        assert single.message == "Sure!  here you go"
        assert single.image == png and single.images is None
        assert single.used_tools is True

        bare = service.chat("draw two cats", "c1")
        assert bare.message == "Here you go!"
        assert bare.image == f"{png} {png}x"

        empty = service.chat("hello", "c1")
        assert empty.message == "[No response]"
        assert empty.image is None and empty.images is None

    def test_missing_answer_records_only_user_turn(self, memory):
        service = ChatService(client=FakeCompletionClient(answers=[None]), memory=memory)
        service.chat("hello", "c1")
        assert memory.history("c1") == [Turn("user", "hello")]

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_blank_query_rejected(self, service, fake_client, query):
        with pytest.raises(ValueError):
            service.chat(query, "c1")
        assert fake_client.calls == []

    def test_completion_failure_propagates_and_leaves_memory(self, memory):
        client = FakeCompletionClient(error=requests.Timeout("model timed out"))
        service = ChatService(client=client, memory=memory)
        with pytest.raises(requests.Timeout):
            service.chat("hello", "c1")
        assert "c1" not in memory
        with pytest.raises(ValueError):
            service.get_history("c1")

    def test_memory_not_locked_during_completion(self, memory):
        entered = threading.Event()
        release = threading.Event()

        class SlowClient:
            def complete(self, system_prompt, prior_turns, user_query, tools_enabled):
                entered.set()
                release.wait(timeout=5)
                return "done"

        service = ChatService(client=SlowClient(), memory=memory)
        worker = threading.Thread(target=service.chat, args=("hello", "c1"))
        worker.start()
        assert entered.wait(timeout=5)

        # The same conversation stays writable while the model call is in flight.
        memory.append("c1", Turn("user", "side channel"))
        release.set()
        worker.join(timeout=5)

        assert [t.content for t in memory.history("c1")] == ["side channel", "hello", "done"]

    def test_concurrent_requests_on_one_conversation(self, memory):
        service = ChatService(client=FakeCompletionClient(), memory=memory)
        threads = [
            threading.Thread(target=service.chat, args=(f"q{i}", "shared")) for i in range(5)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        history = memory.history("shared")
        assert len(history) == 10
        # Each request's user/assistant pair is appended together.
        for user, assistant in zip(history[::2], history[1::2]):
            assert user.role == "user" and assistant.role == "assistant"

    def test_history(self, service):
        service.chat("hello", "c1")
        payload = service.get_history("c1")
        assert payload["cid"] == "c1"
        assert payload["messages"] == [
            {"role": "user", "content": "hello"},
            {"role": "assistant", "content": "ok"},
        ]

    def test_history_unknown_conversation(self, service):
        with pytest.raises(ValueError):
            service.get_history("missing")
