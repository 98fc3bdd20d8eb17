import os
import sys
from typing import List, Optional, Sequence

import pytest

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from chat_gateway.memory import ConversationMemoryStore, Turn  # noqa: E402
from chat_gateway.service import ChatService  # noqa: E402


class FakeCompletionClient:
    """Records every call and answers from a scripted list."""

    def __init__(self, answers: Optional[List[Optional[str]]] = None, error: Optional[Exception] = None):
        self.answers = list(answers or [])
        self.error = error
        self.calls: List[dict] = []

    def complete(
        self,
        system_prompt: str,
        prior_turns: Sequence[Turn],
        user_query: str,
        tools_enabled: bool,
    ) -> Optional[str]:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "prior_turns": list(prior_turns),
                "user_query": user_query,
                "tools_enabled": tools_enabled,
            }
        )
        if self.error is not None:
            raise self.error
        return self.answers.pop(0) if self.answers else "ok"


@pytest.fixture
def fake_client():
    return FakeCompletionClient()


@pytest.fixture
def memory():
    return ConversationMemoryStore()


@pytest.fixture
def service(fake_client, memory):
    return ChatService(client=fake_client, memory=memory)
