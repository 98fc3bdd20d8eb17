"""High level orchestration for chat with memory, tool gating and image extraction."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence

from .config import ChatConfig
from .decomposer import decompose
from .intent import IntentClassifier
from .llm_client import ChatLLMClient
from .memory import ConversationMemoryStore, Turn
from .tools import McpToolClient

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    def complete(
        self,
        system_prompt: str,
        prior_turns: Sequence[Turn],
        user_query: str,
        tools_enabled: bool,
    ) -> Optional[str]:
        ...


@dataclass
class ChatResult:
    conversation_id: str
    message: str
    image: Optional[str] = None
    images: Optional[List[str]] = None
    used_tools: bool = False


class ChatService:
    """Core chat engine used by both the API and direct Python consumers."""

    def __init__(
        self,
        config: Optional[ChatConfig] = None,
        *,
        client: Optional[CompletionClient] = None,
        memory: Optional[ConversationMemoryStore] = None,
        classifier: Optional[IntentClassifier] = None,
    ) -> None:
        self.config = config or ChatConfig()
        self.client = client if client is not None else self._build_client(self.config)
        # An empty store is falsy, so test for None explicitly.
        self.memory = memory if memory is not None else ConversationMemoryStore(self.config.max_history_messages)
        self.classifier = classifier or IntentClassifier()

    @staticmethod
    def _build_client(config: ChatConfig) -> ChatLLMClient:
        tool_client = McpToolClient(config.tools) if config.tools.endpoint else None
        return ChatLLMClient(
            config.llm,
            tool_client=tool_client,
            max_tool_hops=config.tools.max_tool_hops,
            model_kwargs=config.model_kwargs,
        )

    def chat(self, query: str, cid: Optional[str] = None) -> ChatResult:
        """Answer ``query`` within conversation ``cid``, creating one if needed."""
        if not query or not query.strip():
            raise ValueError("query is required")

        conversation_id = cid if cid and cid.strip() else str(uuid.uuid4())
        rule = self.classifier.matched_rule(query)
        use_tools = rule.verdict if rule else False
        logger.info(
            "Incoming query=%r | cid=%s | usingTools=%s (rule=%s)",
            query,
            conversation_id,
            use_tools,
            rule.name if rule else None,
        )

        # Snapshot only; the memory lock must not be held across the model call.
        prior_turns = self.memory.snapshot(conversation_id)
        answer = self.client.complete(self.config.system_prompt, prior_turns, query, use_tools)

        turns = [Turn("user", query)]
        if answer is not None:
            turns.append(Turn("assistant", answer))
        self.memory.append(conversation_id, *turns)

        result = decompose(answer)
        if result.image or result.images:
            logger.debug(
                "Extracted %d image(s) for conversation %s",
                1 if result.image else len(result.images or []),
                conversation_id,
            )
        return ChatResult(
            conversation_id=conversation_id,
            message=result.message,
            image=result.image,
            images=result.images,
            used_tools=use_tools,
        )

    def get_history(self, conversation_id: str) -> Dict[str, object]:
        """Return the recorded turns of an existing conversation."""
        if conversation_id not in self.memory:
            raise ValueError(f"No conversation found for id '{conversation_id}'")
        memory = self.memory.get(conversation_id)
        return {
            "cid": conversation_id,
            "messages": [turn.as_message() for turn in memory.turns],
            "updated_at": memory.updated_at,
        }
