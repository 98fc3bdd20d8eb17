"""Chat gateway: a single query endpoint in front of a chat-completions model.

Each request is checked by a keyword classifier that decides whether the
model is offered tools (stock prices, web search, date/time, image
generation), answered with a bounded per-conversation memory as context, and
the reply is split into display text and any embedded images.  The primary
entry points are ``chat_gateway.api.create_app`` for running the HTTP service
and ``chat_gateway.service.ChatService`` for embedding the engine directly
into Python code.
"""

from .config import ChatConfig, ChatLLMConfig, ToolServerConfig
from .decomposer import DecomposedResponse, decompose
from .intent import IntentClassifier, needs_tools
from .memory import ConversationMemoryStore, Turn
from .service import ChatResult, ChatService

__all__ = [
    "ChatConfig",
    "ChatLLMConfig",
    "ChatResult",
    "ChatService",
    "ConversationMemoryStore",
    "DecomposedResponse",
    "IntentClassifier",
    "ToolServerConfig",
    "Turn",
    "decompose",
    "needs_tools",
]
