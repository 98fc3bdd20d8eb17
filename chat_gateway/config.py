"""Configuration objects for the chat gateway."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional


DEFAULT_SYSTEM_PROMPT = """You are Violet, an helpful assistant.

Memory & context rules (important):
- Always use the conversation history provided by memory to resolve follow-ups, pronouns, confirmations, and edge cases.
- If the user previously gave facts (e.g., name, choices, a ticker they meant, prior answer you produced), prefer those over guessing.
- Do NOT ask the user to repeat info already present in memory unless it is contradictory or ambiguous.
- If context is ambiguous after checking memory, briefly say what's missing and ask one concise question.

Tool use:
- Call getStockPrice ONLY when the user explicitly asks for a stock price/quote or gives a clear ticker/company.
- Call braveSearch ONLY when the user explicitly asks to look something up online (e.g., "search", "find", "look up", "latest on ...").
- Call getServerDateTime for date/time requests (e.g., "what's the date", "current time").
- Do NOT call tools for greetings or generic capability questions.
- Never guess a ticker from unrelated text.
- Call generateImage ONLY when the user explicitly asks to create an image/picture/illustration. Examples: "draw me a sunset over the mountains", "generate an image of a cyberpunk city", "create a picture of a dragon". Pass the descriptive prompt exactly as given by the user. Do NOT call this tool for generic questions.

Answering style:
- Be concise and specific. If prior context answers the question, use it directly.
- If memory may be stale or uncertain, say so briefly.
"""


@dataclass
class ChatLLMConfig:
    """LLM connection details."""

    endpoint: str = "http://localhost:8000/v1/chat/completions"
    model: str = "qwen2.5-instruct"
    request_timeout: int = 60
    api_key: Optional[str] = None


@dataclass
class ToolServerConfig:
    """MCP tool server offered to the model on tool-enabled calls."""

    endpoint: Optional[str] = None
    request_timeout: int = 30
    max_tool_hops: int = 5


@dataclass
class ChatConfig:
    """Runtime controls for chat behaviour."""

    llm: ChatLLMConfig = field(default_factory=ChatLLMConfig)
    tools: ToolServerConfig = field(default_factory=ToolServerConfig)
    max_history_messages: int = 20
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    model_kwargs: Dict[str, object] = field(default_factory=dict)
