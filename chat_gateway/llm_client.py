"""Client wrapper for chat-completions requests with optional tool use."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from .config import ChatLLMConfig
from .memory import Turn
from .tools import McpToolClient

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOOL_HOPS = 5


class ChatLLMClient:
    """Thin wrapper around a chat-completions endpoint.

    Tool definitions are only attached when the caller asks for a
    tool-enabled call and a tool server is available.
    """

    def __init__(
        self,
        config: ChatLLMConfig,
        *,
        tool_client: Optional[McpToolClient] = None,
        max_tool_hops: int = DEFAULT_MAX_TOOL_HOPS,
        model_kwargs: Optional[Dict[str, object]] = None,
    ) -> None:
        self.config = config
        self.tool_client = tool_client
        self.max_tool_hops = max_tool_hops
        self.model_kwargs = dict(model_kwargs or {})

    def complete(
        self,
        system_prompt: str,
        prior_turns: Sequence[Turn],
        user_query: str,
        tools_enabled: bool,
    ) -> Optional[str]:
        """Return the final assistant text, running tool calls when enabled.

        ``None`` means the model produced no textual content.  Transport and
        HTTP errors propagate to the caller.
        """
        messages = self.build_messages(system_prompt, prior_turns, user_query)
        tools: List[Dict[str, Any]] = []
        if tools_enabled:
            if self.tool_client is None:
                logger.info("Tools requested but no tool server configured; calling without tools")
            else:
                tools = self.tool_client.as_openai_tools()

        hops = 0
        while True:
            message = self._request(messages, tools)
            tool_calls = message.get("tool_calls") or []
            if not tool_calls or not tools:
                return message.get("content")

            if hops >= self.max_tool_hops:
                logger.warning("Stopping after %d tool hop(s); returning partial answer", hops)
                return message.get("content")

            hops += 1
            logger.info("Executing %d tool call(s) (hop %d)", len(tool_calls), hops)
            messages.append(
                {
                    "role": "assistant",
                    "content": message.get("content"),
                    "tool_calls": tool_calls,
                }
            )
            for call in tool_calls:
                messages.append(self._run_tool_call(call))

    @staticmethod
    def build_messages(
        system_prompt: str, prior_turns: Sequence[Turn], user_query: str
    ) -> List[Dict[str, Any]]:
        messages: List[Dict[str, Any]] = [{"role": "system", "content": system_prompt}]
        messages.extend(turn.as_message() for turn in prior_turns)
        messages.append({"role": "user", "content": user_query})
        return messages

    def _run_tool_call(self, call: Dict[str, Any]) -> Dict[str, Any]:
        function = call.get("function") or {}
        name = function.get("name", "")
        raw_arguments = function.get("arguments")
        # Some providers send arguments already decoded.
        if isinstance(raw_arguments, dict):
            arguments = raw_arguments
        else:
            try:
                arguments = json.loads(raw_arguments or "{}")
            except (json.JSONDecodeError, TypeError):
                arguments = None
            if not isinstance(arguments, dict):
                logger.warning("Malformed arguments for tool %s: %r", name, raw_arguments)
                arguments = {}

        content = self.tool_client.call_tool(name, arguments)  # type: ignore[union-attr]
        return {"role": "tool", "tool_call_id": call.get("id"), "content": content}

    def _request(self, messages: List[Dict[str, Any]], tools: List[Dict[str, Any]]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": messages,
            "stream": False,
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"
        if self.model_kwargs:
            payload.update(self.model_kwargs)

        headers = {}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"

        logger.debug(
            "Requesting completion for %d message(s) from %s (tools=%d)",
            len(messages),
            self.config.endpoint,
            len(tools),
        )
        response = requests.post(
            self.config.endpoint,
            json=payload,
            headers=headers,
            timeout=self.config.request_timeout,
        )
        response.raise_for_status()
        data = response.json()
        choice = (data.get("choices") or [{}])[0]
        return choice.get("message") or {}
