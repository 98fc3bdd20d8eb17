"""MCP client for the tool server offered to the model on tool-enabled calls.

The server is reached over SSE using the official ``mcp`` SDK.  The chat
service is synchronous (it runs in FastAPI's threadpool), so each operation
opens a short-lived session on its own event loop: connect, ``initialize``,
run the request, close.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from mcp import ClientSession, types
from mcp.client.sse import sse_client

from .config import ToolServerConfig

logger = logging.getLogger(__name__)

CLIENT_NAME = "violet-chat"
CLIENT_VERSION = "0.1.0"


class ToolCallError(RuntimeError):
    """Raised when the tool server reports a failed tool execution."""


class McpToolClient:
    """Lists and invokes tools exposed by an MCP server over SSE."""

    def __init__(self, config: ToolServerConfig) -> None:
        if not config.endpoint:
            raise ValueError("A tool server endpoint is required")
        self.config = config
        self._tools: Optional[List[types.Tool]] = None

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[ClientSession]:
        timeout = self.config.request_timeout
        async with sse_client(self.config.endpoint, timeout=timeout) as (read_stream, write_stream):
            client_info = types.Implementation(name=CLIENT_NAME, version=CLIENT_VERSION)
            async with ClientSession(read_stream, write_stream, client_info=client_info) as session:
                await asyncio.wait_for(session.initialize(), timeout=timeout)
                yield session

    async def _list_tools(self) -> List[types.Tool]:
        async with self._session() as session:
            result = await asyncio.wait_for(session.list_tools(), timeout=self.config.request_timeout)
            return list(result.tools)

    async def _call_tool(self, name: str, arguments: Dict[str, Any]) -> types.CallToolResult:
        async with self._session() as session:
            return await asyncio.wait_for(
                session.call_tool(name, arguments), timeout=self.config.request_timeout
            )

    def list_tools(self) -> List[types.Tool]:
        """Return the server's tool descriptors, fetched once and cached."""
        if self._tools is None:
            self._tools = asyncio.run(self._list_tools())
            logger.info(
                "Loaded %d tool(s) from %s: %s",
                len(self._tools),
                self.config.endpoint,
                ", ".join(tool.name for tool in self._tools),
            )
        return self._tools

    def as_openai_tools(self) -> List[Dict[str, Any]]:
        """Convert MCP descriptors into chat-completions function definitions."""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description or "",
                    "parameters": tool.inputSchema or {"type": "object", "properties": {}},
                },
            }
            for tool in self.list_tools()
        ]

    def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> str:
        """Invoke a tool and return its result flattened to text."""
        logger.info("Calling tool %s", name)
        logger.debug("Tool %s arguments: %s", name, arguments)
        result = asyncio.run(self._call_tool(name, arguments or {}))
        content = self.pluck_content(result)
        if result.isError:
            raise ToolCallError(f"Tool {name} failed: {content}")
        logger.debug("Tool %s returned %d character(s)", name, len(content))
        return content

    @staticmethod
    def pluck_content(result: types.CallToolResult) -> str:
        """Flatten tool output to text; image items become data URIs."""
        parts: List[str] = []
        for item in result.content:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, types.TextContent):
                parts.append(item.text)
            elif isinstance(item, types.ImageContent):
                parts.append(f"data:{item.mimeType or 'image/png'};base64,{item.data}")
            elif isinstance(item, types.EmbeddedResource) and isinstance(
                item.resource, types.TextResourceContents
            ):
                parts.append(item.resource.text)
            elif hasattr(item, "model_dump_json"):
                parts.append(item.model_dump_json())
            else:
                parts.append(json.dumps(item, default=str))
        return "\n".join(parts)
