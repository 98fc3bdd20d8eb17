"""FastAPI entry point for the chat gateway."""

from __future__ import annotations

import argparse
import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field
import uvicorn

from .config import ChatConfig, ChatLLMConfig, ToolServerConfig
from .service import ChatService
from .utils import setup_logging

logger = logging.getLogger(__name__)


class ChatResponse(BaseModel):
    cid: str = Field(..., description="Conversation identifier to send back on follow-ups.")
    message: str
    image: Optional[str] = Field(None, description="Single image as a data URI or URL.")
    images: Optional[List[str]] = Field(None, description="Set instead of image when several were returned.")


class HistoryResponse(BaseModel):
    cid: str
    messages: List[Dict[str, str]] = Field(default_factory=list)
    updated_at: float


def create_app(
    chat_config: Optional[ChatConfig] = None,
    *,
    service: Optional[ChatService] = None,
    log_dir: Optional[str] = None,
) -> FastAPI:
    if log_dir:
        setup_logging(log_dir, logging.INFO)

    app = FastAPI(title="Violet Chat Gateway", version="0.1.0")
    app.state.service = service or ChatService(chat_config)

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/chat", response_model=ChatResponse)
    async def chat(
        query: str = Query(..., description="User message to send to the model."),
        cid: Optional[str] = Query(None, description="Conversation id; generated when absent."),
    ) -> ChatResponse:
        try:
            result = await run_in_threadpool(app.state.service.chat, query, cid)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except Exception as exc:
            logger.exception("Chat request failed (cid=%s)", cid)
            raise HTTPException(status_code=500, detail="Chat request failed") from exc

        return ChatResponse(
            cid=result.conversation_id,
            message=result.message,
            image=result.image,
            images=result.images,
        )

    @app.get("/history/{cid}", response_model=HistoryResponse)
    async def history(cid: str):
        logger.info("Fetching history for conversation %s", cid)
        try:
            payload = app.state.service.get_history(cid)
        except ValueError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return payload

    return app


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the chat gateway.")
    parser.add_argument("--host", default="0.0.0.0", help="Host interface to bind.")
    parser.add_argument("--port", type=int, default=8080, help="Port to bind.")
    parser.add_argument("--log_dir", help="Directory for application logs.")
    parser.add_argument("--llm_endpoint", default="http://localhost:8000/v1/chat/completions", help="LLM endpoint.")
    parser.add_argument("--llm_model", default="qwen2.5-instruct", help="Model name for completions.")
    parser.add_argument("--llm_api_key", help="Bearer token for the LLM endpoint, if it needs one.")
    parser.add_argument("--request_timeout", type=int, default=60, help="Timeout for LLM calls (seconds).")
    parser.add_argument("--tool_server", help="MCP server SSE endpoint offering tools (e.g. http://localhost:9000/sse).")
    parser.add_argument("--tool_timeout", type=int, default=30, help="Timeout for tool calls (seconds).")
    parser.add_argument("--max_tool_hops", type=int, default=5, help="Max tool round-trips per request.")
    parser.add_argument("--max_history_messages", type=int, default=20, help="Max turns kept per conversation.")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    chat_cfg = ChatConfig(
        llm=ChatLLMConfig(
            endpoint=args.llm_endpoint,
            model=args.llm_model,
            request_timeout=args.request_timeout,
            api_key=args.llm_api_key,
        ),
        tools=ToolServerConfig(
            endpoint=args.tool_server,
            request_timeout=args.tool_timeout,
            max_tool_hops=args.max_tool_hops,
        ),
        max_history_messages=args.max_history_messages,
    )

    app = create_app(chat_cfg, log_dir=args.log_dir)
    logger.info("Starting chat gateway on %s:%d", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
