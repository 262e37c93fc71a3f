"""
grokai MCP HTTP/SSE server: the same four tools as the stdio server, for
remote MCP clients.

  POST /mcp           Streamable HTTP transport (MCP 2025-03-26); replies with
                      JSON, or SSE when the client sends Accept: text/event-stream
  GET  /mcp           alias of GET /sse
  GET  /sse           legacy SSE transport (MCP 2024-11-05); first event points
                      at /messages?sessionId=<id>
  POST /messages      JSON-RPC requests for an SSE session
  GET  /health        health probe

Run with ``grokai serve --host 0.0.0.0 --port 8096``.
"""
from __future__ import annotations

import asyncio
import json
import logging
import uuid
from typing import Any

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from .config import AppConfig
from .dispatcher import ToolDispatcher
from .errors import PARSE_ERROR
from .mcp_server import handle_rpc
from .registry import TOOL_SCHEMAS

log = logging.getLogger("grokai.http")

_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}

_KEEPALIVE_SECONDS = 5.0


def _parse_error() -> Response:
    return JSONResponse(
        status_code=400,
        content={"jsonrpc": "2.0", "id": None, "error": {"code": PARSE_ERROR, "message": "Parse error"}},
    )


def create_app(dispatcher: ToolDispatcher) -> FastAPI:
    app = FastAPI(title="grokai-mcp")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    # Active SSE sessions: session_id -> asyncio.Queue
    sessions: dict[str, asyncio.Queue] = {}
    app.state.sessions = sessions
    pending: set[asyncio.Task] = set()

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> Response:
        log.error("Unhandled error [%s %s]: %s", request.method, request.url.path, exc, exc_info=True)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.post("/mcp")
    async def mcp_post(request: Request) -> Response:
        body = await request.body()
        try:
            rpc = json.loads(body)
        except json.JSONDecodeError:
            return _parse_error()

        extra_headers: dict[str, str] = {}
        if isinstance(rpc, dict) and rpc.get("method") == "initialize":
            extra_headers["Mcp-Session-Id"] = str(uuid.uuid4())

        if "text/event-stream" in request.headers.get("accept", ""):
            async def _stream_result():
                task = asyncio.create_task(handle_rpc(rpc, dispatcher))
                while not task.done():
                    try:
                        await asyncio.wait_for(asyncio.shield(task), timeout=_KEEPALIVE_SECONDS)
                    except asyncio.TimeoutError:
                        yield ": keepalive\n\n"
                result = task.result()
                if result is not None:
                    yield f"event: message\ndata: {json.dumps(result)}\n\n"

            return StreamingResponse(
                _stream_result(),
                media_type="text/event-stream",
                headers={**_SSE_HEADERS, **extra_headers},
            )

        response = await handle_rpc(rpc, dispatcher)
        if response is None:
            return Response(content="", status_code=202, headers=extra_headers)
        return JSONResponse(content=response, headers=extra_headers)

    @app.get("/sse")
    async def sse_connect(request: Request) -> StreamingResponse:
        session_id = str(uuid.uuid4())
        queue: asyncio.Queue = asyncio.Queue()
        sessions[session_id] = queue

        async def event_stream():
            yield f"event: endpoint\ndata: /messages?sessionId={session_id}\n\n"
            try:
                while True:
                    if await request.is_disconnected():
                        break
                    try:
                        msg = await asyncio.wait_for(queue.get(), timeout=_KEEPALIVE_SECONDS)
                        yield f"event: message\ndata: {json.dumps(msg)}\n\n"
                    except asyncio.TimeoutError:
                        yield ": keepalive\n\n"
            finally:
                sessions.pop(session_id, None)

        return StreamingResponse(event_stream(), media_type="text/event-stream", headers=_SSE_HEADERS)

    @app.get("/mcp")
    async def mcp_sse(request: Request) -> StreamingResponse:
        return await sse_connect(request)

    @app.post("/messages")
    async def messages(request: Request, sessionId: str = "") -> Response:
        if sessionId not in sessions:
            return JSONResponse(status_code=404, content={"error": f"Unknown session: {sessionId}"})
        body = await request.body()
        try:
            rpc = json.loads(body)
        except json.JSONDecodeError:
            return _parse_error()

        async def _deliver(rpc: Any, sid: str) -> None:
            try:
                response = await handle_rpc(rpc, dispatcher)
            except Exception as exc:
                log.error("[MCP Error] session %s: %s", sid, exc, exc_info=True)
                return
            if response is not None and sid in sessions:
                await sessions[sid].put(response)

        task = asyncio.create_task(_deliver(rpc, sessionId))
        pending.add(task)
        task.add_done_callback(pending.discard)
        return Response(content="", status_code=202)

    @app.get("/health")
    async def health() -> dict:
        return {
            "ok": True,
            "sessions": len(sessions),
            "tools": len(TOOL_SCHEMAS),
            "transports": ["POST /mcp (streamable-http)", "GET /sse (sse)", "GET /mcp (sse-alias)"],
        }

    return app


def serve(cfg: AppConfig, host: str | None = None, port: int | None = None) -> None:
    app = create_app(ToolDispatcher.from_config(cfg))
    uvicorn.run(app, host=host or cfg.host, port=port or cfg.port, log_level=cfg.log_level.lower())
