"""
MCP (Model Context Protocol) server for grokai.

Exposes four Grok-backed tools to any MCP-compatible client (Claude Desktop,
LM Studio, Cursor, ...):

  analyze_transaction  Solana transaction analysis (optional screenshot/details)
  analyze_address      Solana address analysis (optional screenshot)
  analyze_image        vision analysis of a base64 image or image URL
  ask_grok             general question, optionally with context and an image

Protocol: JSON-RPC 2.0 over stdio (one JSON object per line).  Logging goes to
stderr; stdout carries protocol traffic only.

Usage
-----
    XAI_API_KEY=... python -m grokai.mcp_server

Or via the CLI:
    grokai mcp

Claude Desktop entry
--------------------
{
  "mcpServers": {
    "grok-ai": {
      "command": "grokai",
      "args": ["mcp"],
      "env": {"XAI_API_KEY": "<your key>"}
    }
  }
}
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any

from . import __version__
from .config import AppConfig, load_config
from .dispatcher import ToolDispatcher
from .errors import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    ConfigError,
    McpError,
)
from .registry import TOOL_SCHEMAS

log = logging.getLogger("grokai.mcp")

SERVER_NAME = "grok-ai-server"
SUPPORTED_PROTOCOL_VERSIONS = {"2024-11-05", "2025-03-26"}
DEFAULT_PROTOCOL_VERSION = "2024-11-05"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
# Base64 screenshots ride inside a single JSON-RPC line.
READ_LIMIT = 64 * 1024 * 1024

_dispatcher: ToolDispatcher | None = None


def configure(dispatcher: ToolDispatcher | None) -> None:
    global _dispatcher
    _dispatcher = dispatcher


def _get_dispatcher() -> ToolDispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = ToolDispatcher.from_config(load_config())
    return _dispatcher


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


# ---------------------------------------------------------------------------
# JSON-RPC 2.0 helpers
# ---------------------------------------------------------------------------

def _ok(request_id: Any, result: Any) -> dict:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def _err(request_id: Any, code: int, message: str) -> dict:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


def _write(obj: dict) -> None:
    sys.stdout.write(json.dumps(obj) + "\n")
    sys.stdout.flush()


# ---------------------------------------------------------------------------
# Request handling (shared with the HTTP transport)
# ---------------------------------------------------------------------------

async def handle_rpc(req: Any, dispatcher: ToolDispatcher | None = None) -> dict | None:
    """Process one JSON-RPC request; return the response, or None for notifications."""
    if not isinstance(req, dict):
        return _err(None, INVALID_REQUEST, "Invalid Request")

    req_id = req.get("id")
    method = req.get("method", "")
    params = req.get("params") or {}
    if not isinstance(params, dict):
        params = {}

    if method == "initialize":
        client_ver = params.get("protocolVersion", DEFAULT_PROTOCOL_VERSION)
        agreed_ver = client_ver if client_ver in SUPPORTED_PROTOCOL_VERSIONS else DEFAULT_PROTOCOL_VERSION
        return _ok(req_id, {
            "protocolVersion": agreed_ver,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
        })

    if method in ("notifications/initialized", "initialized"):
        return None

    if method == "tools/list":
        return _ok(req_id, {"tools": TOOL_SCHEMAS})

    if method == "tools/call":
        dispatcher = dispatcher or _get_dispatcher()
        try:
            result = await dispatcher.call_tool(params.get("name", ""), params.get("arguments"))
        except McpError as exc:
            return _err(req_id, exc.code, exc.message)
        except Exception as exc:
            log.error("[MCP Error] %s failed: %s", method, exc, exc_info=True)
            return _err(req_id, INTERNAL_ERROR, f"Internal error: {exc}")
        return _ok(req_id, result)

    if method == "ping":
        return _ok(req_id, {})

    if req_id is not None:
        return _err(req_id, METHOD_NOT_FOUND, f"Method not found: {method}")
    return None


async def _handle(line: str) -> None:
    try:
        req = json.loads(line)
    except json.JSONDecodeError:
        _write(_err(None, PARSE_ERROR, "Parse error"))
        return

    response = await handle_rpc(req)
    if response is not None:
        _write(response)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def new_reader() -> asyncio.StreamReader:
    return asyncio.StreamReader(limit=READ_LIMIT)


async def _serve(reader: asyncio.StreamReader) -> None:
    while True:
        try:
            line_bytes = await reader.readline()
        except ValueError as exc:
            # readline drops the oversized line, so the next one is still framed.
            log.error("[MCP Error] request line too long: %s", exc)
            _write(_err(None, INVALID_REQUEST, f"Request too large (limit {READ_LIMIT} bytes)"))
            continue
        except ConnectionError as exc:
            log.error("[MCP Error] stdin closed: %s", exc)
            break
        if not line_bytes:
            break
        line = line_bytes.decode(errors="replace").strip()
        if line:
            await _handle(line)


async def _run() -> None:
    loop = asyncio.get_running_loop()
    reader = new_reader()
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin)
    log.info("Grok AI MCP server running on stdio")
    await _serve(reader)


def start(cfg: AppConfig) -> None:
    configure(ToolDispatcher.from_config(cfg))
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        log.info("Interrupted, shutting down")


def main() -> None:
    try:
        cfg = load_config()
    except ConfigError as exc:
        setup_logging()
        log.critical("%s", exc)
        sys.exit(1)
    setup_logging(cfg.log_level)
    start(cfg)


if __name__ == "__main__":
    main()
