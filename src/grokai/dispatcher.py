"""Tool dispatch: validate arguments, build the chat payload, call Grok.

Validation failures and unknown tool names raise :class:`McpError` so the
protocol layer can answer with a JSON-RPC error.  Anything that goes wrong
after validation (payload building, the HTTP call, a malformed reply) is
reported as a normal tool result with ``isError: True``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from .client import GrokClient
from .config import TEXT_MODEL, VISION_MODEL, AppConfig
from .errors import INVALID_PARAMS, METHOD_NOT_FOUND, McpError
from .messages import (
    ChatMessage,
    ChatRequest,
    build_address_messages,
    build_ask_messages,
    build_image_messages,
    build_transaction_messages,
)
from .tool_args import VALIDATORS, AskArgs, ToolArgs, ValidationResult

log = logging.getLogger("grokai.dispatcher")


@dataclass(frozen=True)
class ToolSpec:
    validate: Callable[[Any], ValidationResult]
    build: Callable[[Any], list[ChatMessage]]
    # Used in the user-facing error text: "Error <verb>: ..."
    verb: str
    needs_vision: Callable[[Any], bool] = lambda args: True


TOOLS: dict[str, ToolSpec] = {
    "analyze_transaction": ToolSpec(
        VALIDATORS["analyze_transaction"], build_transaction_messages, "analyzing transaction"
    ),
    "analyze_address": ToolSpec(VALIDATORS["analyze_address"], build_address_messages, "analyzing address"),
    "analyze_image": ToolSpec(VALIDATORS["analyze_image"], build_image_messages, "analyzing image"),
    "ask_grok": ToolSpec(
        VALIDATORS["ask_grok"],
        build_ask_messages,
        "asking Grok",
        needs_vision=lambda args: isinstance(args, AskArgs) and args.has_image,
    ),
}


def _text(s: str) -> list[dict[str, Any]]:
    return [{"type": "text", "text": s}]


def tool_result(text: str, *, is_error: bool = False) -> dict[str, Any]:
    return {"content": _text(text), "isError": is_error}


class ToolDispatcher:
    def __init__(
        self,
        client: GrokClient,
        *,
        vision_model: str = VISION_MODEL,
        text_model: str = TEXT_MODEL,
        temperature: float = 0.7,
    ) -> None:
        self.client = client
        self.vision_model = vision_model
        self.text_model = text_model
        self.temperature = temperature

    @classmethod
    def from_config(cls, cfg: AppConfig) -> "ToolDispatcher":
        client = GrokClient(cfg.api_key, base_url=cfg.base_url, timeout=cfg.timeout)
        return cls(
            client,
            vision_model=cfg.vision_model,
            text_model=cfg.text_model,
            temperature=cfg.temperature,
        )

    def validate(self, name: str, arguments: Any) -> tuple[ToolSpec, ToolArgs]:
        spec = TOOLS.get(name)
        if spec is None:
            raise McpError(METHOD_NOT_FOUND, f"Unknown tool: {name}")
        args, error = spec.validate(arguments)
        if error is not None or args is None:
            raise McpError(INVALID_PARAMS, error or f"Invalid arguments for {name}")
        return spec, args

    def build_request(self, spec: ToolSpec, args: ToolArgs) -> ChatRequest:
        model = self.vision_model if spec.needs_vision(args) else self.text_model
        return ChatRequest(model=model, messages=spec.build(args), temperature=self.temperature)

    async def call_tool(self, name: str, arguments: Any) -> dict[str, Any]:
        """Run one tool call and return the MCP ``CallToolResult`` payload."""
        spec, args = self.validate(name, arguments)
        try:
            request = self.build_request(spec, args)
            payload = request.as_payload()
            reply = await self.client.chat(
                payload["model"], payload["messages"], temperature=payload["temperature"]
            )
        except Exception as exc:
            log.error("Error in %s: %s", name, exc)
            return tool_result(f"Error {spec.verb}: {exc}", is_error=True)
        return tool_result(reply)
