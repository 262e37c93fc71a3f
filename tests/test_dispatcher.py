from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import AsyncMock

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from grokai.client import GrokClient
from grokai.config import AppConfig
from grokai.dispatcher import ToolDispatcher
from grokai.errors import INVALID_PARAMS, METHOD_NOT_FOUND, McpError, UpstreamError


def _dispatcher(reply: str = "ok", **kwargs) -> tuple[ToolDispatcher, AsyncMock]:
    client = GrokClient("test-key")
    client.chat = AsyncMock(return_value=reply, **kwargs)
    return ToolDispatcher(client), client.chat


def _sent(chat: AsyncMock) -> tuple[str, list[dict]]:
    chat.assert_awaited_once()
    model, messages = chat.await_args.args
    assert chat.await_args.kwargs == {"temperature": 0.7}
    return model, messages


# ---------------------------------------------------------------------------
# Protocol-level failures happen before any HTTP call
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_unknown_tool_raises_method_not_found() -> None:
    dispatcher, chat = _dispatcher()
    with pytest.raises(McpError) as exc:
        await dispatcher.call_tool("get_balance", {"address": "x"})
    assert exc.value.code == METHOD_NOT_FOUND
    assert exc.value.message == "Unknown tool: get_balance"
    assert chat.await_count == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name,arguments,field",
    [
        ("analyze_transaction", {}, "signature"),
        ("analyze_address", {"address": 7}, "address"),
        ("analyze_image", {"image": "AAAA"}, "prompt"),
        ("ask_grok", None, "question"),
    ],
)
async def test_missing_required_field_raises_invalid_params(name: str, arguments, field: str) -> None:
    dispatcher, chat = _dispatcher()
    with pytest.raises(McpError) as exc:
        await dispatcher.call_tool(name, arguments)
    assert exc.value.code == INVALID_PARAMS
    assert exc.value.message == f"Missing required {field} parameter"
    assert chat.await_count == 0


# ---------------------------------------------------------------------------
# Model selection and payloads
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name,arguments",
    [
        ("analyze_transaction", {"signature": "5sig"}),
        ("analyze_address", {"address": "7xK"}),
        ("analyze_image", {"prompt": "describe"}),
    ],
)
async def test_analysis_tools_always_use_vision_model(name: str, arguments: dict) -> None:
    dispatcher, chat = _dispatcher()
    await dispatcher.call_tool(name, arguments)
    model, messages = _sent(chat)
    assert model == "grok-2-vision-latest"
    user = messages[1]["content"]
    assert len(user) == 1 and user[0]["type"] == "text"


@pytest.mark.asyncio
async def test_ask_without_image_uses_text_model() -> None:
    dispatcher, chat = _dispatcher()
    await dispatcher.call_tool("ask_grok", {"question": "What is Solana?"})
    model, messages = _sent(chat)
    assert model == "grok-2-latest"
    assert messages[1]["content"] == [{"type": "text", "text": "What is Solana?"}]


@pytest.mark.asyncio
@pytest.mark.parametrize("extra", [{"image": "AAAA"}, {"image_url": "https://img/x.png"}])
async def test_ask_with_image_uses_vision_model(extra: dict) -> None:
    dispatcher, chat = _dispatcher()
    await dispatcher.call_tool("ask_grok", {"question": "what is this?", **extra})
    model, messages = _sent(chat)
    assert model == "grok-2-vision-latest"
    assert messages[1]["content"][0]["type"] == "image_url"


@pytest.mark.asyncio
async def test_ask_with_non_string_image_is_treated_as_absent() -> None:
    dispatcher, chat = _dispatcher()
    await dispatcher.call_tool("ask_grok", {"question": "q", "image": {"bytes": [1, 2]}})
    model, messages = _sent(chat)
    assert model == "grok-2-latest"
    assert len(messages[1]["content"]) == 1


@pytest.mark.asyncio
async def test_non_string_screenshot_equivalent_to_omitted() -> None:
    first, chat_a = _dispatcher()
    second, chat_b = _dispatcher()
    await first.call_tool("analyze_address", {"address": "7xK", "screenshot": 12345})
    await second.call_tool("analyze_address", {"address": "7xK"})
    assert chat_a.await_args == chat_b.await_args


@pytest.mark.asyncio
async def test_transaction_details_rendering() -> None:
    dispatcher, chat = _dispatcher()
    await dispatcher.call_tool(
        "analyze_transaction",
        {"signature": "5sig", "details": '{"amount":"1.5","signature":"x"}'},
    )
    _, messages = _sent(chat)
    text = messages[1]["content"][0]["text"]
    assert "- amount: 1.5" in text
    assert "- signature:" not in text


@pytest.mark.asyncio
async def test_transaction_bad_details_does_not_fail() -> None:
    dispatcher, chat = _dispatcher(reply="looks like a swap")
    result = await dispatcher.call_tool(
        "analyze_transaction", {"signature": "5sig", "details": "not json"}
    )
    assert result == {"content": [{"type": "text", "text": "looks like a swap"}], "isError": False}
    _, messages = _sent(chat)
    assert messages[1]["content"] == [
        {"type": "text", "text": "Analyze this Solana transaction: 5sig\n\n"}
    ]


@pytest.mark.asyncio
async def test_configured_models_and_temperature() -> None:
    cfg = AppConfig(api_key="k", vision_model="grok-vision-beta", text_model="grok-beta", temperature=0.2)
    dispatcher = ToolDispatcher.from_config(cfg)
    dispatcher.client.chat = AsyncMock(return_value="ok")
    await dispatcher.call_tool("ask_grok", {"question": "q"})
    await dispatcher.call_tool("analyze_image", {"prompt": "p"})
    calls = dispatcher.client.chat.await_args_list
    assert [c.args[0] for c in calls] == ["grok-beta", "grok-vision-beta"]
    assert all(c.kwargs == {"temperature": 0.2} for c in calls)


# ---------------------------------------------------------------------------
# Result envelopes
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_upstream_failure_becomes_error_result() -> None:
    dispatcher, chat = _dispatcher(side_effect=UpstreamError("HTTP 500 on /v1/chat/completions: boom"))
    result = await dispatcher.call_tool("analyze_transaction", {"signature": "5sig"})
    assert result["isError"] is True
    assert result["content"] == [
        {"type": "text", "text": "Error analyzing transaction: HTTP 500 on /v1/chat/completions: boom"}
    ]
    assert chat.await_count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name,arguments,prefix",
    [
        ("analyze_address", {"address": "a"}, "Error analyzing address: "),
        ("analyze_image", {"prompt": "p"}, "Error analyzing image: "),
        ("ask_grok", {"question": "q"}, "Error asking Grok: "),
    ],
)
async def test_error_prefix_per_tool(name: str, arguments: dict, prefix: str) -> None:
    dispatcher, _ = _dispatcher(side_effect=RuntimeError("nope"))
    result = await dispatcher.call_tool(name, arguments)
    assert result["isError"] is True
    assert result["content"][0]["text"] == f"{prefix}nope"


@pytest.mark.asyncio
async def test_end_to_end_with_mocked_upstream() -> None:
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        return httpx.Response(200, json={"choices": [{"message": {"content": "This address is inactive."}}]})

    client = GrokClient("test-key", transport=httpx.MockTransport(handler))
    result = await ToolDispatcher(client).call_tool("analyze_address", {"address": "7xK...xyz"})
    assert result == {
        "content": [{"type": "text", "text": "This address is inactive."}],
        "isError": False,
    }
    assert calls["n"] == 1


@pytest.mark.asyncio
async def test_malformed_upstream_body_end_to_end() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not json at all")

    client = GrokClient("test-key", transport=httpx.MockTransport(handler))
    result = await ToolDispatcher(client).call_tool("ask_grok", {"question": "q"})
    assert result["isError"] is True
    assert result["content"][0]["text"].startswith("Error asking Grok: Malformed chat response")
