from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Tool schema registry, one entry per exposed tool.
# Keep in step with the validators in tool_args.py.
# ---------------------------------------------------------------------------

TOOL_SCHEMAS: list[dict[str, Any]] = [
    {
        "name": "analyze_transaction",
        "description": "Analyze a Solana transaction using Grok AI",
        "inputSchema": {
            "type": "object",
            "properties": {
                "signature": {
                    "type": "string",
                    "description": "Transaction signature to analyze",
                },
                "screenshot": {
                    "type": "string",
                    "description": "Optional base64 encoded screenshot of transaction data",
                },
                "details": {
                    "type": "string",
                    "description": "Optional JSON string with additional transaction details",
                },
            },
            "required": ["signature"],
        },
    },
    {
        "name": "analyze_address",
        "description": "Analyze a Solana address using Grok AI",
        "inputSchema": {
            "type": "object",
            "properties": {
                "address": {"type": "string", "description": "Solana address to analyze"},
                "screenshot": {
                    "type": "string",
                    "description": "Optional base64 encoded screenshot of address data",
                },
            },
            "required": ["address"],
        },
    },
    {
        "name": "analyze_image",
        "description": "Analyze an image using Grok AI vision capabilities",
        "inputSchema": {
            "type": "object",
            "properties": {
                "image": {"type": "string", "description": "Base64 encoded image data"},
                "prompt": {"type": "string", "description": "Question or prompt about the image"},
                "image_url": {
                    "type": "string",
                    "description": "Optional URL of an image to analyze (alternative to base64)",
                },
            },
            "required": ["prompt"],
        },
    },
    {
        "name": "ask_grok",
        "description": "Ask Grok a general question",
        "inputSchema": {
            "type": "object",
            "properties": {
                "question": {"type": "string", "description": "Question to ask Grok"},
                "context": {"type": "string", "description": "Optional context for the question"},
                "image": {
                    "type": "string",
                    "description": "Optional base64 encoded image to include with the question",
                },
                "image_url": {
                    "type": "string",
                    "description": "Optional URL of an image to include (alternative to base64)",
                },
            },
            "required": ["question"],
        },
    },
]

TOOL_NAMES = frozenset(schema["name"] for schema in TOOL_SCHEMAS)
