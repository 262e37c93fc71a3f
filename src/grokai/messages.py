"""Chat payload construction for the Grok tools.

Pure functions only: every builder turns validated tool arguments into the
``[system, user]`` message pair sent to the chat-completions endpoint.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Union

from .tool_args import AddressArgs, AskArgs, ImageArgs, TransactionArgs

log = logging.getLogger("grokai.messages")

TRANSACTION_SYSTEM_PROMPT = (
    "You are an expert Solana blockchain analyst. "
    "Analyze the given transaction information and provide detailed insights. "
    "Focus on what the transaction does, which programs it interacts with, and its overall purpose. "
    "If applicable, mention any tokens transferred, their amounts, and the parties involved."
)
ADDRESS_SYSTEM_PROMPT = (
    "You are an expert Solana blockchain analyst. "
    "Analyze the given address information and provide detailed insights."
)
IMAGE_SYSTEM_PROMPT = (
    "You are an advanced AI with powerful vision capabilities. "
    "Analyze the provided image and respond to the user's query in detail."
)
ASK_SYSTEM_PROMPT = (
    "You are Grok, a helpful AI assistant with expertise in blockchain technology, "
    "especially Solana. You can also analyze images when provided."
)

# Screenshots arrive as bare base64 and are always labelled JPEG.
_DATA_URL_PREFIX = "data:image/jpeg;base64,"


@dataclass(frozen=True, slots=True)
class TextPart:
    text: str

    def as_dict(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(frozen=True, slots=True)
class ImagePart:
    url: str
    detail: str = "high"

    @classmethod
    def from_base64(cls, data: str) -> "ImagePart":
        return cls(url=f"{_DATA_URL_PREFIX}{data}")

    def as_dict(self) -> dict[str, Any]:
        return {"type": "image_url", "image_url": {"url": self.url, "detail": self.detail}}


ContentPart = Union[TextPart, ImagePart]


@dataclass(slots=True)
class ChatMessage:
    role: str
    content: str | list[ContentPart] = field(default_factory=list)

    def as_chat_dict(self) -> dict[str, Any]:
        if isinstance(self.content, str):
            return {"role": self.role, "content": self.content}
        return {"role": self.role, "content": [part.as_dict() for part in self.content]}


@dataclass(slots=True)
class ChatRequest:
    model: str
    messages: list[ChatMessage]
    temperature: float = 0.7

    def as_payload(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [m.as_chat_dict() for m in self.messages],
            "temperature": self.temperature,
        }


def _image_part(image: str | None, image_url: str | None) -> ImagePart | None:
    """Base64 data wins over a URL when both are supplied."""
    if image:
        return ImagePart.from_base64(image)
    if image_url:
        return ImagePart(url=image_url)
    return None


def parse_details(details: str | None) -> dict[str, Any]:
    """Decode the ``details`` JSON string, falling back to ``{}`` on any problem."""
    if not details:
        return {}
    try:
        parsed = json.loads(details)
    except json.JSONDecodeError as exc:
        log.warning("Error parsing details: %s", exc)
        return {}
    # Only objects carry key/value details; null, arrays and scalars are ignored
    # rather than enumerated by index or turned into a tool error.
    if not isinstance(parsed, dict):
        log.warning("Ignoring details: expected a JSON object, got %s", type(parsed).__name__)
        return {}
    return parsed


def _render_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value)


def _is_index_key(key: str) -> bool:
    return key.isascii() and key.isdigit() and (key == "0" or not key.startswith("0")) and int(key) < 2**32 - 1


def _ordered_items(details: dict[str, Any]) -> list[tuple[str, Any]]:
    """Object property order: integer-like keys ascending, then the rest as inserted."""
    index_keys = sorted((k for k in details if _is_index_key(k)), key=int)
    rest = [k for k in details if not _is_index_key(k)]
    return [(k, details[k]) for k in index_keys + rest]


def transaction_prompt(signature: str, details: dict[str, Any]) -> str:
    text = f"Analyze this Solana transaction: {signature}\n\n"
    if details:
        text += "Additional details:\n"
        for key, value in _ordered_items(details):
            # signature is already in the first line
            if key != "signature":
                text += f"- {key}: {_render_value(value)}\n"
    return text


def build_transaction_messages(args: TransactionArgs) -> list[ChatMessage]:
    content: list[ContentPart] = [
        TextPart(transaction_prompt(args.signature, parse_details(args.details)))
    ]
    if args.screenshot:
        content.append(ImagePart.from_base64(args.screenshot))
    return [
        ChatMessage(role="system", content=TRANSACTION_SYSTEM_PROMPT),
        ChatMessage(role="user", content=content),
    ]


def build_address_messages(args: AddressArgs) -> list[ChatMessage]:
    content: list[ContentPart] = [TextPart(f"Analyze this Solana address: {args.address}")]
    if args.screenshot:
        content.append(ImagePart.from_base64(args.screenshot))
    return [
        ChatMessage(role="system", content=ADDRESS_SYSTEM_PROMPT),
        ChatMessage(role="user", content=content),
    ]


def build_image_messages(args: ImageArgs) -> list[ChatMessage]:
    content: list[ContentPart] = []
    image = _image_part(args.image, args.image_url)
    if image is not None:
        content.append(image)
    content.append(TextPart(args.prompt))
    return [
        ChatMessage(role="system", content=IMAGE_SYSTEM_PROMPT),
        ChatMessage(role="user", content=content),
    ]


def build_ask_messages(args: AskArgs) -> list[ChatMessage]:
    content: list[ContentPart] = []
    image = _image_part(args.image, args.image_url)
    if image is not None:
        content.append(image)
    text = f"{args.context}\n\n{args.question}" if args.context else args.question
    content.append(TextPart(text))
    return [
        ChatMessage(role="system", content=ASK_SYSTEM_PROMPT),
        ChatMessage(role="user", content=content),
    ]
