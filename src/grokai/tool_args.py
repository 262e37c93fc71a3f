"""Per-tool argument validation.

Each validator takes the loosely-typed ``arguments`` mapping from a
``tools/call`` request and returns ``(args, None)`` on success or
``(None, error_message)`` when a required field is missing or not a string.
Optional fields are kept only when they are non-empty strings; any other
value is treated as absent rather than rejected.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Union


@dataclass(frozen=True, slots=True)
class TransactionArgs:
    signature: str
    screenshot: str | None = None
    details: str | None = None


@dataclass(frozen=True, slots=True)
class AddressArgs:
    address: str
    screenshot: str | None = None


@dataclass(frozen=True, slots=True)
class ImageArgs:
    prompt: str
    image: str | None = None
    image_url: str | None = None


@dataclass(frozen=True, slots=True)
class AskArgs:
    question: str
    context: str | None = None
    image: str | None = None
    image_url: str | None = None

    @property
    def has_image(self) -> bool:
        return bool(self.image or self.image_url)


ToolArgs = Union[TransactionArgs, AddressArgs, ImageArgs, AskArgs]
ValidationResult = tuple[ToolArgs | None, str | None]


def _optional(arguments: Mapping[str, Any], key: str) -> str | None:
    value = arguments.get(key)
    return value if isinstance(value, str) and value else None


def _required(arguments: Any, key: str) -> str | None:
    if not isinstance(arguments, Mapping):
        return None
    value = arguments.get(key)
    return value if isinstance(value, str) else None


def _missing(key: str) -> str:
    return f"Missing required {key} parameter"


def parse_transaction_args(arguments: Any) -> ValidationResult:
    signature = _required(arguments, "signature")
    if signature is None:
        return None, _missing("signature")
    return TransactionArgs(
        signature=signature,
        screenshot=_optional(arguments, "screenshot"),
        details=_optional(arguments, "details"),
    ), None


def parse_address_args(arguments: Any) -> ValidationResult:
    address = _required(arguments, "address")
    if address is None:
        return None, _missing("address")
    return AddressArgs(address=address, screenshot=_optional(arguments, "screenshot")), None


def parse_image_args(arguments: Any) -> ValidationResult:
    prompt = _required(arguments, "prompt")
    if prompt is None:
        return None, _missing("prompt")
    return ImageArgs(
        prompt=prompt,
        image=_optional(arguments, "image"),
        image_url=_optional(arguments, "image_url"),
    ), None


def parse_ask_args(arguments: Any) -> ValidationResult:
    question = _required(arguments, "question")
    if question is None:
        return None, _missing("question")
    return AskArgs(
        question=question,
        context=_optional(arguments, "context"),
        image=_optional(arguments, "image"),
        image_url=_optional(arguments, "image_url"),
    ), None


VALIDATORS: dict[str, Callable[[Any], ValidationResult]] = {
    "analyze_transaction": parse_transaction_args,
    "analyze_address": parse_address_args,
    "analyze_image": parse_image_args,
    "ask_grok": parse_ask_args,
}
