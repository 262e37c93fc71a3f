from __future__ import annotations


class GrokAIError(RuntimeError):
    pass


class ConfigError(GrokAIError):
    pass


class UpstreamError(GrokAIError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# JSON-RPC 2.0 error codes used by MCP.
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class McpError(GrokAIError):
    """Protocol-level fault, reported to the client as a JSON-RPC error object."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def as_error(self) -> dict[str, object]:
        return {"code": self.code, "message": self.message}
