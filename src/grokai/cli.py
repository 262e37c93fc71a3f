from __future__ import annotations

import argparse
import json
import sys

from .config import AppConfig, load_config
from .errors import ConfigError
from .mcp_server import setup_logging, start as mcp_start
from .registry import TOOL_SCHEMAS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grokai",
        description="MCP server exposing Grok (xAI) Solana analysis and vision tools.",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser(
        "mcp",
        help="Run the MCP server over stdio (default). Hook this up to any MCP client.",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the MCP server over HTTP/SSE")
    serve_parser.add_argument("--host", help="Interface to bind (default from config: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, help="Port to listen on (default from config: 8096)")

    subparsers.add_parser("tools", help="Print the tool schemas as JSON and exit")

    return parser


def _config_or_exit() -> AppConfig:
    try:
        return load_config()
    except ConfigError as exc:
        print(f"grokai: {exc}", file=sys.stderr)
        sys.exit(1)


def serve_main(cfg: AppConfig, host: str | None, port: int | None) -> None:
    from .http_server import serve

    serve(cfg, host=host, port=port)


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    if args.command == "tools":
        print(json.dumps({"tools": TOOL_SCHEMAS}, indent=2))
        return
    if args.command in (None, "mcp"):
        cfg = _config_or_exit()
        setup_logging(cfg.log_level)
        mcp_start(cfg)
        return
    if args.command == "serve":
        cfg = _config_or_exit()
        setup_logging(cfg.log_level)
        serve_main(cfg, args.host, args.port)
        return
    parser.print_help()
    sys.exit(2)


if __name__ == "__main__":
    main()
