"""Grok AI MCP server: Solana analysis and vision tools backed by the xAI API."""

__version__ = "0.1.0"
