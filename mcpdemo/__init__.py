"""Chat with a hosted LLM, optionally using tools served by MCP demo servers."""

__version__ = "1.0.0"
