# Models package
from .message import ChatMessage
from .mcp import MCPServerEntry, MCPConfig, Tool, Resource, ToolCall, ToolResult

__all__ = [
    "ChatMessage",
    "MCPServerEntry",
    "MCPConfig",
    "Tool",
    "Resource",
    "ToolCall",
    "ToolResult"
]
