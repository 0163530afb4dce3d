from typing import Dict, List, Any, Optional
from pydantic import BaseModel, Field, field_validator


DEFAULT_SERVER_NAME = "default"


def text_or_none(value: Any) -> Optional[str]:
    """The value when it is a string, else None"""
    return value if isinstance(value, str) else None


class MCPServerEntry(BaseModel):
    """How to start (or reach) one MCP server"""
    command: str = Field(..., description="Executable or script that runs the server")
    args: Optional[List[str]] = Field(default=None, description="Command line arguments")
    env: Optional[Dict[str, str]] = Field(default=None, description="Extra environment variables")
    url: Optional[str] = Field(default=None, description="Explicit HTTP endpoint, overrides port detection")

    @field_validator('command')
    @classmethod
    def validate_command(cls, v):
        if not v.strip():
            raise ValueError('command cannot be empty')
        return v

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError('url must start with http:// or https://')
        return v

    def command_line(self) -> str:
        """Command plus arguments as one string"""
        return " ".join([self.command] + list(self.args or []))

    class Config:
        json_schema_extra = {
            "example": {
                "command": "node",
                "args": ["database-server.js"],
                "env": None,
                "url": None
            }
        }


class MCPConfig(BaseModel):
    """Contents of the MCP config file"""
    servers: Dict[str, MCPServerEntry] = Field(default_factory=dict, description="Servers keyed by name")

    def default_server(self) -> Optional[MCPServerEntry]:
        return self.servers.get(DEFAULT_SERVER_NAME)


class Tool(BaseModel):
    """A named, schema-described function exposed by an MCP server"""
    name: str = Field(default="unknown", description="Tool name, also the JSON-RPC method used to call it")
    description: Optional[str] = Field(default=None, description="Human readable description")
    input_schema: Optional[Dict[str, Any]] = Field(default=None, description="JSON schema of the tool arguments")

    @classmethod
    def from_server_payload(cls, data: Dict[str, Any]) -> "Tool":
        """Build a tool from either the tools/list shape (inputSchema) or the legacy one (parameters)"""
        schema = data.get("inputSchema")
        if schema is None:
            schema = data.get("parameters")
        return cls(
            name=text_or_none(data.get("name")) or "unknown",
            description=text_or_none(data.get("description")),
            input_schema=schema if isinstance(schema, dict) else None,
        )


class Resource(BaseModel):
    """A readable document exposed by an MCP server"""
    uri: str
    name: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None


class ToolCall(BaseModel):
    """A tool invocation picked out of an LLM reply"""
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModel):
    """Outcome of a tool execution"""
    raw: List[Dict[str, Any]] = Field(default_factory=list, description="Content items as returned by the server")
    formatted: str = Field(..., description="Content flattened to text")

    def json_rows(self) -> Optional[List[Dict[str, Any]]]:
        """Rows of the first json content item holding a list of objects, if any"""
        for item in self.raw:
            if item.get("type") != "json":
                continue
            data = item.get("json")
            if isinstance(data, list) and all(isinstance(row, dict) for row in data):
                return data
        return None
