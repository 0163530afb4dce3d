"""
MCP Protocol Client for talking to an MCP demo server with single-shot JSON-RPC POSTs
"""

import asyncio
import json
import logging
import uuid
from typing import Dict, List, Any, Optional
import aiohttp

from mcpdemo.config import settings
from mcpdemo.models.mcp import Tool, Resource, ToolResult, text_or_none
from mcpdemo.services.mcp_config_manager import MCPConfigManager

logger = logging.getLogger(__name__)

CLIENT_NAME = "MCPDemo"
CLIENT_VERSION = "1.0.0"
PROTOCOL_VERSION = "2025-03-26"


class MCPConnectionError(Exception):
    """Raised when the MCP server cannot be reached or is not connected"""
    pass


class MCPProtocolError(Exception):
    """Raised when the MCP server answers with something that is not a JSON-RPC response"""
    pass


class MCPTimeoutError(Exception):
    """Raised when an MCP request times out"""
    pass


class MCPToolError(Exception):
    """Raised when the server reports a failure for a tool call"""
    pass


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return error.get("message") or "Unknown error"
    return str(error) if error else "Unknown error"


class MCPClient:
    """
    JSON-RPC client for the MCP demo servers.

    Each call is one HTTP POST carrying {jsonrpc, id, method, params}; the state is
    simply connected or disconnected plus whatever tools were discovered on connect.
    """

    def __init__(self,
                 config_manager: Optional[MCPConfigManager] = None,
                 timeout: Optional[int] = None):
        self.config_manager = config_manager or MCPConfigManager()
        self.timeout = timeout or settings.mcp_client_timeout
        self.session: Optional[aiohttp.ClientSession] = None
        self.server_url: Optional[str] = None
        self.is_connected = False
        self.error: Optional[str] = None
        self.server_info: Dict[str, Any] = {}
        self.available_tools: List[Tool] = []
        self.available_resources: List[Resource] = []

    async def connect(self) -> None:
        """
        Connect to the default server from the MCP config, initialize and discover tools

        Raises:
            MCPConnectionError, MCPProtocolError, MCPTimeoutError, MCPConfigurationError
        """
        logger.info("Connecting to MCP server")
        if self.is_connected or self.session:
            await self.disconnect()

        try:
            config = self.config_manager.load()
            server_config = config.default_server()
            if server_config is None:
                raise MCPConnectionError("No default server configuration found")

            self.server_url = self.config_manager.resolve_endpoint(server_config)
            logger.info(f"Connecting to MCP server at: {self.server_url}")

            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"Content-Type": "application/json"}
            )

            response = await self._send_request("initialize", {
                "clientInfo": {
                    "name": CLIENT_NAME,
                    "version": CLIENT_VERSION
                },
                "capabilities": {},
                "protocolVersion": PROTOCOL_VERSION
            }, require_connection=False)

            if response.get("error"):
                raise MCPProtocolError(f"Initialize failed: {_error_message(response['error'])}")

            logger.info(f"Server response: {response}")
            result = response.get("result")
            self.server_info = result if isinstance(result, dict) else {}
            self.is_connected = True
            self.error = None
            logger.info("Connected to MCP server successfully")

            await self.discover_tools()

        except Exception as e:
            self.error = str(e)
            logger.error(f"Failed to connect to MCP server: {e}")
            await self._close_session()
            self.is_connected = False
            self.server_url = None
            self.server_info = {}
            self.available_tools = []
            raise

    async def discover_tools(self) -> List[Tool]:
        """Refresh available_tools using tools/list, falling back to the legacy tools method"""
        logger.info("Discovering available tools...")

        response = await self._send_request("tools/list", {})
        tools_data = None

        if response.get("error"):
            logger.info(f"tools/list not supported ({_error_message(response['error'])}), trying legacy tools method")
            response = await self._send_request("tools")
            if response.get("error"):
                logger.warning(f"Tool discovery failed: {_error_message(response['error'])}")
                self.available_tools = []
                return []
            tools_data = response.get("result")
        else:
            result = response.get("result")
            if isinstance(result, dict):
                tools_data = result.get("tools")
            elif isinstance(result, list):
                tools_data = result

        if not isinstance(tools_data, list):
            logger.warning("Unexpected tools response format")
            self.available_tools = []
            return []

        self.available_tools = [
            Tool.from_server_payload(item) for item in tools_data if isinstance(item, dict)
        ]
        logger.info(f"Discovered {len(self.available_tools)} tools: {[t.name for t in self.available_tools]}")
        return list(self.available_tools)

    async def list_resources(self) -> List[Resource]:
        """Fetch the resources the server exposes"""
        response = await self._send_request("resources/list")

        if response.get("error"):
            raise MCPProtocolError(f"Failed to list resources: {_error_message(response['error'])}")

        result = response.get("result")
        if isinstance(result, dict):
            result = result.get("resources")
        if not isinstance(result, list):
            logger.warning("Unexpected resources response format")
            result = []

        resources = []
        for item in result:
            if not isinstance(item, dict) or not isinstance(item.get("uri"), str) or not item["uri"]:
                logger.warning(f"Skipping resource entry without a uri: {item}")
                continue
            resources.append(Resource(
                uri=item["uri"],
                name=text_or_none(item.get("name")),
                type=text_or_none(item.get("type")) or text_or_none(item.get("mimeType")),
                description=text_or_none(item.get("description"))
            ))

        self.available_resources = resources
        logger.info(f"Found {len(resources)} resources")
        return list(resources)

    async def read_resource(self, uri: str) -> str:
        """Return the text content of a resource"""
        if not uri:
            raise ValueError("uri is required")

        response = await self._send_request("readResource", {"uri": uri})

        if response.get("error"):
            raise MCPProtocolError(f"Failed to read resource {uri}: {_error_message(response['error'])}")

        result = response.get("result")
        if isinstance(result, dict):
            result = result.get("contents") or result.get("content")
        if not isinstance(result, list):
            raise MCPProtocolError(f"Unexpected readResource response for {uri}")

        texts = [item["text"] for item in result if isinstance(item, dict) and isinstance(item.get("text"), str)]
        return "\n".join(texts)

    async def execute_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        """
        Invoke a tool; the JSON-RPC method is the tool name and params are its arguments

        Raises:
            MCPToolError: If the server reports an error for the call
        """
        arguments = arguments or {}
        logger.info(f"Executing tool: {name} with args: {arguments}")

        response = await self._send_request(name, arguments)

        if response.get("error"):
            message = _error_message(response["error"])
            logger.error(f"Tool execution failed: {message}")
            raise MCPToolError(message)

        result = response.get("result")
        content = result.get("content") if isinstance(result, dict) else None

        if not isinstance(content, list):
            return ToolResult(raw=[], formatted="No content returned")

        items = [item for item in content if isinstance(item, dict)]
        formatted = format_content(items)

        if isinstance(result, dict) and result.get("isError"):
            logger.error(f"Tool {name} reported an error")
            raise MCPToolError(formatted.strip() or "Tool reported an error")

        logger.info("Tool execution completed")
        return ToolResult(raw=items, formatted=formatted)

    async def disconnect(self) -> None:
        """Forget the server and discovered tools"""
        await self._close_session()
        self.server_url = None
        self.is_connected = False
        self.server_info = {}
        self.available_tools = []
        self.available_resources = []
        logger.info("Disconnected from MCP server")

    async def _close_session(self) -> None:
        if self.session:
            try:
                await self.session.close()
            finally:
                self.session = None

    async def _send_request(self,
                            method: str,
                            params: Optional[Any] = None,
                            require_connection: bool = True) -> Dict[str, Any]:
        """
        POST one JSON-RPC request and return the decoded response object
        """
        if require_connection and not self.is_connected:
            raise MCPConnectionError("Not connected to MCP server")
        if not self.server_url:
            raise MCPConnectionError("No server URL configured")
        if not self.session:
            raise MCPConnectionError("HTTP session not available")

        request = build_request(method, params)

        try:
            async with self.session.post(self.server_url, json=request) as response:
                if response.status != 200:
                    raise MCPConnectionError(f"HTTP Error: {response.status}")
                try:
                    data = await response.json(content_type=None)
                except (json.JSONDecodeError, ValueError):
                    raise MCPProtocolError("Invalid JSON response")

        except asyncio.TimeoutError:
            raise MCPTimeoutError(f"Request '{method}' timed out after {self.timeout} seconds")
        except aiohttp.ClientError as e:
            raise MCPConnectionError(f"HTTP request failed: {str(e)}")

        if not isinstance(data, dict):
            raise MCPProtocolError("Invalid JSON response")

        return data

    def get_tool(self, name: str) -> Optional[Tool]:
        for tool in self.available_tools:
            if tool.name == name:
                return tool
        return None

    def status(self) -> Dict[str, Any]:
        return {
            "connected": self.is_connected,
            "server_url": self.server_url,
            "error": self.error,
            "server_info": self.server_info,
            "tools": [tool.name for tool in self.available_tools]
        }

    def __str__(self) -> str:
        return f"MCPClient({self.server_url}, connected={self.is_connected})"


def build_request(method: str, params: Optional[Any] = None) -> Dict[str, Any]:
    """JSON-RPC 2.0 request envelope; params is omitted when None"""
    request = {
        "jsonrpc": "2.0",
        "id": str(uuid.uuid4()),
        "method": method
    }
    if params is not None:
        request["params"] = params
    return request


def format_content(content: List[Dict[str, Any]]) -> str:
    """Flatten tool content items into text"""
    text = ""
    for item in content:
        item_type = item.get("type")
        if not item_type:
            continue
        if item_type == "text":
            if isinstance(item.get("text"), str):
                text += item["text"] + "\n"
        elif item_type == "json":
            if "json" in item:
                text += json.dumps(item["json"], separators=(",", ":"), ensure_ascii=False) + "\n"
        else:
            text += f"Received {item_type} content (not shown)\n"
    return text
