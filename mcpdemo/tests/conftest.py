"""
Shared fixtures for the MCP demo tests
"""

import pytest
from mcpdemo.config import Settings
from mcpdemo.models.mcp import Tool
from mcpdemo.services.app_settings import AppSettings
from mcpdemo.services.error_service import error_service
from mcpdemo.services.mcp_config_manager import MCPConfigManager


@pytest.fixture
def test_settings(tmp_path):
    """Settings isolated from the environment and pointed at a temp dir"""
    return Settings(
        _env_file=None,
        llm_provider="anthropic",
        anthropic_api_key="test-anthropic-key",
        openai_api_key="",
        mcp_config_path=str(tmp_path / "mcp_config.json"),
        mcp_host="localhost",
        preferences_path=str(tmp_path / "preferences.json"),
        log_dir=str(tmp_path / "logs"),
        llm_timeout=5,
        mcp_client_timeout=5,
    )


@pytest.fixture
def app_settings(test_settings):
    return AppSettings(test_settings)


@pytest.fixture
def config_manager(test_settings):
    return MCPConfigManager(config_file_path=test_settings.mcp_config_path, host="localhost")


@pytest.fixture(autouse=True)
def clear_error_stats():
    error_service.clear_stats()
    yield
    error_service.clear_stats()


@pytest.fixture
def doc_tools():
    """Tools of the documentation demo server"""
    return [
        Tool(
            name="searchDocumentation",
            description="Search through the documentation for specific terms",
            input_schema={
                "type": "object",
                "required": ["query"],
                "properties": {"query": {"type": "string", "description": "Search term to find in the documentation"}}
            }
        ),
        Tool(
            name="getDocumentationSummary",
            description="Get a summary of all available documentation",
            input_schema={
                "type": "object",
                "properties": {"format": {"type": "string", "description": "Format of the summary (brief or detailed)"}}
            }
        ),
    ]


@pytest.fixture
def db_tools():
    """Tools of the database demo server"""
    return [
        Tool(
            name="executeQuery",
            description="Execute an SQL query on the database",
            input_schema={
                "type": "object",
                "required": ["sql"],
                "properties": {"sql": {"type": "string", "description": "SQL query to execute"}}
            }
        )
    ]


@pytest.fixture
def initialize_response():
    return {
        "jsonrpc": "2.0",
        "id": "init-1",
        "result": {
            "name": "MCP Demo Server",
            "version": "1.0.0",
            "capabilities": {
                "resources": {"supportedContentTypes": ["text/markdown"]},
                "tools": {"supported": True, "listChanged": False}
            }
        }
    }


@pytest.fixture
def tools_list_response():
    return {
        "jsonrpc": "2.0",
        "id": "tools-1",
        "result": {
            "tools": [
                {
                    "name": "searchDocumentation",
                    "description": "Search through the documentation for specific terms",
                    "inputSchema": {
                        "type": "object",
                        "required": ["query"],
                        "properties": {"query": {"type": "string"}}
                    }
                },
                {
                    "name": "getDocumentationSummary",
                    "description": "Get a summary of all available documentation",
                    "inputSchema": {
                        "type": "object",
                        "properties": {"format": {"type": "string"}}
                    }
                }
            ],
            "nextCursor": None
        }
    }


@pytest.fixture
def legacy_tools_response():
    return {
        "jsonrpc": "2.0",
        "id": "tools-2",
        "result": [
            {
                "name": "executeQuery",
                "description": "Execute an SQL query on the database",
                "parameters": {
                    "type": "object",
                    "required": ["sql"],
                    "properties": {"sql": {"type": "string"}}
                }
            }
        ]
    }


@pytest.fixture
def unsupported_method_response():
    return {
        "jsonrpc": "2.0",
        "id": "x",
        "error": {"code": -32000, "message": "Unsupported method: tools/list"}
    }

