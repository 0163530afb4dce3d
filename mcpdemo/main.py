# Main FastAPI application entry point
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from mcpdemo import __version__
from mcpdemo.config import settings
from mcpdemo.logging_config import configure_logging
from mcpdemo.models import ChatMessage, Tool, Resource
from mcpdemo.services.app_settings import AppSettings, AppSettingsError
from mcpdemo.services.chat_service import ChatService
from mcpdemo.services.error_service import (
    error_service, log_error, create_error_context,
    ErrorCategory, ErrorSeverity
)
from mcpdemo.services.llm_service import LLMProvider
from mcpdemo.services.mcp_client import (
    MCPClient, MCPConnectionError, MCPProtocolError, MCPTimeoutError, MCPToolError
)
from mcpdemo.services.mcp_config_manager import MCPConfigManager, MCPConfigurationError
from mcpdemo.services.mcp_integration_service import MCPIntegrationService

logger = logging.getLogger(__name__)

# Application state, one chat window's worth
app_settings = AppSettings()
chat_service = ChatService(app_settings)
mcp_client = MCPClient(MCPConfigManager())
mcp_integration = MCPIntegrationService(mcp_client, chat_service, app_settings)


# Pydantic models for API requests and responses
class HealthResponse(BaseModel):
    status: str
    timestamp: float
    version: str

class ErrorResponse(BaseModel):
    error: Dict[str, Any]

class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=10000, description="User message")

class QueryRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=10000, description="Query to answer with MCP tools")

class ChatStateResponse(BaseModel):
    messages: List[ChatMessage] = Field(default_factory=list, description="Full transcript")
    error: Optional[str] = Field(None, description="Error from the last request, if any")
    is_processing: bool = False

class MCPStatusResponse(BaseModel):
    connected: bool
    server_url: Optional[str] = None
    error: Optional[str] = None
    server_info: Dict[str, Any] = Field(default_factory=dict)
    tools: List[str] = Field(default_factory=list)

class ReadResourceRequest(BaseModel):
    uri: str = Field(..., min_length=1, description="Resource URI")

class ReadResourceResponse(BaseModel):
    uri: str
    content: str

class ToolExecutionResponse(BaseModel):
    tool: str
    formatted: str
    raw: List[Dict[str, Any]] = Field(default_factory=list)

class SettingsResponse(BaseModel):
    provider: str
    anthropic_api_key_set: bool
    openai_api_key_set: bool

class SettingsUpdate(BaseModel):
    provider: Optional[str] = Field(None, description="'anthropic' or 'openai'")
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None


def chat_state(error: Optional[str]) -> ChatStateResponse:
    return ChatStateResponse(
        messages=list(chat_service.messages),
        error=error,
        is_processing=chat_service.is_processing or mcp_integration.is_processing
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings)
    logger.info("Starting MCP Demo chat API server")
    logger.info(f"LLM provider: {app_settings.current_provider.value}, settings: {app_settings.to_dict()}")

    yield

    logger.info("Shutting down MCP Demo chat API server")
    await mcp_client.disconnect()

app = FastAPI(
    title="MCP Demo Chat API",
    version=__version__,
    description="Chat with a hosted LLM, optionally using tools from an MCP server",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)


def _error_json(status_code: int, code: str, message: str, error_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error={
            "code": code,
            "message": message,
            "error_id": error_id
        }).model_dump()
    )


MCP_ERROR_STATUS = {
    MCPConnectionError: (502, "MCP_CONNECTION_ERROR"),
    MCPTimeoutError: (504, "MCP_TIMEOUT"),
    MCPProtocolError: (502, "MCP_PROTOCOL_ERROR"),
    MCPToolError: (422, "MCP_TOOL_ERROR"),
    MCPConfigurationError: (500, "MCP_CONFIGURATION_ERROR"),
}


async def mcp_exception_handler(request: Request, exc: Exception):
    status_code, code = MCP_ERROR_STATUS[type(exc)]
    category = ErrorCategory.CONFIGURATION if isinstance(exc, MCPConfigurationError) else ErrorCategory.MCP
    context = create_error_context(endpoint=str(request.url.path), method=request.method,
                                   server_url=mcp_client.server_url)
    error_id = log_error(exc, category, ErrorSeverity.MEDIUM, context)
    return _error_json(status_code, code, str(exc), error_id)

for _exc_type in MCP_ERROR_STATUS:
    app.add_exception_handler(_exc_type, mcp_exception_handler)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    context = create_error_context(endpoint=str(request.url.path), method=request.method)
    error_id = log_error(exc, ErrorCategory.SYSTEM, ErrorSeverity.CRITICAL, context)
    user_message = error_service.create_user_friendly_message(exc, ErrorCategory.SYSTEM)
    return _error_json(500, "INTERNAL_SERVER_ERROR", user_message, error_id)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    logger.info(f"Request: {request.method} {request.url.path}")

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(f"Response: {response.status_code} - {process_time:.4f}s")
    return response


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint to verify API is running"""
    return HealthResponse(status="healthy", timestamp=time.time(), version=__version__)

@app.get("/api/errors/stats")
async def get_error_stats():
    """Get error statistics for monitoring"""
    return error_service.get_error_stats()

@app.get("/api/errors/recent")
async def get_recent_errors(limit: int = 50):
    """Get recent errors for debugging"""
    return error_service.get_recent_errors(limit)


@app.post("/api/chat", response_model=ChatStateResponse)
async def chat(request: ChatRequest):
    """Send a plain chat message to the selected LLM"""
    await chat_service.send_message(request.message)
    return chat_state(chat_service.error)

@app.post("/api/mcp/query", response_model=ChatStateResponse)
async def mcp_query(request: QueryRequest):
    """Answer a query with the help of the MCP server's tools"""
    await mcp_integration.process_query(request.query)
    return chat_state(mcp_integration.error)

@app.get("/api/messages", response_model=ChatStateResponse)
async def get_messages():
    return chat_state(chat_service.error)

@app.delete("/api/messages", response_model=ChatStateResponse)
async def clear_messages():
    chat_service.clear()
    return chat_state(None)


@app.get("/api/mcp/status", response_model=MCPStatusResponse)
async def mcp_status():
    return MCPStatusResponse(**mcp_client.status())

@app.post("/api/mcp/connect", response_model=MCPStatusResponse)
async def mcp_connect():
    """Connect (or reconnect) to the default MCP server"""
    await mcp_client.connect()
    return MCPStatusResponse(**mcp_client.status())

@app.post("/api/mcp/disconnect", response_model=MCPStatusResponse)
async def mcp_disconnect():
    await mcp_client.disconnect()
    return MCPStatusResponse(**mcp_client.status())

@app.get("/api/mcp/tools", response_model=List[Tool])
async def mcp_tools():
    return mcp_client.available_tools

@app.get("/api/mcp/resources", response_model=List[Resource])
async def mcp_resources():
    return await mcp_client.list_resources()

@app.post("/api/mcp/resources/read", response_model=ReadResourceResponse)
async def mcp_read_resource(request: ReadResourceRequest):
    content = await mcp_client.read_resource(request.uri)
    return ReadResourceResponse(uri=request.uri, content=content)

@app.post("/api/mcp/tools/{tool_name}", response_model=ToolExecutionResponse)
async def mcp_execute_tool(tool_name: str, arguments: Optional[Dict[str, Any]] = Body(None)):
    """Run a tool directly with the given arguments"""
    if mcp_client.is_connected and mcp_client.get_tool(tool_name) is None:
        raise HTTPException(status_code=404, detail=f"Tool '{tool_name}' not found")
    result = await mcp_client.execute_tool(tool_name, arguments or {})
    return ToolExecutionResponse(tool=tool_name, formatted=result.formatted, raw=result.raw)


@app.get("/api/settings", response_model=SettingsResponse)
async def get_settings():
    return SettingsResponse(**app_settings.to_dict())

@app.put("/api/settings", response_model=SettingsResponse)
async def update_settings(update: SettingsUpdate):
    """Change the provider and/or API keys; the provider choice is persisted"""
    if update.provider is not None:
        try:
            app_settings.current_provider = LLMProvider(update.provider)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown provider: {update.provider}")
    if update.anthropic_api_key is not None:
        app_settings.set_api_key(LLMProvider.ANTHROPIC, update.anthropic_api_key)
    if update.openai_api_key is not None:
        app_settings.set_api_key(LLMProvider.OPENAI, update.openai_api_key)

    try:
        app_settings.save_settings()
    except AppSettingsError as e:
        log_error(e, ErrorCategory.CONFIGURATION, ErrorSeverity.MEDIUM)
        raise HTTPException(status_code=500, detail=str(e))

    return SettingsResponse(**app_settings.to_dict())


def run():
    import uvicorn
    uvicorn.run(
        "mcpdemo.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level="info" if not settings.debug else "debug"
    )


if __name__ == "__main__":
    run()
