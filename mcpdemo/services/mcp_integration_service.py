"""
MCP Integration Service
Runs one query through the LLM with the MCP server's tools on offer, executes the
tool the model asks for and feeds the result back for a final answer
"""

import logging
from typing import Optional

from mcpdemo.services.app_settings import AppSettings
from mcpdemo.services.chat_service import ChatService, NO_API_KEY_MESSAGE
from mcpdemo.services.error_service import log_error, create_error_context, ErrorCategory, ErrorSeverity
from mcpdemo.services.llm_service import LLMError
from mcpdemo.services.mcp_client import MCPClient
from mcpdemo.services.tool_call_parser import (
    build_followup_prompt,
    build_tool_prompt,
    extract_tool_call,
    format_query_results,
    format_tools_for_llm,
)

logger = logging.getLogger(__name__)


class MCPIntegrationService:
    """Query flow: connect, prompt with tools, run the extracted tool, follow up"""

    def __init__(self,
                 mcp_client: MCPClient,
                 chat_service: ChatService,
                 app_settings: Optional[AppSettings] = None):
        self.mcp_client = mcp_client
        self.chat_service = chat_service
        self.app_settings = app_settings or chat_service.app_settings
        self.is_processing = False
        self.error: Optional[str] = None

    async def process_query(self, query: str) -> None:
        """
        Process a query end to end, writing every step into the chat transcript.

        Never raises: failures end up in `error` and as a system message.
        """
        if not query or not query.strip():
            return

        self.is_processing = True
        self.error = None
        self.chat_service.add_user_message(query)

        try:
            llm_service = self.app_settings.get_current_llm_service()
            if llm_service is None:
                self._fail(NO_API_KEY_MESSAGE)
                return

            if not self.mcp_client.is_connected:
                logger.info("MCP client not connected, attempting to connect...")
                await self.mcp_client.connect()

            tools = self.mcp_client.available_tools
            logger.info(f"Available tools: {', '.join(tool.name for tool in tools)}")

            logger.info("Sending query to LLM with tools description")
            response = await llm_service.generate_response(
                build_tool_prompt(query, format_tools_for_llm(tools))
            )
            self.chat_service.add_assistant_message(response)

            tool_call = extract_tool_call(response, tools)
            if tool_call is None:
                logger.info("No tool call was extracted from the LLM response")
                return

            logger.info(f"Extracted tool call: {tool_call.name}")
            self.chat_service.add_system_message(f"Executing tool: {tool_call.name}")

            try:
                result = await self.mcp_client.execute_tool(tool_call.name, tool_call.arguments)
            except Exception as e:
                log_error(e, ErrorCategory.MCP, ErrorSeverity.MEDIUM,
                          create_error_context(tool_name=tool_call.name, server_url=self.mcp_client.server_url))
                self.chat_service.add_system_message(f"⚠️ Error executing tool: {e}")
                return

            logger.info("Tool execution successful")
            rows = result.json_rows()
            shown = format_query_results(rows) if rows is not None else f"```\n{result.formatted}\n```"
            self.chat_service.add_system_message(f"Tool result: \n{shown}")

            final_response = await llm_service.generate_response(build_followup_prompt(result.formatted))
            self.chat_service.add_assistant_message(final_response)

        except LLMError as e:
            log_error(e, ErrorCategory.LLM_SERVICE, ErrorSeverity.MEDIUM,
                      create_error_context(provider=self.app_settings.current_provider.value))
            self._fail(e.user_message)
        except Exception as e:
            log_error(e, ErrorCategory.MCP, ErrorSeverity.HIGH,
                      create_error_context(server_url=self.mcp_client.server_url))
            self._fail(str(e))
        finally:
            self.is_processing = False

    def _fail(self, message: str) -> None:
        self.error = message
        logger.error(f"Error processing query: {message}")
        self.chat_service.add_system_message(f"⚠️ Error: {message}")
