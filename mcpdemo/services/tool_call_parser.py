"""
Helpers for the prompt-based tool calling used with the MCP demo servers.

The LLM is told which tools exist and answers in prose; tool calls are then
recognised in that prose with simple phrase and regex matching.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from mcpdemo.models.mcp import Tool, ToolCall

logger = logging.getLogger(__name__)

EXECUTE_QUERY = "executeQuery"
SEARCH_DOCUMENTATION = "searchDocumentation"
DOCUMENTATION_SUMMARY = "getDocumentationSummary"

TOOL_CALL_PHRASES = ["use the {}", "using the {}", "call {}", "execute {}"]

SQL_PATTERN = re.compile(r"SELECT\s+.+?(?:FROM|from)\s+.+?(?:;|$)", re.DOTALL)
SEARCH_QUERY_PATTERN = re.compile(
    r"""(?:search|find|look for)(?:.+?)(?:in|through|within|about)(?:.+?)["'](.+?)["']""",
    re.DOTALL | re.IGNORECASE
)
DETAILED_FORMAT_PATTERN = re.compile(r"(?:detailed|comprehensive|full|in-depth|complete)", re.IGNORECASE)


def format_tools_for_llm(tools: List[Tool]) -> str:
    """Describe the tools in plain text for the prompt"""
    description = "Available tools:\n"
    for tool in tools:
        description += f"- {tool.name}: {tool.description or 'No description'}\n"
        if tool.input_schema:
            description += f"  Parameters: {json.dumps(tool.input_schema, separators=(',', ':'))}\n"
    return description


def build_tool_prompt(query: str, tools_description: str) -> str:
    return (
        "You have access to the following tools:\n"
        f"{tools_description}\n\n"
        f"User query: {query}\n\n"
        "If you need to use any tools to answer the query, please specify the tool name "
        "and arguments in a clear, easily parsable format.\n\n"
        "For example, if using a database tool, say:\n"
        "\"I'll use the executeQuery tool with the following SQL: SELECT * FROM employees\"\n\n"
        "Or if you don't need tools: \"I can answer this directly without using tools...\""
    )


def build_followup_prompt(formatted_result: str) -> str:
    return (
        "Tool result:\n"
        f"{formatted_result}\n\n"
        "Based on this tool result, please provide a response to the user's query."
    )


def detect_tool(response: str, tools: List[Tool]) -> Optional[Tool]:
    """First tool the response says it will use, by name or by SQL hints"""
    lowered = response.lower()

    for tool in tools:
        name = tool.name.lower()
        if any(phrase.format(name) in lowered for phrase in TOOL_CALL_PHRASES):
            return tool

    query_tool = next((tool for tool in tools if tool.name == EXECUTE_QUERY), None)
    if query_tool and ("sql query" in lowered or "select " in lowered):
        return query_tool

    return None


def extract_tool_call(response: str, tools: List[Tool]) -> Optional[ToolCall]:
    """
    Pick a tool call out of an LLM reply.

    Returns None when no tools are available, none is mentioned, or the
    arguments for the mentioned tool cannot be recovered.
    """
    if not tools:
        logger.info("No tools available to extract")
        return None

    tool = detect_tool(response, tools)
    if tool is None:
        return None

    if tool.name == EXECUTE_QUERY:
        match = SQL_PATTERN.search(response)
        if not match:
            return None
        sql = match.group(0).strip()
        logger.info(f"Extracted SQL query: {sql}")
        return ToolCall(name=EXECUTE_QUERY, arguments={"sql": sql})

    if tool.name == SEARCH_DOCUMENTATION:
        match = SEARCH_QUERY_PATTERN.search(response)
        if not match:
            return None
        search_query = match.group(1)
        logger.info(f"Extracted search query: {search_query}")
        return ToolCall(name=SEARCH_DOCUMENTATION, arguments={"query": search_query})

    if tool.name == DOCUMENTATION_SUMMARY:
        summary_format = "detailed" if DETAILED_FORMAT_PATTERN.search(response) else "brief"
        return ToolCall(name=DOCUMENTATION_SUMMARY, arguments={"format": summary_format})

    logger.info(f"Unknown tool: {tool.name}, no specific parser available")
    return None


def format_query_results(results: List[Dict[str, Any]]) -> str:
    """Render query rows as a Markdown table, columns sorted by name"""
    if not results or not results[0]:
        return "No results found."

    columns = sorted(results[0].keys())

    table = "| " + " | ".join(columns) + " |\n"
    table += "| " + " | ".join("---" for _ in columns) + " |\n"

    for row in results:
        cells = []
        for key in columns:
            value = row.get(key)
            cells.append("" if value is None else str(value))
        table += "| " + " | ".join(cells) + " |\n"

    return table
