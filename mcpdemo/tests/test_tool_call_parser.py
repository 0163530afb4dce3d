"""
Tests for recognising tool calls in LLM replies
"""

import pytest

from mcpdemo.models.mcp import Tool
from mcpdemo.services.tool_call_parser import (
    build_followup_prompt,
    build_tool_prompt,
    detect_tool,
    extract_tool_call,
    format_query_results,
    format_tools_for_llm,
)
from mcpdemo.tests.fixtures import employee_rows


class TestPrompts:
    """Test cases for prompt construction"""

    def test_format_tools_for_llm(self, db_tools):
        text = format_tools_for_llm(db_tools)

        assert text.startswith("Available tools:\n")
        assert "- executeQuery: Execute an SQL query on the database\n" in text
        assert '  Parameters: {"type":"object","required":["sql"],' in text

    def test_format_tools_without_schema(self):
        text = format_tools_for_llm([Tool(name="ping")])
        assert text == "Available tools:\n- ping: No description\n"

    def test_build_tool_prompt(self):
        prompt = build_tool_prompt("How many employees?", "Available tools:\n- executeQuery: x\n")

        assert prompt.startswith(
            "You have access to the following tools:\nAvailable tools:\n- executeQuery: x\n\n\n"
            "User query: How many employees?\n\n"
        )
        assert "SELECT * FROM employees" in prompt

    def test_build_followup_prompt(self):
        assert build_followup_prompt("42\n") == (
            "Tool result:\n42\n\n\n"
            "Based on this tool result, please provide a response to the user's query."
        )


class TestDetectTool:
    """Test cases for finding the tool a reply refers to"""

    @pytest.mark.parametrize("reply", [
        "I'll use the executeQuery tool",
        "I am using the EXECUTEQUERY tool now",
        "Let me call executeQuery",
        "I will execute executeQuery",
    ])
    def test_detects_by_phrase(self, db_tools, reply):
        assert detect_tool(reply, db_tools).name == "executeQuery"

    def test_detects_sql_hint(self, db_tools):
        assert detect_tool("Here is a SQL query you could run", db_tools).name == "executeQuery"
        assert detect_tool("select name from employees", db_tools).name == "executeQuery"

    def test_sql_hint_needs_query_tool(self, doc_tools):
        assert detect_tool("SELECT * FROM docs", doc_tools) is None

    def test_no_mention(self, doc_tools):
        assert detect_tool("I can answer this directly without using tools.", doc_tools) is None


class TestExtractToolCall:
    """Test cases for turning replies into tool calls"""

    def test_no_tools_available(self):
        assert extract_tool_call("I'll use the executeQuery tool: SELECT * FROM t", []) is None

    def test_execute_query(self, db_tools):
        reply = ("I'll use the executeQuery tool with the following SQL: "
                 "SELECT name, department FROM employees WHERE department = 'Engineering'; Then I'll summarize.")

        call = extract_tool_call(reply, db_tools)

        assert call.name == "executeQuery"
        assert call.arguments == {"sql": "SELECT name, department FROM employees WHERE department = 'Engineering';"}

    def test_execute_query_to_end_of_reply(self, db_tools):
        call = extract_tool_call("I'll use the executeQuery tool with the following SQL: SELECT * FROM employees",
                                 db_tools)
        assert call.arguments == {"sql": "SELECT * FROM employees"}

    def test_multiline_sql(self, db_tools):
        reply = "I'll use the executeQuery tool:\nSELECT name\nFROM employees\nWHERE salary > 100000;"

        call = extract_tool_call(reply, db_tools)

        assert call.arguments["sql"] == "SELECT name\nFROM employees\nWHERE salary > 100000;"

    def test_execute_query_without_sql(self, db_tools):
        assert extract_tool_call("I'll use the executeQuery tool to look at the data.", db_tools) is None

    def test_search_documentation(self, doc_tools):
        reply = "I'll use the searchDocumentation tool to search through the docs for \"resources\"."

        call = extract_tool_call(reply, doc_tools)

        assert call.name == "searchDocumentation"
        assert call.arguments == {"query": "resources"}

    def test_search_documentation_without_quoted_term(self, doc_tools):
        assert extract_tool_call("I'll use the searchDocumentation tool.", doc_tools) is None

    def test_documentation_summary_detailed(self, doc_tools):
        call = extract_tool_call("I'll use the getDocumentationSummary tool for a comprehensive overview.",
                                 doc_tools)

        assert call.name == "getDocumentationSummary"
        assert call.arguments == {"format": "detailed"}

    def test_documentation_summary_brief(self, doc_tools):
        call = extract_tool_call("Let me call getDocumentationSummary", doc_tools)
        assert call.arguments == {"format": "brief"}

    def test_unknown_tool_has_no_parser(self):
        tools = [Tool(name="translate", description="Translate text")]
        assert extract_tool_call("I'll use the translate tool", tools) is None


class TestFormatQueryResults:
    """Test cases for the Markdown table rendering"""

    def test_table(self):
        table = format_query_results(employee_rows())

        assert table == (
            "| department | id | name |\n"
            "| --- | --- | --- |\n"
            "| Engineering | 1 | John Smith |\n"
            "| Engineering | 9 | Thomas Anderson |\n"
        )

    def test_missing_and_null_values(self):
        table = format_query_results([{"a": 1, "b": None}, {"a": 2}])
        assert table.splitlines()[2:] == ["| 1 |  |", "| 2 |  |"]

    def test_empty(self):
        assert format_query_results([]) == "No results found."
        assert format_query_results([{}]) == "No results found."
