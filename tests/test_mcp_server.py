"""Tests for the MCP tool layer."""

import asyncio
import inspect
import json
import time

from ctxpack.errors import ContextNotFound
from ctxpack.server import ContextService, create_mcp_server
from ctxpack.sandbox import ScriptSandbox
from ctxpack.server.mcp_server import _call

TOOL_NAMES = {
    "rlm_load_context",
    "rlm_get_context_info",
    "rlm_read_context",
    "rlm_decompose_context",
    "rlm_get_chunks",
    "rlm_search_context",
    "rlm_find_all",
    "rlm_execute_code",
    "rlm_set_variable",
    "rlm_get_variable",
    "rlm_set_answer",
    "rlm_get_answer",
    "rlm_create_session",
    "rlm_get_session_info",
    "rlm_clear_session",
    "rlm_suggest_strategy",
    "rlm_get_statistics",
    "rlm_load_directory",
}


class TestCall:
    """Tests for turning operation results into tool output."""

    def test_success_is_json(self):
        output = _call(lambda: {"value": "ü"})

        assert json.loads(output) == {"value": "ü"}
        assert "ü" in output

    def test_engine_errors_are_structured(self):
        def failing():
            raise ContextNotFound("main")

        result = json.loads(_call(failing))

        assert result == {
            "success": False,
            "error": {
                "code": "context_not_found",
                "type": "ContextNotFound",
                "message": 'Context "main" not found',
            },
        }

    def test_unexpected_errors_do_not_escape(self):
        def broken():
            raise RuntimeError("kaboom")

        result = json.loads(_call(broken))

        assert result["success"] is False
        assert result["error"]["code"] == "internal_error"
        assert result["error"]["message"] == "kaboom"


class TestServer:
    """Tests for tool registration."""

    def test_tools_registered(self):
        mcp = create_mcp_server(ContextService())

        tools = asyncio.run(mcp.list_tools())

        assert {tool.name for tool in tools} == TOOL_NAMES

    def test_tools_are_documented(self):
        mcp = create_mcp_server(ContextService())

        for tool in asyncio.run(mcp.list_tools()):
            assert tool.description, tool.name

    def test_tools_are_coroutines(self):
        mcp = create_mcp_server(ContextService())

        for tool in mcp._tool_manager.list_tools():
            assert inspect.iscoroutinefunction(tool.fn), tool.name


class TestConcurrency:
    """Tests that a running script does not stall the event loop."""

    def test_loop_keeps_ticking_while_a_script_holds_the_session(self):
        mcp = create_mcp_server(ContextService(sandbox=ScriptSandbox(timeout=3)))
        gaps = []

        async def ticker(stop):
            last = time.monotonic()
            while not stop.is_set():
                await asyncio.sleep(0.05)
                now = time.monotonic()
                gaps.append(now - last)
                last = now

        async def scenario():
            stop = asyncio.Event()
            ticking = asyncio.create_task(ticker(stop))
            script = asyncio.create_task(
                mcp.call_tool("rlm_execute_code", {"code": "while True:\n    pass"})
            )
            await asyncio.sleep(1)
            # Waits on the session lock until the script times out.
            await mcp.call_tool("rlm_get_answer", {})
            await script
            stop.set()
            await ticking

        asyncio.run(scenario())

        assert len(gaps) > 20
        assert max(gaps) < 1.0
