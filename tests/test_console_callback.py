from __future__ import annotations

import io

from rich.console import Console

from codegen_agent.agents.console_callback import ConsoleCallback, clip, print_tools
from codegen_agent.tools import ToolRegistry
from codegen_agent.tools.codegen_tools import create_codegen_tools


def _console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, width=120, color_system=None), buffer


def test_clip_leaves_short_text_alone():
    assert clip("short") == "short"


def test_clip_limits_lines():
    text = "\n".join(f"line {i}" for i in range(50))
    clipped = clip(text, max_lines=3)
    assert clipped == "line 0\nline 1\nline 2\n... (47 more lines)"


def test_clip_limits_chars():
    assert clip("x" * 50, max_chars=10) == "x" * 10 + "..."


def test_print_tools_marks_optional_parameters():
    console, buffer = _console()
    registry = ToolRegistry()
    registry.register_many(create_codegen_tools())
    print_tools(registry, console)
    output = buffer.getvalue()
    assert "basic_type_generator" in output
    assert "schemas, options?" in output


def test_callback_renders_a_run():
    console, buffer = _console()
    callback = ConsoleCallback(console)
    callback.on_step_start(1, 10)
    callback.on_thinking("parse the document first")
    callback.on_tool_call("file_writer", {"filePath": "api.ts", "content": "a\nb"})
    callback.on_tool_result("file_writer", "tool [file_writer] failed. error: disk full")
    callback.on_finish("done", 2, 1)

    output = buffer.getvalue()
    assert "Iteration 1/10" in output
    assert "parse the document first" in output
    assert "filePath: api.ts" in output
    assert "disk full" in output
    assert "Answer (2 steps, 1 tool calls)" in output
