"""Rich console rendering of a ReAct run: thoughts, tool calls, observations."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console, RenderableType
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from codegen_agent.tools import ToolRegistry

MAX_OBSERVATION_LINES = 30
MAX_OBSERVATION_CHARS = 2000
MAX_ARG_CHARS = 120

TOOL_ICONS = {
    "file_reader": "👁 ",
    "file_writer": "📄",
    "file_exists": "❔",
    "file_search": "🔍",
    "directory_list": "📂",
    "swagger_parser": "📜",
    "basic_type_generator": "🏗 ",
    "basic_api_generator": "🔌",
}

# argument names whose values are source code
CODE_ARGS = {"content", "code"}


def _icon(name: str) -> str:
    return TOOL_ICONS.get(name, "🔧")


def clip(text: str, max_lines: int = MAX_OBSERVATION_LINES, max_chars: int = MAX_OBSERVATION_CHARS) -> str:
    """Shorten text to at most ``max_lines`` lines and ``max_chars`` characters."""
    lines = text.splitlines()
    if len(lines) <= max_lines and len(text) <= max_chars:
        return text
    clipped = "\n".join(lines[:max_lines])[:max_chars]
    hidden = len(lines) - max_lines
    if hidden > 0:
        clipped += f"\n... ({hidden} more lines)"
    else:
        clipped += "..."
    return clipped


def _short(value: Any) -> str:
    text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False, default=str)
    return text if len(text) <= MAX_ARG_CHARS else text[:MAX_ARG_CHARS] + "..."


def _observation_style(observation: str) -> str:
    if " failed. error: " in observation.split("\n", 1)[0]:
        return "red"
    return "dim"


def print_tools(registry: ToolRegistry, console: Console | None = None) -> None:
    console = console or Console()
    table = Table(title="Available tools", border_style="dim")
    table.add_column("Tool", style="bold cyan", no_wrap=True)
    table.add_column("Parameters", style="cyan")
    table.add_column("Description", style="dim")
    for tool in registry.list_all():
        properties = tool.parameters.get("properties") or {}
        required = set(tool.parameters.get("required", []))
        params = ", ".join(name if name in required else f"{name}?" for name in properties)
        table.add_row(f"{_icon(tool.name)} {tool.name}", params, tool.description)
    console.print(table)
    console.print()


class ConsoleCallback:
    """Step callback that prints every stage of a run to a rich console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def on_step_start(self, step: int, max_steps: int) -> None:
        self.console.rule(f"[bold blue]Iteration {step}/{max_steps}", style="blue")

    def on_thinking(self, text: str) -> None:
        self.console.print(
            Panel(clip(text), title="[bold yellow]Thought", border_style="yellow", padding=(0, 1))
        )

    def on_tool_call(self, name: str, args: Any) -> None:
        self.console.print(f"  {_icon(name)} [bold cyan]{name}[/]")
        if not isinstance(args, dict):
            if args is not None:
                self.console.print(f"      [dim]input:[/] {_short(args)}")
            return
        for key, value in args.items():
            if key in CODE_ARGS and isinstance(value, str) and "\n" in value:
                self.console.print(f"      [dim]{key}:[/]")
                self.console.print(
                    Panel(
                        Syntax(clip(value), "typescript", theme="ansi_dark", word_wrap=True),
                        border_style="dim",
                        padding=(0, 1),
                    )
                )
            else:
                self.console.print(f"      [dim]{key}:[/] {_short(value)}")

    def on_tool_result(self, name: str, result: str) -> None:
        style = _observation_style(result)
        body: RenderableType = Text(clip(result), style=style)
        self.console.print(
            Panel(body, title=f"[{style}]observation", border_style=style, padding=(0, 1))
        )

    def on_finish(self, text: str, steps: int, tool_calls: int) -> None:
        self.console.print()
        self.console.print(
            Panel(
                text,
                title=f"[bold green]Answer ({steps} steps, {tool_calls} tool calls)",
                border_style="green",
                padding=(0, 1),
            )
        )
