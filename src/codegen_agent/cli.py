import logging
from pathlib import Path

import typer
from rich.console import Console

app = typer.Typer(name="codegen-agent", help="ReAct agent that turns API documents into typed client code.")
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(name)s | %(levelname)s | %(message)s")


def _build_registry(work_dir: Path):
    """Create a ToolRegistry with file, parser and generator tools rooted at work_dir."""
    from codegen_agent.services.local_service import LocalService
    from codegen_agent.tools import ToolRegistry
    from codegen_agent.tools.codegen_tools import create_codegen_tools
    from codegen_agent.tools.file_tools import create_file_tools
    from codegen_agent.tools.openapi_tools import create_openapi_tools

    service = LocalService(work_dir=work_dir)
    registry = ToolRegistry()
    registry.register_many(create_openapi_tools(service))
    registry.register_many(create_codegen_tools())
    registry.register_many(create_file_tools(service))
    return registry


def _build_agent(work_dir: Path, max_iterations: int = 0, verbose: bool = False):
    """Create a ReActAgent from settings, with the console callback when verbose."""
    from codegen_agent.agents.console_callback import ConsoleCallback, print_tools
    from codegen_agent.agents.react_agent import ReActAgent
    from codegen_agent.config import AgentConfig

    config = AgentConfig.from_settings("react", max_iterations=max_iterations or None)
    if verbose:
        config.verbose = True

    registry = _build_registry(work_dir)
    callback = None
    if config.verbose:
        print_tools(registry, console)
        callback = ConsoleCallback(console)
    return ReActAgent(registry=registry, config=config, callback=callback)


def _resolve_work_dir(work_dir: str) -> Path:
    from codegen_agent.config import settings

    return Path(work_dir or settings.workdir).expanduser().resolve()


@app.command()
def ask(
    question: str = typer.Argument(..., help="Request for the agent"),
    work_dir: str = typer.Option("", "--work-dir", "-w", help="Directory the file tools work in"),
    max_iterations: int = typer.Option(0, "--max-iterations", help="Max loop iterations (0 = use config)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable detailed logging"),
) -> None:
    """Run the agent on a single request."""
    from codegen_agent.config import ConfigurationError

    _setup_logging(verbose)
    try:
        agent = _build_agent(_resolve_work_dir(work_dir), max_iterations, verbose)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)

    result = agent.run(question)
    console.print(result.answer)
    console.print(f"[dim]{len(result.steps)} steps, {result.total_cost} tokens[/dim]")


@app.command()
def chat(
    work_dir: str = typer.Option("", "--work-dir", "-w", help="Directory the file tools work in"),
    max_iterations: int = typer.Option(0, "--max-iterations", help="Max loop iterations (0 = use config)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable detailed logging"),
) -> None:
    """Multi-turn conversation; the agent remembers earlier rounds.

    Commands: /clear forgets the history, /history shows its size, /exit quits.
    """
    from codegen_agent.config import ConfigurationError

    _setup_logging(verbose)
    try:
        agent = _build_agent(_resolve_work_dir(work_dir), max_iterations, verbose)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)

    console.print("[dim]Type /exit to quit, /clear to forget the history, /history for its size.[/dim]")
    while True:
        try:
            question = console.input("[bold cyan]> [/]").strip()
        except (EOFError, KeyboardInterrupt):
            console.print()
            break
        if not question:
            continue
        if question == "/exit":
            break
        if question == "/clear":
            agent.clear_history()
            console.print("[dim]History cleared.[/dim]")
            continue
        if question == "/history":
            console.print(f"[dim]{agent.get_history_summary()}[/dim]")
            continue

        result = agent.run(question)
        console.print(result.answer)
        console.print(f"[dim]{len(result.steps)} steps, {result.total_cost} tokens · {agent.get_history_summary()}[/dim]")


@app.command()
def tools(
    work_dir: str = typer.Option("", "--work-dir", "-w", help="Directory the file tools work in"),
    catalog: bool = typer.Option(False, "--catalog", help="Print the catalog exactly as the model sees it"),
) -> None:
    """List the available tools."""
    from codegen_agent.agents.console_callback import print_tools

    registry = _build_registry(_resolve_work_dir(work_dir))
    if catalog:
        console.print(registry.describe(), markup=False, highlight=False)
        return
    print_tools(registry, console)


if __name__ == "__main__":
    app()
