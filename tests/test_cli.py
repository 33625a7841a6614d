from __future__ import annotations

from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from codegen_agent.cli import _build_registry, app
from codegen_agent.config import ConfigurationError
from codegen_agent.models.agent_schemas import AgentResult, Step

runner = CliRunner()


def test_registry_has_every_tool(tmp_path):
    registry = _build_registry(tmp_path)
    assert registry.names() == [
        "swagger_parser",
        "basic_type_generator",
        "basic_api_generator",
        "file_reader",
        "file_writer",
        "file_exists",
        "file_search",
        "directory_list",
    ]


def test_tools_catalog(tmp_path):
    result = runner.invoke(app, ["tools", "--catalog", "--work-dir", str(tmp_path)])
    assert result.exit_code == 0
    assert "swagger_parser: Parse a Swagger 2.0 or OpenAPI 3.x document" in result.output
    assert '"filePath" (required): string' in result.output


def test_ask_prints_answer(tmp_path):
    agent = MagicMock()
    agent.run.return_value = AgentResult(answer="All done", steps=[Step(thought="t")], total_cost=7)
    with patch("codegen_agent.cli._build_agent", return_value=agent) as build:
        result = runner.invoke(app, ["ask", "generate types", "-w", str(tmp_path)])
    assert result.exit_code == 0
    assert "All done" in result.output
    assert "1 steps, 7 tokens" in result.output
    agent.run.assert_called_once_with("generate types")
    assert build.call_args[0][0] == tmp_path.resolve()


def test_ask_reports_configuration_error():
    with patch("codegen_agent.cli._build_agent", side_effect=ConfigurationError("An API key is required")):
        result = runner.invoke(app, ["ask", "hi"])
    assert result.exit_code == 1
    assert "An API key is required" in result.output


def test_chat_commands():
    agent = MagicMock()
    agent.get_history_summary.return_value = "0 rounds"
    agent.run.return_value = AgentResult(answer="pong", steps=[])
    with patch("codegen_agent.cli._build_agent", return_value=agent):
        result = runner.invoke(app, ["chat"], input="ping\n/history\n/clear\n/exit\n")
    assert result.exit_code == 0
    assert "pong" in result.output
    agent.run.assert_called_once_with("ping")
    agent.clear_history.assert_called_once()
