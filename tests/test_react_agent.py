"""Tests for the ReAct loop, driven by a scripted chat model."""

from __future__ import annotations

import json

import pytest

from codegen_agent.agents.console_callback import ConsoleCallback
from codegen_agent.agents.react_agent import (
    BUDGET_EXHAUSTED_ANSWER,
    NullCallback,
    ReActAgent,
    parse_decision,
)
from codegen_agent.config import AgentConfig, ConfigurationError
from codegen_agent.models.agent_schemas import DecisionParseError, ToolResult
from codegen_agent.services.llm_service import ModelReply
from codegen_agent.tools import Tool, ToolRegistry


class ScriptedModel:
    """Chat model that replays canned replies and records every request."""

    def __init__(self, replies, usage: int = 5):
        self.replies = list(replies)
        self.usage = usage
        self.calls: list[tuple[str, list[dict]]] = []

    def complete(self, system_prompt, messages):
        self.calls.append((system_prompt, messages))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if not isinstance(reply, str):
            reply = json.dumps(reply)
        return ModelReply(content=reply, usage=self.usage)


class RecordingCallback:
    def __init__(self):
        self.events: list[tuple] = []

    def on_step_start(self, step, max_steps):
        self.events.append(("start", step, max_steps))

    def on_thinking(self, text):
        self.events.append(("thinking", text))

    def on_tool_call(self, name, args):
        self.events.append(("call", name))

    def on_tool_result(self, name, result):
        self.events.append(("result", name))

    def on_finish(self, text, steps, tool_calls):
        self.events.append(("finish", steps, tool_calls))


def _action(tool: str, args, thought: str = "use a tool") -> dict:
    return {"thought": thought, "action": tool, "actionInput": args}


def _final(answer: str, thought: str = "done") -> dict:
    return {"thought": thought, "finalAnswer": answer}


@pytest.fixture
def executions():
    return []


@pytest.fixture
def registry(executions):
    def echo(args):
        executions.append(args)
        return ToolResult.ok({"echo": args})

    def explode(args):
        raise RuntimeError("disk on fire")

    reg = ToolRegistry()
    reg.register(Tool(name="echo", description="Echo the input", parameters={}, execute=echo))
    reg.register(Tool(name="explode", description="Always raises", parameters={}, execute=explode))
    return reg


def _agent(registry, replies, max_iterations: int = 10, max_history_rounds: int = 10, callback=None):
    config = AgentConfig(
        model="m",
        api_key="k",
        max_iterations=max_iterations,
        max_history_rounds=max_history_rounds,
    )
    model = ScriptedModel(replies)
    return ReActAgent(registry=registry, config=config, llm=model, callback=callback), model


# ---------------------------------------------------------------------------
# parse_decision
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("content", ["", "   ", "not json", "[1, 2]", '{"action": "echo"}'])
def test_parse_decision_rejects_bad_replies(content):
    with pytest.raises(DecisionParseError):
        parse_decision(content)


def test_parse_decision_reads_wire_format():
    decision = parse_decision('{"thought": "t", "action": "echo", "actionInput": {"x": 1}}')
    assert decision.action == "echo"
    assert decision.action_input == {"x": 1}


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def test_missing_api_key_fails_at_construction(registry):
    with pytest.raises(ConfigurationError):
        ReActAgent(registry=registry, config=AgentConfig(model="m", api_key=""))


def test_zero_iteration_budget_is_rejected(registry):
    with pytest.raises(ConfigurationError):
        _agent(registry, [], max_iterations=0)


# ---------------------------------------------------------------------------
# Loop outcomes
# ---------------------------------------------------------------------------

def test_immediate_final_answer(registry):
    agent, model = _agent(registry, [_final("42")])
    result = agent.run("What is the answer?")
    assert result.answer == "42"
    assert len(result.steps) == 1
    assert result.steps[0].action is None
    assert result.total_cost == 5
    assert len(model.calls) == 1


def test_tool_then_answer(registry, executions):
    agent, model = _agent(registry, [_action("echo", {"x": 1}), _final("echoed")])
    result = agent.run("echo something")

    assert result.answer == "echoed"
    assert executions == [{"x": 1}]
    assert result.steps[0].observation == 'tool [echo] succeeded. result: {"echo":{"x":1}}'
    assert result.total_cost == 10
    # second request carries the first step
    _, messages = model.calls[1]
    assert "[Step 1]" in messages[-1]["content"]
    assert "Action: echo" in messages[-1]["content"]


def test_repeated_action_stops_the_loop(registry, executions):
    replies = [_action("echo", {"x": 1})] * 3
    agent, _ = _agent(registry, replies)
    result = agent.run("loop forever")

    assert result.answer.startswith("Detected a repeated action loop. Ran 2 steps")
    assert "(echo)" in result.answer
    assert len(result.steps) == 2
    assert len(executions) == 2


def test_same_action_with_new_input_is_not_a_repeat(registry, executions):
    replies = [
        _action("echo", {"x": 1}),
        _action("echo", {"x": 1}),
        _action("echo", {"x": 2}),
        _final("ok"),
    ]
    agent, _ = _agent(registry, replies)
    assert agent.run("q").answer == "ok"
    assert len(executions) == 3


def test_key_order_does_not_hide_a_repeat(registry):
    replies = [
        _action("echo", {"a": 1, "b": 2}),
        _action("echo", {"b": 2, "a": 1}),
        _action("echo", {"a": 1, "b": 2}),
    ]
    agent, _ = _agent(registry, replies)
    assert agent.run("q").answer.startswith("Detected a repeated action loop")


def test_iteration_budget_exhausted(registry, executions):
    replies = [_action("echo", {"x": 1}), _action("echo", {"x": 2})]
    agent, model = _agent(registry, replies, max_iterations=2)
    result = agent.run("never finishes")

    assert result.answer == BUDGET_EXHAUSTED_ANSWER
    assert len(executions) == 2
    assert len(result.steps) == 2
    assert len(model.calls) == 2


def test_invalid_json_becomes_error_answer(registry):
    agent, _ = _agent(registry, ["this is not json"])
    result = agent.run("q")
    assert result.answer.startswith("Sorry, an error occurred while running:")
    assert "not valid JSON" in result.answer
    assert result.steps == []


def test_reply_without_action_or_answer_is_an_error(registry):
    agent, _ = _agent(registry, [{"thought": "hmm"}])
    result = agent.run("q")
    assert result.answer.startswith("Sorry, an error occurred while running:")


def test_model_failure_becomes_error_answer(registry):
    agent, _ = _agent(registry, [ConnectionError("network down")])
    result = agent.run("q")
    assert result.answer == "Sorry, an error occurred while running: network down"


def test_unknown_tool_is_reported_as_observation(registry):
    agent, _ = _agent(registry, [_action("missing", {}), _final("gave up")])
    result = agent.run("q")
    assert result.answer == "gave up"
    assert result.steps[0].observation == (
        'tool [missing] failed. error: tool "missing" does not exist. '
        "available tools: echo, explode"
    )


def test_raising_tool_is_reported_as_observation(registry):
    agent, _ = _agent(registry, [_action("explode", {}), _final("recovered")])
    result = agent.run("q")
    assert result.answer == "recovered"
    assert result.steps[0].observation == "tool [explode] failed. error: disk on fire"


def test_dict_result_is_accepted_as_tool_result(registry):
    registry.register(
        Tool(name="legacy", description="Returns a plain dict", parameters={},
             execute=lambda args: {"success": True, "data": 1})
    )
    agent, _ = _agent(registry, [_action("legacy", {}), _final("ok")])
    result = agent.run("q")
    assert result.answer == "ok"
    assert result.steps[0].observation == "tool [legacy] succeeded. result: 1"


def test_malformed_tool_result_is_a_failure_observation(registry):
    registry.register(
        Tool(name="broken", description="Returns garbage", parameters={},
             execute=lambda args: "not a result")
    )
    agent, _ = _agent(registry, [_action("broken", {}), _final("moved on")])
    result = agent.run("q")
    assert result.answer == "moved on"
    assert result.steps[0].observation.startswith("tool [broken] failed. error: ")


def test_verbose_config_selects_console_callback(registry):
    config = AgentConfig(model="m", api_key="k", verbose=True)
    agent = ReActAgent(registry=registry, config=config, llm=ScriptedModel([]))
    assert isinstance(agent.cb, ConsoleCallback)


def test_explicit_callback_wins_over_verbose(registry):
    callback = RecordingCallback()
    config = AgentConfig(model="m", api_key="k", verbose=True)
    agent = ReActAgent(registry=registry, config=config, llm=ScriptedModel([]), callback=callback)
    assert agent.cb is callback


def test_quiet_config_uses_null_callback(registry):
    agent, _ = _agent(registry, [])
    assert isinstance(agent.cb, NullCallback)


def test_callback_sees_every_stage(registry):
    callback = RecordingCallback()
    agent, _ = _agent(registry, [_action("echo", {}), _final("ok")], callback=callback)
    agent.run("q")
    kinds = [e[0] for e in callback.events]
    assert kinds == ["start", "thinking", "call", "result", "start", "thinking", "finish"]
    assert callback.events[-1] == ("finish", 2, 1)


# ---------------------------------------------------------------------------
# Conversation memory
# ---------------------------------------------------------------------------

def test_runs_share_conversation_memory(registry):
    agent, model = _agent(registry, [_final("first"), _final("second")])
    agent.run("one")
    agent.run("two")

    _, messages = model.calls[1]
    assert messages[0] == {"role": "user", "content": "one"}
    assert messages[1] == {"role": "assistant", "content": "answer: first"}
    assert messages[2]["content"] == "Question: two\n\n"
    assert agent.get_history_summary() == "2 rounds, 4 messages"


def test_failed_runs_are_recorded_too(registry):
    agent, _ = _agent(registry, ["garbage"])
    agent.run("q")
    history = agent.get_history()
    assert history[0].content == "q"
    assert "Sorry, an error occurred" in history[1].content


def test_clear_history(registry):
    agent, _ = _agent(registry, [_final("a")])
    agent.run("q")
    agent.clear_history()
    assert agent.get_history() == []
    assert agent.get_history_summary() == "no conversation history yet"
