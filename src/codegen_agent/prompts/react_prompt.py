"""Prompt builders for the ReAct loop: system prompt, user turn, observations."""

from __future__ import annotations

import json
from typing import Any, Sequence

from codegen_agent.models.agent_schemas import Step
from codegen_agent.prompts.prompt_layer import load_prompt, render_prompt

STEP_SEPARATOR = "-" * 50


def to_text(value: Any) -> str:
    """Compact, deterministic text form of an arbitrary payload."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


def build_system_prompt(tool_catalog: str, tool_names: Sequence[str]) -> str:
    return render_prompt(
        "react_system",
        tool_catalog=tool_catalog,
        tool_names=", ".join(tool_names),
    )


def build_user_message(question: str, steps: Sequence[Step]) -> str:
    """Render the question together with the steps taken so far for it."""
    message = f"Question: {question}\n\n"
    if not steps:
        return message

    message += f"Reasoning and actions so far for this question ({len(steps)} steps):\n\n"
    for index, step in enumerate(steps, 1):
        message += f"[Step {index}]\n"
        message += f"Thought: {step.thought}\n"
        if step.action:
            message += f"Action: {step.action}\n"
            message += f"Input: {to_text(step.action_input)}\n"
            message += f"Observation: {step.observation}\n"
        message += f"{STEP_SEPARATOR}\n\n"
    message += load_prompt("react_reminder") + "\n"
    return message


def format_observation(
    tool_name: str,
    success: bool,
    data: Any = None,
    error: str | None = None,
) -> str:
    if success:
        return f"tool [{tool_name}] succeeded. result: {to_text(data)}"
    return f"tool [{tool_name}] failed. error: {error}"
