"""ReAct-style reasoning/acting loop over a JSON decision protocol."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from pydantic import ValidationError

from codegen_agent.agents.memory import ConversationMemory
from codegen_agent.config import AgentConfig
from codegen_agent.models.agent_schemas import (
    AgentDecision,
    AgentResult,
    ConversationMessage,
    DecisionParseError,
    Step,
    ToolResult,
)
from codegen_agent.prompts.react_prompt import (
    build_system_prompt,
    build_user_message,
    format_observation,
)
from codegen_agent.services.llm_service import ChatModel, LLMService, ModelReply
from codegen_agent.tools import ToolRegistry

logger = logging.getLogger(__name__)

BUDGET_EXHAUSTED_ANSWER = (
    "Sorry, I could not complete the reasoning within the iteration budget. "
    "Try simplifying the request or raising the maximum number of iterations."
)

REPEAT_WINDOW = 2


class StepCallback(Protocol):
    def on_step_start(self, step: int, max_steps: int) -> None: ...
    def on_thinking(self, text: str) -> None: ...
    def on_tool_call(self, name: str, args: Any) -> None: ...
    def on_tool_result(self, name: str, result: str) -> None: ...
    def on_finish(self, text: str, steps: int, tool_calls: int) -> None: ...


class NullCallback:
    def on_step_start(self, step: int, max_steps: int) -> None: ...
    def on_thinking(self, text: str) -> None: ...
    def on_tool_call(self, name: str, args: Any) -> None: ...
    def on_tool_result(self, name: str, result: str) -> None: ...
    def on_finish(self, text: str, steps: int, tool_calls: int) -> None: ...


def _action_key(action: str, action_input: Any) -> tuple[str, str]:
    return action, json.dumps(action_input, sort_keys=True, default=str)


def parse_decision(content: str) -> AgentDecision:
    """Read one model reply as an AgentDecision. Raises DecisionParseError."""
    if not content or not content.strip():
        raise DecisionParseError("the model returned an empty response")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise DecisionParseError(f"response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise DecisionParseError("response JSON is not an object")
    try:
        return AgentDecision.model_validate(data)
    except ValidationError as e:
        raise DecisionParseError(f"response does not match the decision shape: {e}") from e


class ReActAgent:
    """Drives the model through thought/action/observation turns for one question.

    Each ``run`` is independent apart from the shared conversation memory,
    which is appended to when the run ends. Callers must serialize ``run``
    calls on one instance.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        config: AgentConfig,
        llm: ChatModel | None = None,
        callback: StepCallback | None = None,
    ) -> None:
        config.check()
        self.registry = registry
        self.config = config
        self.llm: ChatModel = llm or LLMService(config.to_model_config(), api_key=config.api_key)
        if callback is None and config.verbose:
            from codegen_agent.agents.console_callback import ConsoleCallback

            callback = ConsoleCallback()
        self.cb: StepCallback = callback or NullCallback()
        self.memory = ConversationMemory(config.max_history_rounds)

        logger.info(
            "ReAct agent ready: model=%s max_iterations=%d max_history_rounds=%d tools=%s",
            config.model,
            config.max_iterations,
            config.max_history_rounds,
            ", ".join(registry.names()),
        )

    def run(self, question: str) -> AgentResult:
        steps: list[Step] = []
        total_cost = 0
        max_iterations = self.config.max_iterations
        logger.info("Question: %s", question)

        for iteration in range(1, max_iterations + 1):
            self.cb.on_step_start(iteration, max_iterations)
            try:
                reply = self._call_model(question, steps)
                total_cost += reply.usage
                decision = parse_decision(reply.content)
                self.cb.on_thinking(decision.thought)

                if decision.final_answer:
                    steps.append(Step(thought=decision.thought))
                    return self._finish(question, decision.final_answer, steps, total_cost)

                if not decision.action:
                    raise DecisionParseError(
                        "the model response has neither an action nor a final answer"
                    )

                if self._is_repeating(steps, decision.action, decision.action_input):
                    logger.warning(
                        "Action '%s' proposed %d times in a row with the same input, stopping",
                        decision.action,
                        REPEAT_WINDOW + 1,
                    )
                    answer = (
                        f"Detected a repeated action loop. Ran {len(steps)} steps, but the "
                        f"model kept repeating the same action ({decision.action}). "
                        f"Last observation: {steps[-1].observation or 'none'}. "
                        "Try a more specific request or a different model."
                    )
                    return self._finish(question, answer, steps, total_cost)

                self.cb.on_tool_call(decision.action, decision.action_input)
                observation = self.execute_tool(decision.action, decision.action_input)
                self.cb.on_tool_result(decision.action, observation)
                steps.append(
                    Step(
                        thought=decision.thought,
                        action=decision.action,
                        action_input=decision.action_input,
                        observation=observation,
                    )
                )
            except Exception as e:
                logger.error("Run failed at iteration %d: %s", iteration, e)
                answer = f"Sorry, an error occurred while running: {e}"
                return self._finish(question, answer, steps, total_cost)

        logger.warning("Agent hit max iterations (%d)", max_iterations)
        return self._finish(question, BUDGET_EXHAUSTED_ANSWER, steps, total_cost)

    def _call_model(self, question: str, steps: list[Step]) -> ModelReply:
        system_prompt = build_system_prompt(self.registry.describe(), self.registry.names())
        messages = [
            *self.memory.snapshot(),
            {"role": "user", "content": build_user_message(question, steps)},
        ]
        logger.debug("Calling model with %d messages, %d steps so far", len(messages), len(steps))
        return self.llm.complete(system_prompt, messages)

    @staticmethod
    def _is_repeating(steps: list[Step], action: str, action_input: Any) -> bool:
        if len(steps) < REPEAT_WINDOW:
            return False
        proposed = _action_key(action, action_input)
        return all(
            step.action is not None and _action_key(step.action, step.action_input) == proposed
            for step in steps[-REPEAT_WINDOW:]
        )

    def execute_tool(self, name: str, tool_input: Any) -> str:
        tool = self.registry.get(name)
        if tool is None:
            return format_observation(
                name,
                False,
                error=(
                    f'tool "{name}" does not exist. '
                    f"available tools: {', '.join(self.registry.names())}"
                ),
            )
        try:
            result = tool.execute(tool_input)
            if not isinstance(result, ToolResult):
                result = ToolResult.model_validate(result)
        except Exception as e:
            logger.error("Tool '%s' failed: %s", name, e)
            return format_observation(name, False, error=str(e))
        return format_observation(name, result.success, result.data, result.error)

    def _finish(
        self, question: str, answer: str, steps: list[Step], total_cost: int
    ) -> AgentResult:
        self.memory.record(question, answer, steps)
        tool_calls = sum(1 for s in steps if s.action)
        self.cb.on_finish(answer, len(steps), tool_calls)
        return AgentResult(answer=answer, steps=list(steps), total_cost=total_cost)

    # --- conversation memory accessors ---

    def clear_history(self) -> None:
        self.memory.clear()
        logger.info("Conversation history cleared")

    def get_history(self) -> list[ConversationMessage]:
        return self.memory.history()

    def get_history_summary(self) -> str:
        return self.memory.summary()
