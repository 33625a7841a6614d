"""Models for the reasoning/acting loop."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DecisionParseError(Exception):
    """Raised when a model reply cannot be read as an agent decision."""


class ToolResult(BaseModel):
    success: bool
    data: Any = None
    error: str | None = None

    @model_validator(mode="after")
    def _error_iff_failure(self) -> ToolResult:
        if self.error is not None and self.success:
            raise ValueError("a tool result carrying an error cannot be successful")
        if self.error is None and not self.success:
            raise ValueError("a failed tool result must carry an error")
        return self

    @classmethod
    def ok(cls, data: Any = None) -> ToolResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> ToolResult:
        return cls(success=False, error=error)


class Step(BaseModel):
    """One iteration of a single question's reasoning trace."""

    model_config = ConfigDict(frozen=True)

    thought: str
    action: str | None = None
    action_input: Any = None
    observation: str | None = None


class AgentDecision(BaseModel):
    """Structured reply the model produces on every iteration."""

    model_config = ConfigDict(populate_by_name=True)

    thought: str
    action: str | None = None
    action_input: Any = Field(default=None, alias="actionInput")
    final_answer: str | None = Field(default=None, alias="finalAnswer")

    @field_validator("final_answer", mode="before")
    @classmethod
    def _coerce_final_answer(cls, value: Any) -> Any:
        # Some models answer numeric questions with a bare number
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class AgentResult(BaseModel):
    answer: str
    steps: list[Step]
    total_cost: int = 0


class ConversationMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str
