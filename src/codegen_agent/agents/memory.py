"""Rolling conversation memory with round-safe summary compression."""

from __future__ import annotations

import logging
import re
from typing import Sequence

from codegen_agent.models.agent_schemas import ConversationMessage, Step

logger = logging.getLogger(__name__)

KEEP_RATIO = 0.6
QUESTION_PREVIEW_CHARS = 80
ANSWER_PREVIEW_CHARS = 100

ANSWER_MARKER = re.compile(r"^answer:[ \t]*", re.MULTILINE | re.IGNORECASE)


def _preview(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def _extract_answer(content: str) -> str:
    """Text after the last ``answer:`` line marker, else the whole content."""
    last = None
    for last in ANSWER_MARKER.finditer(content):
        pass
    if last is not None:
        answer = content[last.end():].strip()
        if answer:
            return answer
    return content


class ConversationMemory:
    """Ordered user/assistant history for one agent instance.

    Each question is stored as a user message followed by an assistant message
    that flattens the question's steps into a short narrative. Once the history
    grows past ``max_history_rounds`` rounds, the oldest complete rounds are
    replaced by one synthetic assistant summary message at the head of the
    history. A later compression folds the previous summary into the new one,
    so the head summary is always the only unpaired message.
    """

    def __init__(self, max_history_rounds: int = 10) -> None:
        self.max_history_rounds = max_history_rounds
        self._messages: list[ConversationMessage] = []
        self._summary_entries: list[str] = []

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def _head(self) -> int:
        return 1 if self._summary_entries else 0

    def record(self, question: str, answer: str, steps: Sequence[Step]) -> None:
        self._messages.append(ConversationMessage(role="user", content=question))

        lines = [
            f"- step {index}: used tool `{step.action}`, obtained: `{step.observation}`"
            for index, step in enumerate(steps, 1)
            if step.action and step.observation
        ]
        content = ""
        if lines:
            content = "reasoning:\n" + "\n".join(lines) + "\n\n"
        content += f"answer: {answer}"
        self._messages.append(ConversationMessage(role="assistant", content=content))

        logger.debug("Recorded round (%d messages stored)", len(self._messages))
        self.compress_if_needed()

    def compress_if_needed(self) -> None:
        limit = self.max_history_rounds * 2
        total = len(self._messages)
        if total <= limit:
            return

        keep = int(limit * KEEP_RATIO)
        head = self._head
        rounds = (total - keep - head) // 2
        count = rounds * 2
        if count < 2:
            return

        to_compress = self._messages[head:head + count]
        to_keep = self._messages[head + count:]
        for i in range(0, count, 2):
            question = _preview(to_compress[i].content, QUESTION_PREVIEW_CHARS)
            answer = _preview(_extract_answer(to_compress[i + 1].content), ANSWER_PREVIEW_CHARS)
            number = len(self._summary_entries) + 1
            self._summary_entries.append(f"round {number} - Q: {question}\n          A: {answer}")

        summary = ConversationMessage(role="assistant", content=self._render_summary())
        self._messages = [summary, *to_keep]
        logger.info(
            "Compressed %d rounds (%d messages) into a summary, kept %d recent messages",
            rounds,
            count,
            len(to_keep),
        )

    def _render_summary(self) -> str:
        summary = (
            f"Summary of earlier conversation "
            f"({len(self._summary_entries)} rounds compressed):\n\n"
        )
        summary += "\n\n".join(self._summary_entries)
        summary += (
            "\n\nNote: this is a condensed summary of earlier rounds; "
            "reason from it when referring back to them."
        )
        return summary

    def clear(self) -> None:
        self._messages = []
        self._summary_entries = []

    def history(self) -> list[ConversationMessage]:
        return list(self._messages)

    def snapshot(self) -> list[dict]:
        """Messages in chat-completion form, for building a model request."""
        return [m.model_dump() for m in self._messages]

    def summary(self) -> str:
        if not self._messages:
            return "no conversation history yet"
        rounds = (len(self._messages) - self._head) // 2 + len(self._summary_entries)
        return f"{rounds} rounds, {len(self._messages)} messages"
