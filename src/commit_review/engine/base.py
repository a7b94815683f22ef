"""
Reasoning engine protocol.

The engine receives role-tagged messages and streams text fragments back.
"""

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Protocol

from commit_review.errors import ReviewCancelled


@dataclass
class ChatMessage:
    """A role-tagged text message."""

    role: str
    content: str

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role="user", content=content)


@dataclass
class RequestOptions:
    """Per-request options."""

    justification: str = ""


class CancellationToken:
    """Cooperative cancellation signal."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise ReviewCancelled("Review cancelled")


class ReasoningEngine(Protocol):
    """An external language model consumed by the orchestrator."""

    def stream(
        self,
        messages: list[ChatMessage],
        options: RequestOptions,
        token: CancellationToken,
    ) -> AsyncGenerator[str, None]:
        """Send messages and yield answer fragments in delivery order."""
        ...
