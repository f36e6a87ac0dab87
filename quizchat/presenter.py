from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from quizchat.models import Message, QuizDragDropNode


OnComplete = Callable[[bool], None]


class Presenter(Protocol):
    """Renders transcript messages and quiz widgets. Implemented by the host UI."""

    def render(self, message: Message) -> None: ...

    def render_quiz(self, node: QuizDragDropNode, on_complete: OnComplete) -> None: ...


@dataclass(slots=True)
class RecordingPresenter:
    """Presenter that just keeps everything it was asked to show."""

    messages: list[Message] = field(default_factory=list)
    quizzes: list[tuple[QuizDragDropNode, OnComplete]] = field(default_factory=list)

    def render(self, message: Message) -> None:
        self.messages.append(message)

    def render_quiz(self, node: QuizDragDropNode, on_complete: OnComplete) -> None:
        self.quizzes.append((node, on_complete))

    @property
    def texts(self) -> list[str]:
        return [m.text for m in self.messages]
