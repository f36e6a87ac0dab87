from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID, uuid4

from quizchat.core.messages import Transcript
from quizchat.core.placement import QuizAttempt
from quizchat.models import GameState, Language, Message, NodeId


class SessionPhase(StrEnum):
    conversing = "conversing"
    quiz_active = "quiz_active"
    ended = "ended"


def _now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(slots=True)
class Session:
    """Everything one user's conversation owns.

    Passed explicitly to every controller call; nothing here is shared
    between sessions.
    """

    language: Language = Language.en
    session_id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_now)
    last_updated_at: datetime = field(default_factory=_now)

    game: GameState = field(default_factory=GameState)
    phase: SessionPhase = SessionPhase.conversing
    current_node_id: NodeId | None = None

    # Only set while a QUIZ_DRAG_DROP node is active.
    attempt: QuizAttempt | None = None

    transcript: Transcript = field(default_factory=Transcript)
    # Branch keys in the order they were chosen (buttons and loop branches).
    branch_history: list[str] = field(default_factory=list)

    @property
    def started(self) -> bool:
        return self.current_node_id is not None

    @property
    def messages(self) -> list[Message]:
        return self.transcript.messages

    def touch(self) -> None:
        self.last_updated_at = _now()
