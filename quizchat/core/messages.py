from __future__ import annotations

from dataclasses import dataclass, field
from string import Template
from typing import Literal, assert_never

from quizchat.i18n import Translator
from quizchat.models import (
    AnswerNode,
    Button,
    GameState,
    Language,
    LoopQuestionNode,
    Message,
    PromptNode,
    QuestionNode,
    QuizDragDropNode,
    VisibleNode,
)


@dataclass(slots=True)
class Transcript:
    """Append-only message log for one session."""

    messages: list[Message] = field(default_factory=list)

    def append(
        self,
        *,
        sender: Literal["user", "bot"],
        text: str,
        buttons: list[Button] | None = None,
        quiz_data: QuizDragDropNode | None = None,
        language: Language | None = None,
    ) -> Message:
        msg = Message(
            id=len(self.messages) + 1,
            sender=sender,
            text=text,
            buttons=buttons,
            quiz_data=quiz_data,
            language=language,
        )
        self.messages.append(msg)
        return msg

    def __len__(self) -> int:
        return len(self.messages)


def dynamic_fields(state: GameState) -> dict[str, str]:
    """Values available to `isDynamic` node text as ${name} placeholders."""

    return {
        "user_name": state.user_name,
        "major": state.major,
        "score": str(state.score),
        "streak": str(state.streak),
        "quiz_correct_answers": str(state.quiz_correct_answers),
        "achievement_count": str(len(state.achievements)),
    }


def node_text(*, node: VisibleNode, state: GameState, translator: Translator, language: Language) -> str:
    text = translator.translate(node.text, language)
    if node.is_dynamic:
        # Unknown placeholders stay as written.
        text = Template(text).safe_substitute(dynamic_fields(state))
    return text


def buttons_for(node: VisibleNode) -> list[Button] | None:
    """Buttons to attach to a node's bot message.

    LOOP_QUESTION branches are offered as buttons carrying their branch key.
    """

    if isinstance(node, (QuestionNode, AnswerNode)):
        return list(node.buttons) or None
    if isinstance(node, LoopQuestionNode):
        return [Button(text=b.text, next_node=b.next_node, branch_key=key) for key, b in node.branches.items()] or None
    if isinstance(node, (PromptNode, QuizDragDropNode)):
        return None
    assert_never(node)


def bot_message_for(
    *,
    transcript: Transcript,
    node: VisibleNode,
    state: GameState,
    translator: Translator,
    language: Language,
) -> Message:
    return transcript.append(
        sender="bot",
        text=node_text(node=node, state=state, translator=translator, language=language),
        buttons=buttons_for(node),
        quiz_data=node if isinstance(node, QuizDragDropNode) else None,
        language=language,
    )
