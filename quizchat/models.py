from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


NodeId: TypeAlias = str


class Language(StrEnum):
    en = "en"
    ms = "ms"


class TreeModel(BaseModel):
    # Tree JSON uses camelCase keys (nextNode, achievementId, ...); Python code uses snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Button(TreeModel):
    text: str
    next_node: NodeId
    branch_key: str | None = None
    # Rendering hint only; both kinds transition to next_node.
    type: Literal["link", "share_linkedin"] | None = None


class Branch(TreeModel):
    text: str
    next_node: NodeId


class QuizItem(TreeModel):
    id: str
    text_key: str


class QuizTarget(TreeModel):
    id: str
    label: str
    correct_item_id: str


class _BaseNode(TreeModel):
    # Translation key.
    text: str
    next_node: NodeId | None = None
    is_dynamic: bool = False
    # Marks a node that represents a correct quiz outcome (presentation hint).
    is_correct: bool = False
    achievement_id: str | None = None


class QuestionNode(_BaseNode):
    type: Literal["QUESTION"] = "QUESTION"
    buttons: list[Button]


class AnswerNode(_BaseNode):
    type: Literal["ANSWER"] = "ANSWER"
    buttons: list[Button] = Field(default_factory=list)


class LoopQuestionNode(_BaseNode):
    type: Literal["LOOP_QUESTION"] = "LOOP_QUESTION"
    branches: dict[str, Branch] = Field(default_factory=dict)
    next_node: NodeId
    # Plain id of the enclosing loop; resolved through the graph, never held as an object.
    parent_loop: NodeId | None = None


class PromptNode(_BaseNode):
    type: Literal["PROMPT"] = "PROMPT"
    next_node: NodeId


class RedirectNode(TreeModel):
    type: Literal["REDIRECT"] = "REDIRECT"
    next_node: NodeId


class RedirectQuizNode(TreeModel):
    type: Literal["REDIRECT_QUIZ"] = "REDIRECT_QUIZ"


class QuizDragDropNode(_BaseNode):
    type: Literal["QUIZ_DRAG_DROP"] = "QUIZ_DRAG_DROP"
    items: list[QuizItem]
    targets: list[QuizTarget]
    next_node: NodeId
    incorrect_next_node: NodeId


Node = Annotated[
    QuestionNode | AnswerNode | LoopQuestionNode | PromptNode | RedirectNode | RedirectQuizNode | QuizDragDropNode,
    Field(discriminator="type"),
]

# Nodes that are shown to the user (everything except the redirect variants).
VisibleNode: TypeAlias = QuestionNode | AnswerNode | LoopQuestionNode | PromptNode | QuizDragDropNode

DecisionTree: TypeAlias = dict[NodeId, Node]


class Achievement(TreeModel):
    title_key: str
    desc_key: str
    points: int = Field(..., ge=0)
    icon: str = ""


class Message(BaseModel):
    """One transcript entry. Immutable once created; the transcript only grows."""

    model_config = ConfigDict(frozen=True)

    id: int
    sender: Literal["user", "bot"]
    text: str
    buttons: list[Button] | None = None
    quiz_data: QuizDragDropNode | None = None
    language: Language | None = None


class GameState(BaseModel):
    score: int = Field(default=0, ge=0)
    # Consecutive correct quiz answers.
    streak: int = Field(default=0, ge=0)
    achievements: set[str] = Field(default_factory=set)
    quiz_correct_answers: int = Field(default=0, ge=0)

    # Free-form profile strings, used by dynamic node text.
    user_name: str = ""
    major: str = ""

    # Most recent QUESTION / LOOP_QUESTION visited; used to resume.
    last_question_id: NodeId = ""
    visited_progress_nodes: set[NodeId] = Field(default_factory=set)

    # Set once the quiz flow is finished; never unset.
    quiz_completed: bool = False
