from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from quizchat.core.graph import DialogueGraph, GraphIntegrityError
from quizchat.models import Achievement, Language, NodeId

if TYPE_CHECKING:
    from quizchat.assets.registry import QuizAssets


DEFAULT_QUIZ_POINTS = 10


def get_assets_dir(*, project_root: Path) -> Path:
    raw = os.environ.get("QUIZCHAT_ASSETS_DIR", "").strip()
    return Path(raw) if raw else project_root / "assets"


def strict_assets() -> bool:
    return os.getenv("QUIZCHAT_STRICT_ASSETS", "").strip().lower() in {"1", "true", "yes"}


def get_quiz_points() -> int:
    raw = os.environ.get("QUIZCHAT_QUIZ_POINTS", "").strip()
    if not raw:
        return DEFAULT_QUIZ_POINTS
    try:
        points = int(raw)
    except ValueError as e:
        raise ValueError(f"QUIZCHAT_QUIZ_POINTS must be an integer, got {raw!r}") from e
    if points < 0:
        raise ValueError("QUIZCHAT_QUIZ_POINTS must be >= 0")
    return points


def get_default_language() -> Language:
    raw = os.environ.get("QUIZCHAT_DEFAULT_LANGUAGE", "").strip().lower()
    try:
        return Language(raw) if raw else Language.en
    except ValueError as e:
        raise ValueError(f"Unsupported QUIZCHAT_DEFAULT_LANGUAGE: {raw!r}") from e


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Everything the traversal controller needs besides the session itself.

    The graph is checked on construction so a broken tree fails at startup
    rather than halfway through a conversation.
    """

    graph: DialogueGraph
    root_node_id: NodeId
    # Where REDIRECT_QUIZ nodes jump to.
    quiz_entry_node_id: NodeId | None = None
    # Reaching this node marks the quiz flow as completed.
    quiz_end_node_id: NodeId | None = None
    achievements: Mapping[str, Achievement] = field(default_factory=dict)
    quiz_points: int = DEFAULT_QUIZ_POINTS

    def __post_init__(self) -> None:
        if self.quiz_points < 0:
            raise ValueError("quiz_points must be >= 0")
        self.graph.validate(root_node_id=self.root_node_id, quiz_entry_node_id=self.quiz_entry_node_id)
        if self.quiz_end_node_id is not None and self.quiz_end_node_id not in self.graph:
            raise GraphIntegrityError(f"quiz end node '{self.quiz_end_node_id}' does not exist")

    def achievement_points(self, achievement_id: str) -> int:
        achievement = self.achievements.get(achievement_id)
        return achievement.points if achievement is not None else 0

    @staticmethod
    def from_assets(assets: "QuizAssets", *, quiz_points: int | None = None) -> "EngineConfig":
        return EngineConfig(
            graph=assets.graph,
            root_node_id=assets.root_node_id,
            quiz_entry_node_id=assets.quiz_entry_node_id,
            quiz_end_node_id=assets.quiz_end_node_id,
            achievements=assets.achievements,
            quiz_points=get_quiz_points() if quiz_points is None else quiz_points,
        )
