from __future__ import annotations

from quizchat.models import GameState, NodeId


def _require_points(points: int) -> None:
    if points < 0:
        raise ValueError("points must be >= 0")


def award(*, state: GameState, achievement_id: str, points: int) -> bool:
    """Unlock an achievement and add its points.

    Idempotent per achievement id. Returns True only on the first unlock.
    """

    _require_points(points)
    if achievement_id in state.achievements:
        return False
    state.achievements.add(achievement_id)
    state.score += points
    return True


def record_quiz_outcome(*, state: GameState, correct: bool, points: int) -> None:
    _require_points(points)
    if correct:
        state.quiz_correct_answers += 1
        state.streak += 1
        state.score += points
    else:
        state.streak = 0


def mark_visited(*, state: GameState, node_id: NodeId) -> bool:
    if node_id in state.visited_progress_nodes:
        return False
    state.visited_progress_nodes.add(node_id)
    return True


def mark_quiz_completed(*, state: GameState) -> None:
    state.quiz_completed = True


def set_profile(*, state: GameState, user_name: str | None = None, major: str | None = None) -> None:
    if user_name is not None:
        state.user_name = user_name.strip()
    if major is not None:
        state.major = major.strip()
