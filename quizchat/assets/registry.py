from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path

from pydantic import Field, ValidationError

from quizchat.config import get_assets_dir, strict_assets
from quizchat.core.graph import DialogueGraph
from quizchat.i18n import CatalogTranslator
from quizchat.models import Achievement, Language, Node, NodeId, TreeModel


class AssetLoadError(RuntimeError):
    pass


class TreeFile(TreeModel):
    """On-disk shape of `decision_tree.json`."""

    root: NodeId
    quiz_entry: NodeId | None = None
    quiz_end: NodeId | None = None
    achievements: dict[str, Achievement] = Field(default_factory=dict)
    nodes: dict[NodeId, Node]


@dataclass(frozen=True, slots=True)
class QuizAssets:
    graph: DialogueGraph
    root_node_id: NodeId
    quiz_entry_node_id: NodeId | None
    quiz_end_node_id: NodeId | None
    achievements: dict[str, Achievement]
    translator: CatalogTranslator

    @staticmethod
    def from_tree_file(tree: TreeFile, *, translator: CatalogTranslator) -> "QuizAssets":
        return QuizAssets(
            graph=DialogueGraph.from_tree(tree.nodes),
            root_node_id=tree.root,
            quiz_entry_node_id=tree.quiz_entry,
            quiz_end_node_id=tree.quiz_end,
            achievements=dict(tree.achievements),
            translator=translator,
        )


def load_tree_json(path: Path) -> TreeFile:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise AssetLoadError(f"Asset file not found: {path}") from e

    try:
        return TreeFile.model_validate_json(raw)
    except ValidationError as e:
        raise AssetLoadError(f"Invalid decision tree in {path}: {e}") from e


def _read_csv_rows(path: Path) -> list[list[str]]:
    try:
        with path.open(encoding="utf-8-sig", newline="") as f:
            rows = [[c.strip() for c in row] for row in csv.reader(f)]
    except FileNotFoundError as e:
        raise AssetLoadError(f"Asset file not found: {path}") from e

    return [row for row in rows if any(cell for cell in row)]


def load_translations_csv(path: Path) -> CatalogTranslator:
    """Load a `key,en,ms,...` translation table.

    Empty cells are left out so lookups fall back to the key.
    """

    rows = _read_csv_rows(path)
    if not rows:
        raise AssetLoadError(f"Empty translations CSV: {path}")

    header = [c.casefold() for c in rows[0]]
    if not header or header[0] != "key":
        raise AssetLoadError(f"Unexpected header in {path}: {rows[0]}")

    try:
        languages = [Language(h) for h in header[1:]]
    except ValueError as e:
        raise AssetLoadError(f"Unsupported language column in {path}: {rows[0]}") from e

    catalog: dict[Language, dict[str, str]] = {lang: {} for lang in languages}
    for row in rows[1:]:
        key = row[0]
        if not key:
            continue
        for lang, text in zip(languages, row[1:]):
            if text:
                catalog[lang][key] = text

    return CatalogTranslator(catalog=catalog)


_FALLBACK_TREE = {
    "root": "start",
    "quizEntry": "esg_quiz",
    "quizEnd": "done",
    "achievements": {
        "first_step": {"titleKey": "ach_first_step", "descKey": "ach_first_step_desc", "points": 10, "icon": "*"},
        "curious_mind": {"titleKey": "ach_curious", "descKey": "ach_curious_desc", "points": 5, "icon": "?"},
        "quiz_master": {"titleKey": "ach_quiz_master", "descKey": "ach_quiz_master_desc", "points": 20, "icon": "!"},
    },
    "nodes": {
        "start": {"type": "QUESTION", "text": "q_welcome", "buttons": [{"text": "btn_lets_go", "nextNode": "ask_topic"}]},
        "ask_topic": {
            "type": "LOOP_QUESTION",
            "text": "q_topic",
            "achievementId": "first_step",
            "branches": {
                "e": {"text": "btn_environment", "nextNode": "ans_env"},
                "s": {"text": "btn_social", "nextNode": "ans_social"},
            },
            "nextNode": "to_quiz",
        },
        "ans_env": {
            "type": "ANSWER",
            "text": "a_env",
            "achievementId": "curious_mind",
            "buttons": [{"text": "btn_back", "nextNode": "ask_topic", "branchKey": "e"}],
        },
        "ans_social": {
            "type": "ANSWER",
            "text": "a_social",
            "buttons": [{"text": "btn_back", "nextNode": "ask_topic", "branchKey": "s"}],
        },
        "to_quiz": {"type": "REDIRECT_QUIZ"},
        "esg_quiz": {
            "type": "QUIZ_DRAG_DROP",
            "text": "q_quiz",
            "items": [
                {"id": "a", "textKey": "item_emissions"},
                {"id": "b", "textKey": "item_labour"},
                {"id": "c", "textKey": "item_board"},
            ],
            "targets": [
                {"id": "E", "label": "E", "correctItemId": "a"},
                {"id": "S", "label": "S", "correctItemId": "b"},
                {"id": "G", "label": "G", "correctItemId": "c"},
            ],
            "nextNode": "quiz_correct",
            "incorrectNextNode": "quiz_incorrect",
        },
        "quiz_correct": {
            "type": "PROMPT",
            "text": "a_quiz_correct",
            "isCorrect": True,
            "isDynamic": True,
            "achievementId": "quiz_master",
            "nextNode": "done",
        },
        "quiz_incorrect": {
            "type": "QUESTION",
            "text": "a_quiz_incorrect",
            "buttons": [
                {"text": "btn_retry", "nextNode": "esg_quiz"},
                {"text": "btn_skip", "nextNode": "done"},
            ],
        },
        "done": {
            "type": "ANSWER",
            "text": "a_done",
            "isDynamic": True,
            "buttons": [{"text": "btn_share", "nextNode": "end", "type": "share_linkedin"}],
        },
        "end": {"type": "ANSWER", "text": "a_end"},
    },
}

_FALLBACK_TRANSLATIONS = {
    Language.en: {
        "q_welcome": "Hi! Ready for a quick tour of ESG?",
        "btn_lets_go": "Let's go",
        "q_topic": "Which pillar do you want to explore?",
        "a_quiz_correct": "Spot on, ${user_name}! Your streak is ${streak}.",
        "a_done": "All done. Final score: ${score}.",
    },
    Language.ms: {
        "q_welcome": "Hai! Sedia untuk lawatan ringkas ESG?",
        "btn_lets_go": "Jom",
    },
}


def _fallback_quiz_assets() -> QuizAssets:
    """Tiny built-in tree used when the asset files are missing."""

    return QuizAssets.from_tree_file(
        TreeFile.model_validate(_FALLBACK_TREE),
        translator=CatalogTranslator(catalog=_FALLBACK_TRANSLATIONS),
    )


def load_quiz_assets(*, root: Path) -> QuizAssets:
    assets_dir = get_assets_dir(project_root=root)

    # Default behavior: fall back to the built-in sample when files are missing.
    # Force strict behavior with QUIZCHAT_STRICT_ASSETS=1.
    try:
        tree = load_tree_json(assets_dir / "decision_tree.json")
        translator = load_translations_csv(assets_dir / "translations.csv")
    except AssetLoadError:
        if strict_assets():
            raise
        return _fallback_quiz_assets()

    return QuizAssets.from_tree_file(tree, translator=translator)
