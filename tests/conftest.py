from __future__ import annotations

import os
import random
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from pydantic import TypeAdapter

from quizchat.config import EngineConfig
from quizchat.core.graph import DialogueGraph
from quizchat.models import Node, QuizDragDropNode
from quizchat.presenter import RecordingPresenter
from quizchat.session import Session
from quizchat.traversal import TraversalController


_NODE = TypeAdapter(Node)


@pytest.fixture(scope="session", autouse=True)
def _init_assets_from_test_fixtures() -> None:
    """Initialize assets from `tests/assets` and forbid the built-in fallback.

    This keeps tests hermetic and independent of the repo's shipped tree.
    """

    os.environ["QUIZCHAT_STRICT_ASSETS"] = "1"
    os.environ.pop("QUIZCHAT_ASSETS_DIR", None)
    os.environ.pop("QUIZCHAT_QUIZ_POINTS", None)

    from quizchat.assets.singleton import init_assets, reset_assets_for_tests

    reset_assets_for_tests()

    # tests/ acts as the project root: it contains an assets/ dir.
    init_assets(project_root=Path(__file__).resolve().parent)


@pytest.fixture()
def config() -> EngineConfig:
    from quizchat.assets.singleton import get_engine_config

    return get_engine_config()


@pytest.fixture()
def presenter() -> RecordingPresenter:
    return RecordingPresenter()


@pytest.fixture()
def controller(config: EngineConfig, presenter: RecordingPresenter) -> TraversalController:
    from quizchat.assets.singleton import get_assets

    return TraversalController(config, presenter=presenter, translator=get_assets().translator, rng=random.Random(7))


@pytest.fixture()
def session() -> Session:
    return Session()


@pytest.fixture()
def build_config() -> Callable[..., EngineConfig]:
    """Build an EngineConfig from raw camelCase node dicts."""

    def _build(nodes: dict[str, dict[str, Any]], *, root: str, **kwargs: Any) -> EngineConfig:
        graph = DialogueGraph.from_tree({nid: _NODE.validate_python(raw) for nid, raw in nodes.items()})
        return EngineConfig(graph=graph, root_node_id=root, **kwargs)

    return _build


@pytest.fixture()
def esg_quiz() -> QuizDragDropNode:
    return QuizDragDropNode.model_validate(
        {
            "text": "q_quiz",
            "items": [{"id": "a", "textKey": "A"}, {"id": "b", "textKey": "B"}, {"id": "c", "textKey": "C"}],
            "targets": [
                {"id": "E", "label": "E", "correctItemId": "a"},
                {"id": "S", "label": "S", "correctItemId": "b"},
                {"id": "G", "label": "G", "correctItemId": "c"},
            ],
            "nextNode": "right",
            "incorrectNextNode": "wrong",
        }
    )
