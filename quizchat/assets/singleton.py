from __future__ import annotations

from pathlib import Path

from quizchat.assets.registry import QuizAssets, load_quiz_assets
from quizchat.config import EngineConfig


# Loaded once per process; the tree is immutable so every session shares it.
_ASSETS: QuizAssets | None = None
_CONFIG: EngineConfig | None = None


def init_assets(*, project_root: Path) -> QuizAssets:
    """Load the decision tree + translations once and cache them.

    Repeated calls return the cached instance. The engine config is built (and
    the graph validated) here too, so a broken tree fails at startup.
    """

    global _ASSETS, _CONFIG
    if _ASSETS is None:
        assets = load_quiz_assets(root=project_root)
        _CONFIG = EngineConfig.from_assets(assets)
        _ASSETS = assets
    return _ASSETS


def reset_assets_for_tests() -> None:
    global _ASSETS, _CONFIG
    _ASSETS = None
    _CONFIG = None


def get_assets() -> QuizAssets:
    if _ASSETS is None:
        raise RuntimeError("Assets not initialized. Call init_assets() at startup.")
    return _ASSETS


def get_engine_config() -> EngineConfig:
    if _CONFIG is None:
        raise RuntimeError("Assets not initialized. Call init_assets() at startup.")
    return _CONFIG
