from __future__ import annotations

import pytest

from quizchat.core.graph import DialogueGraph, GraphIntegrityError, references
from quizchat.models import LoopQuestionNode


QUIZ = {
    "type": "QUIZ_DRAG_DROP",
    "text": "q",
    "items": [{"id": "a", "textKey": "A"}, {"id": "b", "textKey": "B"}],
    "targets": [{"id": "X", "label": "X", "correctItemId": "a"}, {"id": "Y", "label": "Y", "correctItemId": "b"}],
    "nextNode": "end",
    "incorrectNextNode": "end",
}


def test_get_unknown_node_raises(build_config) -> None:
    cfg = build_config({"end": {"type": "ANSWER", "text": "bye"}}, root="end")

    with pytest.raises(GraphIntegrityError) as e:
        cfg.graph.get("missing")
    assert "missing" in str(e.value)


def test_graph_is_read_only(build_config) -> None:
    cfg = build_config({"end": {"type": "ANSWER", "text": "bye"}}, root="end")

    with pytest.raises(TypeError):
        cfg.graph.nodes["other"] = cfg.graph.get("end")  # type: ignore[index]


def test_references_cover_every_variant_field() -> None:
    loop = LoopQuestionNode.model_validate(
        {
            "text": "loop",
            "branches": {"x": {"text": "X", "nextNode": "bx"}},
            "nextNode": "after",
            "parentLoop": "outer",
        }
    )
    assert sorted(t for _, t in references(loop)) == ["after", "bx", "outer"]


def test_config_rejects_dangling_references(build_config) -> None:
    nodes = {
        "start": {"type": "QUESTION", "text": "hi", "buttons": [{"text": "go", "nextNode": "nowhere"}]},
        "quiz": {**QUIZ, "incorrectNextNode": "lost"},
        "end": {"type": "ANSWER", "text": "bye"},
    }
    with pytest.raises(GraphIntegrityError) as e:
        build_config(nodes, root="start")

    msg = str(e.value)
    assert "start.buttons[0] -> unknown node 'nowhere'" in msg
    assert "quiz.incorrectNextNode -> unknown node 'lost'" in msg


def test_config_rejects_unknown_root(build_config) -> None:
    with pytest.raises(GraphIntegrityError) as e:
        build_config({"end": {"type": "ANSWER", "text": "bye"}}, root="start")
    assert "root node 'start' does not exist" in str(e.value)


def test_parent_loop_must_be_a_loop(build_config) -> None:
    nodes = {
        "inner": {"type": "LOOP_QUESTION", "text": "in", "nextNode": "end", "parentLoop": "end"},
        "end": {"type": "ANSWER", "text": "bye"},
    }
    with pytest.raises(GraphIntegrityError) as e:
        build_config(nodes, root="inner")
    assert "is not a LOOP_QUESTION" in str(e.value)


def test_quiz_targets_must_reference_declared_items(build_config) -> None:
    bad = {**QUIZ, "targets": [{"id": "X", "label": "X", "correctItemId": "zzz"}]}
    with pytest.raises(GraphIntegrityError) as e:
        build_config({"quiz": bad, "end": {"type": "ANSWER", "text": "bye"}}, root="quiz")
    assert "expects unknown item 'zzz'" in str(e.value)


def test_quiz_cannot_use_reserved_pool_target(build_config) -> None:
    bad = {**QUIZ, "targets": [{"id": "unplaced", "label": "U", "correctItemId": "a"}]}
    with pytest.raises(GraphIntegrityError) as e:
        build_config({"quiz": bad, "end": {"type": "ANSWER", "text": "bye"}}, root="quiz")
    assert "reserved target id" in str(e.value)


def test_redirect_quiz_requires_quiz_entry(build_config) -> None:
    nodes = {"go": {"type": "REDIRECT_QUIZ"}, "end": {"type": "ANSWER", "text": "bye"}}
    with pytest.raises(GraphIntegrityError) as e:
        build_config(nodes, root="end")
    assert "no quiz entry node is configured" in str(e.value)


def test_redirect_cycle_is_rejected(build_config) -> None:
    nodes = {
        "r1": {"type": "REDIRECT", "nextNode": "r2"},
        "r2": {"type": "REDIRECT", "nextNode": "r1"},
        "end": {"type": "ANSWER", "text": "bye"},
    }
    with pytest.raises(GraphIntegrityError) as e:
        build_config(nodes, root="end")
    assert "Redirect cycle" in str(e.value)


def test_resolve_redirects_follows_chain_to_visible_node(build_config) -> None:
    nodes = {
        "r1": {"type": "REDIRECT", "nextNode": "r2"},
        "r2": {"type": "REDIRECT_QUIZ"},
        "quiz": QUIZ,
        "end": {"type": "ANSWER", "text": "bye"},
    }
    cfg = build_config(nodes, root="r1", quiz_entry_node_id="quiz")

    assert cfg.graph.resolve_redirects("r1", quiz_entry_node_id="quiz") == "quiz"
    assert cfg.graph.resolve_redirects("end", quiz_entry_node_id="quiz") == "end"
    assert cfg.graph.transitions("quiz") == ["end", "end"]


def test_loops_between_visible_nodes_are_allowed(build_config) -> None:
    nodes = {
        "loop": {
            "type": "LOOP_QUESTION",
            "text": "again?",
            "branches": {"yes": {"text": "y", "nextNode": "loop"}},
            "nextNode": "end",
        },
        "end": {"type": "ANSWER", "text": "bye"},
    }
    cfg = build_config(nodes, root="loop")
    assert len(cfg.graph) == 2
    assert cfg.graph.node_ids == ["loop", "end"]
    assert isinstance(cfg.graph, DialogueGraph)


def test_quiz_needs_one_item_per_target(build_config) -> None:
    extra = {**QUIZ, "items": [*QUIZ["items"], {"id": "c", "textKey": "C"}]}
    with pytest.raises(GraphIntegrityError) as e:
        build_config({"quiz": extra, "end": {"type": "ANSWER", "text": "bye"}}, root="quiz")
    assert "quiz has 3 items for 2 targets" in str(e.value)


def test_quiz_targets_cannot_share_an_answer(build_config) -> None:
    shared = {
        **QUIZ,
        "targets": [{"id": "X", "label": "X", "correctItemId": "a"}, {"id": "Y", "label": "Y", "correctItemId": "a"}],
    }
    with pytest.raises(GraphIntegrityError) as e:
        build_config({"quiz": shared, "end": {"type": "ANSWER", "text": "bye"}}, root="quiz")
    assert "target 'Y' reuses answer item 'a'" in str(e.value)
