from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import assert_never

from quizchat.core.placement import UNPLACED
from quizchat.models import (
    AnswerNode,
    DecisionTree,
    LoopQuestionNode,
    Node,
    NodeId,
    PromptNode,
    QuestionNode,
    QuizDragDropNode,
    RedirectNode,
    RedirectQuizNode,
)


class GraphIntegrityError(RuntimeError):
    """A node references a NodeId that the dialogue graph does not contain.

    Always fatal for the traversal that hit it.
    """


def references(node: Node) -> list[tuple[str, NodeId]]:
    """All outgoing NodeId references of a node as (field, target) pairs."""

    if isinstance(node, RedirectNode):
        return [("nextNode", node.next_node)]
    if isinstance(node, RedirectQuizNode):
        # Target comes from configuration, not from the node.
        return []

    refs: list[tuple[str, NodeId]] = []
    if node.next_node is not None:
        refs.append(("nextNode", node.next_node))

    if isinstance(node, (QuestionNode, AnswerNode)):
        refs.extend((f"buttons[{i}]", b.next_node) for i, b in enumerate(node.buttons))
    elif isinstance(node, LoopQuestionNode):
        refs.extend((f"branches[{k}]", b.next_node) for k, b in node.branches.items())
        if node.parent_loop is not None:
            refs.append(("parentLoop", node.parent_loop))
    elif isinstance(node, QuizDragDropNode):
        refs.append(("incorrectNextNode", node.incorrect_next_node))
    elif isinstance(node, PromptNode):
        pass
    else:
        assert_never(node)
    return refs


@dataclass(frozen=True, slots=True)
class DialogueGraph:
    """Read-only decision tree, shared by every session."""

    nodes: Mapping[NodeId, Node]

    @staticmethod
    def from_tree(tree: DecisionTree) -> "DialogueGraph":
        return DialogueGraph(nodes=MappingProxyType(dict(tree)))

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[NodeId]:
        return iter(self.nodes)

    @property
    def node_ids(self) -> list[NodeId]:
        return list(self.nodes)

    def get(self, node_id: NodeId) -> Node:
        node = self.nodes.get(node_id)
        if node is None:
            raise GraphIntegrityError(f"Unknown node: {node_id}")
        return node

    def transitions(self, node_id: NodeId) -> list[NodeId]:
        return [target for _, target in references(self.get(node_id))]

    def resolve_redirects(self, node_id: NodeId, *, quiz_entry_node_id: NodeId | None = None) -> NodeId:
        """Follow REDIRECT / REDIRECT_QUIZ hops and return the first visible node id."""

        seen: list[NodeId] = []
        current = node_id
        while True:
            node = self.get(current)
            if isinstance(node, RedirectNode):
                nxt = node.next_node
            elif isinstance(node, RedirectQuizNode):
                if quiz_entry_node_id is None:
                    raise GraphIntegrityError(f"Node '{current}' redirects to the quiz but no quiz entry node is configured")
                nxt = quiz_entry_node_id
            else:
                return current

            seen.append(current)
            if nxt in seen:
                chain = " -> ".join([*seen, nxt])
                raise GraphIntegrityError(f"Redirect cycle: {chain}")
            current = nxt

    def validate(self, *, root_node_id: NodeId | None = None, quiz_entry_node_id: NodeId | None = None) -> None:
        """Check graph integrity up front.

        Collects every problem and raises a single GraphIntegrityError.
        """

        problems: list[str] = []

        for name, value in (("root", root_node_id), ("quiz entry", quiz_entry_node_id)):
            if value is not None and value not in self.nodes:
                problems.append(f"{name} node '{value}' does not exist")

        for node_id, node in self.nodes.items():
            for field_name, target in references(node):
                if target not in self.nodes:
                    problems.append(f"{node_id}.{field_name} -> unknown node '{target}'")

            if isinstance(node, LoopQuestionNode) and node.parent_loop in self.nodes:
                if not isinstance(self.nodes[node.parent_loop], LoopQuestionNode):
                    problems.append(f"{node_id}.parentLoop -> '{node.parent_loop}' is not a LOOP_QUESTION")

            if isinstance(node, RedirectQuizNode) and quiz_entry_node_id is None:
                problems.append(f"{node_id} redirects to the quiz but no quiz entry node is configured")

            if isinstance(node, QuizDragDropNode):
                problems.extend(_quiz_problems(node_id, node))

        if not problems:
            for node_id, node in self.nodes.items():
                if isinstance(node, (RedirectNode, RedirectQuizNode)):
                    try:
                        self.resolve_redirects(node_id, quiz_entry_node_id=quiz_entry_node_id)
                    except GraphIntegrityError as e:
                        problems.append(str(e))

        if problems:
            raise GraphIntegrityError("Invalid dialogue graph: " + "; ".join(problems))


def _quiz_problems(node_id: NodeId, node: QuizDragDropNode) -> list[str]:
    problems: list[str] = []
    item_ids = [i.id for i in node.items]
    target_ids = [t.id for t in node.targets]

    if len(set(item_ids)) != len(item_ids):
        problems.append(f"{node_id} has duplicate item ids")
    if len(set(target_ids)) != len(target_ids):
        problems.append(f"{node_id} has duplicate target ids")
    if UNPLACED in target_ids:
        problems.append(f"{node_id} uses the reserved target id '{UNPLACED}'")
    # Every item must end up on exactly one target, or the quiz can never be submitted.
    if len(item_ids) != len(target_ids):
        problems.append(f"{node_id} has {len(item_ids)} items for {len(target_ids)} targets")
    seen_answers: set[str] = set()
    for t in node.targets:
        if t.correct_item_id not in item_ids:
            problems.append(f"{node_id} target '{t.id}' expects unknown item '{t.correct_item_id}'")
        elif t.correct_item_id in seen_answers:
            problems.append(f"{node_id} target '{t.id}' reuses answer item '{t.correct_item_id}'")
        seen_answers.add(t.correct_item_id)
    return problems
