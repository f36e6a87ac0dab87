from __future__ import annotations

import random
from collections.abc import Collection, Sequence
from dataclasses import dataclass, field
from typing import TypeAlias

from quizchat.models import QuizDragDropNode, QuizItem, QuizTarget


# Pseudo-target for the pool of items that are not on any target.
UNPLACED = "unplaced"

# target id -> item id (or None when the target is empty)
Placements: TypeAlias = dict[str, str | None]


class InvalidDragOperation(ValueError):
    """A drag/drop referenced an item or target the active quiz does not have."""


class PrematureSubmission(ValueError):
    """Answer check requested before every target holds an item."""


def shuffle_items(items: Sequence[QuizItem], *, rng: random.Random | None = None) -> list[QuizItem]:
    """Return a presentation order for `items`.

    Always a permutation of exactly the given items. With two or more items the
    result never matches the declared order.
    """

    rng = rng or random.Random()
    shuffled = list(items)
    rng.shuffle(shuffled)
    if len(shuffled) > 1 and [i.id for i in shuffled] == [i.id for i in items]:
        shuffled = shuffled[1:] + shuffled[:1]
    return shuffled


def initialize(node: QuizDragDropNode, *, rng: random.Random | None = None) -> tuple[Placements, list[QuizItem]]:
    placements: Placements = {t.id: None for t in node.targets}
    return placements, shuffle_items(node.items, rng=rng)


def target_of(placements: Placements, item_id: str) -> str | None:
    return next((tid for tid, iid in placements.items() if iid == item_id), None)


def unplaced_items(items: Sequence[QuizItem], placements: Placements) -> list[QuizItem]:
    placed = {iid for iid in placements.values() if iid is not None}
    return [item for item in items if item.id not in placed]


def place(
    placements: Placements,
    dragged_item_id: str | None,
    target_id: str,
    *,
    item_ids: Collection[str] | None = None,
) -> Placements:
    """Drop `dragged_item_id` onto `target_id` and return the new placements.

    - The item leaves whatever target it was on.
    - An item already on the target swaps into the vacated target, or goes back
      to the pool when the dragged item came from the pool.
    - Dropping on `UNPLACED` just vacates the item.

    The input mapping is never modified.
    """

    if dragged_item_id is None:
        return dict(placements)
    if item_ids is not None and dragged_item_id not in item_ids:
        raise InvalidDragOperation(f"Unknown item: {dragged_item_id}")
    if target_id != UNPLACED and target_id not in placements:
        raise InvalidDragOperation(f"Unknown target: {target_id}")

    source = target_of(placements, dragged_item_id)
    out = dict(placements)
    if source is not None:
        out[source] = None

    if target_id == UNPLACED:
        return out

    displaced = out[target_id]
    out[target_id] = dragged_item_id
    if displaced is not None and source is not None:
        out[source] = displaced
    return out


def is_complete(targets: Sequence[QuizTarget], placements: Placements) -> bool:
    return all(placements.get(t.id) is not None for t in targets)


def check_correctness(targets: Sequence[QuizTarget], placements: Placements) -> bool:
    return all(placements.get(t.id) == t.correct_item_id for t in targets)


@dataclass(slots=True)
class QuizAttempt:
    """Transient state of one matching-quiz attempt.

    Created fresh when a QUIZ_DRAG_DROP node is entered and dropped when the
    attempt resolves (either way).
    """

    node: QuizDragDropNode
    items: list[QuizItem]
    placements: Placements
    dragged_item_id: str | None = None
    resolved: bool = False
    _item_ids: frozenset[str] = field(default=frozenset(), repr=False)

    @staticmethod
    def start(node: QuizDragDropNode, *, rng: random.Random | None = None) -> "QuizAttempt":
        placements, items = initialize(node, rng=rng)
        return QuizAttempt(
            node=node,
            items=items,
            placements=placements,
            _item_ids=frozenset(i.id for i in node.items),
        )

    @property
    def item_ids(self) -> frozenset[str]:
        return self._item_ids

    def start_drag(self, item_id: str) -> None:
        if item_id not in self._item_ids:
            raise InvalidDragOperation(f"Unknown item: {item_id}")
        self.dragged_item_id = item_id

    def cancel_drag(self) -> None:
        self.dragged_item_id = None

    def drop(self, target_id: str) -> None:
        self.placements = place(self.placements, self.dragged_item_id, target_id, item_ids=self._item_ids)
        self.dragged_item_id = None

    def move(self, item_id: str, target_id: str) -> None:
        self.start_drag(item_id)
        self.drop(target_id)

    def unplaced(self) -> list[QuizItem]:
        return unplaced_items(self.items, self.placements)

    @property
    def complete(self) -> bool:
        return is_complete(self.node.targets, self.placements)

    @property
    def correct(self) -> bool:
        return check_correctness(self.node.targets, self.placements)
