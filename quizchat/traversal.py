from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Literal

from quizchat.config import EngineConfig
from quizchat.core.gamification import (
    award,
    mark_quiz_completed,
    mark_visited,
    record_quiz_outcome,
    set_profile as set_game_profile,
)
from quizchat.core.graph import DialogueGraph, GraphIntegrityError
from quizchat.core.messages import bot_message_for
from quizchat.core.placement import InvalidDragOperation, PrematureSubmission, QuizAttempt
from quizchat.fsm import SessionFSM
from quizchat.i18n import CatalogTranslator, Translator
from quizchat.models import (
    AnswerNode,
    LoopQuestionNode,
    Message,
    NodeId,
    PromptNode,
    QuestionNode,
    QuizDragDropNode,
    RedirectNode,
    RedirectQuizNode,
    VisibleNode,
)
from quizchat.presenter import OnComplete, Presenter
from quizchat.session import Session
from quizchat.turn_processing.validators import ValidationContext, pipeline_for_action


logger = logging.getLogger(__name__)

ActionName = Literal[
    "start",
    "select_button",
    "select_branch",
    "select_default",
    "return_to_parent",
    "continue",
    "resume",
    "drag",
    "cancel_drag",
    "drop",
    "submit_quiz",
]


@dataclass(slots=True)
class StepResult:
    """What one user action produced."""

    node_id: NodeId | None = None
    messages: list[Message] = field(default_factory=list)
    # Achievements unlocked by this step (first unlock only).
    awarded: list[str] = field(default_factory=list)
    # Set when the step resolved a quiz attempt.
    quiz_correct: bool | None = None


class TraversalController:
    """Walks the dialogue graph for any number of sessions.

    Holds only shared, read-only collaborators; every call takes the Session
    it acts on. Flow per action:
    - validate the action against the session (phase, node type)
    - resolve the target node (GraphIntegrityError propagates, nothing mutated yet)
    - update game state, append messages, render
    """

    def __init__(
        self,
        config: EngineConfig,
        *,
        presenter: Presenter | None = None,
        translator: Translator | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.presenter = presenter
        self.translator: Translator = translator or CatalogTranslator()
        self.rng = rng or random.Random()

    @property
    def graph(self) -> DialogueGraph:
        return self.config.graph

    # ---- conversation actions -------------------------------------------------

    def start(self, session: Session) -> StepResult:
        self._validate(session, "start")
        landed = self._resolve(self.config.root_node_id)
        return self._step(session, landed)

    def select_button(self, session: Session, index: int) -> StepResult:
        self._validate(session, "select_button")
        node = self._current_node(session)
        if not isinstance(node, (QuestionNode, AnswerNode)):
            raise ValueError(f"Node '{session.current_node_id}' has no buttons")

        if not 0 <= index < len(node.buttons):
            raise ValueError(f"Button index out of range: {index}")
        button = node.buttons[index]
        landed = self._resolve(button.next_node)

        if button.branch_key is not None:
            session.branch_history.append(button.branch_key)
        return self._step(session, landed, user_text=button.text)

    def select_branch(self, session: Session, key: str) -> StepResult:
        self._validate(session, "select_branch")
        node = self._current_node(session)
        if not isinstance(node, LoopQuestionNode):
            raise ValueError(f"Node '{session.current_node_id}' is not a loop")

        branch = node.branches.get(key)
        if branch is None:
            raise ValueError(f"Unknown branch: {key}")
        landed = self._resolve(branch.next_node)

        session.branch_history.append(key)
        return self._step(session, landed, user_text=branch.text)

    def select_default(self, session: Session) -> StepResult:
        """Explicit default/timeout signal for a LOOP_QUESTION.

        Without it the loop simply waits; the default never fires on its own.
        """

        self._validate(session, "select_default")
        node = self._current_node(session)
        if not isinstance(node, LoopQuestionNode):
            raise ValueError(f"Node '{session.current_node_id}' is not a loop")
        return self._step(session, self._resolve(node.next_node))

    def return_to_parent_loop(self, session: Session) -> StepResult:
        self._validate(session, "return_to_parent")
        node = self._current_node(session)
        if not isinstance(node, LoopQuestionNode):
            raise ValueError(f"Node '{session.current_node_id}' is not a loop")

        if node.parent_loop is None:
            raise ValueError("Current loop has no parent loop")
        return self._step(session, self._resolve(node.parent_loop))

    def continue_(self, session: Session) -> StepResult:
        """Continuation signal after a PROMPT (or a button-less node with a next node)."""

        self._validate(session, "continue")
        node = self._current_node(session)

        if isinstance(node, PromptNode):
            target = node.next_node
        elif isinstance(node, (QuestionNode, AnswerNode)) and not node.buttons and node.next_node is not None:
            target = node.next_node
        else:
            raise ValueError("Current node has no continuation")
        return self._step(session, self._resolve(target))

    def resume(self, session: Session) -> StepResult:
        """Re-enter the last QUESTION / LOOP_QUESTION the session saw."""

        self._validate(session, "resume")
        if not session.game.last_question_id:
            raise ValueError("Nothing to resume")
        return self._step(session, self._resolve(session.game.last_question_id))

    def set_profile(self, session: Session, *, user_name: str | None = None, major: str | None = None) -> None:
        set_game_profile(state=session.game, user_name=user_name, major=major)
        session.touch()

    # ---- matching quiz --------------------------------------------------------

    def start_drag(self, session: Session, item_id: str) -> bool:
        self._validate(session, "drag")
        attempt = self._attempt(session)
        try:
            attempt.start_drag(item_id)
        except InvalidDragOperation as e:
            logger.warning("Ignoring drag in session %s: %s", session.session_id, e)
            return False
        return True

    def cancel_drag(self, session: Session) -> None:
        self._validate(session, "cancel_drag")
        self._attempt(session).cancel_drag()

    def drop(self, session: Session, target_id: str) -> bool:
        """Drop the dragged item on a target (or `UNPLACED`).

        Returns False when the drop was ignored; placements are then unchanged.
        """

        self._validate(session, "drop")
        attempt = self._attempt(session)
        try:
            attempt.drop(target_id)
        except InvalidDragOperation as e:
            attempt.cancel_drag()
            logger.warning("Ignoring drop in session %s: %s", session.session_id, e)
            return False
        session.touch()
        return True

    def move(self, session: Session, item_id: str, target_id: str) -> bool:
        """Drag + drop in one call."""

        self._validate(session, "drop")
        attempt = self._attempt(session)
        try:
            attempt.move(item_id, target_id)
        except InvalidDragOperation as e:
            attempt.cancel_drag()
            logger.warning("Ignoring move in session %s: %s", session.session_id, e)
            return False
        session.touch()
        return True

    def submit_quiz(self, session: Session) -> StepResult:
        """'Check answer'. Rejected with PrematureSubmission until every target is filled."""

        self._validate(session, "submit_quiz")
        attempt = self._attempt(session)
        if not attempt.complete:
            raise PrematureSubmission("All items must be placed before checking the answer")
        return self._resolve_quiz(session, attempt, reported=attempt.correct)

    # ---- internals ------------------------------------------------------------

    def _validate(self, session: Session, action: ActionName) -> None:
        node_type = self.graph.get(session.current_node_id).type if session.current_node_id is not None else None
        ctx = ValidationContext(session_id=str(session.session_id), action=action, node_type=node_type)
        pipeline_for_action(action).validate(ctx=ctx, session=session)

    def _current_node(self, session: Session) -> VisibleNode:
        if session.current_node_id is None:
            raise ValueError("Session has not started")
        return self._visible(session.current_node_id)

    def _visible(self, node_id: NodeId) -> VisibleNode:
        node = self.graph.get(node_id)
        if isinstance(node, (RedirectNode, RedirectQuizNode)):
            raise GraphIntegrityError(f"Redirect node '{node_id}' cannot be entered directly")
        return node

    def _attempt(self, session: Session) -> QuizAttempt:
        if session.attempt is None:
            raise ValueError("No active quiz attempt")
        return session.attempt

    def _resolve(self, node_id: NodeId) -> NodeId:
        return self.graph.resolve_redirects(node_id, quiz_entry_node_id=self.config.quiz_entry_node_id)

    def _step(self, session: Session, landed: NodeId, *, user_text: str | None = None) -> StepResult:
        result = StepResult()
        if user_text is not None:
            msg = session.transcript.append(
                sender="user",
                text=self.translator.translate(user_text, session.language),
                language=session.language,
            )
            self._emit(msg, result)

        fsm = SessionFSM(session)
        self._enter(session, fsm, landed, result)
        session.touch()
        return result

    def _enter(self, session: Session, fsm: SessionFSM, node_id: NodeId, result: StepResult) -> None:
        node = self._visible(node_id)
        game = session.game

        logger.debug("session %s entering node %s (%s)", session.session_id, node_id, node.type)
        session.current_node_id = node_id
        result.node_id = node_id

        if node.achievement_id is not None:
            points = self.config.achievement_points(node.achievement_id)
            if award(state=game, achievement_id=node.achievement_id, points=points):
                result.awarded.append(node.achievement_id)
                logger.info("session %s unlocked achievement %s (+%d)", session.session_id, node.achievement_id, points)

        mark_visited(state=game, node_id=node_id)
        if isinstance(node, (QuestionNode, LoopQuestionNode)):
            game.last_question_id = node_id
        if node_id == self.config.quiz_end_node_id:
            mark_quiz_completed(state=game)

        msg = bot_message_for(
            transcript=session.transcript,
            node=node,
            state=game,
            translator=self.translator,
            language=session.language,
        )
        self._emit(msg, result)

        if isinstance(node, QuizDragDropNode):
            attempt = QuizAttempt.start(node, rng=self.rng)
            session.attempt = attempt
            fsm.quiz_entered()
            fsm.sync_phase_to_model()
            if self.presenter is not None:
                self.presenter.render_quiz(node, self._on_complete(session, attempt))
        elif not self.graph.transitions(node_id):
            fsm.dead_end()
            fsm.sync_phase_to_model()
            logger.debug("session %s reached terminal node %s", session.session_id, node_id)

    def _emit(self, msg: Message, result: StepResult) -> None:
        result.messages.append(msg)
        if self.presenter is not None:
            self.presenter.render(msg)

    def _on_complete(self, session: Session, attempt: QuizAttempt) -> OnComplete:
        def on_complete(is_correct: bool) -> None:
            self._resolve_quiz(session, attempt, reported=is_correct)

        return on_complete

    def _resolve_quiz(self, session: Session, attempt: QuizAttempt, *, reported: bool) -> StepResult:
        if attempt.resolved or session.attempt is not attempt:
            logger.warning("session %s: quiz attempt on %s already resolved", session.session_id, session.current_node_id)
            return StepResult(node_id=session.current_node_id)
        if not attempt.complete:
            raise PrematureSubmission("All items must be placed before checking the answer")

        correct = attempt.correct
        if reported != correct:
            logger.warning(
                "session %s: presenter reported correct=%s but placements say %s; using placements",
                session.session_id,
                reported,
                correct,
            )

        node = attempt.node
        landed = self._resolve(node.next_node if correct else node.incorrect_next_node)

        attempt.resolved = True
        session.attempt = None
        record_quiz_outcome(state=session.game, correct=correct, points=self.config.quiz_points)
        logger.debug("session %s quiz resolved correct=%s streak=%d", session.session_id, correct, session.game.streak)

        fsm = SessionFSM(session)
        fsm.quiz_resolved()
        fsm.sync_phase_to_model()

        result = StepResult(quiz_correct=correct)
        self._enter(session, fsm, landed, result)
        session.touch()
        return result
