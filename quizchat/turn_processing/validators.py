from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from quizchat.session import Session, SessionPhase


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Inputs available to validators.

    Plain strings only so it can go straight into log records.
    """

    session_id: str
    action: str
    # Variant tag of the node the session is sitting on, if it has started.
    node_type: str | None = None


class TurnValidator(ABC):
    """A small, composable check run before an action touches the session."""

    @abstractmethod
    def validate(self, *, ctx: ValidationContext, session: Session) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class NotStartedValidator(TurnValidator):
    def validate(self, *, ctx: ValidationContext, session: Session) -> None:
        if session.started:
            raise ValueError("Session already started")


@dataclass(frozen=True, slots=True)
class StartedValidator(TurnValidator):
    def validate(self, *, ctx: ValidationContext, session: Session) -> None:
        if not session.started:
            raise ValueError("Session has not started")


@dataclass(frozen=True, slots=True)
class EndedSessionValidator(TurnValidator):
    """Deny actions once the conversation reached a dead end."""

    def validate(self, *, ctx: ValidationContext, session: Session) -> None:
        if session.phase == SessionPhase.ended:
            raise ValueError("Conversation has ended")


@dataclass(frozen=True, slots=True)
class PhaseValidator(TurnValidator):
    allowed_phases: frozenset[SessionPhase]

    def validate(self, *, ctx: ValidationContext, session: Session) -> None:
        if session.phase not in self.allowed_phases:
            allowed = ",".join(sorted(p.value for p in self.allowed_phases))
            raise ValueError(f"Action '{ctx.action}' not allowed in phase '{session.phase.value}' (allowed: {allowed})")


@dataclass(frozen=True, slots=True)
class NodeTypeValidator(TurnValidator):
    """Validate that the current node is of a kind that accepts this action."""

    allowed_types: frozenset[str]

    def validate(self, *, ctx: ValidationContext, session: Session) -> None:
        if ctx.node_type not in self.allowed_types:
            allowed = ",".join(sorted(self.allowed_types))
            raise ValueError(f"Action '{ctx.action}' not allowed on node type '{ctx.node_type}' (allowed: {allowed})")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[TurnValidator, ...]

    def validate(self, *, ctx: ValidationContext, session: Session) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, session=session)


def _conversing_on(*node_types: str) -> ValidatorPipeline:
    return ValidatorPipeline(
        validators=(
            StartedValidator(),
            EndedSessionValidator(),
            PhaseValidator(allowed_phases=frozenset({SessionPhase.conversing})),
            NodeTypeValidator(allowed_types=frozenset(node_types)),
        )
    )


_QUIZ_PIPELINE = ValidatorPipeline(
    validators=(
        StartedValidator(),
        PhaseValidator(allowed_phases=frozenset({SessionPhase.quiz_active})),
        NodeTypeValidator(allowed_types=frozenset({"QUIZ_DRAG_DROP"})),
    )
)

DEFAULT_ACTION_PIPELINES: dict[str, ValidatorPipeline] = {
    "start": ValidatorPipeline(validators=(NotStartedValidator(),)),
    "select_button": _conversing_on("QUESTION", "ANSWER"),
    "select_branch": _conversing_on("LOOP_QUESTION"),
    "select_default": _conversing_on("LOOP_QUESTION"),
    "return_to_parent": _conversing_on("LOOP_QUESTION"),
    "continue": _conversing_on("PROMPT", "QUESTION", "ANSWER"),
    "resume": ValidatorPipeline(
        validators=(
            StartedValidator(),
            EndedSessionValidator(),
            PhaseValidator(allowed_phases=frozenset({SessionPhase.conversing})),
        )
    ),
    "drag": _QUIZ_PIPELINE,
    "cancel_drag": _QUIZ_PIPELINE,
    "drop": _QUIZ_PIPELINE,
    "submit_quiz": _QUIZ_PIPELINE,
}


def pipeline_for_action(action: str) -> ValidatorPipeline:
    pipe = DEFAULT_ACTION_PIPELINES.get(action)
    if pipe is None:
        raise ValueError(f"Unknown action: {action}")
    return pipe
