from __future__ import annotations

from statemachine import State, StateMachine

from quizchat.session import Session, SessionPhase


class SessionFSM(StateMachine):
    """FSM wrapper around a Session's phase.

    - conversing <-> quiz_active while matching quizzes come and go
    - conversing -> ended once a node with no way out is reached
    The controller mutates the session; the FSM only guards phase changes.
    """

    conversing = State(SessionPhase.conversing.value, value=SessionPhase.conversing.value, initial=True)
    quiz_active = State(SessionPhase.quiz_active.value, value=SessionPhase.quiz_active.value)
    ended = State(SessionPhase.ended.value, value=SessionPhase.ended.value, final=True)

    quiz_entered = conversing.to(quiz_active)
    quiz_resolved = quiz_active.to(conversing)
    dead_end = conversing.to(ended)

    def __init__(self, session: Session):
        self.session = session
        super().__init__(start_value=session.phase.value)

    def sync_phase_to_model(self) -> None:
        self.session.phase = SessionPhase(str(self.current_state.value))
