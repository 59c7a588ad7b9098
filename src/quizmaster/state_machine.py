"""
Session state machine.

Every transition is a pure function ``(state, event args) -> state``. An event
that is not legal in the current state returns the state unchanged.
"""

import copy
import logging
from typing import FrozenSet, Optional, Sequence, Tuple

from .evaluation_engine import EvaluationResult, apply_result, evaluate
from .models import (
    STATUS_IDLE,
    STATUS_LOADING,
    STATUS_MODE_SELECTION,
    STATUS_QUIZ,
    STATUS_RESULT,
    Question,
)
from .session_selector import SESSION_SIZE, answer_orders, select_indices

logger = logging.getLogger(__name__)


class SessionState:
    """Snapshot of the whole engine state. Treat instances as immutable."""

    def __init__(self, status: str = STATUS_IDLE, questions: Tuple[Question, ...] = (),
                 file_name: str = "", mode: Optional[str] = None,
                 session_indices: Tuple[int, ...] = (), answer_orders: Optional[dict] = None,
                 solved: FrozenSet[int] = frozenset(), current_index: int = 0,
                 score: int = 0, current_streak: int = 0,
                 selected_answer_index: Optional[int] = None,
                 is_answer_checked: bool = False, seconds_elapsed: int = 0):
        self.status = status
        self.questions = tuple(questions)
        self.file_name = file_name
        self.mode = mode
        self.session_indices = tuple(session_indices)
        self.answer_orders = dict(answer_orders or {})
        self.solved = frozenset(solved)
        self.current_index = current_index
        self.score = score
        self.current_streak = current_streak
        self.selected_answer_index = selected_answer_index
        self.is_answer_checked = is_answer_checked
        self.seconds_elapsed = seconds_elapsed

    def evolve(self, **changes) -> "SessionState":
        new = copy.copy(self)
        for key, value in changes.items():
            if not hasattr(new, key):
                raise AttributeError(f"SessionState has no field {key!r}")
            setattr(new, key, value)
        return new

    @property
    def total(self) -> int:
        return len(self.session_indices)

    @property
    def current_bank_index(self) -> Optional[int]:
        if self.status != STATUS_QUIZ or not self.session_indices:
            return None
        return self.session_indices[self.current_index]

    @property
    def current_question(self) -> Optional[Question]:
        idx = self.current_bank_index
        return None if idx is None else self.questions[idx]

    def current_answer_order(self) -> list:
        idx = self.current_bank_index
        if idx is None:
            return []
        return list(self.answer_orders.get(idx, range(len(self.questions[idx].answers))))

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "fileName": self.file_name,
            "mode": self.mode,
            "questions": [q.to_dict() for q in self.questions],
            "sessionIndices": list(self.session_indices),
            "answerOrders": {str(k): list(v) for k, v in self.answer_orders.items()},
            "solved": sorted(self.solved),
            "currentIndex": self.current_index,
            "score": self.score,
            "currentStreak": self.current_streak,
            "selectedAnswerIndex": self.selected_answer_index,
            "isAnswerChecked": self.is_answer_checked,
            "secondsElapsed": self.seconds_elapsed,
        }


def _ignored(state: SessionState, event: str) -> SessionState:
    logger.debug(f"Ignoring '{event}' in state '{state.status}'")
    return state


def begin_loading(state: SessionState, file_name: str) -> SessionState:
    if state.status != STATUS_IDLE:
        return _ignored(state, "upload")
    return SessionState(status=STATUS_LOADING, file_name=file_name)


def finish_loading(state: SessionState, questions: Sequence[Question]) -> SessionState:
    if state.status != STATUS_LOADING:
        return _ignored(state, "upload complete")
    if not questions:
        return fail_loading(state)
    return SessionState(status=STATUS_MODE_SELECTION, questions=tuple(questions),
                        file_name=state.file_name)


def fail_loading(state: SessionState) -> SessionState:
    if state.status != STATUS_LOADING:
        return _ignored(state, "upload failed")
    return SessionState(status=STATUS_IDLE)


def open_bank(state: SessionState, questions: Sequence[Question], file_name: str) -> SessionState:
    """Replace the active bank wholesale, e.g. from a library entry."""
    if state.status == STATUS_LOADING or not questions:
        return _ignored(state, "open bank")
    return SessionState(status=STATUS_MODE_SELECTION, questions=tuple(questions),
                        file_name=file_name)


def start_session(state: SessionState, mode: str, bookmarks=(), rng=None,
                  session_size: int = SESSION_SIZE) -> SessionState:
    """
    Enter ``quiz`` with a freshly selected session.

    Raises InvalidSelectionError (leaving ``state`` untouched) when the mode
    yields no questions.
    """
    if state.status not in (STATUS_MODE_SELECTION, STATUS_RESULT):
        return _ignored(state, "start session")
    indices = select_indices(state.questions, mode, solved=state.solved,
                             bookmarks=bookmarks, rng=rng, session_size=session_size)
    return state.evolve(
        status=STATUS_QUIZ,
        mode=mode,
        session_indices=tuple(indices),
        answer_orders=answer_orders(state.questions, indices, rng=rng),
        current_index=0,
        score=0,
        current_streak=0,
        selected_answer_index=None,
        is_answer_checked=False,
        seconds_elapsed=0,
    )


def select_answer(state: SessionState, canonical_index: int) -> SessionState:
    if state.status != STATUS_QUIZ or state.is_answer_checked:
        return _ignored(state, "select answer")
    question = state.current_question
    if not 0 <= canonical_index < len(question.answers):
        return _ignored(state, f"select answer {canonical_index}")
    return state.evolve(selected_answer_index=canonical_index)


def check_answer(state: SessionState) -> Tuple[SessionState, Optional[EvaluationResult]]:
    if (state.status != STATUS_QUIZ or state.is_answer_checked
            or state.selected_answer_index is None):
        return _ignored(state, "check answer"), None
    result = evaluate(state.current_question, state.selected_answer_index)
    score, streak = apply_result(state.score, state.current_streak, result.is_correct)
    new_state = state.evolve(
        is_answer_checked=True,
        score=score,
        current_streak=streak,
        solved=state.solved | {state.current_bank_index},
    )
    return new_state, result


def advance(state: SessionState) -> SessionState:
    """Move to the next question, or to ``result`` after the last one."""
    if state.status != STATUS_QUIZ or not state.is_answer_checked:
        return _ignored(state, "advance")
    if state.current_index + 1 >= len(state.session_indices):
        return state.evolve(status=STATUS_RESULT)
    return state.evolve(
        current_index=state.current_index + 1,
        selected_answer_index=None,
        is_answer_checked=False,
    )


def tick(state: SessionState) -> SessionState:
    if state.status != STATUS_QUIZ:
        return _ignored(state, "tick")
    return state.evolve(seconds_elapsed=state.seconds_elapsed + 1)


def change_mode(state: SessionState) -> SessionState:
    if state.status != STATUS_RESULT:
        return _ignored(state, "change mode")
    return state.evolve(status=STATUS_MODE_SELECTION)


def go_home(state: SessionState) -> SessionState:
    return SessionState(status=STATUS_IDLE)
