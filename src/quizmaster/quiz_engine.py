"""Quiz Engine: the controller that owns session state and drives its collaborators."""

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import numpy as np

from . import state_machine as sm
from .evaluation_engine import EvaluationResult
from .ingestion import ingest
from .models import (
    STATUS_LOADING,
    STATUS_QUIZ,
    STATUS_RESULT,
    EmptyResultError,
    HistoryEntry,
    IngestionError,
    QuizError,
    Question,
)
from .progress_store import ProgressStore
from .session_selector import SESSION_SIZE
from .ticker import ElapsedTimeTicker

logger = logging.getLogger(__name__)


class QuizEngine:
    """
    Serializes every user action, tick and ingestion completion through one
    lock, so transitions never interleave.

    The elapsed-time ticker runs exactly while the state is ``quiz``; each
    session gets its own ticker and ticks from a previous one are dropped.
    """

    def __init__(self, progress: ProgressStore,
                 ingest_fn: Callable[[bytes, str], List[Question]] = ingest,
                 rng: Optional[np.random.Generator] = None,
                 session_size: int = SESSION_SIZE,
                 ticker_factory=ElapsedTimeTicker, tick_interval: float = 1.0):
        self.progress = progress
        self._ingest = ingest_fn
        self.rng = rng if rng is not None else np.random.default_rng()
        self.session_size = session_size
        self._ticker_factory = ticker_factory
        self.tick_interval = tick_interval
        self._ticker = None
        self._session_token = 0
        self._lock = threading.RLock()
        self._state = sm.SessionState()
        self.last_history_entry: Optional[HistoryEntry] = None

    @property
    def state(self) -> sm.SessionState:
        return self._state

    @property
    def ticker(self):
        return self._ticker

    def _set_state(self, new_state: sm.SessionState):
        old = self._state
        self._state = new_state
        if old.status != new_state.status:
            logger.info(f"State: {old.status} -> {new_state.status}")
            if old.status == STATUS_QUIZ:
                self._stop_ticker()
            if new_state.status == STATUS_QUIZ:
                self._start_ticker()

    # ---- ticker ----
    def _start_ticker(self):
        self._stop_ticker()
        self._session_token += 1
        token = self._session_token
        self._ticker = self._ticker_factory(lambda: self._on_tick(token), self.tick_interval)
        self._ticker.start()

    def _stop_ticker(self):
        if self._ticker is not None:
            self._ticker.stop()
            self._ticker = None
        self._session_token += 1

    def _on_tick(self, token: int):
        with self._lock:
            if token != self._session_token:
                return
            self._state = sm.tick(self._state)

    # ---- ingestion ----
    def begin_upload(self, file_name: str) -> bool:
        with self._lock:
            new_state = sm.begin_loading(self._state, file_name)
            if new_state is self._state:
                return False
            self._set_state(new_state)
            return True

    def complete_upload(self, questions: Sequence[Question]):
        """Deliver a successful ingestion result; an empty result counts as a failure."""
        with self._lock:
            if self._state.status != STATUS_LOADING:
                logger.debug("Dropping ingestion result delivered outside 'loading'")
                return
            if not questions:
                file_name = self._state.file_name
                self._set_state(sm.fail_loading(self._state))
                logger.error(f"Ingestion of '{file_name}' yielded no questions")
                raise EmptyResultError(f"No questions found in '{file_name}'")
            file_name = self._state.file_name
            self._set_state(sm.finish_loading(self._state, questions))
            self.progress.add_to_library(file_name, questions)

    def fail_upload(self, error: Exception):
        with self._lock:
            logger.error(f"Ingestion of '{self._state.file_name}' failed: {error}")
            self._set_state(sm.fail_loading(self._state))

    def upload_document(self, raw: bytes, file_name: str) -> sm.SessionState:
        """
        Ingest a document and make it the active bank.

        Raises IngestionError after returning to ``idle`` when the document
        cannot be used. Ignored unless the engine is ``idle``.
        """
        if not self.begin_upload(file_name):
            return self._state
        try:
            questions = self._ingest(raw, file_name)
        except IngestionError as e:
            self.fail_upload(e)
            raise
        except Exception as e:
            self.fail_upload(e)
            raise IngestionError(f"Could not read '{file_name}': {e}") from e
        self.complete_upload(questions)
        return self._state

    def upload_document_path(self, path: str) -> sm.SessionState:
        p = Path(path)
        try:
            raw = p.read_bytes()
        except OSError as e:
            raise IngestionError(f"Could not open '{path}': {e}") from e
        return self.upload_document(raw, p.name)

    # ---- library ----
    def open_library_entry(self, entry_id: str) -> sm.SessionState:
        with self._lock:
            entry = self.progress.get_library_entry(entry_id)
            if entry is None:
                raise QuizError(f"Library entry {entry_id!r} not found")
            self._set_state(sm.open_bank(self._state, entry.questions, entry.name))
            return self._state

    def delete_library_entry(self, entry_id: str) -> bool:
        with self._lock:
            return self.progress.delete_library_entry(entry_id)

    # ---- session ----
    def start_session(self, mode: str) -> sm.SessionState:
        """Raises InvalidSelectionError, without changing state, if the mode yields nothing."""
        with self._lock:
            self._set_state(sm.start_session(
                self._state, mode, bookmarks=self.progress.bookmarks,
                rng=self.rng, session_size=self.session_size,
            ))
            if self._state.status == STATUS_QUIZ:
                logger.info(f"Started {mode} session with {self._state.total} questions")
            return self._state

    def retry(self) -> sm.SessionState:
        with self._lock:
            if self._state.status != STATUS_RESULT:
                return self._state
            return self.start_session(self._state.mode)

    def select_answer(self, canonical_index: int) -> sm.SessionState:
        with self._lock:
            self._set_state(sm.select_answer(self._state, canonical_index))
            return self._state

    def select_displayed_answer(self, position: int) -> sm.SessionState:
        """Select by position in the session's shuffled display order."""
        with self._lock:
            order = self._state.current_answer_order()
            if not 0 <= position < len(order):
                return self._state
            return self.select_answer(order[position])

    def check_answer(self) -> Optional[EvaluationResult]:
        with self._lock:
            new_state, result = sm.check_answer(self._state)
            self._set_state(new_state)
            return result

    def next_question(self) -> sm.SessionState:
        with self._lock:
            was_quiz = self._state.status == STATUS_QUIZ
            self._set_state(sm.advance(self._state))
            if was_quiz and self._state.status == STATUS_RESULT:
                self._record_result()
            return self._state

    def _record_result(self):
        s = self._state
        self.last_history_entry = self.progress.record_session(
            file_name=s.file_name,
            score=s.score,
            total=s.total,
            mode=s.mode,
            time_taken=s.seconds_elapsed,
        )

    def change_mode(self) -> sm.SessionState:
        with self._lock:
            self._set_state(sm.change_mode(self._state))
            return self._state

    def go_home(self) -> sm.SessionState:
        with self._lock:
            self._set_state(sm.go_home(self._state))
            return self._state

    # ---- bookmarks and flags ----
    def toggle_bookmark(self, question_id: Optional[str] = None) -> bool:
        """Toggle a bookmark, defaulting to the current question."""
        with self._lock:
            if question_id is None:
                question = self._state.current_question
                if question is None:
                    return False
                question_id = question.id
            return self.progress.toggle_bookmark(question_id)

    def toggle_login(self) -> bool:
        with self._lock:
            return self.progress.toggle_login()

    def toggle_theme(self) -> str:
        with self._lock:
            return self.progress.toggle_theme()

    def shutdown(self):
        with self._lock:
            self._stop_ticker()
