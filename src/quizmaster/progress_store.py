"""Progress Store: bounded library and history, bookmarks and UI flags."""

import logging
import time
import uuid
from typing import Callable, FrozenSet, List, Optional, Sequence

from .models import HistoryEntry, LibraryEntry, Question

logger = logging.getLogger(__name__)

LIBRARY_KEY = "quiz_library"
HISTORY_KEY = "quiz_history"
BOOKMARKS_KEY = "quiz_bookmarks"
LOGIN_KEY = "is_logged_in"
THEME_KEY = "theme"

LIBRARY_LIMIT = 10
HISTORY_LIMIT = 20
THEMES = ("light", "dark")


class ProgressStore:
    """
    Durable aggregates derived from sessions.

    Every slot is read once at construction and written back on every
    mutation. Library and history entries are only ever prepended or
    evicted, never edited in place.
    """

    def __init__(self, store, library_limit: int = LIBRARY_LIMIT,
                 history_limit: int = HISTORY_LIMIT, clock: Callable[[], float] = time.time):
        self._store = store
        self.library_limit = library_limit
        self.history_limit = history_limit
        self._clock = clock

        self._library: List[LibraryEntry] = self._read(
            LIBRARY_KEY, [], lambda raw: [LibraryEntry.from_dict(e) for e in raw]
        )[:library_limit]
        self._history: List[HistoryEntry] = self._read(
            HISTORY_KEY, [], lambda raw: [HistoryEntry.from_dict(e) for e in raw]
        )[:history_limit]
        self._bookmarks: FrozenSet[str] = self._read(
            BOOKMARKS_KEY, frozenset(), self._parse_bookmarks
        )
        self._logged_in: bool = self._read(LOGIN_KEY, False, self._parse_flag)
        self._theme: str = self._read(THEME_KEY, "light", self._parse_theme)

    # ---- reading ----
    def _read(self, key: str, default, parse):
        try:
            raw = self._store.load(key, None)
            if raw is None:
                return default
            if isinstance(raw, dict):
                raise TypeError(f"expected a list or scalar, got {type(raw).__name__}")
            return parse(raw)
        except (ValueError, TypeError, KeyError, OverflowError) as e:
            logger.warning(f"Discarding unreadable stored '{key}': {e}")
            return default

    @staticmethod
    def _parse_bookmarks(raw) -> FrozenSet[str]:
        if not isinstance(raw, list):
            raise TypeError(f"expected a list of ids, got {type(raw).__name__}")
        return frozenset(str(b) for b in raw)

    @staticmethod
    def _parse_flag(raw) -> bool:
        if isinstance(raw, bool):
            return raw
        if raw in ("true", "false"):
            return raw == "true"
        raise ValueError(f"not a boolean: {raw!r}")

    @staticmethod
    def _parse_theme(raw) -> str:
        if raw not in THEMES:
            raise ValueError(f"unknown theme: {raw!r}")
        return raw

    def _write(self, key: str, value):
        try:
            self._store.save(key, value)
        except Exception as e:
            logger.error(f"Failed to save '{key}': {e}")

    # ---- library ----
    @property
    def library(self) -> List[LibraryEntry]:
        return list(self._library)

    def get_library_entry(self, entry_id: str) -> Optional[LibraryEntry]:
        return next((e for e in self._library if e.id == entry_id), None)

    def find_library_entry(self, name: str) -> Optional[LibraryEntry]:
        return next((e for e in self._library if e.name == name), None)

    def add_to_library(self, name: str, questions: Sequence[Question]) -> LibraryEntry:
        """
        Remember a loaded bank by document name.

        A name already in the library keeps its stored questions and only
        moves to the front.
        """
        existing = self.find_library_entry(name)
        if existing is not None:
            self._library = [existing] + [e for e in self._library if e is not existing]
            self._write_library()
            return existing
        entry = LibraryEntry(uuid.uuid4().hex, name, list(questions), self._clock())
        self._library = [entry] + self._library
        evicted = self._library[self.library_limit:]
        self._library = self._library[:self.library_limit]
        if evicted:
            logger.info(f"Library full, evicted: {[e.name for e in evicted]}")
        self._write_library()
        logger.info(f"Added '{name}' to library ({len(questions)} questions)")
        return entry

    def delete_library_entry(self, entry_id: str) -> bool:
        remaining = [e for e in self._library if e.id != entry_id]
        if len(remaining) == len(self._library):
            return False
        self._library = remaining
        self._write_library()
        return True

    def _write_library(self):
        self._write(LIBRARY_KEY, [e.to_dict() for e in self._library])

    # ---- history ----
    @property
    def history(self) -> List[HistoryEntry]:
        return list(self._history)

    def record_session(self, file_name: str, score: int, total: int, mode: str,
                       time_taken: int) -> HistoryEntry:
        entry = HistoryEntry(file_name, self._clock(), score, total, mode, time_taken)
        self._history = ([entry] + self._history)[:self.history_limit]
        self._write(HISTORY_KEY, [h.to_dict() for h in self._history])
        logger.info(f"Recorded session: {entry}")
        return entry

    # ---- bookmarks ----
    @property
    def bookmarks(self) -> FrozenSet[str]:
        return self._bookmarks

    def is_bookmarked(self, question_id: str) -> bool:
        return question_id in self._bookmarks

    def toggle_bookmark(self, question_id: str) -> bool:
        """Add or remove a bookmark; returns whether it is now bookmarked."""
        if question_id in self._bookmarks:
            self._bookmarks = self._bookmarks - {question_id}
        else:
            self._bookmarks = self._bookmarks | {question_id}
        self._write(BOOKMARKS_KEY, sorted(self._bookmarks))
        return question_id in self._bookmarks

    # ---- flags ----
    @property
    def logged_in(self) -> bool:
        return self._logged_in

    def toggle_login(self) -> bool:
        self._logged_in = not self._logged_in
        self._write(LOGIN_KEY, self._logged_in)
        return self._logged_in

    @property
    def theme(self) -> str:
        return self._theme

    def toggle_theme(self) -> str:
        self._theme = "dark" if self._theme == "light" else "light"
        self._write(THEME_KEY, self._theme)
        return self._theme
