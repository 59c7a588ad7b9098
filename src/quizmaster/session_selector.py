"""Session Selector: picks which bank questions form a session, and in what order."""

import logging
from typing import Iterable, List, Optional, Sequence

import numpy as np

from .models import (
    MODE_FAVORITES,
    MODE_PREPARATION,
    MODE_SPEEDRUN,
    MODE_TEST,
    InvalidSelectionError,
    Question,
)

logger = logging.getLogger(__name__)

SESSION_SIZE = 25


def _shuffled(indices: Sequence[int], rng: np.random.Generator) -> List[int]:
    # Generator.permutation is a uniform Fisher-Yates shuffle.
    return [int(i) for i in rng.permutation(np.asarray(indices, dtype=np.int64))]


def select_indices(questions: Sequence[Question], mode: str,
                   solved: Iterable[int] = (), bookmarks: Iterable[str] = (),
                   rng: Optional[np.random.Generator] = None,
                   session_size: int = SESSION_SIZE) -> List[int]:
    """
    Return the ordered bank indices for a new session.

    Raises InvalidSelectionError for an unknown mode or a favorites session
    with no bookmarked questions in the bank.
    """
    if rng is None:
        rng = np.random.default_rng()
    all_indices = list(range(len(questions)))

    if mode == MODE_TEST:
        indices = _shuffled(all_indices, rng)[:min(session_size, len(all_indices))]
    elif mode == MODE_SPEEDRUN:
        indices = _shuffled(all_indices, rng)
    elif mode == MODE_FAVORITES:
        marked = set(bookmarks)
        indices = [i for i in all_indices if questions[i].id in marked]
        if not indices:
            raise InvalidSelectionError("There are no bookmarked questions in this document yet.")
    elif mode == MODE_PREPARATION:
        solved_set = set(solved)
        unsolved = [i for i in all_indices if i not in solved_set]
        pool = unsolved if unsolved else all_indices
        indices = _shuffled(pool, rng)[:min(session_size, len(pool))]
    else:
        raise InvalidSelectionError(f"Unknown quiz mode: {mode!r}")

    logger.debug(f"Selected {len(indices)} of {len(all_indices)} questions for mode={mode}")
    return indices


def answer_orders(questions: Sequence[Question], indices: Sequence[int],
                  rng: Optional[np.random.Generator] = None) -> dict:
    """Per-question display permutation of canonical answer indices, fixed for one session."""
    if rng is None:
        rng = np.random.default_rng()
    return {
        i: _shuffled(list(range(len(questions[i].answers))), rng)
        for i in indices
    }
