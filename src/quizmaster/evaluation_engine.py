"""Evaluation Engine: answer checking and derived statistics."""

import logging
from typing import Iterable, List, Optional, Sequence

from .models import HistoryEntry, Question

logger = logging.getLogger(__name__)

BAND_LOW = "low"
BAND_MEDIUM = "medium"
BAND_HIGH = "high"


class EvaluationResult:
    """Holds the result of checking one answer."""

    def __init__(self, question_id: str, selected_index: int, correct_index: int):
        self.question_id = question_id
        self.selected_index = selected_index
        self.correct_index = correct_index
        self.is_correct = selected_index == correct_index

    def to_dict(self) -> dict:
        return {
            "question_id": self.question_id,
            "selected_index": self.selected_index,
            "correct_index": self.correct_index,
            "is_correct": self.is_correct,
        }


def evaluate(question: Question, selected_index: int) -> EvaluationResult:
    """Compare a selection (canonical order) against the question's correct answer."""
    result = EvaluationResult(question.id, selected_index, question.correct_index)
    logger.debug(f"Evaluation: {result.to_dict()}")
    return result


def apply_result(score: int, streak: int, is_correct: bool) -> tuple:
    """Return the (score, streak) pair after one checked answer."""
    if is_correct:
        return score + 1, streak + 1
    return score, 0


def score_percent(score: int, total: int) -> int:
    if total <= 0:
        return 0
    return int(round(score / total * 100))


def grade_band(percent: int) -> str:
    """Bucket a percentage the way the result screen colours it."""
    if percent < 60:
        return BAND_LOW
    if percent < 72:
        return BAND_MEDIUM
    return BAND_HIGH


def format_time(total_seconds: int) -> str:
    minutes, seconds = divmod(int(total_seconds), 60)
    return f"{minutes}:{seconds:02d}"


def long_correct_stats(questions: Sequence[Question]) -> Optional[dict]:
    """
    How often the correct answer is also the longest option.

    A high share hints that the document can be "solved" by picking the
    longest answer. Ties for longest count as long-correct.
    """
    if not questions:
        return None
    count = 0
    for q in questions:
        longest = max(len(a.text) for a in q.answers)
        if len(q.correct_answer.text) == longest:
            count += 1
    total = len(questions)
    return {
        "count": count,
        "total": total,
        "percent": score_percent(count, total),
    }


def favorites_count(questions: Sequence[Question], bookmarks: Iterable[str]) -> int:
    marked = set(bookmarks)
    return sum(1 for q in questions if q.id in marked)


def history_summary(history: Sequence[HistoryEntry], file_name: Optional[str] = None) -> dict:
    """Attempts, best and average percentage, optionally for one document."""
    entries: List[HistoryEntry] = [
        h for h in history if file_name is None or h.file_name == file_name
    ]
    percents = [score_percent(h.score, h.total) for h in entries]
    return {
        "attempts": len(entries),
        "best_percent": max(percents) if percents else 0,
        "avg_percent": int(round(sum(percents) / len(percents))) if percents else 0,
    }
