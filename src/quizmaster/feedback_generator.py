"""Feedback Generator: user-facing text for answers, results and rejections."""

import logging
import random
from typing import Optional, Sequence

from .evaluation_engine import (
    BAND_HIGH,
    BAND_LOW,
    format_time,
    grade_band,
    score_percent,
)
from .models import (
    MODE_FAVORITES,
    MODE_PREPARATION,
    MODE_SPEEDRUN,
    MODE_TEST,
    HistoryEntry,
    LibraryEntry,
    Question,
)

logger = logging.getLogger(__name__)

MODE_TITLES = {
    MODE_TEST: "Exam",
    MODE_PREPARATION: "Training",
    MODE_SPEEDRUN: "Marathon",
    MODE_FAVORITES: "Favorites",
}

MODE_DESCRIPTIONS = {
    MODE_TEST: "25 random questions to check your knowledge.",
    MODE_PREPARATION: "Questions you have not answered yet come first.",
    MODE_SPEEDRUN: "Every question of the document, shuffled.",
    MODE_FAVORITES: "Your bookmarked questions ({count}).",
}

CORRECT_TEMPLATES = [
    "Correct!",
    "Right answer!",
    "Well done, that's correct.",
]

INCORRECT_TEMPLATES = [
    "Not quite. The correct answer is {letter}) {text}",
    "Wrong. The correct answer is {letter}) {text}",
]


def option_letter(position: int) -> str:
    return chr(ord("A") + position)


class FeedbackGenerator:
    """Builds the message text shown by the console trainer."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def question_text(self, question: Question, order: Sequence[int], number: int,
                      total: int, streak: int = 0, bookmarked: bool = False) -> str:
        star = " [*]" if bookmarked else ""
        header = f"Question {number} of {total}{star}"
        if streak > 1:
            header += f"  (streak: {streak})"
        lines = [header, question.text]
        for pos, canonical in enumerate(order):
            lines.append(f"  {option_letter(pos)}) {question.answers[canonical].text}")
        return "\n".join(lines)

    def answer_feedback(self, result, question: Question, order: Sequence[int],
                        streak: int = 0) -> str:
        if result.is_correct:
            text = self._rng.choice(CORRECT_TEMPLATES)
            if streak > 1:
                text += f" {streak} in a row!"
            return text
        position = list(order).index(question.correct_index)
        return self._rng.choice(INCORRECT_TEMPLATES).format(
            letter=option_letter(position), text=question.correct_answer.text
        )

    def mode_menu(self, favorites: int) -> str:
        lines = []
        for n, (mode, title) in enumerate(MODE_TITLES.items(), start=1):
            desc = MODE_DESCRIPTIONS[mode].format(count=favorites)
            lines.append(f"  {n}) {title} - {desc}")
        return "\n".join(lines)

    def long_correct_summary(self, stats: Optional[dict]) -> str:
        if not stats:
            return ""
        return (f"Longest answer is correct: {stats['count']} of {stats['total']} "
                f"({stats['percent']}%)")

    def session_summary(self, score: int, total: int, seconds: int, mode: str) -> str:
        percent = score_percent(score, total)
        band = grade_band(percent)
        summary = (
            f"{MODE_TITLES.get(mode, mode)} complete! You scored {score} of {total} "
            f"({percent}%) in {format_time(seconds)}. "
        )
        if band == BAND_HIGH:
            summary += "Excellent result!"
        elif band == BAND_LOW:
            summary += "Keep practicing, you'll get there."
        else:
            summary += "Almost there, one more try?"
        return summary

    def history_line(self, entry: HistoryEntry) -> str:
        percent = score_percent(entry.score, entry.total)
        return (f"{entry.file_name}: {entry.score}/{entry.total} ({percent}%) "
                f"{MODE_TITLES.get(entry.mode, entry.mode)}, {format_time(entry.time_taken)}")

    def library_line(self, n: int, entry: LibraryEntry) -> str:
        return f"  {n}) {entry.name} ({len(entry.questions)} questions)"
