"""Data model: questions, banks, library and history records, error types."""

import hashlib
from typing import List, Optional

MODE_TEST = "test"
MODE_PREPARATION = "preparation"
MODE_SPEEDRUN = "speedrun"
MODE_FAVORITES = "favorites"
QUIZ_MODES = (MODE_TEST, MODE_PREPARATION, MODE_SPEEDRUN, MODE_FAVORITES)

STATUS_IDLE = "idle"
STATUS_LOADING = "loading"
STATUS_MODE_SELECTION = "mode_selection"
STATUS_QUIZ = "quiz"
STATUS_RESULT = "result"


class QuizError(Exception):
    """Base class for user-facing engine errors."""


class IngestionError(QuizError):
    """The source document could not be read or parsed."""


class EmptyResultError(IngestionError):
    """The document was readable but contained no questions."""


class InvalidSelectionError(QuizError):
    """A session could not be built for the chosen mode."""


def make_question_id(text: str, answer_texts: List[str]) -> str:
    """Stable identifier derived from the question content."""
    digest = hashlib.sha1()
    digest.update(text.strip().encode("utf-8"))
    for answer in answer_texts:
        digest.update(b"\x1f")
        digest.update(answer.strip().encode("utf-8"))
    return digest.hexdigest()[:16]


class Answer:
    """One answer option in canonical order."""

    def __init__(self, text: str, is_correct: bool = False):
        self.text = text
        self.is_correct = is_correct

    def to_dict(self) -> dict:
        return {"text": self.text, "isCorrect": self.is_correct}

    @classmethod
    def from_dict(cls, data: dict) -> "Answer":
        return cls(text=str(data["text"]), is_correct=bool(data.get("isCorrect", False)))

    def __eq__(self, other):
        if not isinstance(other, Answer):
            return NotImplemented
        return self.text == other.text and self.is_correct == other.is_correct

    def __repr__(self):
        mark = "*" if self.is_correct else ""
        return f"Answer({mark}{self.text!r})"


class Question:
    """
    A multiple-choice question.

    ``correct_index`` always points into ``answers`` (canonical order). Display
    permutations live in the session, never here.
    """

    def __init__(self, text: str, answers: List[Answer], question_id: Optional[str] = None):
        flagged = [i for i, a in enumerate(answers) if a.is_correct]
        if len(flagged) != 1:
            raise ValueError(
                f"Question must have exactly one correct answer, got {len(flagged)}: {text[:60]!r}"
            )
        self.text = text
        self.answers = list(answers)
        self.correct_index = flagged[0]
        self.id = question_id or make_question_id(text, [a.text for a in answers])

    @property
    def correct_answer(self) -> Answer:
        return self.answers[self.correct_index]

    def shuffled_answers(self, order: List[int]) -> List[Answer]:
        """Answers arranged by a permutation of canonical indices."""
        return [self.answers[i] for i in order]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "answers": [a.to_dict() for a in self.answers],
            "correctIndex": self.correct_index,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        answers = [Answer.from_dict(a) for a in data["answers"]]
        return cls(text=str(data["text"]), answers=answers, question_id=data.get("id"))

    def __repr__(self):
        return f"Question(id={self.id!r}, text={self.text[:40]!r}, answers={len(self.answers)})"


class LibraryEntry:
    """A previously loaded question bank kept for quick reopening."""

    def __init__(self, entry_id: str, name: str, questions: List[Question], timestamp: float):
        self.id = entry_id
        self.name = name
        self.questions = list(questions)
        self.timestamp = timestamp

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "questions": [q.to_dict() for q in self.questions],
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LibraryEntry":
        return cls(
            entry_id=str(data["id"]),
            name=str(data["name"]),
            questions=[Question.from_dict(q) for q in data["questions"]],
            timestamp=float(data["timestamp"]),
        )


class HistoryEntry:
    """Outcome of one completed session. Never modified after creation."""

    def __init__(self, file_name: str, date: float, score: int, total: int,
                 mode: str, time_taken: int):
        self.file_name = file_name
        self.date = date
        self.score = score
        self.total = total
        self.mode = mode
        self.time_taken = time_taken

    def to_dict(self) -> dict:
        return {
            "fileName": self.file_name,
            "date": self.date,
            "score": self.score,
            "total": self.total,
            "mode": self.mode,
            "timeTaken": self.time_taken,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryEntry":
        return cls(
            file_name=str(data["fileName"]),
            date=float(data["date"]),
            score=int(data["score"]),
            total=int(data["total"]),
            mode=str(data["mode"]),
            time_taken=int(data["timeTaken"]),
        )

    def __repr__(self):
        return (f"HistoryEntry({self.file_name!r}, {self.score}/{self.total}, "
                f"mode={self.mode!r}, time={self.time_taken}s)")
