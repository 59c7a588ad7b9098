"""Ingestion: turns an uploaded document into an ordered list of questions."""

import io
import json
import logging
import re
import zipfile
from pathlib import Path
from typing import Iterable, List, Optional

import docx
from docx.opc.exceptions import PackageNotFoundError
from lxml import etree

from .models import Answer, EmptyResultError, IngestionError, Question

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".docx", ".json", ".txt")

CYRILLIC_LETTERS = "АБВГДЕЖЗИКЛМН"

QSTART = re.compile(r"^\s*(\d+)\s*[.)](?:\s+(.*))?$")
OPTION = re.compile(r"^\s*([*+])?\s*([A-Za-zА-Яа-я])\s*[.)]\s+(.+?)\s*(\*)?\s*$")
ANSWER_MARK = re.compile(
    r"^\s*(?:correct answer|answer|правильный ответ|ответ)\s*[:\-]\s*([A-Za-zА-Яа-я])\b",
    re.IGNORECASE,
)


def letter_index(letter: str) -> Optional[int]:
    """Map an option letter (Latin or Cyrillic) to its position."""
    upper = letter.upper()
    if "A" <= upper <= "Z":
        return ord(upper) - ord("A")
    if upper in CYRILLIC_LETTERS:
        return CYRILLIC_LETTERS.index(upper)
    return None


class _Draft:
    def __init__(self, number: str, text: str):
        self.number = number
        self.text_parts = [text] if text else []
        self.options: List[List] = []  # [text, is_correct]
        self.answer_letter: Optional[str] = None

    def build(self) -> Optional[Question]:
        text = " ".join(self.text_parts).strip()
        if self.answer_letter is not None:
            idx = letter_index(self.answer_letter)
            if idx is not None and idx < len(self.options):
                for i, opt in enumerate(self.options):
                    opt[1] = i == idx
        if not text or len(self.options) < 2:
            logger.warning(f"Skipping question {self.number}: needs text and at least two answers")
            return None
        answers = [Answer(t.strip(), bool(c)) for t, c in self.options]
        try:
            return Question(text, answers)
        except ValueError as e:
            logger.warning(f"Skipping question {self.number}: {e}")
            return None


def parse_lines(lines: Iterable[str]) -> List[Question]:
    """
    Parse numbered questions with lettered options.

    A correct option is marked with a leading ``*``/``+``, a trailing ``*``,
    or named on an ``Answer: X`` line after the options.
    """
    questions: List[Question] = []
    draft: Optional[_Draft] = None

    def flush():
        if draft is not None:
            q = draft.build()
            if q is not None:
                questions.append(q)

    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        m = QSTART.match(line)
        if m:
            flush()
            draft = _Draft(m.group(1), (m.group(2) or "").strip())
            continue
        if draft is None:
            continue
        m = ANSWER_MARK.match(line)
        if m and draft.options:
            draft.answer_letter = m.group(1)
            continue
        m = OPTION.match(line)
        if m and (draft.text_parts or draft.options):
            is_correct = bool(m.group(1) or m.group(4))
            draft.options.append([m.group(3), is_correct])
            continue
        if draft.options:
            draft.options[-1][0] += " " + line
        else:
            draft.text_parts.append(line)
    flush()
    return questions


def docx_lines(raw: bytes) -> List[str]:
    """Paragraph and table-cell text of a .docx, with soft breaks split into lines."""
    document = docx.Document(io.BytesIO(raw))
    lines: List[str] = []
    for p in document.paragraphs:
        lines.extend(re.split(r"[\n\v\r]", p.text or ""))
    for table in document.tables:
        for row in table.rows:
            for cell in row.cells:
                for p in cell.paragraphs:
                    lines.extend(re.split(r"[\n\v\r]", p.text or ""))
    return lines


def parse_json(raw: bytes) -> List[Question]:
    data = json.loads(raw.decode("utf-8"))
    if isinstance(data, dict):
        data = data.get("questions", [])
    if not isinstance(data, list):
        raise IngestionError("JSON question bank must be a list of questions")
    questions = []
    for n, item in enumerate(data, start=1):
        try:
            text = item.get("question") or item.get("text") or ""
            raw_answers = item["answers"]
            if "correct" in item:
                correct = int(item["correct"])
                answers = [Answer(str(a), i == correct) for i, a in enumerate(raw_answers)]
            else:
                answers = [Answer.from_dict(a) for a in raw_answers]
            questions.append(Question(str(text), answers, question_id=item.get("id")))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping JSON question {n}: {e}")
    return questions


def ingest(raw: bytes, file_name: str) -> List[Question]:
    """
    Parse ``raw`` document bytes according to the file extension.

    Raises IngestionError for unreadable documents and EmptyResultError when
    nothing usable was found.
    """
    suffix = Path(file_name).suffix.lower()
    try:
        if suffix == ".docx":
            questions = parse_lines(docx_lines(raw))
        elif suffix == ".json":
            questions = parse_json(raw)
        elif suffix == ".txt":
            questions = parse_lines(raw.decode("utf-8-sig").splitlines())
        else:
            raise IngestionError(
                f"Unsupported document type '{suffix or file_name}'. "
                f"Supported: {', '.join(SUPPORTED_SUFFIXES)}"
            )
    except IngestionError:
        raise
    except (PackageNotFoundError, zipfile.BadZipFile, etree.LxmlError, KeyError,
            UnicodeDecodeError, ValueError) as e:
        raise IngestionError(f"Could not read '{file_name}': {e}") from e

    if not questions:
        raise EmptyResultError(f"No questions found in '{file_name}'")
    logger.info(f"Ingested {len(questions)} questions from '{file_name}'")
    return questions

