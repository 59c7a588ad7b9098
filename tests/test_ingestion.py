"""Tests for document ingestion."""
import io
import json
import zipfile

import docx
import pytest

from quizmaster.ingestion import ingest, letter_index, parse_lines
from quizmaster.models import EmptyResultError, IngestionError


SAMPLE_TEXT = """\
Chapter 1. Basics

1. What is the capital
of France?
A) Berlin
*B) Paris
C) Madrid

2) Which number is prime?
a. 4
b. 6
c. 7*

3. Pick the largest planet.
A) Mars
B) Jupiter
C) Venus
Answer: B

4. A question with no marked answer
A) one
B) two
"""


def test_parse_lines_reads_questions():
    questions = parse_lines(SAMPLE_TEXT.splitlines())
    assert len(questions) == 3
    first = questions[0]
    assert first.text == "What is the capital of France?"
    assert [a.text for a in first.answers] == ["Berlin", "Paris", "Madrid"]
    assert first.correct_index == 1
    assert questions[1].correct_index == 2
    assert questions[1].answers[2].text == "7"
    assert questions[2].correct_index == 1


def test_option_continuation_lines():
    questions = parse_lines([
        "1. Define recursion.",
        "A) A function that",
        "calls itself",
        "+B) Looping forever",
    ])
    assert questions[0].answers[0].text == "A function that calls itself"
    assert questions[0].correct_index == 1


def test_cyrillic_options_and_answer_line():
    questions = parse_lines([
        "1. Столица России?",
        "А) Казань",
        "Б) Москва",
        "В) Сочи",
        "Ответ: Б",
    ])
    assert questions[0].correct_index == 1


def test_letter_index():
    assert letter_index("a") == 0
    assert letter_index("C") == 2
    assert letter_index("В") == 2
    assert letter_index("1") is None


def test_ids_are_stable_across_loads():
    first = ingest(SAMPLE_TEXT.encode("utf-8"), "bank.txt")
    second = ingest(SAMPLE_TEXT.encode("utf-8"), "bank.txt")
    assert [q.id for q in first] == [q.id for q in second]
    assert len({q.id for q in first}) == 3


def test_ingest_json_index_format():
    data = [
        {"question": "2 + 2?", "answers": ["3", "4", "5"], "correct": 1},
        {"question": "broken", "answers": ["x"], "correct": 4},
    ]
    questions = ingest(json.dumps(data).encode("utf-8"), "bank.json")
    assert len(questions) == 1
    assert questions[0].correct_answer.text == "4"


def test_ingest_json_flag_format():
    data = {"questions": [
        {"id": "q-1", "text": "Sky colour?",
         "answers": [{"text": "Blue", "isCorrect": True}, {"text": "Green"}]},
    ]}
    questions = ingest(json.dumps(data).encode("utf-8"), "bank.json")
    assert questions[0].id == "q-1"
    assert questions[0].correct_index == 0


def make_docx(paragraphs, soft_break=None):
    document = docx.Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if soft_break:
        p = document.add_paragraph()
        for i, line in enumerate(soft_break):
            run = p.add_run(line)
            if i < len(soft_break) - 1:
                run.add_break()
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


def test_ingest_docx():
    raw = make_docx(
        ["1. What is H2O?", "A) Salt", "B) Water*", "C) Air"],
        soft_break=["2. Sun is a...", "A) Planet", "*B) Star"],
    )
    questions = ingest(raw, "Chemistry.DOCX")
    assert [q.text for q in questions] == ["What is H2O?", "Sun is a..."]
    assert questions[0].correct_answer.text == "Water"
    assert questions[1].correct_answer.text == "Star"


def test_ingest_docx_tables():
    document = docx.Document()
    table = document.add_table(rows=4, cols=1)
    for row, text in zip(table.rows, ["1. Pick one", "A) yes", "*B) no", "C) maybe"]):
        row.cells[0].text = text
    buf = io.BytesIO()
    document.save(buf)
    questions = ingest(buf.getvalue(), "table.docx")
    assert questions[0].correct_index == 1


def test_corrupt_docx_raises():
    with pytest.raises(IngestionError):
        ingest(b"definitely not a zip archive", "broken.docx")


def test_unsupported_suffix_raises():
    with pytest.raises(IngestionError):
        ingest(b"%PDF-1.4", "bank.pdf")


def test_invalid_json_raises():
    with pytest.raises(IngestionError):
        ingest(b"{oops", "bank.json")


def test_no_questions_raises_empty_result():
    with pytest.raises(EmptyResultError):
        ingest(b"Just some prose without questions.", "notes.txt")
    with pytest.raises(EmptyResultError):
        ingest(make_docx(["Title only"]), "empty.docx")


def broken_xml_docx():
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("[Content_Types].xml", "<not xml")
    return buf.getvalue()


def test_docx_with_broken_xml_raises():
    with pytest.raises(IngestionError):
        ingest(broken_xml_docx(), "bank.docx")
