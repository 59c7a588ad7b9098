"""Tests for the console Trainer."""
import io
import zipfile

import numpy as np
import pytest
from unittest.mock import MagicMock

from quizmaster.progress_store import ProgressStore
from quizmaster.quiz_engine import QuizEngine
from quizmaster.storage import MemoryStore
from quizmaster.ticker import ManualTicker
from quizmaster.trainer import Trainer, build_engine, main
from quizmaster.config import DEFAULTS


BANK_TEXT = """\
1. What is 2 + 2?
A) 3
*B) 4

2. What colour is the sky?
*A) Blue
B) Green
"""


@pytest.fixture
def bank_file(tmp_path):
    path = tmp_path / "arith.txt"
    path.write_text(BANK_TEXT, encoding="utf-8")
    return str(path)


@pytest.fixture
def trainer():
    engine = QuizEngine(ProgressStore(MemoryStore()), rng=np.random.default_rng(0),
                        ticker_factory=ManualTicker)
    trainer_obj = Trainer(engine)
    trainer_obj.speak = MagicMock()
    return trainer_obj


def spoken(trainer):
    return [c.args[0] for c in trainer.speak.call_args_list]


def test_home_quit(trainer):
    trainer.listen = MagicMock(return_value="q")
    assert trainer.home_screen() is False


def test_home_upload(trainer, bank_file):
    trainer.listen = MagicMock(return_value=f"u {bank_file}")
    assert trainer.home_screen() is True
    assert trainer.engine.state.status == "mode_selection"
    trainer.speak.assert_any_call("Loaded 2 questions.")


def test_home_upload_missing_file(trainer, tmp_path):
    trainer.listen = MagicMock(return_value=f"u {tmp_path / 'missing.docx'}")
    trainer.home_screen()
    assert trainer.engine.state.status == "idle"
    assert any(line.startswith("Error:") for line in spoken(trainer))


def test_home_open_and_delete_library(trainer, bank_file):
    trainer.upload(bank_file)
    trainer.engine.go_home()
    trainer.listen = MagicMock(side_effect=["o 1"])
    trainer.home_screen()
    assert trainer.engine.state.status == "mode_selection"

    trainer.engine.go_home()
    trainer.listen = MagicMock(side_effect=["d 5", "d 1"])
    trainer.home_screen()
    trainer.speak.assert_any_call("No such library entry.")
    trainer.home_screen()
    assert trainer.engine.progress.library == []


def test_home_toggles(trainer):
    trainer.listen = MagicMock(side_effect=["l", "t"])
    trainer.home_screen()
    trainer.home_screen()
    trainer.speak.assert_any_call("Logged in.")
    trainer.speak.assert_any_call("Theme: dark")


def test_favorites_rejected_in_mode_screen(trainer, bank_file):
    trainer.upload(bank_file)
    trainer.listen = MagicMock(return_value="4")
    trainer.mode_screen()
    assert trainer.engine.state.status == "mode_selection"
    trainer.speak.assert_any_call("There are no bookmarked questions in this document yet.")


def test_quiz_screen_bookmark_and_answer(trainer, bank_file):
    trainer.upload(bank_file)
    trainer.engine.start_session("speedrun")
    question = trainer.engine.state.current_question
    trainer.listen = MagicMock(side_effect=["b", "z", "A", ""])
    trainer.quiz_screen()
    assert trainer.engine.progress.is_bookmarked(question.id)
    trainer.speak.assert_any_call("Please pick one of the listed answers.")
    assert trainer.engine.state.current_index == 1


def test_quiz_screen_quit_goes_home(trainer, bank_file):
    trainer.upload(bank_file)
    trainer.engine.start_session("test")
    trainer.listen = MagicMock(return_value="q")
    trainer.quiz_screen()
    assert trainer.engine.state.status == "idle"


def test_full_run_records_history(trainer, bank_file):
    trainer.listen = MagicMock(side_effect=[
        f"u {bank_file}", "3", "A", "", "A", "", "m", "h", "h", "q",
    ])
    trainer.run()
    history = trainer.engine.progress.history
    assert len(history) == 1
    assert history[0].total == 2
    assert history[0].mode == "speedrun"
    trainer.speak.assert_any_call("Goodbye!")


def test_show_history(trainer):
    trainer.engine.progress.record_session("arith.txt", 1, 2, "test", 30)
    trainer.show_history()
    lines = spoken(trainer)
    assert lines[0] == "arith.txt: 1/2 (50%) Exam, 0:30"
    assert lines[1] == "Attempts: 1, best 50%, average 50%"


def test_build_engine_uses_config(tmp_path):
    engine = build_engine(DEFAULTS, db_path=str(tmp_path / "q.db"), seed=3)
    assert engine.session_size == 25
    assert engine.progress.library_limit == 10
    engine.shutdown()


def test_main_quits_cleanly(tmp_path, monkeypatch, bank_file):
    monkeypatch.setattr("builtins.input", MagicMock(side_effect=["q", "q"]))
    code = main([bank_file, "--db", str(tmp_path / "q.db"),
                 "--config", str(tmp_path / "none.yaml"), "--seed", "1"])
    assert code == 0


def test_home_upload_broken_docx(trainer, tmp_path):
    path = tmp_path / "broken.docx"
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("[Content_Types].xml", "<not xml")
    path.write_bytes(buf.getvalue())
    trainer.listen = MagicMock(return_value=f"u {path}")
    assert trainer.home_screen() is True
    assert trainer.engine.state.status == "idle"
    assert any(line.startswith("Error:") for line in spoken(trainer))
