"""Console trainer: a text front-end that drives the quiz engine."""

import argparse
import logging
import sys
from typing import List, Optional

import numpy as np

from .config import load_config
from .evaluation_engine import favorites_count, history_summary, long_correct_stats
from .feedback_generator import FeedbackGenerator, option_letter
from .models import (
    QUIZ_MODES,
    STATUS_IDLE,
    STATUS_MODE_SELECTION,
    STATUS_QUIZ,
    STATUS_RESULT,
    IngestionError,
    InvalidSelectionError,
    QuizError,
)
from .progress_store import ProgressStore
from .quiz_engine import QuizEngine
from .storage import SQLiteStore

logger = logging.getLogger(__name__)

HOME_HELP = (
    "Commands: u <path> upload | o <n> open | d <n> delete | h history | "
    "l login | t theme | q quit"
)


class Trainer:
    """
    Runs the interactive loop: home screen, mode menu, question flow and
    result screen, one screen per engine status.
    """

    def __init__(self, engine: QuizEngine, feedback: Optional[FeedbackGenerator] = None):
        self.engine = engine
        self.feedback = feedback or FeedbackGenerator()
        self._running = False

    def speak(self, text: str):
        print(text)

    def listen(self, prompt: str = "> ") -> str:
        try:
            return input(prompt).strip()
        except (EOFError, KeyboardInterrupt):
            return "q"

    # ---- home ----
    def upload(self, path: str) -> bool:
        self.speak(f"Loading {path}...")
        try:
            self.engine.upload_document_path(path)
        except IngestionError as e:
            self.speak(f"Error: {e}")
            return False
        self.speak(f"Loaded {len(self.engine.state.questions)} questions.")
        return True

    def home_screen(self) -> bool:
        """Returns False when the user quits."""
        library = self.engine.progress.library
        self.speak("\nQuizMaster")
        if library:
            self.speak("Library:")
            for n, entry in enumerate(library, start=1):
                self.speak(self.feedback.library_line(n, entry))
        else:
            self.speak("Your library is empty.")
        self.speak(HOME_HELP)

        command, _, arg = self.listen().partition(" ")
        command = command.lower()
        arg = arg.strip()
        if command in ("q", "quit", "exit"):
            return False
        if command == "u" and arg:
            self.upload(arg)
        elif command in ("o", "d") and arg.isdigit():
            n = int(arg)
            if not 1 <= n <= len(library):
                self.speak("No such library entry.")
            elif command == "o":
                self.engine.open_library_entry(library[n - 1].id)
            else:
                self.engine.delete_library_entry(library[n - 1].id)
                self.speak(f"Deleted {library[n - 1].name}.")
        elif command == "h":
            self.show_history()
        elif command == "l":
            logged_in = self.engine.toggle_login()
            self.speak("Logged in." if logged_in else "Logged out.")
        elif command == "t":
            self.speak(f"Theme: {self.engine.toggle_theme()}")
        else:
            self.speak("Unknown command.")
        return True

    def show_history(self, file_name: Optional[str] = None):
        history = self.engine.progress.history
        if not history:
            self.speak("No completed sessions yet.")
            return
        for entry in history:
            if file_name is None or entry.file_name == file_name:
                self.speak(self.feedback.history_line(entry))
        summary = history_summary(history, file_name)
        self.speak(f"Attempts: {summary['attempts']}, best {summary['best_percent']}%, "
                   f"average {summary['avg_percent']}%")

    # ---- mode selection ----
    def mode_screen(self):
        state = self.engine.state
        self.speak(f"\n{state.file_name}: {len(state.questions)} questions")
        stats_line = self.feedback.long_correct_summary(long_correct_stats(state.questions))
        if stats_line:
            self.speak(stats_line)
        favorites = favorites_count(state.questions, self.engine.progress.bookmarks)
        self.speak(self.feedback.mode_menu(favorites))
        self.speak("Choose a mode (1-4), or h for home.")

        choice = self.listen().lower()
        if choice in ("h", "q"):
            self.engine.go_home()
        elif choice.isdigit() and 1 <= int(choice) <= len(QUIZ_MODES):
            self.begin(QUIZ_MODES[int(choice) - 1])
        else:
            self.speak("Unknown mode.")

    def begin(self, mode: str):
        try:
            self.engine.start_session(mode)
        except InvalidSelectionError as e:
            self.speak(str(e))

    # ---- quiz ----
    def quiz_screen(self):
        state = self.engine.state
        question = state.current_question
        order = state.current_answer_order()
        self.speak("\n" + self.feedback.question_text(
            question, order, state.current_index + 1, state.total,
            streak=state.current_streak,
            bookmarked=self.engine.progress.is_bookmarked(question.id),
        ))
        letters = [option_letter(i) for i in range(len(order))]
        self.speak(f"Answer {'/'.join(letters)}, b bookmark, q home.")

        while not self.engine.state.is_answer_checked:
            reply = self.listen().upper()
            if reply == "Q":
                self.engine.go_home()
                return
            if reply == "B":
                self.toggle_bookmark()
                continue
            if reply in letters:
                self.engine.select_displayed_answer(letters.index(reply))
                result = self.engine.check_answer()
                state = self.engine.state
                self.speak(self.feedback.answer_feedback(result, question, order,
                                                         streak=state.current_streak))
            else:
                self.speak("Please pick one of the listed answers.")

        while True:
            reply = self.listen("[Enter] next, b bookmark, q home > ").lower()
            if reply == "q":
                self.engine.go_home()
                return
            if reply == "b":
                self.toggle_bookmark()
                continue
            self.engine.next_question()
            return

    def toggle_bookmark(self):
        marked = self.engine.toggle_bookmark()
        self.speak("Bookmarked." if marked else "Bookmark removed.")

    # ---- result ----
    def result_screen(self):
        state = self.engine.state
        self.speak("\n" + self.feedback.session_summary(
            state.score, state.total, state.seconds_elapsed, state.mode
        ))
        self.speak("r retry | m change mode | h home")
        choice = self.listen().lower()
        if choice == "r":
            self.begin(state.mode)
        elif choice == "m":
            self.engine.change_mode()
        elif choice in ("h", "q"):
            self.engine.go_home()

    def run(self):
        self._running = True
        try:
            while self._running:
                status = self.engine.state.status
                if status == STATUS_IDLE:
                    self._running = self.home_screen()
                elif status == STATUS_MODE_SELECTION:
                    self.mode_screen()
                elif status == STATUS_QUIZ:
                    self.quiz_screen()
                elif status == STATUS_RESULT:
                    self.result_screen()
                else:
                    logger.debug(f"Waiting in state {status}")
        finally:
            self.engine.shutdown()
            self._running = False
        self.speak("Goodbye!")


def build_engine(config: dict, db_path: Optional[str] = None,
                 seed: Optional[int] = None) -> QuizEngine:
    store_cfg = config["store"]
    quiz_cfg = config["quiz"]
    progress = ProgressStore(
        SQLiteStore(db_path or store_cfg["db_path"]),
        library_limit=store_cfg["library_limit"],
        history_limit=store_cfg["history_limit"],
    )
    seed = seed if seed is not None else quiz_cfg["seed"]
    return QuizEngine(
        progress,
        rng=np.random.default_rng(seed),
        session_size=quiz_cfg["session_size"],
        tick_interval=config["ticker"]["interval"],
    )


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="QuizMaster multiple-choice trainer")
    parser.add_argument("document", nargs="?", help="Question document to load (.docx, .json, .txt)")
    parser.add_argument("--config", default="config.yaml", help="Config file path")
    parser.add_argument("--db", default=None, help="Progress database path")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible shuffles")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    log_level = logging.DEBUG if args.verbose else getattr(
        logging, str(config["logging"]["level"]).upper(), logging.INFO)
    logging.basicConfig(level=log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    engine = build_engine(config, db_path=args.db, seed=args.seed)
    trainer = Trainer(engine)
    if args.document:
        trainer.upload(args.document)
    try:
        trainer.run()
    except QuizError as e:
        logger.error(f"Unexpected engine error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
