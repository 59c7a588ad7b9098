#!/usr/bin/env python3
"""Entry point for running QuizMaster from a source checkout."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from quizmaster.trainer import main  # noqa: E402


if __name__ == "__main__":
    sys.exit(main())
