"""QuizMaster: self-quiz trainer for multiple-choice question documents."""

__version__ = "0.1.0"
