"""Domain errors raised by the interview engine and mapped at the API boundary."""
from __future__ import annotations

from typing import Any, Optional


class InterviewError(RuntimeError):
    """Base domain error carrying the status classification for callers."""

    status_code = 500

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidRequestError(InterviewError):
    status_code = 400


class NotFoundError(InterviewError):
    status_code = 404


class StateConflictError(InterviewError):
    """Session not active or question submitted out of order; not retryable."""

    status_code = 400


class NoQuestionsAvailableError(InterviewError):
    """No tier could produce a question for a difficulty; session creation aborts."""

    status_code = 500

    def __init__(self, difficulty: str) -> None:
        super().__init__(
            f"No questions available for difficulty {difficulty}.",
            details={"difficulty": difficulty},
        )
        self.difficulty = difficulty


__all__ = [
    "InterviewError",
    "InvalidRequestError",
    "NoQuestionsAvailableError",
    "NotFoundError",
    "StateConflictError",
]
