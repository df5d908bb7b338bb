"""Answer scoring: AI evaluation with a deterministic heuristic fallback."""
from __future__ import annotations

import logging
import re
from textwrap import dedent
from typing import List, Optional

from agents.types import Difficulty, Evaluation
from config.interview import DIFFICULTY_WEIGHTS
from llm_gateway import AiProvider, LlmGatewayError, clamp_score, normalize_rubric


logger = logging.getLogger(__name__)

EVAL_SYSTEM_PROMPT = (
    "You are an impartial technical interviewer. Score answers from 0.0 to 10.0 using half-point precision."
)
EMPTY_FEEDBACK = "No substantial answer was provided."
UNAVAILABLE_NOTE = "AI evaluation unavailable; heuristic scoring applied."

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


def _tokenize(text: str) -> List[str]:
    return [token for token in _TOKEN_SPLIT.split(text.lower()) if token]


def extract_keywords(expected_note: Optional[str]) -> List[str]:
    """Unique rubric tokens longer than three characters, first-seen order."""

    seen: List[str] = []
    for token in _tokenize(expected_note or ""):
        if len(token) > 3 and token not in seen:
            seen.append(token)
    return seen


def score_answer(
    answer_text: Optional[str],
    expected_note: Optional[str],
    difficulty: Difficulty,
    time_taken_seconds: float,
    time_limit_seconds: Optional[float],
) -> Evaluation:
    """Deterministic score in [0, 10] from keyword coverage, length and timing."""

    if not answer_text or not answer_text.strip():
        return Evaluation(
            score=0,
            feedback=EMPTY_FEEDBACK,
            improvements=["Provide a more complete response."],
        )

    weights = DIFFICULTY_WEIGHTS.get(difficulty, DIFFICULTY_WEIGHTS[Difficulty.EASY])
    tokens = _tokenize(answer_text)
    unique_tokens = set(tokens)
    keywords = extract_keywords(expected_note)
    matched = [keyword for keyword in keywords if keyword in unique_tokens]
    overtime = bool(time_limit_seconds) and time_taken_seconds > time_limit_seconds

    score = float(weights.base)
    if matched:
        coverage = len(matched) / max(len(keywords), 1)
        score += weights.keywords_bonus * min(1.0, coverage + 0.2)
    if len(tokens) > 40:
        score += weights.length_bonus
    if overtime:
        score -= 1
    score = max(0.0, min(10.0, round(score, 2)))

    feedback: List[str] = []
    strengths: List[str] = []
    improvements: List[str] = []

    if matched:
        listed = ", ".join(matched[:5])
        feedback.append(f"Good coverage of key topics ({listed}).")
        strengths.append(f"Covered key topics: {listed}")
    elif keywords:
        feedback.append("Consider addressing core keywords highlighted in the question.")
        improvements.append(f"Incorporate keywords such as {', '.join(keywords[:5])}")

    if len(tokens) < 25:
        feedback.append("Answer could include more depth or examples.")
        improvements.append("Add more depth or concrete examples.")
    elif len(tokens) > 60:
        strengths.append("Provided an in-depth and thorough response.")

    if overtime:
        feedback.append("Answer exceeded the recommended time limit.")
        improvements.append("Stay within the recommended time limit.")

    if not feedback:
        feedback.append("Solid answer with well-structured explanation.")
        strengths.append("Answer was well structured and comprehensive.")

    return Evaluation(
        score=score,
        feedback=" ".join(feedback),
        strengths=strengths or None,
        improvements=improvements or None,
    )


def evaluate_with_ai(
    question_prompt: str,
    expected_note: Optional[str],
    answer_text: Optional[str],
    difficulty: Difficulty,
    provider: AiProvider,
) -> Evaluation:
    task = dedent(
        f"""
        Question (difficulty {difficulty.value}): {question_prompt}
        Ideal focus points: {expected_note or 'N/A'}
        Candidate answer: {answer_text or '(empty)'}

        Return JSON with:
        - score: 0-10 numeric
        - feedback: constructive critique (2-3 sentences)
        - keyStrengths: optional array of phrases
        - improvements: optional array of suggestions
        """
    ).strip()
    raw = provider.complete_json(EVAL_SYSTEM_PROMPT, task, max_tokens=400)
    feedback = str(raw.get("feedback") or "").strip() or "Feedback unavailable."
    return Evaluation(
        score=clamp_score(raw.get("score")),
        feedback=feedback,
        strengths=normalize_rubric(raw.get("keyStrengths") or raw.get("strengths")),
        improvements=normalize_rubric(raw.get("improvements") or raw.get("gaps")),
        source="ai",
        model=provider.model,
    )


def evaluate_answer(
    *,
    question_prompt: str,
    expected_note: Optional[str],
    answer_text: Optional[str],
    difficulty: Difficulty,
    time_taken_seconds: float,
    time_limit_seconds: Optional[float],
    provider: AiProvider,
) -> Evaluation:
    """AI evaluation when available; otherwise the heuristic tagged with the reason."""

    if provider.enabled:
        try:
            return evaluate_with_ai(question_prompt, expected_note, answer_text, difficulty, provider)
        except LlmGatewayError as exc:
            logger.warning("AI evaluation failed, using heuristic scoring: %s", exc)
            note = f"AI evaluation failed: {exc}; heuristic scoring applied."
    else:
        note = UNAVAILABLE_NOTE

    fallback = score_answer(answer_text, expected_note, difficulty, time_taken_seconds, time_limit_seconds)
    return fallback.model_copy(update={"note": note})


__all__ = [
    "EVAL_SYSTEM_PROMPT",
    "evaluate_answer",
    "evaluate_with_ai",
    "extract_keywords",
    "score_answer",
]
