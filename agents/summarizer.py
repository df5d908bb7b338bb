"""Interview debrief summaries."""
from __future__ import annotations

import logging
from textwrap import dedent
from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel

from agents.types import Difficulty
from llm_gateway import AiProvider, LlmGatewayError


logger = logging.getLogger(__name__)

SUMMARY_SYSTEM_PROMPT = "You are preparing a concise interviewer debrief."
NO_ANSWERS_SUMMARY = "Interview session ended before any questions were answered."


class ScoreEntry(BaseModel):
    order: int
    difficulty: Difficulty
    prompt: str
    score: float = 0.0
    answered: bool = False
    answer_text: Optional[str] = None
    feedback: Optional[str] = None


class SummaryResult(BaseModel):
    text: str
    source: Literal["ai", "heuristic"]


def build_summary(candidate_name: Optional[str], scores: Sequence[ScoreEntry]) -> str:
    """Deterministic one-paragraph debrief naming the strongest answer."""

    if not any(entry.answered for entry in scores):
        return NO_ANSWERS_SUMMARY

    average = sum(entry.score for entry in scores) / max(len(scores), 1)
    best: Optional[ScoreEntry] = None
    for entry in scores:
        if best is None or entry.score > best.score:
            best = entry

    name = candidate_name or "The candidate"
    focus = best.difficulty.value.lower() if best else "overall"
    text = f"{name} demonstrated a solid understanding of {focus} concepts with an average score of {average:.1f}/10."
    if best is not None:
        text += f' Their strongest response covered "{best.prompt}".'
    return text


def _answer_lines(entries: Sequence[ScoreEntry]) -> str:
    blocks: List[str] = []
    for index, entry in enumerate(entries, start=1):
        blocks.append(
            f"Q{index} ({entry.difficulty.value}): {entry.prompt}\n"
            f"Score: {entry.score}\n"
            f"Answer: {entry.answer_text or '(no answer)'}\n"
            f"AI feedback: {entry.feedback or ''}"
        )
    return "\n\n".join(blocks)


def summarize_with_ai(
    candidate_name: Optional[str],
    candidate_email: Optional[str],
    entries: Sequence[ScoreEntry],
    provider: AiProvider,
) -> str:
    task = dedent(
        """
        Candidate: {name} ({email})
        Review the interview answers and produce JSON with:
          - summary (string): 3-4 sentences highlighting strengths, technical depth, and concerns.
          - recommendation (string): one of "Hire", "Hold", or "Decline".

        Interview details:
        """
    ).strip().format(name=candidate_name or "Unknown", email=candidate_email or "N/A")
    raw = provider.complete_json(SUMMARY_SYSTEM_PROMPT, f"{task}\n{_answer_lines(entries)}", max_tokens=300)

    summary = raw.get("summary")
    summary = summary.strip() if isinstance(summary, str) else ""
    if not summary:
        raise LlmGatewayError("AI summary response missing summary text")
    recommendation = raw.get("recommendation")
    recommendation = recommendation.strip() if isinstance(recommendation, str) else ""
    if recommendation:
        return f"{summary}\n\nRecommendation: {recommendation}"
    return summary


def summarize_session(
    candidate_name: Optional[str],
    candidate_email: Optional[str],
    entries: Sequence[ScoreEntry],
    provider: AiProvider,
) -> SummaryResult:
    if provider.enabled and any(entry.answered for entry in entries):
        try:
            text = summarize_with_ai(candidate_name, candidate_email, entries, provider)
            return SummaryResult(text=text, source="ai")
        except LlmGatewayError as exc:
            logger.warning("AI summary failed, using deterministic summary: %s", exc)
    return SummaryResult(text=build_summary(candidate_name, entries), source="heuristic")


__all__ = [
    "NO_ANSWERS_SUMMARY",
    "ScoreEntry",
    "SummaryResult",
    "build_summary",
    "summarize_session",
    "summarize_with_ai",
]
