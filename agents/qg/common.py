"""Shared utilities for question sources."""
from __future__ import annotations

import random
from typing import Dict, List, Optional, Protocol

from pydantic import BaseModel, Field

from agents.types import Difficulty, FocusArea, QuestionSourceName, ResumeInsights

TOPIC_PREVIEW_CHARS = 80


class CandidateQuestion(BaseModel):
    """A question produced by a source, not yet persisted."""

    prompt: str
    expected_note: Optional[str] = None
    topic: Optional[str] = None
    source: QuestionSourceName
    template_id: Optional[str] = None

    def topic_label(self) -> str:
        return self.topic or self.prompt[:TOPIC_PREVIEW_CHARS]


class QGContext(BaseModel):
    """Per-session generation state shared by every source."""

    resume_text: str = ""
    candidate_name: Optional[str] = None
    insights: Optional[ResumeInsights] = None
    focus_hints: List[FocusArea] = Field(default_factory=list)
    detected_skills: List[str] = Field(default_factory=list)
    asked_topics: List[str] = Field(default_factory=list)
    used_template_ids: List[str] = Field(default_factory=list)
    used_prompts: List[str] = Field(default_factory=list)
    template_offsets: Dict[Difficulty, int] = Field(default_factory=dict)
    template_turns: Dict[Difficulty, int] = Field(default_factory=dict)
    bank_turns: Dict[Difficulty, int] = Field(default_factory=dict)

    def focus_hint(self, slot: int) -> Optional[FocusArea]:
        if not self.focus_hints:
            return None
        return self.focus_hints[slot % len(self.focus_hints)]

    def record(self, question: CandidateQuestion) -> None:
        self.asked_topics.append(question.topic_label())
        self.used_prompts.append(question.prompt)
        if question.template_id:
            self.used_template_ids.append(question.template_id)


class QuestionSource(Protocol):
    name: QuestionSourceName

    def try_provide(self, difficulty: Difficulty, slot: int, ctx: QGContext) -> Optional[CandidateQuestion]: ...


def new_context(
    *,
    resume_text: Optional[str],
    insights: Optional[ResumeInsights],
    candidate_name: Optional[str],
    rng: random.Random,
    template_pool_sizes: Dict[Difficulty, int],
) -> QGContext:
    """Shuffle focus hints and pick per-difficulty rotation offsets once per session."""

    hints = [focus for focus in (insights.focus_areas if insights else []) if focus.topic]
    rng.shuffle(hints)
    offsets = {
        difficulty: rng.randrange(size) if size > 0 else 0
        for difficulty, size in template_pool_sizes.items()
    }
    return QGContext(
        resume_text=resume_text or "",
        candidate_name=candidate_name,
        insights=insights,
        focus_hints=hints,
        detected_skills=list(insights.skills) if insights else [],
        template_offsets=offsets,
    )


def matches_topic(topic: Optional[str], *texts: Optional[str]) -> bool:
    """True when ``topic`` appears in any text, or any short text appears in ``topic``."""

    if not topic:
        return False
    needle = topic.strip().lower()
    if not needle:
        return False
    for text in texts:
        if not text:
            continue
        haystack = text.lower()
        if needle in haystack or haystack in needle:
            return True
    return False


__all__ = [
    "CandidateQuestion",
    "QGContext",
    "QuestionSource",
    "TOPIC_PREVIEW_CHARS",
    "matches_topic",
    "new_context",
]
