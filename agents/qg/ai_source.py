"""AI-personalized question source."""
from __future__ import annotations

import logging
import re
from textwrap import dedent
from typing import List, Optional

from agents.types import Difficulty, FocusArea, ResumeInsights
from llm_gateway import AiProvider, LlmGatewayError, normalize_rubric, truncate_text

from .common import CandidateQuestion, QGContext


logger = logging.getLogger(__name__)

KEY_DETAIL_LIMIT = 3
COMPANY_PATTERN = re.compile(r"(?:\b(?i:at)|@)[ \t]+([A-Z][A-Za-z &,.-]+)")
PROJECT_PATTERN = re.compile(r"\b(?:project|built|developed|created|implemented)[ \t]+[A-Za-z -]+", re.IGNORECASE)
TECH_PATTERN = re.compile(
    r"\b(?:using|with|in)[ \t]+[A-Za-z0-9 ,.-]+"
    r"(?:js|typescript|python|java|react|angular|vue|node|express|mongodb|postgresql|aws|azure|gcp|docker|kubernetes)",
    re.IGNORECASE,
)

SYSTEM_PROMPT = dedent(
    """
    You are an expert technical interviewer for a senior full-stack role (React + Node).

    Analyze the candidate's resume and generate questions tailored to their background, projects,
    companies and experiences. Reference specific technologies or projects from the resume, explore
    the challenges they likely faced, and match the difficulty to their apparent experience level.
    """
).strip()


class AiQuestionSource:
    name = "ai"

    def __init__(self, provider: AiProvider, *, attempts: int = 2, resume_chars: int = 3000) -> None:
        self.provider = provider
        self.attempts = attempts
        self.resume_chars = resume_chars

    def try_provide(self, difficulty: Difficulty, slot: int, ctx: QGContext) -> Optional[CandidateQuestion]:
        if not self.provider.enabled:
            return None
        task = build_task(difficulty, ctx, ctx.focus_hint(slot), self.resume_chars)
        for attempt in range(1, self.attempts + 1):
            try:
                raw = self.provider.complete_json(SYSTEM_PROMPT, task, max_tokens=500)
                return parse_question(raw)
            except LlmGatewayError as exc:
                logger.warning(
                    "AI question generation failed slot=%d difficulty=%s attempt=%d/%d: %s",
                    slot,
                    difficulty.value,
                    attempt,
                    self.attempts,
                    exc,
                )
        return None


def parse_question(raw: dict) -> CandidateQuestion:
    """Validate a provider payload; a missing prompt counts as a failed attempt."""

    prompt = str(raw.get("prompt") or "").strip()
    if not prompt:
        raise LlmGatewayError("AI question response missing prompt field")
    rubric_value = raw.get("rubric") or raw.get("focusPoints")
    items = normalize_rubric(rubric_value)
    if items:
        expected_note = "\n".join(items)
    else:
        expected_note = str(rubric_value or "").strip()
    topic = str(raw["topic"]).strip() if raw.get("topic") else None
    return CandidateQuestion(
        prompt=prompt,
        expected_note=expected_note or None,
        topic=topic or None,
        source="ai",
    )


def _insight_lines(insights: Optional[ResumeInsights]) -> List[str]:
    if insights is None:
        return []
    lines: List[str] = []
    if insights.highlights:
        lines.append("Resume Highlights:\n- " + "\n- ".join(insights.highlights))
    if insights.skills:
        lines.append(f"Technical Skills: {', '.join(insights.skills)}")
    if insights.roles:
        lines.append(f"Career Roles: {', '.join(insights.roles)}")
    if insights.experience_years:
        lines.append(f"Experience Level: ~{insights.experience_years:g} years")
    if insights.industry_context:
        lines.append(f"Industry Context: {insights.industry_context}")
    if insights.focus_areas:
        areas = [
            f"{area.topic or 'Topic'}" + (f" ({area.reason})" if area.reason else "")
            for area in insights.focus_areas
        ]
        lines.append("Focus Areas to Explore:\n- " + "\n- ".join(areas))
    return lines


def extract_key_details(text: Optional[str]) -> List[str]:
    """Companies, project phrases and technology context pulled from raw resume text."""

    if not text:
        return []
    lines: List[str] = []
    companies = [match.group(1).strip(" ,.-") for match in COMPANY_PATTERN.finditer(text)]
    if companies:
        lines.append(f"Companies: {', '.join(companies[:KEY_DETAIL_LIMIT])}")
    if "project" in text.lower():
        projects = [match.group(0).strip() for match in PROJECT_PATTERN.finditer(text)]
        if projects:
            lines.append(f"Project Experience: {'; '.join(projects[:KEY_DETAIL_LIMIT])}")
    tech = [match.group(0).strip() for match in TECH_PATTERN.finditer(text)]
    if tech:
        lines.append(f"Technology Context: {'; '.join(tech[:KEY_DETAIL_LIMIT])}")
    return lines


def build_task(difficulty: Difficulty, ctx: QGContext, hint: Optional[FocusArea], resume_chars: int) -> str:
    """Compose the user prompt for one question slot."""

    level = difficulty.value.lower()
    insight_lines = _insight_lines(ctx.insights)
    analysis = "Resume Analysis:\n" + "\n".join(insight_lines) if insight_lines else "Resume Analysis: Limited insights available"
    parts = [
        f"Candidate: {ctx.candidate_name}" if ctx.candidate_name else "Candidate: Name not provided",
        "",
        f"TASK: Generate ONE unique {level}-level interview question tailored to this candidate's background.",
        f"Ensure the question is appropriate for a {level} difficulty level.",
    ]
    if hint and hint.topic:
        focus = f"Steer the question toward: {hint.topic}"
        if hint.reason:
            focus += f" ({hint.reason})"
        parts.append(focus)
    if ctx.asked_topics:
        parts.append(f"AVOID these topics already covered: {', '.join(ctx.asked_topics)}")
    parts.extend(["", analysis])
    key_details = extract_key_details(ctx.resume_text)
    if key_details:
        parts.extend(["", "KEY RESUME DETAILS:", *key_details])
    parts.extend(
        [
            "",
            "FULL RESUME TEXT:",
            truncate_text(ctx.resume_text, resume_chars) or "(resume text unavailable)",
            "",
            "Return JSON with:",
            "- prompt: the personalized interview question",
            "- rubric: key points the answer should cover (array or string)",
            "- topic: brief topic label for tracking",
            "- personalization: brief note on how this question relates to their background",
        ]
    )
    return "\n".join(parts)
