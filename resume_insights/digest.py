from __future__ import annotations  # AI resume digest merged into keyword insights

import logging
import re
from textwrap import dedent
from typing import Any, List, Optional

from agents.types import FocusArea, ResumeInsights
from config.settings import settings
from llm_gateway import AiProvider, LlmGatewayError, truncate_text

from .resume_insights import derive_insights, merge_insights


logger = logging.getLogger(__name__)

DIGEST_SYSTEM_PROMPT = dedent(
    """
    You are preparing detailed interview context from a candidate resume for a senior full-stack interview.

    Focus on extracting specific, unique details that will help generate personalized interview questions:
    companies, projects and technologies, challenges faced, domain expertise, leadership and scale of impact.
    """
).strip()


def digest_resume(text: Optional[str], provider: AiProvider) -> Optional[ResumeInsights]:  # Ask the provider for a structured digest
    if not text or not text.strip() or not provider.enabled:
        return None
    try:
        raw = provider.complete_json(DIGEST_SYSTEM_PROMPT, _build_task(text), max_tokens=600)
    except LlmGatewayError as exc:
        logger.warning("Resume digest unavailable: %s", exc)
        return None
    return _insights_from_payload(raw)


def build_session_insights(text: Optional[str], provider: AiProvider) -> Optional[ResumeInsights]:  # Keyword insights merged with the AI digest
    return merge_insights(derive_insights(text), digest_resume(text, provider))


def _build_task(text: str) -> str:  # Build task prompt for the digest
    resume = truncate_text(text, settings.RESUME_DIGEST_CHARS)
    return (
        dedent(
            """
            Analyze this resume thoroughly and return JSON with:
            - highlights: array of 4-5 specific accomplishments or experiences (not generic skills)
            - skills: array of key technologies/tools mentioned (max 12)
            - roles: array of specific job titles and companies (max 6)
            - experienceYears: estimated total years of professional experience
            - focusAreas: array of 5-6 interview topics, each as {"topic": string, "reason": string}
            - uniqueDetails: array of 3-4 details that make this candidate unique
            - industryContext: brief description of industries/domains they have experience in
            - projectTypes: array of types of projects they have built

            Resume text:
            """
        ).strip()
        + "\n"
        + resume
    )


def _string_list(value: Any) -> List[str]:  # Accept arrays or delimited strings
    if not value:
        return []
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return [item.strip() for item in re.split(r"\n|,|;", str(value)) if item.strip()]


def _experience(value: Any) -> Optional[float]:
    try:
        years = float(value)
    except (TypeError, ValueError):
        return None
    return years or None


def _insights_from_payload(raw: dict) -> ResumeInsights:  # Map provider JSON to ResumeInsights
    focus_areas: List[FocusArea] = []
    if isinstance(raw.get("focusAreas"), list):
        for item in raw["focusAreas"]:
            if not isinstance(item, dict):
                continue
            topic = str(item["topic"]).strip() if item.get("topic") else None
            reason = str(item["reason"]).strip() if item.get("reason") else None
            if topic or reason:
                focus_areas.append(FocusArea(topic=topic, reason=reason))
    industry = raw.get("industryContext")
    return ResumeInsights(
        highlights=_string_list(raw.get("highlights")),
        skills=_string_list(raw.get("skills")),
        roles=_string_list(raw.get("roles")),
        focus_areas=focus_areas,
        experience_years=_experience(raw.get("experienceYears")),
        unique_details=_string_list(raw.get("uniqueDetails")),
        industry_context=str(industry).strip() if industry else None,
        project_types=_string_list(raw.get("projectTypes")),
    )
