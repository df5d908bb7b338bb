from __future__ import annotations  # Keyword-driven resume insight extraction

import re
from typing import Iterable, List, Optional

from pydantic import BaseModel

from agents.types import FocusArea, ResumeInsights


class SkillMatcher(BaseModel):  # Skill detected by substring patterns
    name: str
    patterns: List[str]
    highlight: str
    focus: FocusArea


class CoreSkill(BaseModel):  # Skill every session should cover even when absent
    name: str
    fallback: FocusArea


DEFAULT_FOCUS_TOPICS: List[FocusArea] = [
    FocusArea(
        topic="React component architecture",
        reason="Core capability for building the interview experience across complex UIs.",
    ),
    FocusArea(
        topic="Node.js API design",
        reason="Essential to confirm the candidate can deliver robust backend services.",
    ),
    FocusArea(
        topic="Data modeling and persistence",
        reason="Full-stack roles require thoughtful database and ORM design decisions.",
    ),
]

SKILL_MATCHERS: List[SkillMatcher] = [
    SkillMatcher(
        name="React",
        patterns=["react", "react.js", "reactjs", "next.js", "nextjs"],
        highlight="Hands-on experience shipping React applications.",
        focus=FocusArea(
            topic="Advanced React patterns",
            reason="Resume highlights React usage; validate depth with hooks, context, and performance tuning.",
        ),
    ),
    SkillMatcher(
        name="Redux",
        patterns=["redux", "redux-toolkit", "zustand", "mobx"],
        highlight="Familiar with state management libraries.",
        focus=FocusArea(
            topic="Scaling state management",
            reason="Explore trade-offs the candidate makes when structuring shared state.",
        ),
    ),
    SkillMatcher(
        name="TypeScript",
        patterns=["typescript", "tsconfig"],
        highlight="Worked with TypeScript in production.",
        focus=FocusArea(
            topic="TypeScript type design",
            reason="Assess ability to design resilient type systems for large codebases.",
        ),
    ),
    SkillMatcher(
        name="Node.js",
        patterns=["node.js", "nodejs", "node ", "express", "koa", "nestjs"],
        highlight="Backend delivery experience with Node.js or Express services.",
        focus=FocusArea(
            topic="Node.js service design",
            reason="Discuss how the candidate structures APIs, middleware, and error handling.",
        ),
    ),
    SkillMatcher(
        name="GraphQL",
        patterns=["graphql", "apollo", "hasura"],
        highlight="Exposure to GraphQL ecosystems.",
        focus=FocusArea(
            topic="GraphQL schema design",
            reason="Validate ability to craft schemas and resolve complex data graphs.",
        ),
    ),
    SkillMatcher(
        name="Testing",
        patterns=["jest", "testing library", "cypress", "playwright"],
        highlight="Invests in automated testing suites.",
        focus=FocusArea(
            topic="Testing strategy",
            reason="Understand how the candidate balances unit, integration, and e2e coverage.",
        ),
    ),
    SkillMatcher(
        name="DevOps",
        patterns=["docker", "kubernetes", "aws", "azure", "gcp", "terraform"],
        highlight="Comfortable with cloud or container tooling.",
        focus=FocusArea(
            topic="Deployment and scalability",
            reason="Explore approaches to deploying and scaling full-stack workloads safely.",
        ),
    ),
    SkillMatcher(
        name="Databases",
        patterns=["mongodb", "postgres", "mysql", "sql", "prisma", "sequelize", "typeorm"],
        highlight="Worked across relational or document data stores.",
        focus=FocusArea(
            topic="Database modeling",
            reason="Discuss how the candidate models entities and handles migrations.",
        ),
    ),
    SkillMatcher(
        name="CI/CD",
        patterns=["ci/cd", "continuous integration", "jenkins", "github actions", "gitlab ci", "pipeline"],
        highlight="Familiar with continuous integration and delivery practices.",
        focus=FocusArea(
            topic="CI/CD automation",
            reason="Gauge ability to automate testing, build, and deploy pipelines.",
        ),
    ),
    SkillMatcher(
        name="Real-time",
        patterns=["websocket", "socket.io", "real-time", "signalr"],
        highlight="Experienced building collaborative, real-time experiences.",
        focus=FocusArea(
            topic="Real-time collaboration design",
            reason="Understand strategies for synchronization, events, and scaling live features.",
        ),
    ),
]

CORE_EXPECTED: List[CoreSkill] = [
    CoreSkill(
        name="React",
        fallback=FocusArea(
            topic="React fundamentals",
            reason="Resume did not strongly emphasize React; ensure front-end foundations are in place.",
        ),
    ),
    CoreSkill(
        name="Node.js",
        fallback=FocusArea(
            topic="Node.js fundamentals",
            reason="Resume is light on backend delivery; confirm comfort building Node.js APIs.",
        ),
    ),
]

ROLE_PATTERN = re.compile(
    r"(senior|lead|principal|staff|full\s*stack|frontend|back\s*end|software|engineering\s*manager)[^\n\r,]{0,40}",
    re.IGNORECASE,
)
EXPERIENCE_PATTERN = re.compile(r"(\d{1,2})\+?\s*(?:years|yrs)", re.IGNORECASE)

MAX_HIGHLIGHTS = 5
MAX_ROLES = 5
MAX_FOCUS_AREAS = 5


def unique_strings(values: Iterable[Optional[str]], limit: Optional[int] = None) -> List[str]:
    """Trim and dedupe case-insensitively, keeping first-seen order."""

    seen: set[str] = set()
    result: List[str] = []
    for value in values:
        if not value:
            continue
        trimmed = str(value).strip()
        if not trimmed:
            continue
        key = trimmed.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(trimmed)
    if limit is not None and limit > 0:
        return result[:limit]
    return result


def upsert_focus_area(focus_areas: List[FocusArea], focus: Optional[FocusArea]) -> None:
    """Append ``focus`` unless a focus area with the same topic already exists."""

    if focus is None or not focus.topic:
        return
    key = focus.topic.lower()
    if any(item.topic and item.topic.lower() == key for item in focus_areas):
        return
    focus_areas.append(focus.model_copy())


def extract_roles(text: str) -> List[str]:
    if not text:
        return []
    roles: List[str] = []
    for match in ROLE_PATTERN.finditer(text):
        value = re.sub(r"\s+", " ", match.group(0)).replace(".", "").strip()
        if value and value not in roles:
            roles.append(value)
    return roles[:MAX_ROLES]


def derive_experience_years(text: str) -> Optional[int]:
    if not text:
        return None
    values = [int(match.group(1)) for match in EXPERIENCE_PATTERN.finditer(text)]
    if not values:
        return None
    return max(values)


def derive_insights(text: Optional[str]) -> Optional[ResumeInsights]:
    """Turn raw resume text into skills, highlights, roles and focus areas."""

    if not text or not text.strip():
        return None

    normalized = text.lower()
    detected: List[str] = []
    focus_areas: List[FocusArea] = []
    highlights: List[str] = []

    for matcher in SKILL_MATCHERS:
        if not any(pattern in normalized for pattern in matcher.patterns):
            continue
        if matcher.name not in detected:
            detected.append(matcher.name)
        if matcher.highlight:
            highlights.append(matcher.highlight)
        upsert_focus_area(focus_areas, matcher.focus)

    for core in CORE_EXPECTED:
        if core.name not in detected:
            upsert_focus_area(focus_areas, core.fallback)

    if not focus_areas:
        for focus in DEFAULT_FOCUS_TOPICS:
            upsert_focus_area(focus_areas, focus)

    experience_years = derive_experience_years(text)
    if experience_years:
        highlights.append(f"Approximately {experience_years}+ years of experience noted in the resume.")

    roles = extract_roles(text)
    for role in roles[:3]:
        highlights.append(f"Experience as {role}.")

    if detected:
        highlights.append(f"Key tools mentioned: {', '.join(detected)}.")

    return ResumeInsights(
        highlights=unique_strings(highlights, limit=MAX_HIGHLIGHTS),
        skills=unique_strings(detected),
        roles=roles,
        focus_areas=focus_areas[:MAX_FOCUS_AREAS],
        experience_years=experience_years or None,
    )


def merge_insights(
    primary: Optional[ResumeInsights] = None,
    secondary: Optional[ResumeInsights] = None,
) -> Optional[ResumeInsights]:
    """Combine keyword insights with an AI digest; first-seen entries win."""

    if primary is None and secondary is None:
        return None

    base = primary or ResumeInsights()
    extra = secondary or ResumeInsights()

    merged_focus: List[FocusArea] = []
    for focus in [*base.focus_areas, *extra.focus_areas]:
        upsert_focus_area(merged_focus, focus)

    return ResumeInsights(
        highlights=unique_strings([*base.highlights, *extra.highlights], limit=7),
        skills=unique_strings([*base.skills, *extra.skills], limit=12),
        roles=unique_strings([*base.roles, *extra.roles], limit=6),
        focus_areas=merged_focus[:6],
        experience_years=extra.experience_years or base.experience_years or None,
        unique_details=unique_strings([*base.unique_details, *extra.unique_details], limit=5),
        project_types=unique_strings([*base.project_types, *extra.project_types], limit=8),
        industry_context=extra.industry_context or base.industry_context or None,
    )


__all__ = [
    "CORE_EXPECTED",
    "DEFAULT_FOCUS_TOPICS",
    "SKILL_MATCHERS",
    "derive_experience_years",
    "derive_insights",
    "extract_roles",
    "merge_insights",
    "unique_strings",
    "upsert_focus_area",
]
