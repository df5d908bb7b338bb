"""Tests for question sources and per-session generation."""
from __future__ import annotations

import random

import pytest

from agents.qg.ai_source import AiQuestionSource, build_task, extract_key_details, parse_question
from agents.qg.bank import DEFAULT_BANK, BankQuestion
from agents.qg.bank_source import BankQuestionSource
from agents.qg.common import QGContext
from agents.qg.template_source import ensure_templates
from agents.types import Difficulty, FocusArea, ResumeInsights
from config.interview import DIFFICULTY_ORDER
from llm_gateway import LlmGatewayError
from services.errors import NoQuestionsAvailableError
from services.questions import generate_questions_for_session
from storage.candidates import upsert_candidate
from storage.questions import list_questions, list_templates, upsert_template
from storage.sessions import insert_session
from storage.sqlite import get_conn


def _new_session(conn):
    candidate = upsert_candidate(conn, email="gen@example.com", name="Gen")
    return insert_session(conn, candidate.id)


def _ai_question(n: int) -> dict:
    return {"prompt": f"AI question {n}?", "rubric": ["point a", "point b"], "topic": f"Topic {n}"}


def test_disabled_ai_uses_templates_in_script_order(disabled_provider):
    with get_conn() as conn:
        session = _new_session(conn)
        questions = generate_questions_for_session(
            conn, session.id, provider=disabled_provider, rng=random.Random(1)
        )
        stored = list_questions(conn, session.id)

    assert [q.order for q in questions] == list(range(6))
    assert [q.difficulty for q in questions] == DIFFICULTY_ORDER
    assert {q.source for q in questions} == {"template"}
    assert all(q.template_id for q in questions)
    assert len({q.prompt for q in questions}) == 6
    assert [q.id for q in stored] == [q.id for q in questions]


def test_template_backfill_is_idempotent():
    with get_conn() as conn:
        first = ensure_templates(conn, Difficulty.MEDIUM, DEFAULT_BANK)
        second = ensure_templates(conn, Difficulty.MEDIUM, DEFAULT_BANK)
        stored = list_templates(conn, Difficulty.MEDIUM)

    assert len(first) == 2
    assert [t.id for t in first] == [t.id for t in second] == [t.id for t in stored]


def test_template_backfill_skips_existing_prompts():
    existing = DEFAULT_BANK[Difficulty.EASY][1]
    with get_conn() as conn:
        upsert_template(
            conn,
            difficulty=Difficulty.EASY,
            prompt=existing.prompt,
            expected_note=existing.expected,
            topic=existing.topic,
        )
        pool = ensure_templates(conn, Difficulty.EASY, DEFAULT_BANK)

    assert [t.prompt for t in pool] == [existing.prompt, DEFAULT_BANK[Difficulty.EASY][0].prompt]


def test_ai_questions_are_personalized_and_recorded(fake_provider):
    counter = iter(range(100))
    provider = fake_provider(handler=lambda system, user: _ai_question(next(counter)))
    insights = ResumeInsights(skills=["React"], focus_areas=[FocusArea(topic="GraphQL schema design")])

    with get_conn() as conn:
        session = _new_session(conn)
        questions = generate_questions_for_session(
            conn,
            session.id,
            provider=provider,
            resume_text="React developer",
            resume_insights=insights,
            candidate_name="Ada",
            rng=random.Random(3),
        )

    assert {q.source for q in questions} == {"ai"}
    assert all(q.template_id is None for q in questions)
    assert questions[0].expected_note == "point a\npoint b"
    assert questions[0].topic == "Topic 0"
    first_prompt = provider.calls[0]["user"]
    assert "Candidate: Ada" in first_prompt
    assert "Steer the question toward: GraphQL schema design" in first_prompt
    assert "easy-level" in first_prompt
    assert "AVOID these topics already covered: Topic 0" in provider.calls[1]["user"]


def test_ai_failure_retried_once_per_slot(fake_provider):
    responses = [LlmGatewayError("flaky")] + [_ai_question(n) for n in range(6)]
    provider = fake_provider(responses)
    with get_conn() as conn:
        session = _new_session(conn)
        questions = generate_questions_for_session(conn, session.id, provider=provider)

    assert len(provider.calls) == 7
    assert {q.source for q in questions} == {"ai"}


def test_ai_exhaustion_falls_back_to_templates(fake_provider):
    provider = fake_provider(handler=lambda system, user: {"rubric": "missing prompt"})
    with get_conn() as conn:
        session = _new_session(conn)
        questions = generate_questions_for_session(conn, session.id, provider=provider)

    assert len(provider.calls) == 12
    assert {q.source for q in questions} == {"template"}


def test_parse_question_topic_defaults_to_prompt_preview():
    candidate = parse_question({"prompt": "  " + "x" * 100 + "  ", "focusPoints": "a, b"})
    assert candidate.expected_note == "a\nb"
    assert candidate.topic is None
    assert candidate.topic_label() == "x" * 80
    with pytest.raises(LlmGatewayError):
        parse_question({"prompt": "   "})


def test_focus_hint_steers_template_choice(disabled_provider):
    with get_conn() as conn:
        for prompt, topic in [
            ("How do you keep build tooling fast?", "Tooling"),
            ("How do you structure unit tests for a reducer?", "Testing basics"),
            ("What does the virtual DOM do?", "React rendering"),
        ]:
            upsert_template(conn, difficulty=Difficulty.EASY, prompt=prompt, expected_note="n/a", topic=topic)
        session = _new_session(conn)
        questions = generate_questions_for_session(
            conn,
            session.id,
            provider=disabled_provider,
            resume_insights=ResumeInsights(focus_areas=[FocusArea(topic="testing")]),
            rng=random.Random(0),
        )

    assert questions[0].topic == "Testing basics"
    assert questions[1].topic == "Tooling"


def test_bank_source_used_without_templates(disabled_provider):
    bank = {
        Difficulty.EASY: [BankQuestion(topic="Only easy", prompt="Easy?", expected="easy")],
        Difficulty.MEDIUM: [BankQuestion(topic="Only medium", prompt="Medium?", expected="medium")],
        Difficulty.HARD: [BankQuestion(topic="Only hard", prompt="Hard?", expected="hard")],
    }
    sources = [AiQuestionSource(disabled_provider), BankQuestionSource(bank)]
    with get_conn() as conn:
        session = _new_session(conn)
        questions = generate_questions_for_session(
            conn, session.id, provider=disabled_provider, sources=sources, rng=random.Random(5)
        )

    assert {q.source for q in questions} == {"bank"}
    assert [q.prompt for q in questions] == ["Easy?", "Easy?", "Medium?", "Medium?", "Hard?", "Hard?"]


def test_bank_prefers_detected_skills(disabled_provider):
    sources = [BankQuestionSource(DEFAULT_BANK)]
    with get_conn() as conn:
        session = _new_session(conn)
        questions = generate_questions_for_session(
            conn,
            session.id,
            provider=disabled_provider,
            resume_insights=ResumeInsights(skills=["TypeScript"]),
            sources=sources,
        )

    assert questions[0].topic == "TypeScript type design"
    assert questions[1].topic != questions[0].topic


def test_no_source_available_is_fatal(disabled_provider):
    with get_conn() as conn:
        session = _new_session(conn)
        with pytest.raises(NoQuestionsAvailableError) as exc:
            generate_questions_for_session(
                conn, session.id, provider=disabled_provider, sources=[BankQuestionSource({})]
            )
    assert exc.value.status_code == 500
    assert exc.value.details == {"difficulty": "EASY"}


def test_key_resume_details_extracted():
    text = (
        "Senior engineer at Acme Corp\n"
        "Built payment dashboards with React and Node\n"
        "Led project Atlas rollout"
    )
    assert extract_key_details(text) == [
        "Companies: Acme Corp",
        "Project Experience: Built payment dashboards with React and Node; project Atlas rollout",
        "Technology Context: with React and Node",
    ]
    assert extract_key_details(None) == []
    assert extract_key_details("I like hiking.") == []


def test_task_includes_key_details_only_when_found():
    with_details = QGContext(resume_text="Staff engineer at Globex Software using Python")
    task = build_task(Difficulty.MEDIUM, with_details, None, 3000)
    assert "KEY RESUME DETAILS:\nCompanies: Globex Software using Python" in task
    assert "Technology Context: using Python" in task

    plain = build_task(Difficulty.MEDIUM, QGContext(resume_text="I like hiking."), None, 3000)
    assert "KEY RESUME DETAILS" not in plain
