"""Question generation for a new interview session."""
from __future__ import annotations

import logging
import random
import sqlite3
from typing import List, Optional, Sequence, Tuple

from agents.qg.ai_source import AiQuestionSource
from agents.qg.bank import DEFAULT_BANK, QuestionBank
from agents.qg.bank_source import BankQuestionSource
from agents.qg.common import CandidateQuestion, QGContext, QuestionSource, new_context
from agents.qg.template_source import TemplateQuestionSource, ensure_templates
from agents.types import Difficulty, InterviewQuestion, ResumeInsights
from config.interview import DIFFICULTY_ORDER
from config.settings import settings
from llm_gateway import AiProvider
from observability import log_event
from storage.questions import insert_question

from .errors import NoQuestionsAvailableError


logger = logging.getLogger(__name__)

PlannedQuestion = Tuple[Difficulty, CandidateQuestion]


def build_sources(
    conn: sqlite3.Connection,
    provider: AiProvider,
    bank: QuestionBank,
) -> List[QuestionSource]:
    """AI first, then the persisted template pool, then the static bank."""

    pools = {difficulty: ensure_templates(conn, difficulty, bank) for difficulty in Difficulty}
    return [
        AiQuestionSource(
            provider,
            attempts=settings.QUESTION_AI_ATTEMPTS,
            resume_chars=settings.RESUME_PROMPT_CHARS,
        ),
        TemplateQuestionSource(pools),
        BankQuestionSource(bank),
    ]


def generation_context(
    sources: Sequence[QuestionSource],
    *,
    resume_text: Optional[str],
    resume_insights: Optional[ResumeInsights],
    candidate_name: Optional[str],
    rng: random.Random,
) -> QGContext:
    pool_sizes = {
        difficulty: len(source.pools.get(difficulty, []))
        for source in sources
        if isinstance(source, TemplateQuestionSource)
        for difficulty in Difficulty
    }
    return new_context(
        resume_text=resume_text,
        insights=resume_insights,
        candidate_name=candidate_name,
        rng=rng,
        template_pool_sizes=pool_sizes,
    )


def plan_questions(
    session_id: str,
    sources: Sequence[QuestionSource],
    ctx: QGContext,
) -> List[PlannedQuestion]:
    """Pick one question per script slot without touching the database.

    AI calls happen here, so callers run it outside any write transaction.
    """

    return [
        (difficulty, _fill_slot(session_id, slot, difficulty, sources, ctx))
        for slot, difficulty in enumerate(DIFFICULTY_ORDER)
    ]


def persist_questions(
    conn: sqlite3.Connection,
    session_id: str,
    planned: Sequence[PlannedQuestion],
) -> List[InterviewQuestion]:
    return [
        insert_question(
            conn,
            session_id=session_id,
            order=slot,
            difficulty=difficulty,
            prompt=candidate.prompt,
            expected_note=candidate.expected_note,
            topic=candidate.topic_label(),
            source=candidate.source,
            template_id=candidate.template_id,
        )
        for slot, (difficulty, candidate) in enumerate(planned)
    ]


def generate_questions_for_session(
    conn: sqlite3.Connection,
    session_id: str,
    *,
    provider: AiProvider,
    resume_text: Optional[str] = None,
    resume_insights: Optional[ResumeInsights] = None,
    candidate_name: Optional[str] = None,
    rng: Optional[random.Random] = None,
    bank: Optional[QuestionBank] = None,
    sources: Optional[Sequence[QuestionSource]] = None,
) -> List[InterviewQuestion]:
    """Persist one question per script slot, in order; raises if any slot stays empty."""

    bank = DEFAULT_BANK if bank is None else bank
    if sources is None:
        sources = build_sources(conn, provider, bank)
    ctx = generation_context(
        sources,
        resume_text=resume_text,
        resume_insights=resume_insights,
        candidate_name=candidate_name,
        rng=rng or random.Random(),
    )
    return persist_questions(conn, session_id, plan_questions(session_id, sources, ctx))


def _fill_slot(
    session_id: str,
    slot: int,
    difficulty: Difficulty,
    sources: Sequence[QuestionSource],
    ctx: QGContext,
) -> CandidateQuestion:
    for source in sources:
        candidate = source.try_provide(difficulty, slot, ctx)
        if candidate is None:
            log_event("question_source_exhausted", session_id, slot=slot, difficulty=difficulty.value, source=source.name)
            continue
        ctx.record(candidate)
        log_event("question_generated", session_id, slot=slot, difficulty=difficulty.value, source=source.name)
        return candidate
    logger.error("No question available for slot=%d difficulty=%s", slot, difficulty.value)
    raise NoQuestionsAvailableError(difficulty.value)
