"""Interview session lifecycle: start, answer, finalize."""
from __future__ import annotations

import logging
import random
import sqlite3
from typing import List, Optional

from pydantic import BaseModel

from agents.qg.bank import DEFAULT_BANK, QuestionBank
from agents.response_evaluator import evaluate_answer
from agents.summarizer import ScoreEntry, summarize_session
from agents.types import (
    CandidateAnswer,
    InterviewQuestion,
    ResumeInsights,
    Sender,
    SessionDetail,
    SessionStatus,
)
from config.interview import SCORE_DENOMINATOR, TOTAL_QUESTIONS, ScoreDenominator, time_limit_for
from llm_gateway import AiProvider
from observability import log_event
from resume_insights import build_session_insights
from storage.answers import get_answer_for_question, insert_answer, insert_message, list_answers, list_messages
from storage.candidates import get_candidate, upsert_candidate
from storage.questions import get_question, list_questions
from storage.sessions import advance_pointer, get_session as fetch_session, insert_session, record_final_result
from storage.sqlite import get_conn, new_id

from .errors import InvalidRequestError, NotFoundError, StateConflictError
from .questions import build_sources, generation_context, persist_questions, plan_questions


logger = logging.getLogger(__name__)

START_BANNER = "Interview started. You will be asked six questions ranging from easy to hard difficulty."
NO_ANSWER_TEXT = "(no answer provided)"
RESUME_SUMMARY_CHARS = 500


class CandidateInput(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None


class ResumeRef(BaseModel):
    url: Optional[str] = None
    original_name: Optional[str] = None


class SubmitResult(BaseModel):
    answer: CandidateAnswer
    next_question: Optional[InterviewQuestion] = None
    session: SessionDetail
    duplicate: bool = False


class _PointerMoved(Exception):
    """Another writer advanced or closed the session first."""


def load_detail(conn: sqlite3.Connection, session_id: str) -> Optional[SessionDetail]:
    session = fetch_session(conn, session_id)
    if session is None:
        return None
    candidate = get_candidate(conn, session.candidate_id)
    return SessionDetail(
        session=session,
        candidate=candidate,
        questions=list_questions(conn, session_id),
        answers=list_answers(conn, session_id),
        messages=list_messages(conn, session_id),
    )


def get_session(session_id: str) -> Optional[SessionDetail]:
    with get_conn() as conn:
        return load_detail(conn, session_id)


def _require_detail(conn: sqlite3.Connection, session_id: str) -> SessionDetail:
    detail = load_detail(conn, session_id)
    if detail is None:
        raise NotFoundError("Interview session not found.")
    return detail


def _question_message(conn: sqlite3.Connection, question: InterviewQuestion) -> None:
    insert_message(
        conn,
        session_id=question.session_id,
        sender=Sender.AI,
        content=question.prompt,
        metadata={
            "difficulty": question.difficulty.value,
            "order": question.order,
            "source": question.source,
            "questionId": question.id,
        },
    )


def start_interview(
    candidate: CandidateInput,
    resume: Optional[ResumeRef] = None,
    resume_text: Optional[str] = None,
    resume_insights: Optional[ResumeInsights] = None,
    *,
    provider: AiProvider,
    rng: Optional[random.Random] = None,
    bank: Optional[QuestionBank] = None,
) -> SessionDetail:
    """Create a session with all six questions and the opening transcript.

    Questions are planned before anything session-related is written, so a
    generation failure leaves no partial session behind.
    """

    email = (candidate.email or "").strip()
    if not email:
        raise InvalidRequestError("Candidate email is required to start an interview.")

    if resume_insights is None:
        resume_insights = build_session_insights(resume_text, provider)

    bank = DEFAULT_BANK if bank is None else bank
    with get_conn() as conn:
        sources = build_sources(conn, provider, bank)

    session_id = new_id()
    ctx = generation_context(
        sources,
        resume_text=resume_text,
        resume_insights=resume_insights,
        candidate_name=candidate.name,
        rng=rng or random.Random(),
    )
    planned = plan_questions(session_id, sources, ctx)

    resume = resume or ResumeRef()
    with get_conn() as conn:
        record = upsert_candidate(
            conn,
            email=email,
            name=candidate.name,
            phone=candidate.phone,
            resume_url=resume.url,
            resume_name=resume.original_name,
        )
        insert_session(conn, record.id, session_id=session_id)
        questions = persist_questions(conn, session_id, planned)
        insert_message(
            conn,
            session_id=session_id,
            sender=Sender.SYSTEM,
            content=START_BANNER,
            metadata={"resumeSummary": resume_text[:RESUME_SUMMARY_CHARS]} if resume_text else {},
        )
        _question_message(conn, questions[0])
        detail = _require_detail(conn, session_id)

    log_event(
        "session_started",
        session_id,
        candidate_id=record.id,
        sources=[question.source for question in questions],
    )
    return detail


def _current_question(detail: SessionDetail) -> Optional[InterviewQuestion]:
    if detail.session.status != SessionStatus.ACTIVE:
        return None
    return detail.question_at(detail.session.current_question_index)


def _duplicate_result(session_id: str, answer: CandidateAnswer) -> SubmitResult:
    detail = get_session(session_id)
    log_event("answer_duplicate", session_id, order=detail.session.current_question_index, duplicate=True)
    return SubmitResult(
        answer=answer,
        next_question=_current_question(detail),
        session=detail,
        duplicate=True,
    )


def submit_answer(
    session_id: str,
    question_id: str,
    answer_text: Optional[str],
    time_taken_seconds: float,
    auto_submitted: bool = False,
    *,
    provider: AiProvider,
) -> SubmitResult:
    """Score and record the answer for the current question, then advance.

    A repeated submission for an answered question returns the stored answer
    unchanged, even after the session completed.
    """

    if time_taken_seconds is None or time_taken_seconds < 0:
        raise InvalidRequestError("timeTakenSeconds must be a non-negative number.")

    with get_conn() as conn:
        session = fetch_session(conn, session_id)
        if session is None:
            raise NotFoundError("Interview session not found.")
        question = get_question(conn, question_id)
        if question is None or question.session_id != session_id:
            raise NotFoundError("Question not found in session.")
        existing = get_answer_for_question(conn, question_id)

    if existing is not None:
        return _duplicate_result(session_id, existing)
    if session.status != SessionStatus.ACTIVE:
        raise StateConflictError("Interview session is not active.")
    if question.order != session.current_question_index:
        raise StateConflictError(
            "Question order mismatch.",
            details={"expected": session.current_question_index, "received": question.order},
        )

    evaluation = evaluate_answer(
        question_prompt=question.prompt,
        expected_note=question.expected_note,
        answer_text=answer_text,
        difficulty=question.difficulty,
        time_taken_seconds=time_taken_seconds,
        time_limit_seconds=time_limit_for(question.difficulty),
        provider=provider,
    )

    completed = question.order + 1 >= TOTAL_QUESTIONS
    next_question: Optional[InterviewQuestion] = None
    try:
        with get_conn() as conn:
            answer = insert_answer(
                conn,
                question_id=question.id,
                session_id=session_id,
                response_text=answer_text or "",
                time_taken_seconds=time_taken_seconds,
                auto_submitted=auto_submitted,
                score=evaluation.score,
                feedback=evaluation.feedback,
                evaluation=evaluation.model_dump(exclude={"score", "feedback"}),
            )
            insert_message(
                conn,
                session_id=session_id,
                sender=Sender.INTERVIEWEE,
                content=answer_text or NO_ANSWER_TEXT,
                metadata={
                    "questionId": question.id,
                    "timeTakenSeconds": time_taken_seconds,
                    "autoSubmitted": auto_submitted,
                },
            )
            insert_message(
                conn,
                session_id=session_id,
                sender=Sender.AI,
                content=evaluation.feedback,
                metadata={
                    "score": evaluation.score,
                    "questionId": question.id,
                    "difficulty": question.difficulty.value,
                    "source": evaluation.source,
                    "model": evaluation.model,
                    "strengths": evaluation.strengths,
                    "improvements": evaluation.improvements,
                    "note": evaluation.note,
                },
            )
            if not advance_pointer(conn, session_id, expected_index=question.order, completed=completed):
                raise _PointerMoved()
            if not completed:
                next_question = next(
                    (item for item in list_questions(conn, session_id) if item.order == question.order + 1),
                    None,
                )
                if next_question is not None:
                    _question_message(conn, next_question)
    except (sqlite3.IntegrityError, _PointerMoved):
        # Lost a race with a concurrent submission; the first stored answer wins.
        with get_conn() as conn:
            stored = get_answer_for_question(conn, question_id)
        if stored is None:
            raise StateConflictError("Interview session changed while the answer was being recorded.")
        return _duplicate_result(session_id, stored)

    log_event(
        "answer_recorded",
        session_id,
        order=question.order,
        score=evaluation.score,
        source=evaluation.source,
        status="COMPLETED" if completed else "ACTIVE",
    )

    if completed:
        detail = finalize_session(session_id, provider=provider)
    else:
        detail = get_session(session_id)
    return SubmitResult(answer=answer, next_question=next_question, session=detail)


def score_entries(detail: SessionDetail) -> List[ScoreEntry]:
    """One entry per question; unanswered questions score 0."""

    entries: List[ScoreEntry] = []
    for question in detail.questions:
        answer = detail.answer_for(question.id)
        entries.append(
            ScoreEntry(
                order=question.order,
                difficulty=question.difficulty,
                prompt=question.prompt,
                score=answer.score if answer else 0.0,
                answered=answer is not None,
                answer_text=answer.response_text if answer else None,
                feedback=answer.feedback if answer else None,
            )
        )
    return entries


def compute_final_score(entries: List[ScoreEntry], policy: ScoreDenominator = SCORE_DENOMINATOR) -> float:
    total = sum(entry.score for entry in entries)
    if policy == "answered":
        denominator = max(sum(1 for entry in entries if entry.answered), 1)
    else:
        denominator = max(len(entries), 1)
    return round(total / denominator, 2)


def finalize_session(session_id: str, *, provider: AiProvider) -> SessionDetail:
    """Compute the final score and summary once; later calls return the stored result."""

    with get_conn() as conn:
        detail = _require_detail(conn, session_id)
    if detail.session.status == SessionStatus.COMPLETED and detail.session.final_score is not None:
        log_event("finalize_noop", session_id, status=detail.session.status.value)
        return detail

    entries = score_entries(detail)
    final_score = compute_final_score(entries)
    summary = summarize_session(detail.candidate.name, detail.candidate.email, entries, provider)

    with get_conn() as conn:
        written = record_final_result(conn, session_id, final_score=final_score, summary=summary.text)
        if written:
            insert_message(
                conn,
                session_id=session_id,
                sender=Sender.SYSTEM,
                content=f"Interview complete. Final score: {final_score:.1f}/10. Summary: {summary.text}",
                metadata={"summarySource": summary.source, "finalScore": final_score},
            )
        detail = _require_detail(conn, session_id)

    if written:
        log_event("session_finalized", session_id, score=final_score, source=summary.source)
    else:
        log_event("finalize_noop", session_id, status=detail.session.status.value)
    return detail


__all__ = [
    "CandidateInput",
    "ResumeRef",
    "SubmitResult",
    "compute_final_score",
    "finalize_session",
    "get_session",
    "load_detail",
    "score_entries",
    "start_interview",
    "submit_answer",
]
