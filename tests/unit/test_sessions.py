"""Tests for the interview session state machine."""
from __future__ import annotations

import random
import threading

import pytest

from agents.qg.ai_source import SYSTEM_PROMPT as QUESTION_SYSTEM_PROMPT
from agents.response_evaluator import EVAL_SYSTEM_PROMPT
from agents.summarizer import NO_ANSWERS_SUMMARY, SUMMARY_SYSTEM_PROMPT, ScoreEntry
from agents.types import Difficulty, Sender, SessionStatus
from llm_gateway import LlmGatewayError
from services.errors import InvalidRequestError, NoQuestionsAvailableError, NotFoundError, StateConflictError
from services.sessions import (
    START_BANNER,
    CandidateInput,
    ResumeRef,
    compute_final_score,
    finalize_session,
    get_session,
    start_interview,
    submit_answer,
)
from storage.sqlite import get_conn

RESUME = "React and Node.js engineer with 5 years of experience building dashboards."
GOOD_ANSWER = "Closures capture the surrounding scope so functions remember variables after the outer call returns."


def _start(provider, *, email="Ada@Example.com", bank=None):
    return start_interview(
        CandidateInput(name="Ada Lovelace", email=email, phone="555-0100"),
        ResumeRef(url="/uploads/ada.pdf", original_name="ada.pdf"),
        RESUME,
        provider=provider,
        rng=random.Random(2),
        bank=bank,
    )


def _count(table: str) -> int:
    with get_conn() as conn:
        return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


def _answer_all(detail, provider, text=GOOD_ANSWER):
    result = None
    for question in detail.questions:
        result = submit_answer(detail.session.id, question.id, text, 5, provider=provider)
    return result


def test_start_creates_active_session_with_opening_transcript(disabled_provider):
    detail = _start(disabled_provider)

    assert detail.session.status == SessionStatus.ACTIVE
    assert detail.session.current_question_index == 0
    assert detail.session.final_score is None
    assert detail.candidate.email == "ada@example.com"
    assert detail.candidate.resume_name == "ada.pdf"
    assert [q.order for q in detail.questions] == list(range(6))
    assert [m.sender for m in detail.messages] == [Sender.SYSTEM, Sender.AI]
    assert detail.messages[0].content == START_BANNER
    assert detail.messages[0].metadata == {"resumeSummary": RESUME[:500]}
    assert detail.messages[1].content == detail.questions[0].prompt
    assert detail.messages[1].metadata["difficulty"] == "EASY"
    assert detail.messages[1].metadata["order"] == 0


def test_start_reuses_candidate_by_email(disabled_provider):
    first = _start(disabled_provider, email="ada@example.com")
    second = _start(disabled_provider, email="ADA@example.com")
    assert first.candidate.id == second.candidate.id
    assert first.session.id != second.session.id
    assert _count("candidates") == 1


def test_returning_candidate_keeps_profile_without_resume(disabled_provider):
    first = _start(disabled_provider, email="ada@example.com")
    second = start_interview(CandidateInput(email="ADA@example.com"), provider=disabled_provider)

    assert second.candidate.id == first.candidate.id
    assert second.candidate.name == "Ada Lovelace"
    assert second.candidate.phone == "555-0100"
    assert second.candidate.resume_url == "/uploads/ada.pdf"
    assert second.candidate.resume_name == "ada.pdf"


@pytest.mark.parametrize("email", [None, "", "   "])
def test_start_requires_email(disabled_provider, email):
    with pytest.raises(InvalidRequestError) as exc:
        start_interview(CandidateInput(name="No Email", email=email), provider=disabled_provider)
    assert exc.value.status_code == 400
    assert _count("interview_sessions") == 0


def test_generation_failure_leaves_no_partial_session(disabled_provider):
    with pytest.raises(NoQuestionsAvailableError):
        _start(disabled_provider, bank={})
    assert _count("interview_sessions") == 0
    assert _count("interview_questions") == 0
    assert _count("candidates") == 0


def test_submit_advances_pointer_and_appends_transcript(disabled_provider):
    detail = _start(disabled_provider)
    first, second = detail.questions[0], detail.questions[1]

    result = submit_answer(detail.session.id, first.id, GOOD_ANSWER, 12, provider=disabled_provider)

    assert result.duplicate is False
    assert result.answer.question_id == first.id
    assert result.answer.evaluation["source"] == "heuristic"
    assert result.next_question.id == second.id
    assert result.session.session.current_question_index == 1
    senders = [m.sender for m in result.session.messages]
    assert senders == [Sender.SYSTEM, Sender.AI, Sender.INTERVIEWEE, Sender.AI, Sender.AI]
    interviewee, feedback, next_prompt = result.session.messages[2:]
    assert interviewee.metadata == {"questionId": first.id, "timeTakenSeconds": 12, "autoSubmitted": False}
    assert feedback.content == result.answer.feedback
    assert feedback.metadata["score"] == result.answer.score
    assert next_prompt.content == second.prompt


def test_blank_auto_submission_is_recorded(disabled_provider):
    detail = _start(disabled_provider)
    question = detail.questions[0]

    result = submit_answer(detail.session.id, question.id, "", 20, True, provider=disabled_provider)

    assert result.answer.score == 0
    assert result.answer.auto_submitted is True
    interviewee = result.session.messages[2]
    assert interviewee.content == "(no answer provided)"
    assert interviewee.metadata["autoSubmitted"] is True


def test_out_of_order_submission_rejected(disabled_provider):
    detail = _start(disabled_provider)
    with pytest.raises(StateConflictError) as exc:
        submit_answer(detail.session.id, detail.questions[2].id, GOOD_ANSWER, 5, provider=disabled_provider)
    assert exc.value.status_code == 400
    assert exc.value.details == {"expected": 0, "received": 2}
    assert _count("candidate_answers") == 0
    assert get_session(detail.session.id).session.current_question_index == 0


def test_unknown_session_or_question(disabled_provider):
    detail = _start(disabled_provider)
    other = _start(disabled_provider, email="grace@example.com")
    with pytest.raises(NotFoundError):
        submit_answer("missing", detail.questions[0].id, "x", 1, provider=disabled_provider)
    with pytest.raises(NotFoundError):
        submit_answer(detail.session.id, "missing", "x", 1, provider=disabled_provider)
    with pytest.raises(NotFoundError):
        submit_answer(detail.session.id, other.questions[0].id, "x", 1, provider=disabled_provider)


def test_negative_time_rejected(disabled_provider):
    detail = _start(disabled_provider)
    with pytest.raises(InvalidRequestError):
        submit_answer(detail.session.id, detail.questions[0].id, "x", -1, provider=disabled_provider)


def test_duplicate_submission_returns_existing_answer(fake_provider):
    provider = fake_provider(handler=lambda system, user: {"score": 7, "feedback": "ok", "prompt": "Q?"})
    detail = _start(provider)
    question = detail.questions[0]

    first = submit_answer(detail.session.id, question.id, GOOD_ANSWER, 5, provider=provider)
    calls = len(provider.calls)
    second = submit_answer(detail.session.id, question.id, "a different answer", 9, provider=provider)

    assert second.duplicate is True
    assert second.answer.id == first.answer.id
    assert second.answer.response_text == GOOD_ANSWER
    assert second.session.session.current_question_index == 1
    assert second.next_question.id == detail.questions[1].id
    assert len(second.session.messages) == len(first.session.messages)
    assert len(provider.calls) == calls


def test_full_interview_completes_and_finalizes(disabled_provider):
    detail = _start(disabled_provider)

    result = _answer_all(detail, disabled_provider)
    final = result.session

    assert result.next_question is None
    assert final.session.status == SessionStatus.COMPLETED
    assert final.session.current_question_index == 6
    assert final.session.completed_at is not None
    expected = round(sum(a.score for a in final.answers) / 6, 2)
    assert final.session.final_score == pytest.approx(expected)
    assert final.session.summary.startswith("Ada Lovelace demonstrated a solid understanding of")
    closing = final.messages[-1]
    assert closing.sender == Sender.SYSTEM
    assert closing.content.startswith(f"Interview complete. Final score: {expected:.1f}/10. Summary: ")
    assert closing.metadata["summarySource"] == "heuristic"
    assert len(final.messages) == 20


def test_pointer_advances_one_slot_per_answer(disabled_provider):
    detail = _start(disabled_provider)
    indexes = [detail.session.current_question_index]
    statuses = [detail.session.status]

    for question in detail.questions:
        result = submit_answer(detail.session.id, question.id, GOOD_ANSWER, 5, provider=disabled_provider)
        indexes.append(result.session.session.current_question_index)
        statuses.append(result.session.session.status)

    assert indexes == list(range(7))
    assert statuses[:-1] == [SessionStatus.ACTIVE] * 6
    assert statuses[-1] == SessionStatus.COMPLETED


def test_completed_session_rejects_new_answers_but_accepts_retries(disabled_provider):
    detail = _start(disabled_provider)
    submit_answer(detail.session.id, detail.questions[0].id, GOOD_ANSWER, 5, provider=disabled_provider)
    finalize_session(detail.session.id, provider=disabled_provider)

    retry = submit_answer(detail.session.id, detail.questions[0].id, GOOD_ANSWER, 5, provider=disabled_provider)
    assert retry.duplicate is True
    assert retry.next_question is None
    with pytest.raises(StateConflictError):
        submit_answer(detail.session.id, detail.questions[1].id, GOOD_ANSWER, 5, provider=disabled_provider)


def test_finalize_is_idempotent(disabled_provider):
    detail = _start(disabled_provider)
    first = finalize_session(detail.session.id, provider=disabled_provider)
    second = finalize_session(detail.session.id, provider=disabled_provider)

    assert first.session.final_score == 0
    assert first.session.summary == NO_ANSWERS_SUMMARY
    assert second.session.model_dump() == first.session.model_dump()
    closings = [m for m in second.messages if m.content.startswith("Interview complete.")]
    assert len(closings) == 1


def test_finalize_unknown_session(disabled_provider):
    with pytest.raises(NotFoundError):
        finalize_session("missing", provider=disabled_provider)


def test_early_finalize_counts_unanswered_as_zero(disabled_provider):
    detail = _start(disabled_provider)
    result = submit_answer(detail.session.id, detail.questions[0].id, GOOD_ANSWER, 5, provider=disabled_provider)

    final = finalize_session(detail.session.id, provider=disabled_provider)

    assert final.session.status == SessionStatus.COMPLETED
    assert final.session.current_question_index == 1
    assert final.session.final_score == pytest.approx(round(result.answer.score / 6, 2))


def test_denominator_policies():
    entries = [
        ScoreEntry(order=0, difficulty=Difficulty.EASY, prompt="a", score=8, answered=True),
        ScoreEntry(order=1, difficulty=Difficulty.EASY, prompt="b", score=6, answered=True),
        *[ScoreEntry(order=i, difficulty=Difficulty.HARD, prompt="c") for i in range(2, 6)],
    ]
    assert compute_final_score(entries, "all_questions") == pytest.approx(14 / 6, abs=0.01)
    assert compute_final_score(entries, "answered") == 7.0
    unanswered = [ScoreEntry(order=0, difficulty=Difficulty.EASY, prompt="a")]
    assert compute_final_score(unanswered, "answered") == 0


def test_ai_scoring_and_summary_provenance(fake_provider):
    def handler(system, user):
        if system == EVAL_SYSTEM_PROMPT:
            return {"score": 8, "feedback": "Clear and accurate.", "keyStrengths": ["clarity"]}
        if system == SUMMARY_SYSTEM_PROMPT:
            return {"summary": "Strong fundamentals.", "recommendation": "Hire"}
        if system == QUESTION_SYSTEM_PROMPT:
            return {"prompt": f"Personalized {len(user)}?", "rubric": "scope, closures"}
        return {"highlights": ["Digest highlight"]}

    provider = fake_provider(handler=handler)
    detail = _start(provider)
    assert {q.source for q in detail.questions} == {"ai"}

    result = _answer_all(detail, provider)
    final = result.session

    assert final.session.final_score == 8.0
    assert final.session.summary == "Strong fundamentals.\n\nRecommendation: Hire"
    feedback = [m for m in final.messages if m.metadata.get("source") == "ai" and "score" in m.metadata]
    assert len(feedback) == 6
    assert feedback[0].metadata["model"] == "fake-model"
    assert feedback[0].metadata["strengths"] == ["clarity"]
    assert final.messages[-1].metadata["summarySource"] == "ai"


def test_ai_summary_failure_uses_deterministic_summary(fake_provider):
    def handler(system, user):
        if system == SUMMARY_SYSTEM_PROMPT:
            raise LlmGatewayError("summary down")
        if system == EVAL_SYSTEM_PROMPT:
            return {"score": 6, "feedback": "Fine."}
        return {"prompt": "Generated?", "topic": "Generated"}

    provider = fake_provider(handler=handler)
    detail = _start(provider)
    final = _answer_all(detail, provider).session

    assert final.messages[-1].metadata["summarySource"] == "heuristic"
    assert "average score of 6.0/10" in final.session.summary


def test_concurrent_duplicate_submissions_record_one_answer(disabled_provider):
    detail = _start(disabled_provider)
    question = detail.questions[0]
    barrier = threading.Barrier(2)
    results, errors = [], []

    def submit():
        barrier.wait()
        try:
            results.append(
                submit_answer(detail.session.id, question.id, GOOD_ANSWER, 5, provider=disabled_provider)
            )
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=submit) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(results) == 2
    assert sorted(r.duplicate for r in results) == [False, True]
    assert results[0].answer.id == results[1].answer.id
    assert _count("candidate_answers") == 1
    final = get_session(detail.session.id)
    assert final.session.current_question_index == 1
    assert len([m for m in final.messages if m.sender == Sender.INTERVIEWEE]) == 1


def test_concurrent_finalize_writes_once(disabled_provider):
    detail = _start(disabled_provider)
    submit_answer(detail.session.id, detail.questions[0].id, GOOD_ANSWER, 5, provider=disabled_provider)
    barrier = threading.Barrier(2)
    errors = []

    def finalize():
        barrier.wait()
        try:
            finalize_session(detail.session.id, provider=disabled_provider)
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=finalize) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    final = get_session(detail.session.id)
    closings = [m for m in final.messages if m.content.startswith("Interview complete.")]
    assert len(closings) == 1
