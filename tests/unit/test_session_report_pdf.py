"""Tests for the PDF session report."""
from __future__ import annotations

import random

from services.sessions import CandidateInput, finalize_session, start_interview, submit_answer
from session_reports import generate_session_report_pdf


def _session(provider, name="Zoë Ünicode"):
    return start_interview(
        CandidateInput(name=name, email="pdf@example.com"),
        resume_text="Node.js engineer",
        provider=provider,
        rng=random.Random(4),
    )


def test_report_for_active_session(disabled_provider):
    detail = _session(disabled_provider)
    payload = generate_session_report_pdf(detail)
    assert isinstance(payload, bytes)
    assert payload.startswith(b"%PDF")


def test_report_for_completed_session(disabled_provider):
    detail = _session(disabled_provider, name="Report “Quotes” — Test")
    submit_answer(
        detail.session.id,
        detail.questions[0].id,
        "Closures keep variables alive after the outer function returns.",
        8,
        provider=disabled_provider,
    )
    final = finalize_session(detail.session.id, provider=disabled_provider)

    payload = generate_session_report_pdf(final)
    assert payload.startswith(b"%PDF")
