"""FastAPI routes for interviews, resumes and candidates."""
from __future__ import annotations

import re
from typing import List

from fastapi import APIRouter, Depends, Request, Response

from agents.types import CandidateDetail, CandidateListItem, SessionDetail
from api.schemas import (
    HealthResponse,
    ResumeFields,
    ResumeInsightsRequest,
    ResumeInsightsResponse,
    StartInterviewRequest,
    SubmitAnswerRequest,
)
from config.interview import SCORE_DENOMINATOR
from config.settings import settings
from llm_gateway import AiProvider
from resume_insights import digest_resume, ensure_supported, extraction_from_text, merge_insights
from services.candidates import get_candidate_detail, list_candidates
from services.errors import NotFoundError
from services.sessions import (
    CandidateInput,
    ResumeRef,
    SubmitResult,
    finalize_session,
    get_session,
    start_interview,
    submit_answer,
)
from session_reports import generate_session_report_pdf


router = APIRouter(prefix="/api")


def get_provider(request: Request) -> AiProvider:
    return request.app.state.ai_provider


def _safe_slug(value: str) -> str:  # Sanitize value for filenames
    return re.sub(r"[^a-zA-Z0-9]+", "-", value or "").strip("-").lower()


@router.get("/health", response_model=HealthResponse)
def health(provider: AiProvider = Depends(get_provider)) -> HealthResponse:
    return HealthResponse(
        ai_enabled=provider.enabled,
        model=provider.model,
        score_denominator=SCORE_DENOMINATOR,
    )


@router.post("/interviews", response_model=SessionDetail, status_code=201)
def create_interview(req: StartInterviewRequest, provider: AiProvider = Depends(get_provider)) -> SessionDetail:
    resume = ResumeRef(url=req.resume.url, original_name=req.resume.originalName) if req.resume else None
    return start_interview(
        CandidateInput(**req.candidate.model_dump()),
        resume,
        req.resumeText,
        req.resumeInsights,
        provider=provider,
    )


@router.get("/interviews/{session_id}", response_model=SessionDetail)
def fetch_interview(session_id: str) -> SessionDetail:
    detail = get_session(session_id)
    if detail is None:
        raise NotFoundError("Interview session not found.")
    return detail


@router.post("/interviews/{session_id}/answers", response_model=SubmitResult)
def post_answer(
    session_id: str,
    req: SubmitAnswerRequest,
    provider: AiProvider = Depends(get_provider),
) -> SubmitResult:
    return submit_answer(
        session_id,
        req.questionId,
        req.answerText,
        req.timeTakenSeconds,
        req.autoSubmitted,
        provider=provider,
    )


@router.post("/interviews/{session_id}/finalize", response_model=SessionDetail)
def post_finalize(session_id: str, provider: AiProvider = Depends(get_provider)) -> SessionDetail:
    return finalize_session(session_id, provider=provider)


@router.get("/interviews/{session_id}/report.pdf")
def fetch_interview_report(session_id: str) -> Response:
    detail = get_session(session_id)
    if detail is None:
        raise NotFoundError("Interview session not found.")
    payload = generate_session_report_pdf(detail)
    slug = _safe_slug(detail.candidate.name or detail.candidate.email)
    filename = f"{session_id}-{slug or 'candidate'}.pdf"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return Response(content=payload, media_type="application/pdf", headers=headers)


@router.post("/resumes/insights", response_model=ResumeInsightsResponse)
def post_resume_insights(
    req: ResumeInsightsRequest,
    provider: AiProvider = Depends(get_provider),
) -> ResumeInsightsResponse:
    if req.mimetype:
        ensure_supported(req.mimetype)
    extraction = extraction_from_text(req.resumeText)
    resume = None
    if req.fileName:
        resume = ResumeFields(
            url=f"{settings.UPLOAD_URL_PREFIX.rstrip('/')}/{req.fileName}",
            originalName=req.fileName,
        )
    return ResumeInsightsResponse(
        text=extraction.text,
        candidate=extraction.candidate,
        insights=merge_insights(extraction.insights, digest_resume(req.resumeText, provider)),
        resume=resume,
    )


@router.get("/candidates", response_model=List[CandidateListItem])
def fetch_candidates(search: str = "", sortField: str = "updatedAt", sortOrder: str = "desc") -> List[CandidateListItem]:
    return list_candidates(search=search, sort_field=sortField, sort_order=sortOrder)


@router.get("/candidates/{candidate_id}", response_model=CandidateDetail)
def fetch_candidate(candidate_id: str) -> CandidateDetail:
    detail = get_candidate_detail(candidate_id)
    if detail is None:
        raise NotFoundError("Candidate not found.")
    return detail
