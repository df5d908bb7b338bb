"""Pydantic schemas for the interview API."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from agents.types import ResumeInsights
from resume_insights import ContactFields


class CandidateFields(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class ResumeFields(BaseModel):
    url: Optional[str] = None
    originalName: Optional[str] = None


class StartInterviewRequest(BaseModel):
    candidate: CandidateFields
    resume: Optional[ResumeFields] = None
    resumeText: Optional[str] = None
    resumeInsights: Optional[ResumeInsights] = None


class SubmitAnswerRequest(BaseModel):
    questionId: str = Field(min_length=1)
    answerText: Optional[str] = ""
    timeTakenSeconds: float = Field(ge=0)
    autoSubmitted: bool = False


class ResumeInsightsRequest(BaseModel):
    resumeText: str = Field(min_length=1)
    fileName: Optional[str] = None
    mimetype: Optional[str] = None


class ResumeInsightsResponse(BaseModel):
    text: str
    candidate: ContactFields
    insights: Optional[ResumeInsights] = None
    resume: Optional[ResumeFields] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    ai_enabled: bool
    model: Optional[str] = None
    score_denominator: str


class ErrorResponse(BaseModel):
    message: str
    details: Optional[object] = None


__all__: List[str] = [
    "CandidateFields",
    "ErrorResponse",
    "HealthResponse",
    "ResumeFields",
    "ResumeInsightsRequest",
    "ResumeInsightsResponse",
    "StartInterviewRequest",
    "SubmitAnswerRequest",
]
