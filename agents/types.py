"""Shared type definitions for the interview engine."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class SessionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class Sender(str, Enum):
    SYSTEM = "SYSTEM"
    AI = "AI"
    INTERVIEWEE = "INTERVIEWEE"


QuestionSourceName = Literal["ai", "template", "bank"]
ScoreSource = Literal["ai", "heuristic"]


class FocusArea(BaseModel):
    topic: Optional[str] = None
    reason: Optional[str] = None


class ResumeInsights(BaseModel):
    highlights: List[str] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    roles: List[str] = Field(default_factory=list)
    focus_areas: List[FocusArea] = Field(default_factory=list)
    experience_years: Optional[float] = None
    unique_details: List[str] = Field(default_factory=list)
    project_types: List[str] = Field(default_factory=list)
    industry_context: Optional[str] = None


class Evaluation(BaseModel):
    score: float
    feedback: str
    strengths: Optional[List[str]] = None
    improvements: Optional[List[str]] = None
    source: ScoreSource = "heuristic"
    model: Optional[str] = None
    note: Optional[str] = None


class Candidate(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    resume_url: Optional[str] = None
    resume_name: Optional[str] = None
    created_at: str
    updated_at: str


class InterviewSession(BaseModel):
    id: str
    candidate_id: str
    status: SessionStatus
    current_question_index: int = Field(ge=0)
    started_at: str
    completed_at: Optional[str] = None
    final_score: Optional[float] = None
    summary: Optional[str] = None
    created_at: str


class InterviewQuestion(BaseModel):
    id: str
    session_id: str
    order: int = Field(ge=0)
    difficulty: Difficulty
    prompt: str
    expected_note: Optional[str] = None
    topic: Optional[str] = None
    source: QuestionSourceName
    template_id: Optional[str] = None
    created_at: str


class QuestionTemplate(BaseModel):
    id: str
    difficulty: Difficulty
    prompt: str
    expected_note: Optional[str] = None
    topic: Optional[str] = None
    category: str = "fullstack"
    created_at: str


class CandidateAnswer(BaseModel):
    id: str
    question_id: str
    session_id: str
    response_text: str
    time_taken_seconds: float
    auto_submitted: bool = False
    score: float
    feedback: str
    evaluation: Dict[str, Any] = Field(default_factory=dict)
    created_at: str


class ChatMessage(BaseModel):
    id: int
    session_id: str
    sender: Sender
    content: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: str


class SessionDetail(BaseModel):
    session: InterviewSession
    candidate: Candidate
    questions: List[InterviewQuestion] = Field(default_factory=list)
    answers: List[CandidateAnswer] = Field(default_factory=list)
    messages: List[ChatMessage] = Field(default_factory=list)

    def question_at(self, order: int) -> Optional[InterviewQuestion]:
        for question in self.questions:
            if question.order == order:
                return question
        return None

    def answer_for(self, question_id: str) -> Optional[CandidateAnswer]:
        for answer in self.answers:
            if answer.question_id == question_id:
                return answer
        return None


class CandidateListItem(BaseModel):
    candidate: Candidate
    latest_interview: Optional[InterviewSession] = None
    interview_count: int = 0


class CandidateDetail(BaseModel):
    candidate: Candidate
    interviews: List[SessionDetail] = Field(default_factory=list)
