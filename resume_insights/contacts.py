from __future__ import annotations  # Best-effort contact extraction from resume text

import re
from typing import Optional

from pydantic import BaseModel, Field

from agents.types import ResumeInsights
from services.errors import InvalidRequestError

from .resume_insights import derive_insights

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[A-Za-z]{2,}")
PHONE_PATTERN = re.compile(r"(\+\d{1,3}[\s-]?)?(\(?\d{3}\)?[\s-]?)?\d{3}[\s-]?\d{4}")

SUPPORTED_MIMETYPES = {
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
}


class ContactFields(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class ResumeExtraction(BaseModel):  # Output of the text-extraction collaborator
    text: str
    candidate: ContactFields = Field(default_factory=ContactFields)
    insights: Optional[ResumeInsights] = None


class UnsupportedFileTypeError(InvalidRequestError):
    def __init__(self, mimetype: str) -> None:
        super().__init__(
            "Unsupported file type. Please upload a PDF or DOCX resume.",
            details={"mimetype": mimetype},
        )


def ensure_supported(mimetype: str) -> None:
    if mimetype not in SUPPORTED_MIMETYPES:
        raise UnsupportedFileTypeError(mimetype)


def extract_name(text: str) -> Optional[str]:
    lines = [line.strip() for line in (text or "").split("\n") if line.strip()]
    if not lines:
        return None
    likely = lines[0]
    if len(likely) > 60 or re.search(r"@|\d", likely):
        return None
    return likely


def extract_email(text: str) -> Optional[str]:
    match = EMAIL_PATTERN.search(text or "")
    return match.group(0) if match else None


def extract_phone(text: str) -> Optional[str]:
    match = PHONE_PATTERN.search(text or "")
    if not match:
        return None
    return re.sub(r"\s+", " ", match.group(0)).strip()


def extract_contacts(text: str) -> ContactFields:
    return ContactFields(
        name=extract_name(text),
        email=extract_email(text),
        phone=extract_phone(text),
    )


def extraction_from_text(text: str) -> ResumeExtraction:
    """Build the extraction payload for text that was already pulled from a file."""

    return ResumeExtraction(text=text, candidate=extract_contacts(text), insights=derive_insights(text))
