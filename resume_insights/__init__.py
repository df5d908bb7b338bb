from __future__ import annotations  # Re-export resume_insights public API

from .contacts import (  # noqa: F401
    ContactFields,
    ResumeExtraction,
    UnsupportedFileTypeError,
    ensure_supported,
    extract_contacts,
    extraction_from_text,
)
from .digest import build_session_insights, digest_resume  # noqa: F401
from .resume_insights import (  # noqa: F401
    DEFAULT_FOCUS_TOPICS,
    SKILL_MATCHERS,
    derive_insights,
    merge_insights,
    unique_strings,
)

__all__ = [
    "ContactFields",
    "DEFAULT_FOCUS_TOPICS",
    "ResumeExtraction",
    "SKILL_MATCHERS",
    "UnsupportedFileTypeError",
    "build_session_insights",
    "derive_insights",
    "digest_resume",
    "ensure_supported",
    "extract_contacts",
    "extraction_from_text",
    "merge_insights",
    "unique_strings",
]
