"""Read-only candidate listings for interviewer tooling."""
from __future__ import annotations

import math
from typing import List, Optional

from agents.types import CandidateDetail, CandidateListItem
from storage.candidates import get_candidate, search_candidates
from storage.sessions import list_sessions_for_candidate
from storage.sqlite import get_conn

from .sessions import load_detail

SCORE_SORT_FIELD = "finalScore"


def list_candidates(
    search: str = "",
    sort_field: str = "updatedAt",
    sort_order: str = "desc",
) -> List[CandidateListItem]:
    """Filter by name/email and sort; latest final score is sorted after the fetch."""

    descending = sort_order.lower() != "asc"
    with get_conn() as conn:
        candidates = search_candidates(
            conn,
            search=search or "",
            sort_field=sort_field,
            descending=descending,
        )
        items: List[CandidateListItem] = []
        for candidate in candidates:
            sessions = list_sessions_for_candidate(conn, candidate.id)
            items.append(
                CandidateListItem(
                    candidate=candidate,
                    latest_interview=sessions[0] if sessions else None,
                    interview_count=len(sessions),
                )
            )

    if sort_field == SCORE_SORT_FIELD:
        items.sort(key=_latest_score, reverse=descending)
    return items


def _latest_score(item: CandidateListItem) -> float:
    latest = item.latest_interview
    if latest is None or latest.final_score is None:
        return -math.inf
    return latest.final_score


def get_candidate_detail(candidate_id: str) -> Optional[CandidateDetail]:
    with get_conn() as conn:
        candidate = get_candidate(conn, candidate_id)
        if candidate is None:
            return None
        interviews = [
            load_detail(conn, session.id)
            for session in list_sessions_for_candidate(conn, candidate_id)
        ]
    return CandidateDetail(candidate=candidate, interviews=interviews)


__all__ = ["list_candidates", "get_candidate_detail"]
