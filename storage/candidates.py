"""Persistence helpers for candidates."""
from __future__ import annotations

import sqlite3
from typing import Any, List, Optional

from pydantic import BaseModel

from agents.types import Candidate

from .sqlite import new_id, utcnow


SORT_COLUMNS = {
    "name": "name",
    "email": "email",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


class CandidatePayload(BaseModel):
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None
    resume_url: Optional[str] = None
    resume_name: Optional[str] = None


def _row_to_candidate(row: sqlite3.Row) -> Candidate:
    return Candidate(**dict(row))


def upsert_candidate(conn: sqlite3.Connection, **data: Any) -> Candidate:
    """Insert or update a candidate keyed by lowercased email; missing fields keep stored values."""

    payload = CandidatePayload(**data)
    email = payload.email.strip().lower()
    now = utcnow()
    conn.execute(
        """INSERT INTO candidates (id, name, email, phone, resume_url, resume_name, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?)
           ON CONFLICT(email) DO UPDATE SET
             name = coalesce(excluded.name, candidates.name),
             phone = coalesce(excluded.phone, candidates.phone),
             resume_url = coalesce(excluded.resume_url, candidates.resume_url),
             resume_name = coalesce(excluded.resume_name, candidates.resume_name),
             updated_at = excluded.updated_at""",
        (
            new_id(),
            payload.name,
            email,
            payload.phone,
            payload.resume_url,
            payload.resume_name,
            now,
            now,
        ),
    )
    row = conn.execute("SELECT * FROM candidates WHERE email = ?", (email,)).fetchone()
    return _row_to_candidate(row)


def get_candidate(conn: sqlite3.Connection, candidate_id: str) -> Optional[Candidate]:
    row = conn.execute("SELECT * FROM candidates WHERE id = ?", (candidate_id,)).fetchone()
    return _row_to_candidate(row) if row else None


def search_candidates(
    conn: sqlite3.Connection,
    *,
    search: str = "",
    sort_field: str = "updatedAt",
    descending: bool = True,
) -> List[Candidate]:
    """Return candidates whose name or email contains ``search`` (case-insensitive)."""

    column = SORT_COLUMNS.get(sort_field, "updated_at")
    direction = "DESC" if descending else "ASC"
    needle = "%" + _escape_like(search.strip().lower()) + "%"
    rows = conn.execute(
        f"""SELECT * FROM candidates
            WHERE lower(coalesce(name, '')) LIKE ? ESCAPE '\\' OR lower(email) LIKE ? ESCAPE '\\'
            ORDER BY {column} {direction}, rowid {direction}""",
        (needle, needle),
    ).fetchall()
    return [_row_to_candidate(row) for row in rows]


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
