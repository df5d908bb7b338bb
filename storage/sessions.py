"""Persistence helpers for interview sessions."""
from __future__ import annotations

import sqlite3
from typing import List, Optional

from agents.types import InterviewSession, SessionStatus

from .sqlite import new_id, utcnow


def _row_to_session(row: sqlite3.Row) -> InterviewSession:
    return InterviewSession(**dict(row))


def insert_session(conn: sqlite3.Connection, candidate_id: str, session_id: Optional[str] = None) -> InterviewSession:
    """Create an ACTIVE session positioned at the first question."""

    session_id = session_id or new_id()
    now = utcnow()
    conn.execute(
        """INSERT INTO interview_sessions
           (id, candidate_id, status, current_question_index, started_at, created_at)
           VALUES (?, ?, ?, 0, ?, ?)""",
        (session_id, candidate_id, SessionStatus.ACTIVE.value, now, now),
    )
    return get_session(conn, session_id)  # type: ignore[return-value]


def get_session(conn: sqlite3.Connection, session_id: str) -> Optional[InterviewSession]:
    row = conn.execute("SELECT * FROM interview_sessions WHERE id = ?", (session_id,)).fetchone()
    return _row_to_session(row) if row else None


def advance_pointer(
    conn: sqlite3.Connection,
    session_id: str,
    *,
    expected_index: int,
    completed: bool,
) -> bool:
    """Move the pointer from ``expected_index`` to the next slot.

    Returns False when another writer already moved the pointer.
    """

    if completed:
        cur = conn.execute(
            """UPDATE interview_sessions
               SET current_question_index = ?, status = ?, completed_at = ?
               WHERE id = ? AND current_question_index = ? AND status = ?""",
            (
                expected_index + 1,
                SessionStatus.COMPLETED.value,
                utcnow(),
                session_id,
                expected_index,
                SessionStatus.ACTIVE.value,
            ),
        )
    else:
        cur = conn.execute(
            """UPDATE interview_sessions
               SET current_question_index = ?
               WHERE id = ? AND current_question_index = ? AND status = ?""",
            (expected_index + 1, session_id, expected_index, SessionStatus.ACTIVE.value),
        )
    return cur.rowcount == 1


def record_final_result(
    conn: sqlite3.Connection,
    session_id: str,
    *,
    final_score: float,
    summary: str,
) -> bool:
    """Stamp the final score once; returns False if a score was already recorded."""

    cur = conn.execute(
        """UPDATE interview_sessions
           SET status = ?, completed_at = coalesce(completed_at, ?), final_score = ?, summary = ?
           WHERE id = ? AND final_score IS NULL""",
        (SessionStatus.COMPLETED.value, utcnow(), final_score, summary, session_id),
    )
    return cur.rowcount == 1


def list_sessions_for_candidate(conn: sqlite3.Connection, candidate_id: str) -> List[InterviewSession]:
    """Sessions for ``candidate_id``, most recent first."""

    rows = conn.execute(
        """SELECT * FROM interview_sessions WHERE candidate_id = ?
           ORDER BY created_at DESC, rowid DESC""",
        (candidate_id,),
    ).fetchall()
    return [_row_to_session(row) for row in rows]
