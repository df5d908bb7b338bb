"""Persistence helpers for session questions and the template pool."""
from __future__ import annotations

import sqlite3
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from agents.types import Difficulty, InterviewQuestion, QuestionSourceName, QuestionTemplate

from .sqlite import new_id, utcnow


class QuestionPayload(BaseModel):
    session_id: str
    order: int = Field(ge=0)
    difficulty: Difficulty
    prompt: str = Field(min_length=1)
    expected_note: Optional[str] = None
    topic: Optional[str] = None
    source: QuestionSourceName
    template_id: Optional[str] = None


def _row_to_question(row: sqlite3.Row) -> InterviewQuestion:
    data = dict(row)
    data["order"] = data.pop("order_index")
    return InterviewQuestion(**data)


def insert_question(conn: sqlite3.Connection, **data: Any) -> InterviewQuestion:
    """Insert a session question and return the stored record."""

    payload = QuestionPayload(**data)
    question_id = new_id()
    conn.execute(
        """INSERT INTO interview_questions
           (id, session_id, order_index, difficulty, prompt, expected_note, topic, source, template_id, created_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            question_id,
            payload.session_id,
            payload.order,
            payload.difficulty.value,
            payload.prompt,
            payload.expected_note,
            payload.topic,
            payload.source,
            payload.template_id,
            utcnow(),
        ),
    )
    return get_question(conn, question_id)  # type: ignore[return-value]


def get_question(conn: sqlite3.Connection, question_id: str) -> Optional[InterviewQuestion]:
    row = conn.execute("SELECT * FROM interview_questions WHERE id = ?", (question_id,)).fetchone()
    return _row_to_question(row) if row else None


def list_questions(conn: sqlite3.Connection, session_id: str) -> List[InterviewQuestion]:
    rows = conn.execute(
        "SELECT * FROM interview_questions WHERE session_id = ? ORDER BY order_index ASC",
        (session_id,),
    ).fetchall()
    return [_row_to_question(row) for row in rows]


def list_templates(conn: sqlite3.Connection, difficulty: Difficulty) -> List[QuestionTemplate]:
    rows = conn.execute(
        "SELECT * FROM question_templates WHERE difficulty = ? ORDER BY created_at ASC, rowid ASC",
        (Difficulty(difficulty).value,),
    ).fetchall()
    return [QuestionTemplate(**dict(row)) for row in rows]


def upsert_template(
    conn: sqlite3.Connection,
    *,
    difficulty: Difficulty,
    prompt: str,
    expected_note: Optional[str] = None,
    topic: Optional[str] = None,
    category: str = "fullstack",
) -> QuestionTemplate:
    """Insert a template keyed on (prompt, difficulty); existing rows keep their id."""

    level = Difficulty(difficulty).value
    conn.execute(
        """INSERT INTO question_templates (id, difficulty, prompt, expected_note, topic, category, created_at)
           VALUES (?, ?, ?, ?, ?, ?, ?)
           ON CONFLICT(prompt, difficulty) DO UPDATE SET
             expected_note = coalesce(excluded.expected_note, question_templates.expected_note),
             topic = coalesce(excluded.topic, question_templates.topic)""",
        (new_id(), level, prompt, expected_note, topic, category, utcnow()),
    )
    row = conn.execute(
        "SELECT * FROM question_templates WHERE prompt = ? AND difficulty = ?",
        (prompt, level),
    ).fetchone()
    return QuestionTemplate(**dict(row))
