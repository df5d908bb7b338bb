"""Persistence helpers for candidate answers and transcript messages."""
from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from agents.types import CandidateAnswer, ChatMessage, Sender

from .sqlite import dump_json, load_json, new_id, utcnow


class AnswerPayload(BaseModel):
    question_id: str
    session_id: str
    response_text: str
    time_taken_seconds: float = Field(ge=0)
    auto_submitted: bool = False
    score: float = Field(ge=0, le=10)
    feedback: str
    evaluation: Dict[str, Any] = Field(default_factory=dict)


class MessagePayload(BaseModel):
    session_id: str
    sender: Sender
    content: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


def _row_to_answer(row: sqlite3.Row) -> CandidateAnswer:
    data = dict(row)
    data["auto_submitted"] = bool(data["auto_submitted"])
    data["evaluation"] = load_json(data.get("evaluation"))
    return CandidateAnswer(**data)


def _row_to_message(row: sqlite3.Row) -> ChatMessage:
    data = dict(row)
    data["metadata"] = load_json(data.get("metadata"))
    return ChatMessage(**data)


def insert_answer(conn: sqlite3.Connection, **data: Any) -> CandidateAnswer:
    """Insert an answer; raises sqlite3.IntegrityError if the question is already answered."""

    payload = AnswerPayload(**data)
    answer_id = new_id()
    conn.execute(
        """INSERT INTO candidate_answers
           (id, question_id, session_id, response_text, time_taken_seconds, auto_submitted,
            score, feedback, evaluation, created_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            answer_id,
            payload.question_id,
            payload.session_id,
            payload.response_text,
            payload.time_taken_seconds,
            int(payload.auto_submitted),
            payload.score,
            payload.feedback,
            dump_json(payload.evaluation),
            utcnow(),
        ),
    )
    row = conn.execute("SELECT * FROM candidate_answers WHERE id = ?", (answer_id,)).fetchone()
    return _row_to_answer(row)


def get_answer_for_question(conn: sqlite3.Connection, question_id: str) -> Optional[CandidateAnswer]:
    row = conn.execute("SELECT * FROM candidate_answers WHERE question_id = ?", (question_id,)).fetchone()
    return _row_to_answer(row) if row else None


def list_answers(conn: sqlite3.Connection, session_id: str) -> List[CandidateAnswer]:
    rows = conn.execute(
        "SELECT * FROM candidate_answers WHERE session_id = ? ORDER BY created_at ASC, rowid ASC",
        (session_id,),
    ).fetchall()
    return [_row_to_answer(row) for row in rows]


def insert_message(conn: sqlite3.Connection, **data: Any) -> int:
    """Append a transcript message and return its primary key."""

    payload = MessagePayload(**data)
    cur = conn.execute(
        """INSERT INTO chat_messages (session_id, sender, content, metadata, created_at)
           VALUES (?, ?, ?, ?, ?)""",
        (
            payload.session_id,
            payload.sender.value,
            payload.content,
            dump_json(payload.metadata),
            utcnow(),
        ),
    )
    return int(cur.lastrowid)


def list_messages(conn: sqlite3.Connection, session_id: str) -> List[ChatMessage]:
    rows = conn.execute(
        "SELECT * FROM chat_messages WHERE session_id = ? ORDER BY id ASC",
        (session_id,),
    ).fetchall()
    return [_row_to_message(row) for row in rows]
