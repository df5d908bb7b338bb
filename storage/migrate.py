"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS candidates (
  id TEXT PRIMARY KEY,
  name TEXT,
  email TEXT NOT NULL UNIQUE,
  phone TEXT,
  resume_url TEXT,
  resume_name TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS interview_sessions (
  id TEXT PRIMARY KEY,
  candidate_id TEXT NOT NULL REFERENCES candidates(id) ON DELETE CASCADE,
  status TEXT NOT NULL CHECK (status IN ('ACTIVE', 'COMPLETED')),
  current_question_index INTEGER NOT NULL DEFAULT 0 CHECK (current_question_index BETWEEN 0 AND 6),
  started_at TEXT NOT NULL,
  completed_at TEXT,
  final_score REAL,
  summary TEXT,
  created_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS question_templates (
  id TEXT PRIMARY KEY,
  difficulty TEXT NOT NULL,
  prompt TEXT NOT NULL,
  expected_note TEXT,
  topic TEXT,
  category TEXT NOT NULL DEFAULT 'fullstack',
  created_at TEXT NOT NULL,
  UNIQUE (prompt, difficulty)
);
""",
    """
CREATE TABLE IF NOT EXISTS interview_questions (
  id TEXT PRIMARY KEY,
  session_id TEXT NOT NULL REFERENCES interview_sessions(id) ON DELETE CASCADE,
  order_index INTEGER NOT NULL,
  difficulty TEXT NOT NULL,
  prompt TEXT NOT NULL,
  expected_note TEXT,
  topic TEXT,
  source TEXT NOT NULL,
  template_id TEXT REFERENCES question_templates(id) ON DELETE SET NULL,
  created_at TEXT NOT NULL,
  UNIQUE (session_id, order_index)
);
""",
    """
CREATE TABLE IF NOT EXISTS candidate_answers (
  id TEXT PRIMARY KEY,
  question_id TEXT NOT NULL UNIQUE REFERENCES interview_questions(id) ON DELETE CASCADE,
  session_id TEXT NOT NULL REFERENCES interview_sessions(id) ON DELETE CASCADE,
  response_text TEXT NOT NULL,
  time_taken_seconds REAL NOT NULL,
  auto_submitted INTEGER NOT NULL DEFAULT 0,
  score REAL NOT NULL,
  feedback TEXT NOT NULL,
  evaluation TEXT,
  created_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS chat_messages (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  session_id TEXT NOT NULL REFERENCES interview_sessions(id) ON DELETE CASCADE,
  sender TEXT NOT NULL CHECK (sender IN ('SYSTEM', 'AI', 'INTERVIEWEE')),
  content TEXT NOT NULL,
  metadata TEXT,
  created_at TEXT NOT NULL
);
""",
    "CREATE INDEX IF NOT EXISTS idx_sessions_candidate ON interview_sessions(candidate_id, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_messages_session ON chat_messages(session_id, id);",
    "CREATE INDEX IF NOT EXISTS idx_answers_session ON candidate_answers(session_id);",
]


def migrate(db_path: str = "data/interview.db") -> None:
    """Apply schema migrations to the SQLite database."""

    directory = os.path.dirname(db_path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    from config.settings import settings

    migrate(settings.DB_PATH)
