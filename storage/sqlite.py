"""SQLite helpers for the persistence layer."""
from __future__ import annotations

import datetime as dt
import json
import os
import sqlite3
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from config.settings import settings


@contextmanager
def get_conn() -> Iterator[sqlite3.Connection]:
    """Yield a SQLite connection, committing on success and rolling back on error."""

    directory = os.path.dirname(settings.DB_PATH) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(settings.DB_PATH, timeout=settings.DB_TIMEOUT_S)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def utcnow() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


def new_id() -> str:
    return uuid.uuid4().hex


def dump_json(value: Optional[Dict[str, Any]]) -> str:
    return json.dumps(value or {}, ensure_ascii=False)


def load_json(value: Optional[str]) -> Dict[str, Any]:
    if not value:
        return {}
    return json.loads(value)
