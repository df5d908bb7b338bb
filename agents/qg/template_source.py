"""Persisted template pool question source."""
from __future__ import annotations

import sqlite3
from typing import Dict, List, Optional

from agents.types import Difficulty, QuestionTemplate
from config.interview import slots_for
from storage.questions import list_templates, upsert_template

from .bank import QuestionBank
from .common import CandidateQuestion, QGContext, matches_topic


def ensure_templates(conn: sqlite3.Connection, difficulty: Difficulty, bank: QuestionBank) -> List[QuestionTemplate]:
    """Backfill the pool from the bank until it covers the difficulty's script slots."""

    desired = slots_for(difficulty)
    existing = list_templates(conn, difficulty)
    if len(existing) >= desired:
        return existing
    known = {template.prompt for template in existing}
    for item in bank.get(difficulty, []):
        if len(existing) >= desired:
            break
        if item.prompt in known:
            continue
        existing.append(
            upsert_template(
                conn,
                difficulty=difficulty,
                prompt=item.prompt,
                expected_note=item.expected,
                topic=item.topic,
            )
        )
        known.add(item.prompt)
    return existing


class TemplateQuestionSource:
    name = "template"

    def __init__(self, pools: Dict[Difficulty, List[QuestionTemplate]]) -> None:
        self.pools = pools

    def try_provide(self, difficulty: Difficulty, slot: int, ctx: QGContext) -> Optional[CandidateQuestion]:
        pool = self.pools.get(difficulty) or []
        if not pool:
            return None
        template = self._pick(pool, difficulty, slot, ctx)
        return CandidateQuestion(
            prompt=template.prompt,
            expected_note=template.expected_note,
            topic=template.topic,
            source="template",
            template_id=template.id,
        )

    def _pick(self, pool: List[QuestionTemplate], difficulty: Difficulty, slot: int, ctx: QGContext) -> QuestionTemplate:
        unused = [template for template in pool if template.id not in ctx.used_template_ids]
        hint = ctx.focus_hint(slot)
        if hint is not None:
            for template in unused:
                if matches_topic(hint.topic, template.prompt, template.expected_note, template.topic):
                    return template
        if unused:
            return unused[0]
        turn = ctx.template_turns.get(difficulty, 0)
        ctx.template_turns[difficulty] = turn + 1
        offset = ctx.template_offsets.get(difficulty, 0)
        return pool[(offset + turn) % len(pool)]
