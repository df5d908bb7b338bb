"""Static in-memory bank question source."""
from __future__ import annotations

from typing import Optional

from agents.types import Difficulty

from .bank import BankQuestion, QuestionBank
from .common import CandidateQuestion, QGContext, matches_topic


class BankQuestionSource:
    name = "bank"

    def __init__(self, bank: QuestionBank) -> None:
        self.bank = bank

    def try_provide(self, difficulty: Difficulty, slot: int, ctx: QGContext) -> Optional[CandidateQuestion]:
        entries = self.bank.get(difficulty) or []
        if not entries:
            return None
        item = self._pick(entries, difficulty, slot, ctx)
        return CandidateQuestion(
            prompt=item.prompt,
            expected_note=item.expected,
            topic=item.topic,
            source="bank",
        )

    def _pick(self, entries: list[BankQuestion], difficulty: Difficulty, slot: int, ctx: QGContext) -> BankQuestion:
        unused = [item for item in entries if item.prompt not in ctx.used_prompts]
        hint = ctx.focus_hint(slot)
        if hint is not None:
            for item in unused:
                if matches_topic(hint.topic, item.topic, item.prompt, item.expected):
                    return item
        for skill in ctx.detected_skills:
            for item in unused:
                if matches_topic(skill, item.topic, item.prompt):
                    return item
        asked = {topic.lower() for topic in ctx.asked_topics}
        for item in unused:
            if item.topic.lower() not in asked:
                return item
        turn = ctx.bank_turns.get(difficulty, 0)
        ctx.bank_turns[difficulty] = turn + 1
        offset = ctx.template_offsets.get(difficulty, 0)
        return entries[(offset + turn) % len(entries)]
