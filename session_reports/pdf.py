from __future__ import annotations  # Interviewer transcript PDF for a finished session

import logging
import math
from datetime import datetime
from typing import Any, List, Optional, Tuple

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from agents.types import CandidateAnswer, InterviewQuestion, SessionDetail


logger = logging.getLogger(__name__)

DEJAVU_SANS = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"  # System font
DEJAVU_SANS_BOLD = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"  # System font

ACCENT = (45, 115, 245)  # Palette accent
TEXT = (34, 34, 34)  # Primary text color
MUTED = (100, 100, 100)  # Secondary text color
RULE = (230, 230, 230)  # Divider color
SOFT_ACCENT_BG = (243, 248, 255)  # Highlight background
ROW_BG = (248, 249, 255)  # Question block background


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:  # Parse stored ISO timestamp
    if not value:
        return None
    try:
        normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def _format_datetime(value: Optional[str]) -> str:  # Human readable timestamp
    parsed = _parse_datetime(value)
    if not parsed:
        return "-"
    return parsed.strftime("%d %b %Y, %I:%M %p").lstrip("0").replace(" 0", " ")


def _score_value(value: Optional[float]) -> str:
    if value is None:
        return "N/A"
    return f"{float(value):.1f}/10"


def _effective_width(pdf: FPDF) -> float:
    return float(pdf.w) - float(pdf.l_margin) - float(pdf.r_margin)


def _text_height(pdf: FPDF, width: float, text: str, line_height: float) -> float:  # Estimate multi-cell height
    if not text:
        return line_height
    lines = pdf.multi_cell(width, line_height, text, dry_run=True, output="LINES")
    if isinstance(lines, (list, tuple)):
        return line_height * max(1, len(lines))
    return line_height * max(1, math.ceil(len(text) / 90))


class ReportPDF(FPDF):  # PDF with banner header and paginated footer
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.header_title = "Interview Transcript"
        self.font_regular = "Helvetica"
        self.font_bold = "Helvetica"
        self.supports_unicode = False

    def use_unicode_font(self) -> None:
        try:
            self.add_font("DejaVu", "", DEJAVU_SANS)
            self.add_font("DejaVu", "B", DEJAVU_SANS_BOLD)
        except (OSError, RuntimeError) as exc:
            logger.debug("DejaVu font unavailable, using Helvetica: %s", exc)
            return
        self.font_regular = "DejaVu"
        self.font_bold = "DejaVu"
        self.supports_unicode = True

    def clean(self, text: Any) -> str:  # Core fonts only cover latin-1
        value = "" if text is None else str(text)
        if self.supports_unicode:
            return value
        value = value.replace("•", "-").replace("—", "-").replace("’", "'")
        return value.encode("latin-1", "ignore").decode("latin-1")

    def cell(self, w=None, h=None, text="", *args, **kwargs):
        return super().cell(w, h, self.clean(text), *args, **kwargs)

    def multi_cell(self, w, h=None, text="", *args, **kwargs):
        return super().multi_cell(w, h, self.clean(text), *args, **kwargs)

    def header(self) -> None:
        usable = _effective_width(self)
        if self.page_no() == 1:
            self.set_font(self.font_bold, "B", 16)
            lines = self.multi_cell(usable, 8, self.header_title, dry_run=True, output="LINES")
            banner = 6 + len(lines) * 8 + 4
            self.set_fill_color(*ACCENT)
            self.rect(0, 0, self.w, banner, style="F")
            self.set_text_color(255, 255, 255)
            self.set_xy(self.l_margin, 6)
            self.multi_cell(usable, 8, self.header_title)
        else:
            self.set_text_color(80, 80, 80)
            self.set_xy(self.l_margin, 8)
            self.set_font(self.font_bold, "B", 12)
            self.multi_cell(usable, 6, self.header_title)
            mark = self.get_y()
            self.set_draw_color(*ACCENT)
            self.set_line_width(0.4)
            self.line(self.l_margin, mark + 1, self.w - self.r_margin, mark + 1)
        self.set_text_color(*TEXT)
        self.ln(4)

    def footer(self) -> None:
        self.set_y(-12)
        self.set_draw_color(*RULE)
        self.set_line_width(0.2)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.set_text_color(120, 120, 120)
        self.set_font(self.font_regular, "", 9)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="R")


def _section_title(pdf: ReportPDF, title: str) -> None:
    pdf.set_text_color(*TEXT)
    pdf.set_x(pdf.l_margin)
    pdf.set_font(pdf.font_bold, "B", 13)
    pdf.cell(0, 9, title, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_draw_color(*RULE)
    pdf.set_line_width(0.2)
    y = pdf.get_y()
    pdf.line(pdf.l_margin, y, pdf.l_margin + _effective_width(pdf), y)
    pdf.ln(2)


def _meta_block(pdf: ReportPDF, rows: List[Tuple[str, str]]) -> None:  # Two-column label/value grid
    col = _effective_width(pdf) / 2.0
    line = 6
    for idx in range(0, len(rows), 2):
        left = rows[idx]
        right = rows[idx + 1] if idx + 1 < len(rows) else ("", "")
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf.font_regular, "", 10)
        pdf.cell(col, line, left[0], new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.cell(col, line, right[0], new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*TEXT)
        pdf.set_font(pdf.font_bold, "B", 11)
        pdf.cell(col, line, left[1], new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.cell(col, line, right[1], new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(2)


def _render_score_banner(pdf: ReportPDF, final_score: Optional[float]) -> None:
    width = _effective_width(pdf)
    pdf.set_fill_color(*SOFT_ACCENT_BG)
    pdf.rect(pdf.l_margin, pdf.get_y(), width, 16, style="F")
    pdf.set_xy(pdf.l_margin + 6, pdf.get_y() + 4)
    pdf.set_text_color(*MUTED)
    pdf.set_font(pdf.font_regular, "", 10)
    pdf.cell(width - 12, 6, "Final Score")
    pdf.set_xy(pdf.l_margin, pdf.get_y() - 2)
    pdf.set_text_color(*ACCENT)
    pdf.set_font(pdf.font_bold, "B", 14)
    pdf.cell(width - 6, 8, _score_value(final_score), align="R")
    pdf.ln(12)
    pdf.set_text_color(*TEXT)


def _answer_details(question: InterviewQuestion, answer: Optional[CandidateAnswer]) -> List[str]:
    details = [f"Difficulty: {question.difficulty.value.title()}", f"Question source: {question.source}"]
    if answer is None:
        details.append("Not answered")
        return details
    evaluation = answer.evaluation or {}
    details.append(f"Score: {_score_value(answer.score)}")
    details.append(f"Time taken: {answer.time_taken_seconds:.0f}s" + (" (auto)" if answer.auto_submitted else ""))
    details.append(f"Scored by: {evaluation.get('source') or 'heuristic'}")
    for item in evaluation.get("strengths") or []:
        details.append(f"+ {item}")
    for item in evaluation.get("improvements") or []:
        details.append(f"- {item}")
    return details


def _render_question(
    pdf: ReportPDF,
    question: InterviewQuestion,
    answer: Optional[CandidateAnswer],
) -> None:  # One question block with the answer on the left, scoring on the right
    total = _effective_width(pdf)
    gap = 6.0
    left = total * 0.64
    right = total - left - gap
    line = 5.5

    prompt = f"Q{question.order + 1}: {question.prompt.strip()}"
    reply = f"A: {(answer.response_text.strip() if answer else '') or '-'}"
    feedback = f"Feedback: {answer.feedback}" if answer else ""
    details = _answer_details(question, answer)
    highlight = "\n".join(details)

    text_height = _text_height(pdf, left - 4, prompt, line) + _text_height(pdf, left - 4, reply, line)
    if feedback:
        text_height += _text_height(pdf, left - 4, feedback, line)
    block = max(text_height, _text_height(pdf, right, highlight, line)) + 6
    if pdf.get_y() + block > pdf.page_break_trigger:
        pdf.add_page()

    origin_x = pdf.l_margin
    origin_y = pdf.get_y()
    pdf.set_fill_color(*ROW_BG)
    pdf.rect(origin_x, origin_y, left, block, style="F")
    pdf.set_xy(origin_x + 2, origin_y + 2)
    pdf.set_text_color(*ACCENT)
    pdf.set_font(pdf.font_bold, "B", 10)
    pdf.multi_cell(left - 4, line, prompt)
    pdf.set_x(origin_x + 2)
    pdf.set_text_color(60, 60, 60)
    pdf.set_font(pdf.font_regular, "", 10)
    pdf.multi_cell(left - 4, line, reply)
    if feedback:
        pdf.set_x(origin_x + 2)
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf.font_regular, "", 9)
        pdf.multi_cell(left - 4, line, feedback)

    pdf.set_xy(origin_x + left + gap, origin_y + 2)
    pdf.set_text_color(*ACCENT)
    pdf.set_font(pdf.font_bold, "B", 9)
    pdf.multi_cell(right, line, details[0])
    pdf.set_text_color(*TEXT)
    pdf.set_font(pdf.font_regular, "", 9)
    for extra in details[1:]:
        pdf.set_x(origin_x + left + gap)
        pdf.multi_cell(right, line, extra)

    bottom = max(pdf.get_y(), origin_y + block - 2)
    pdf.set_draw_color(*RULE)
    pdf.set_line_width(0.2)
    pdf.line(origin_x, bottom + 1, origin_x + total, bottom + 1)
    pdf.set_y(bottom + 4)
    pdf.set_text_color(*TEXT)


def generate_session_report_pdf(detail: SessionDetail) -> bytes:
    """Render the scored transcript of ``detail`` for interviewer review."""

    session = detail.session
    candidate = detail.candidate

    pdf = ReportPDF()
    pdf.use_unicode_font()
    pdf.alias_nb_pages()
    pdf.header_title = f"{candidate.name or candidate.email} - Interview Transcript"
    pdf.set_margins(15, 22, 15)
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    _section_title(pdf, "Session Overview")
    _meta_block(
        pdf,
        [
            ("Candidate", candidate.name or "-"),
            ("Email", candidate.email),
            ("Status", session.status.value.title()),
            ("Questions answered", f"{len(detail.answers)}/{len(detail.questions)}"),
            ("Started", _format_datetime(session.started_at)),
            ("Completed", _format_datetime(session.completed_at)),
        ],
    )
    _render_score_banner(pdf, session.final_score)

    _section_title(pdf, "Summary")
    pdf.set_x(pdf.l_margin)
    pdf.set_font(pdf.font_regular, "", 11)
    pdf.multi_cell(_effective_width(pdf), 6, session.summary or "Summary not available yet.")
    pdf.ln(2)

    _section_title(pdf, "Questions & Answers")
    if not detail.questions:
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf.font_regular, "", 10)
        pdf.multi_cell(_effective_width(pdf), 6, "No questions recorded for this session.")
    for question in detail.questions:
        _render_question(pdf, question, detail.answer_for(question.id))

    return bytes(pdf.output())


__all__ = ["ReportPDF", "generate_session_report_pdf"]
