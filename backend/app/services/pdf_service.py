"""
Pay stub PDF. Returns bytes, nothing is written to disk.
"""
from __future__ import annotations

import io
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING

from reportlab.lib import colors
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, HRFlowable

from app.core.config import settings

if TYPE_CHECKING:
    from app.models.employee import Employee
    from app.models.pay_period import PayPeriod
    from app.models.pay_stub import PayStub


_NAVY  = colors.HexColor("#1E3A5F")
_LIGHT = colors.HexColor("#F0F4F8")
_WHITE = colors.white
_GRAY  = colors.HexColor("#6B7280")
_GRID  = colors.HexColor("#E5E7EB")

PAYMENT_METHOD_LABELS = {
    "direct_deposit": "Direct deposit",
    "check":          "Check",
}


def _fmt_usd(val: Decimal | None) -> str:
    if val is None:
        return "–"
    return f"${val:,.2f}"


def _fmt_hours(val: Decimal | None) -> str:
    if not val:
        return "–"
    return f"{val:.2f}"


def _fmt_pct(rate: float) -> str:
    return f"{rate * 100:g}%"


def _table(rows: list[list], widths: list[float], total_row: int | None = None) -> Table:
    style = [
        ("BACKGROUND",    (0, 0), (-1, 0),  _NAVY),
        ("TEXTCOLOR",     (0, 0), (-1, 0),  _WHITE),
        ("FONTNAME",      (0, 0), (-1, 0),  "Helvetica-Bold"),
        ("FONTSIZE",      (0, 0), (-1, -1), 9),
        ("ALIGN",         (1, 0), (-1, -1), "RIGHT"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [_WHITE, _LIGHT]),
        ("TOPPADDING",    (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ("LEFTPADDING",   (0, 0), (-1, -1), 6),
        ("RIGHTPADDING",  (0, 0), (-1, -1), 6),
        ("GRID",          (0, 0), (-1, -1), 0.25, _GRID),
    ]
    if total_row is not None:
        style += [
            ("FONTNAME",  (0, total_row), (-1, total_row), "Helvetica-Bold"),
            ("LINEABOVE", (0, total_row), (-1, total_row), 0.5, _NAVY),
        ]
    tbl = Table(rows, colWidths=widths)
    tbl.setStyle(TableStyle(style))
    return tbl


def generate_pay_stub_pdf(
    stub: "PayStub",
    employee: "Employee",
    pay_period: "PayPeriod",
    company_name: str,
) -> bytes:
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=LETTER,
        leftMargin=0.75 * inch,
        rightMargin=0.75 * inch,
        topMargin=0.75 * inch,
        bottomMargin=0.75 * inch,
    )

    styles = getSampleStyleSheet()
    normal = styles["Normal"]
    normal.fontName = "Helvetica"
    normal.fontSize = 9
    normal.leading = 13
    heading = ParagraphStyle(
        "heading", parent=normal, fontSize=11, fontName="Helvetica-Bold", textColor=_NAVY, spaceAfter=4,
    )
    small_gray = ParagraphStyle("small_gray", parent=normal, fontSize=8, textColor=_GRAY)

    page_w = LETTER[0] - 1.5 * inch
    period_label = f"{pay_period.start_date:%m/%d/%Y} – {pay_period.end_date:%m/%d/%Y}"
    story = []

    # ── Header ────────────────────────────────────────────────────────────────
    header = Table(
        [[Paragraph("<font color='white'><b>Earnings Statement</b></font>", normal),
          Paragraph(f"<font color='white'>{company_name}</font>", normal)]],
        colWidths=[page_w * 0.6, page_w * 0.4],
    )
    header.setStyle(TableStyle([
        ("BACKGROUND",    (0, 0), (-1, -1), _NAVY),
        ("ALIGN",         (1, 0), (1, 0),   "RIGHT"),
        ("TOPPADDING",    (0, 0), (-1, -1), 8),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
        ("LEFTPADDING",   (0, 0), (-1, -1), 10),
        ("RIGHTPADDING",  (0, 0), (-1, -1), 10),
    ]))
    story += [header, Spacer(1, 0.2 * inch)]

    # ── Employee + period ─────────────────────────────────────────────────────
    info = Table(
        [
            ["Employee", employee.display_name, "Pay period", period_label],
            ["Job title", employee.job_title or "–", "Pay date", f"{pay_period.process_date:%m/%d/%Y}"],
            ["Payment", PAYMENT_METHOD_LABELS.get(employee.payment_method, employee.payment_method),
             "Hourly rate", _fmt_usd(stub.hourly_rate)],
        ],
        colWidths=[page_w * 0.15, page_w * 0.35, page_w * 0.15, page_w * 0.35],
    )
    info.setStyle(TableStyle([
        ("FONTNAME",      (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTNAME",      (2, 0), (2, -1), "Helvetica-Bold"),
        ("FONTSIZE",      (0, 0), (-1, -1), 9),
        ("ROWBACKGROUNDS", (0, 0), (-1, -1), [_WHITE, _LIGHT]),
        ("TOPPADDING",    (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
    ]))
    story += [info, Spacer(1, 0.2 * inch)]

    # ── Earnings ──────────────────────────────────────────────────────────────
    story.append(Paragraph("Earnings", heading))
    overtime_rate = stub.hourly_rate * Decimal(str(settings.OVERTIME_MULTIPLIER))
    earnings = [
        ["", "Hours", "Rate", "Amount"],
        ["Regular", _fmt_hours(stub.regular_hours), _fmt_usd(stub.hourly_rate), _fmt_usd(stub.regular_pay)],
    ]
    if stub.overtime_hours:
        earnings.append(
            ["Overtime", _fmt_hours(stub.overtime_hours), _fmt_usd(overtime_rate), _fmt_usd(stub.overtime_pay)]
        )
    earnings.append(
        ["Gross pay", _fmt_hours(stub.regular_hours + stub.overtime_hours), "", _fmt_usd(stub.gross_pay)]
    )
    story.append(_table(
        earnings,
        [page_w * 0.4, page_w * 0.2, page_w * 0.2, page_w * 0.2],
        total_row=len(earnings) - 1,
    ))
    story.append(Spacer(1, 0.2 * inch))

    # ── Deductions ────────────────────────────────────────────────────────────
    story.append(Paragraph("Deductions", heading))
    deductions = [
        ["", "Amount"],
        [f"Federal income tax ({_fmt_pct(settings.FEDERAL_TAX_RATE)})", _fmt_usd(stub.federal_tax)],
        [f"State income tax ({_fmt_pct(settings.STATE_TAX_RATE)})", _fmt_usd(stub.state_tax)],
        [f"Social Security ({_fmt_pct(settings.SOCIAL_SECURITY_RATE)})", _fmt_usd(stub.social_security)],
        [f"Medicare ({_fmt_pct(settings.MEDICARE_RATE)})", _fmt_usd(stub.medicare)],
        ["Total deductions", _fmt_usd(stub.total_deductions)],
    ]
    story.append(_table(deductions, [page_w * 0.7, page_w * 0.3], total_row=len(deductions) - 1))
    story.append(Spacer(1, 0.2 * inch))

    # ── Net pay ───────────────────────────────────────────────────────────────
    story.append(_table([["Net pay", _fmt_usd(stub.net_pay)]], [page_w * 0.7, page_w * 0.3]))

    # ── Footer ────────────────────────────────────────────────────────────────
    story.append(Spacer(1, 0.3 * inch))
    story.append(HRFlowable(width="100%", thickness=0.5, color=_GRAY))
    story.append(Spacer(1, 0.1 * inch))
    now = datetime.now(timezone.utc).strftime("%m/%d/%Y")
    story.append(Paragraph(f"Generated {now} · Pay period status: {pay_period.status}", small_gray))

    doc.build(story)
    return buf.getvalue()
